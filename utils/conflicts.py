# =============================================================================
# utils/conflicts.py
# =============================================================================
# PURPOSE:
#   Finds DOUBLE BOOKINGS on the calendar and moves bookings to new dates.
#
# OVERLAP RULE:
#   Two bookings A and B overlap when
#       A.start <= B.end  AND  B.start <= A.end
#   Date ranges are closed: a trip ending on the 5th and one starting on the
#   5th DO overlap (same guide can't be in both places that day).
#
#   Every pair is compared (O(n²)). A calendar shows tens to low hundreds of
#   bookings, so this is fine.
# =============================================================================

from datetime import timedelta
from itertools import combinations

from .calculations import to_date


class RescheduleError(ValueError):
    """Raised when a booking can't be moved to the requested date."""


def _valid_ranges(bookings, id_key):
    """
    (id, start, end) for every booking whose dates parse and are in order.
    Anything else is dropped here so the scan never sees it.
    """
    if hasattr(bookings, 'to_dict'):
        bookings = bookings.to_dict('records')

    ranges = []
    for booking in bookings:
        start = to_date(booking.get('start_date'))
        end = to_date(booking.get('end_date'))
        if start is None or end is None or start > end:
            continue
        ranges.append((booking.get(id_key), start, end))
    return ranges


def _overlaps(a, b):
    return a[1] <= b[2] and b[1] <= a[2]


def conflict_pairs(bookings, id_key="id"):
    """
    Every overlapping pair of bookings.

    RETURNS:
        list of (id_a, id_b) tuples in input order
    """
    ranges = _valid_ranges(bookings, id_key)
    return [(a[0], b[0]) for a, b in combinations(ranges, 2) if _overlaps(a, b)]


def detect_conflicts(bookings, id_key="id"):
    """
    Ids of all bookings that overlap at least one other booking.

    EXAMPLE:
        A 2024-06-01 → 2024-06-05
        B 2024-06-04 → 2024-06-08
        C 2024-06-10 → 2024-06-12
        detect_conflicts([A, B, C]) → {A.id, B.id}
    """
    conflicts = set()
    for id_a, id_b in conflict_pairs(bookings, id_key):
        conflicts.add(id_a)
        conflicts.add(id_b)
    return conflicts


def resource_conflicts(bookings, resource_key, id_key="id"):
    """
    Overlaps per assigned resource (guide or vehicle).

    PARAMETERS:
        resource_key: 'assigned_guide_id' or 'assigned_vehicle_id'

    RETURNS:
        dict: resource id -> set of conflicting booking ids
              (only resources that actually have a clash)
    """
    if hasattr(bookings, 'to_dict'):
        bookings = bookings.to_dict('records')

    by_resource = {}
    for booking in bookings:
        resource = booking.get(resource_key)
        if resource is None or resource == "" or resource != resource:
            continue
        by_resource.setdefault(resource, []).append(booking)

    result = {}
    for resource, group in by_resource.items():
        clashes = detect_conflicts(group, id_key)
        if clashes:
            result[resource] = clashes
    return result


def bookings_on_date(bookings, day):
    """Bookings whose date range includes `day` (both ends inclusive)."""
    day = to_date(day)
    if day is None:
        return []
    if hasattr(bookings, 'to_dict'):
        bookings = bookings.to_dict('records')

    result = []
    for booking in bookings:
        start = to_date(booking.get('start_date'))
        end = to_date(booking.get('end_date'))
        if start is not None and end is not None and start <= day <= end:
            result.append(booking)
    return result


def reschedule(booking, new_start, today):
    """
    Move a booking to a new start date, keeping its length.

    RETURNS:
        (new_start, new_end) as dates, or None if the booking already
        starts on `new_start` (nothing to do)

    RAISES:
        RescheduleError: target date is in the past, or the booking's own
                         dates are invalid
    """
    target = to_date(new_start)
    today = to_date(today)
    if target is None:
        raise RescheduleError(f"Invalid target date: {new_start!r}")
    if today is not None and target < today:
        raise RescheduleError("Cannot move booking to a past date")

    start = to_date(booking.get('start_date'))
    end = to_date(booking.get('end_date'))
    if start is None or end is None or start > end:
        raise RescheduleError("Booking has invalid dates")

    if target == start:
        return None

    duration = (end - start).days
    return target, target + timedelta(days=duration)
