# =============================================================================
# utils/envelope.py
# =============================================================================
# PURPOSE:
#   Every report builder returns the same shape:
#       {"success": True, "data": [...], ...extra keys...}
#   Pages read it back through unwrap(), which is the ONE place that checks
#   the shape. A wrong shape raises ResponseShapeError instead of quietly
#   turning into an empty list.
# =============================================================================


class ResponseShapeError(ValueError):
    """Payload doesn't look like a successful {success, data} envelope."""


def ok(data, **extra):
    """Build a successful envelope. Extra keyword args become extra keys."""
    payload = {'success': True, 'data': data}
    payload.update(extra)
    return payload


def fail(message):
    return {'success': False, 'error': message}


def unwrap(payload, expect=list):
    """
    Return payload['data'] after checking the envelope.

    PARAMETERS:
        payload: what a report builder returned
        expect: type (or tuple of types) 'data' must be

    RAISES:
        ResponseShapeError: not a dict, success isn't True, 'data' missing,
                            or 'data' has the wrong type
    """
    if not isinstance(payload, dict):
        raise ResponseShapeError(f"Expected a dict envelope, got {type(payload).__name__}")
    if payload.get('success') is not True:
        raise ResponseShapeError(payload.get('error') or "Response was not successful")
    if 'data' not in payload:
        raise ResponseShapeError("Envelope has no 'data' key")

    data = payload['data']
    if expect is not None and not isinstance(data, expect):
        raise ResponseShapeError(
            f"Expected 'data' to be {getattr(expect, '__name__', expect)}, got {type(data).__name__}"
        )
    return data
