# =============================================================================
# utils/request_guard.py
# =============================================================================
# PURPOSE:
#   Stops an OLD result from overwriting a NEWER one.
#
#   Each time a caller starts loading something (e.g. the payables report for
#   the current filters) it asks for a request id. When the result comes
#   back, it is only stored if its id is still the latest for that key.
#
# Streamlit reruns a session one run at a time, so the pages build their
# reports directly. This is for loaders that can finish out of order.
#
# USAGE:
#   guard = RequestGuard(st.session_state)
#   request_id = guard.begin("payables")
#   payload = build_accounts_payable(...)
#   guard.accept("payables", request_id, payload)
#   payload = guard.current("payables")
# =============================================================================

COUNTER_PREFIX = "_request_seq_"
VALUE_PREFIX = "_request_value_"


class RequestGuard:
    """
    Monotonic request ids per key, kept in any dict-like store
    (st.session_state in the app, a plain dict in tests).
    """

    def __init__(self, store):
        self.store = store

    def begin(self, key):
        """Issue the next request id for `key`."""
        counter = COUNTER_PREFIX + key
        request_id = self.store.get(counter, 0) + 1
        self.store[counter] = request_id
        return request_id

    def latest(self, key):
        return self.store.get(COUNTER_PREFIX + key, 0)

    def is_current(self, key, request_id):
        return request_id == self.latest(key)

    def accept(self, key, request_id, value):
        """
        Store `value` if `request_id` is the latest for `key`.

        RETURNS:
            bool: True if stored, False if the response was stale
        """
        if not self.is_current(key, request_id):
            print(f"[WARN] Discarded stale response for '{key}' "
                  f"(request {request_id}, latest {self.latest(key)})")
            return False
        self.store[VALUE_PREFIX + key] = value
        return True

    def current(self, key, default=None):
        """The last accepted value for `key`."""
        return self.store.get(VALUE_PREFIX + key, default)
