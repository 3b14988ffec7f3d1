"""
Single-in-flight bookkeeping for interactive requests.

Each request is tagged with an id; a result is applied only if its id is
still the pending one.
"""

import itertools
from typing import Optional


class RequestTracker:
    def __init__(self):
        self._ids = itertools.count(1)
        self._pending: Optional[int] = None

    @property
    def pending(self) -> Optional[int]:
        return self._pending

    @property
    def busy(self) -> bool:
        return self._pending is not None

    def begin(self) -> Optional[int]:
        """New request id, or None while another request is pending"""
        if self._pending is not None:
            return None
        self._pending = next(self._ids)
        return self._pending

    def cancel(self) -> None:
        """Forget the pending request; its result will be discarded"""
        self._pending = None

    def accept(self, request_id: int) -> bool:
        """True only for the current pending id, which is then cleared"""
        if request_id is None or request_id != self._pending:
            return False
        self._pending = None
        return True
