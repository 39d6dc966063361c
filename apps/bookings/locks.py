"""Process-local mutual exclusion keyed by resource id."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator

from django.conf import settings  # type: ignore

from .domain.errors import Conflict


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class ResourceLockRegistry:
    """One lock per resource, dropped again when nobody holds or waits for it.

    Serialises admission for a resource within this process. Across worker
    processes the row lock taken inside the transaction does the same job.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: Dict[int, _Entry] = {}

    def _checkout(self, resource_id: int) -> _Entry:
        with self._guard:
            entry = self._entries.get(resource_id)
            if entry is None:
                entry = self._entries[resource_id] = _Entry()
            entry.users += 1
            return entry

    def _checkin(self, resource_id: int, entry: _Entry) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0 and self._entries.get(resource_id) is entry:
                del self._entries[resource_id]

    @contextmanager
    def hold(self, resource_id: int, timeout: float | None = None) -> Iterator[None]:
        """Hold the resource lock; raises ``Conflict`` if it can't be had in time."""

        if timeout is None:
            timeout = settings.BOOKING_LOCK_TIMEOUT
        entry = self._checkout(resource_id)
        try:
            if not entry.lock.acquire(timeout=timeout):
                raise Conflict("Resource is busy with another booking, please retry.")
            try:
                yield
            finally:
                entry.lock.release()
        finally:
            self._checkin(resource_id, entry)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


resource_locks = ResourceLockRegistry()
