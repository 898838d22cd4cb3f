"""In-memory table of pending registrations keyed by email."""

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from .models import PendingRegistration


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionTable:
    """
    Lock-guarded mapping of email -> PendingRegistration.

    Entries are never evicted in the background. An abandoned registration
    stays until the same email starts or confirms again.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._entries: dict[str, PendingRegistration] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def now(self) -> datetime:
        """Current time according to the table's clock."""
        return self._clock()

    def put(
        self, email: str, code: str, password_hash: str, ttl: timedelta
    ) -> PendingRegistration:
        """Insert a pending entry, replacing any previous one for the email."""
        entry = PendingRegistration(
            email=email,
            code=code,
            password_hash=password_hash,
            expires_at=self._clock() + ttl,
        )
        with self._lock:
            self._entries[email] = entry
        return entry

    def get(self, email: str) -> Optional[PendingRegistration]:
        with self._lock:
            return self._entries.get(email)

    def remove(self, email: str) -> bool:
        with self._lock:
            return self._entries.pop(email, None) is not None

    def pop(self, email: str) -> Optional[PendingRegistration]:
        """Atomically read and remove the entry for email."""
        with self._lock:
            return self._entries.pop(email, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
