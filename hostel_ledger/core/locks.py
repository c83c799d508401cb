"""
Process-local advisory locks.

Used to absorb duplicate rapid submissions (double clicks, client retries)
for package generation. A held lock is a "retry shortly" signal, never a
correctness guarantee: it is not shared between server processes.
"""

import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, Generator, Optional

from hostel_ledger.core.exceptions import TransientLockError
from hostel_ledger.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class LockState:
    """Bookkeeping for a single lock key."""
    key: str
    acquired_at: float
    expires_at: float
    released: bool = False


class AdvisoryLock:
    """
    Map of key -> lock timestamp with a TTL.

    - acquire() fails while an unexpired entry exists for the key
    - release() does not drop the entry immediately; it shortens its
      expiry to `release_delay` seconds from now so a burst of identical
      requests arriving right after completion is still rejected
    - entries past their expiry are treated as free (crashed holders
      cannot wedge a key for longer than the TTL)
    """

    def __init__(
        self,
        ttl_seconds: float = 10.0,
        release_delay_seconds: float = 2.0,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.ttl_seconds = ttl_seconds
        self.release_delay_seconds = release_delay_seconds
        self._clock = clock or time.monotonic
        self._entries: Dict[str, LockState] = {}
        self._lock = threading.Lock()

    def acquire(self, key: str) -> bool:
        """Try to take the lock for key. Returns False when it is held."""
        now = self._clock()
        with self._lock:
            self._purge_expired(now)
            if key in self._entries:
                logger.info(
                    "Advisory lock busy",
                    extra={"lock_key": key, "expires_in": self._entries[key].expires_at - now},
                )
                return False
            self._entries[key] = LockState(
                key=key,
                acquired_at=now,
                expires_at=now + self.ttl_seconds,
            )
            return True

    def release(self, key: str) -> None:
        """Schedule the key to become free after the release delay."""
        now = self._clock()
        with self._lock:
            state = self._entries.get(key)
            if state is None:
                return
            state.released = True
            state.expires_at = min(state.expires_at, now + self.release_delay_seconds)

    def is_locked(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            self._purge_expired(now)
            return key in self._entries

    def retry_after(self, key: str) -> float:
        """Seconds until key frees up (0 when free)."""
        now = self._clock()
        with self._lock:
            state = self._entries.get(key)
            if state is None:
                return 0.0
            return max(0.0, state.expires_at - now)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    @contextmanager
    def hold(self, key: str) -> Generator[None, None, None]:
        """
        Context manager form.

        Raises:
            TransientLockError: If the key is already held
        """
        if not self.acquire(key):
            raise TransientLockError(key, retry_after=self.retry_after(key))
        try:
            yield
        finally:
            self.release(key)

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, state in self._entries.items() if state.expires_at <= now]
        for key in expired:
            del self._entries[key]


# Global lock instance for package generation
_package_lock: Optional[AdvisoryLock] = None
_package_lock_guard = threading.Lock()


def get_package_lock() -> AdvisoryLock:
    """Get or create the process-wide package generation lock."""
    global _package_lock

    if _package_lock is None:
        with _package_lock_guard:
            if _package_lock is None:
                from hostel_ledger.config.settings import settings

                _package_lock = AdvisoryLock(
                    ttl_seconds=settings.PACKAGE_LOCK_TTL_SECONDS,
                    release_delay_seconds=settings.PACKAGE_LOCK_RELEASE_DELAY_SECONDS,
                )
    return _package_lock


def reset_package_lock() -> None:
    """Drop the global lock instance (for testing)."""
    global _package_lock
    with _package_lock_guard:
        _package_lock = None
