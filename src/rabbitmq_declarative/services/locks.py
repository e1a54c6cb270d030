"""
Per-identity mutual exclusion for parallel sync passes.

The reconciliation engine assumes no two passes target the same resource
identity at once. Orchestrators that sync independent instances in
parallel share one IdentityLockRegistry to uphold that.
"""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)

type LockKey = tuple[str, str]


class IdentityLockRegistry:
    """
    Hands out one lock per (resource_type, identity) pair.

    Locks taken through ``hold`` are reference-counted and dropped once the
    last holder or waiter leaves, so the registry only keeps entries for
    identities with a pass in flight.
    """

    def __init__(self):
        self._locks: dict[LockKey, threading.Lock] = {}
        self._holders: dict[LockKey, int] = {}
        self._guard = threading.Lock()

    def _get_or_create(self, key: LockKey) -> threading.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = threading.Lock()
            self._locks[key] = lock
        return lock

    def lock_for(self, resource_type: str, identity: str) -> threading.Lock:
        """Return the lock of an identity, creating it on first use."""
        with self._guard:
            return self._get_or_create((resource_type, identity))

    @contextmanager
    def hold(self, resource_type: str, identity: str) -> Iterator[None]:
        """Block until the identity is free, then hold it for the block."""
        key = (resource_type, identity)
        with self._guard:
            lock = self._get_or_create(key)
            self._holders[key] = self._holders.get(key, 0) + 1

        try:
            if lock.locked():
                logger.debug(f"Waiting for in-flight sync of {resource_type} {identity}")
            with lock:
                yield
        finally:
            with self._guard:
                self._holders[key] -= 1
                if not self._holders[key]:
                    del self._holders[key]
                    self._locks.pop(key, None)

    def cleanup_idle(self) -> int:
        """
        Drop locks that nobody holds or waits for.

        Only locks obtained through ``lock_for`` can linger; call this
        periodically when using it directly.

        Returns:
            Number of locks removed
        """
        with self._guard:
            to_remove = [
                key
                for key, lock in self._locks.items()
                if key not in self._holders and not lock.locked()
            ]
            for key in to_remove:
                del self._locks[key]

        if to_remove:
            logger.info(f"Cleaned up {len(to_remove)} idle identity locks")
        return len(to_remove)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
