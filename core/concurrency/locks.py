"""
Concurrency Control with Async Locks.

Provides one named lock per key (typically per channel) so that a
read-modify-write sequence spanning awaits cannot interleave with another
one on the same key. Different keys never block each other.

Author: Poker Cashier Team
Version: 1.0.0
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional


class NamedLock:
    """
    Named async lock that remembers who holds it.

    Example:
        lock_manager = LockManager()

        async with lock_manager.lock("session:channel-1", holder="tip:evt-1"):
            # Critical section - only one coroutine per channel at a time
            await apply_tip(...)
    """

    def __init__(self, name: str):
        self.name = name
        self._lock = asyncio.Lock()
        self._holder: Optional[str] = None
        self._acquired_at: Optional[float] = None
        self._wait_count = 0

    async def acquire(self, holder: str = "unknown"):
        """
        Wait until the lock is free, then take it.

        Args:
            holder: Identifier of lock holder (for debugging)
        """
        self._wait_count += 1
        try:
            await self._lock.acquire()
        finally:
            self._wait_count -= 1

        self._holder = holder
        self._acquired_at = time.monotonic()

    def release(self):
        """Release lock."""
        if self._lock.locked():
            self._holder = None
            self._acquired_at = None
            self._lock.release()

    def is_locked(self) -> bool:
        return self._lock.locked()

    @property
    def holder(self) -> Optional[str]:
        return self._holder

    def held_for(self) -> float:
        if self._acquired_at is None:
            return 0.0
        return time.monotonic() - self._acquired_at

    def get_stats(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "locked": self.is_locked(),
            "holder": self._holder,
            "held_duration": self.held_for(),
            "waiting": self._wait_count,
        }


class LockManager:
    """
    Manager for named locks.

    Locks are created lazily and never time out: an admitted operation
    always runs to completion. ``detect_stuck_locks`` only reports.

    Example:
        lock_mgr = LockManager()

        async with lock_mgr.lock("session:channel-1"):
            ...

        stats = lock_mgr.get_all_stats()
    """

    def __init__(self, stuck_threshold: float = 30.0):
        """
        Args:
            stuck_threshold: Seconds after which a held lock is reported as stuck
        """
        self.stuck_threshold = stuck_threshold
        self._locks: Dict[str, NamedLock] = {}
        self.logger = logging.getLogger("LockManager")

    def _get_or_create_lock(self, name: str) -> NamedLock:
        lock = self._locks.get(name)
        if lock is None:
            lock = self._locks[name] = NamedLock(name)
        return lock

    async def acquire(self, name: str, holder: str = "unknown"):
        lock = self._get_or_create_lock(name)
        if lock.is_locked():
            self.logger.debug(f"⏳ Waiting for {name} (held by {lock.holder})")
        await lock.acquire(holder=holder)
        self.logger.debug(f"🔒 Lock acquired: {name} by {holder}")

    def release(self, name: str):
        if name in self._locks:
            self._locks[name].release()
            self.logger.debug(f"🔓 Lock released: {name}")

    def lock(self, name: str, holder: str = "unknown") -> "LockContext":
        """
        Get lock context manager.

        Returns:
            LockContext for use with 'async with'
        """
        return LockContext(self, name, holder)

    def is_locked(self, name: str) -> bool:
        lock = self._locks.get(name)
        return bool(lock and lock.is_locked())

    def get_all_stats(self) -> Dict[str, Dict[str, Any]]:
        return {name: lock.get_stats() for name, lock in self._locks.items()}

    def detect_stuck_locks(self) -> List[Dict[str, Any]]:
        """
        Report locks held longer than ``stuck_threshold``.

        Returns:
            List of dicts with name, holder and held_duration
        """
        stuck = []
        for name, lock in self._locks.items():
            if not lock.is_locked():
                continue
            held = lock.held_for()
            if held > self.stuck_threshold:
                stuck.append({"name": name, "holder": lock.holder, "held_duration": held})
                self.logger.warning(f"⚠️ Lock {name} held by {lock.holder} for {held:.1f}s")
        return stuck


class LockContext:
    """Context manager for named locks."""

    def __init__(self, manager: LockManager, name: str, holder: str):
        self.manager = manager
        self.name = name
        self.holder = holder

    async def __aenter__(self):
        await self.manager.acquire(self.name, self.holder)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.manager.release(self.name)
        return False
