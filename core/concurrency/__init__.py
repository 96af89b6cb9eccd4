"""Concurrency Control Package."""

from .locks import LockContext, LockManager, NamedLock

__all__ = [
    "LockContext",
    "LockManager",
    "NamedLock",
]
