"""
In-memory session table keyed by channel id.

Owned by the ledger and constructed at startup; lives as long as the process.
"""

import logging
from typing import Dict, Iterator, List, Optional

from .models import Session


class SessionStore:
    """
    Channel → Session table.

    Writers replace whole Session objects with ``set``; a reader holding a
    Session reference never sees a later operation's edits.

    Example:
        store = SessionStore()
        store.set("channel-1", session)
        if store.has_active("channel-1"):
            ...
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self.logger = logging.getLogger("SessionStore")

    def get(self, channel_id: str) -> Optional[Session]:
        return self._sessions.get(channel_id)

    def set(self, channel_id: str, session: Session) -> None:
        self._sessions[channel_id] = session

    def delete(self, channel_id: str) -> None:
        if self._sessions.pop(channel_id, None) is not None:
            self.logger.debug(f"🗑️ Session removed: {channel_id}")

    def has_active(self, channel_id: str) -> bool:
        session = self._sessions.get(channel_id)
        return bool(session and session.is_active)

    def channels(self) -> List[str]:
        return list(self._sessions.keys())

    def clear(self) -> None:
        self._sessions.clear()

    def __iter__(self) -> Iterator[Session]:
        return iter(list(self._sessions.values()))

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, channel_id: str) -> bool:
        return channel_id in self._sessions
