"""Session Ledger Package."""

from .models import (
    EthUsdRate,
    NetKind,
    NetResult,
    PlayerState,
    RejectedTip,
    Session,
    SessionStatus,
    SessionTotals,
    get_session_totals,
    utc_now,
)
from .reporting import build_game_state_message, mention, shorten_hash
from .session_ledger import CashoutOutcome, SessionLedger, TipOutcome, TipStatus
from .session_store import SessionStore

__all__ = [
    # Models
    "EthUsdRate",
    "NetKind",
    "NetResult",
    "PlayerState",
    "RejectedTip",
    "Session",
    "SessionStatus",
    "SessionTotals",
    "get_session_totals",
    "utc_now",
    # Ledger
    "SessionLedger",
    "SessionStore",
    "TipOutcome",
    "TipStatus",
    "CashoutOutcome",
    # Reports
    "build_game_state_message",
    "mention",
    "shorten_hash",
]
