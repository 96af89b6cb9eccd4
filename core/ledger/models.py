"""
Ledger data model: rates, players, rejected tips and sessions.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from core.exceptions import ValidationError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionStatus(Enum):
    ACTIVE = "active"
    FINISHED = "finished"


@dataclass(frozen=True)
class EthUsdRate:
    """USD per ETH with 8 implied decimals, frozen into a session at start."""

    value: int
    fetched_at: datetime
    source: str


@dataclass
class PlayerState:
    user_id: str
    total_deposit_wei: int
    joined_at: datetime
    last_action_at: datetime
    is_active: bool = True
    cashout_wei: Optional[int] = None
    cashout_usd_cents: Optional[int] = None
    last_payout_error: Optional[str] = None
    left_at: Optional[datetime] = None

    @property
    def has_cashed_out(self) -> bool:
        return self.cashout_wei is not None


@dataclass(frozen=True)
class RejectedTip:
    user_id: str
    amount_wei: int
    amount_usd_cents: int
    received_at: datetime
    reason: str


@dataclass
class Session:
    channel_id: str
    created_by: str
    created_at: datetime
    min_deposit_usd_cents: int
    max_deposit_usd_cents: int
    exchange_rate: EthUsdRate
    status: SessionStatus = SessionStatus.ACTIVE
    players: Dict[str, PlayerState] = field(default_factory=dict)
    rejected_tips: List[RejectedTip] = field(default_factory=list)
    finished_at: Optional[datetime] = None

    def __post_init__(self):
        if self.min_deposit_usd_cents <= 0:
            raise ValidationError("Minimum deposit must be greater than zero USD.")
        if self.max_deposit_usd_cents < self.min_deposit_usd_cents:
            raise ValidationError("Maximum deposit must be greater than or equal to the minimum deposit.")

    @property
    def is_active(self) -> bool:
        return self.status is SessionStatus.ACTIVE

    @property
    def rate(self) -> int:
        return self.exchange_rate.value

    def players_by_join_time(self) -> List[PlayerState]:
        return sorted(self.players.values(), key=lambda player: player.joined_at)

    def rejected_tips_by_time(self) -> List[RejectedTip]:
        return sorted(self.rejected_tips, key=lambda item: item.received_at)


@dataclass(frozen=True)
class SessionTotals:
    total_deposits_wei: int
    total_cashouts_wei: int
    player_count: int

    @property
    def outstanding_wei(self) -> int:
        return self.total_deposits_wei - self.total_cashouts_wei


def get_session_totals(session: Session) -> SessionTotals:
    """Aggregate deposits and recorded cashouts across all players."""
    total_deposits = 0
    total_cashouts = 0

    for player in session.players.values():
        total_deposits += player.total_deposit_wei
        if player.cashout_wei is not None:
            total_cashouts += player.cashout_wei

    return SessionTotals(
        total_deposits_wei=total_deposits,
        total_cashouts_wei=total_cashouts,
        player_count=len(session.players),
    )


class NetKind(Enum):
    EVEN = "even"
    PROFIT = "profit"
    LOSS = "loss"


@dataclass(frozen=True)
class NetResult:
    """Cashout minus deposit, classified by the USD difference."""

    usd_cents: int
    wei: int

    @property
    def kind(self) -> NetKind:
        if self.usd_cents == 0:
            return NetKind.EVEN
        return NetKind.PROFIT if self.usd_cents > 0 else NetKind.LOSS
