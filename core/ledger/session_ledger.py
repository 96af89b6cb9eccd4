"""
Session Ledger - lifecycle state machine for per-channel poker sessions.

Every mutating operation runs under the channel's lock for its whole
read → copy → mutate → write-back sequence, including any outbound
transfer it awaits. The stored Session is replaced wholesale on commit, so a
concurrent reader sees either the previous or the next state.

States: active → finished (host only, never reverses).

Author: Poker Cashier Team
Version: 1.0.0
"""

import copy
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, Tuple

from config import cashier as cashier_config
from core.concurrency import LockManager
from core.events import TipEvent
from core.exceptions import (
    CashoutAlreadyRecordedError,
    NotSessionHostError,
    PlayerNotFoundError,
    SessionNotFoundError,
    SessionStateError,
    ValidationError,
    create_payout_error,
)
from core.interfaces import BotHandler
from core.money import parse_usd_amount, usd_cents_to_wei, wei_to_usd_cents
from core.observability import (
    observe_payout_latency,
    record_cashout,
    record_payout_failure,
    record_session_finished,
    record_session_started,
    record_tip,
)

from .models import (
    NetResult,
    PlayerState,
    RejectedTip,
    Session,
    SessionStatus,
    SessionTotals,
    get_session_totals,
    utc_now,
)
from .session_store import SessionStore

REASON_SESSION_FINISHED = "Session finished"
REASON_OUT_OF_RANGE = "Tip outside allowed range"


class TipStatus(Enum):
    IGNORED = "ignored"
    NO_SESSION = "no_session"
    REJECTED_FINISHED = "rejected_finished"
    REJECTED_RANGE = "rejected_range"
    ACCEPTED = "accepted"


@dataclass(frozen=True)
class TipOutcome:
    status: TipStatus
    amount_wei: int
    amount_usd_cents: Optional[int] = None
    session: Optional[Session] = None
    player: Optional[PlayerState] = None
    echo_tx_hash: Optional[str] = None
    echo_error: Optional[str] = None

    @property
    def totals(self) -> Optional[SessionTotals]:
        return get_session_totals(self.session) if self.session else None


@dataclass(frozen=True)
class CashoutOutcome:
    session: Session
    player: PlayerState
    claimed_usd_cents: int
    cashout_wei: int
    net: NetResult
    tx_hash: Optional[str] = None
    payout_error: Optional[str] = None
    retried: bool = False

    @property
    def totals(self) -> SessionTotals:
        return get_session_totals(self.session)


class SessionLedger:
    """
    Owns the session table and applies every ledger mutation.

    Example:
        ledger = SessionLedger(
            store=SessionStore(),
            rate_resolver=ExchangeRateResolver(price_feed=CoinGeckoPriceFeed()),
            payout=bot_handler,
        )

        await ledger.start_session("channel-1", host_id, 2000, 20000)
        outcome = await ledger.apply_tip(tip_event)
    """

    def __init__(
        self,
        store: SessionStore,
        rate_resolver,
        payout: BotHandler,
        lock_manager: Optional[LockManager] = None,
        echo_tips: bool = cashier_config.TIP_ECHO_ENABLED,
        payout_currency: str = cashier_config.NATIVE_CURRENCY,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            store: Session table
            rate_resolver: Object with ``async resolve() -> EthUsdRate``
            payout: Transport used for cashout payouts and tip echoes
            lock_manager: Per-channel locks (a private one if None)
            echo_tips: Send accepted tips back through the payout transport
            payout_currency: Currency address for cashout payouts
            clock: Time source for all timestamps
        """
        self.store = store
        self.rate_resolver = rate_resolver
        self.payout = payout
        self.locks = lock_manager or LockManager()
        self.echo_tips = echo_tips
        self.payout_currency = payout_currency
        self._clock = clock
        self.logger = logging.getLogger("SessionLedger")

    @staticmethod
    def _lock_name(channel_id: str) -> str:
        return f"session:{channel_id}"

    # =========================================================
    # LIFECYCLE
    # =========================================================

    async def start_session(self, channel_id: str, host_id: str, min_usd_cents: int, max_usd_cents: int) -> Session:
        """
        Open a new active session, replacing a finished one.

        Raises:
            SessionStateError: If a session is already active
            ValidationError: If the deposit bounds are invalid
            RateUnavailableError: If no rate can be resolved
        """
        async with self.locks.lock(self._lock_name(channel_id), holder=f"start:{host_id}"):
            if self.store.has_active(channel_id):
                raise SessionStateError(
                    "A poker session is already active. Use `/finish` before starting another.",
                    {"channel_id": channel_id},
                )

            if min_usd_cents <= 0:
                raise ValidationError("Minimum deposit must be greater than zero USD.", {"min": min_usd_cents})

            if max_usd_cents < min_usd_cents:
                raise ValidationError(
                    "Maximum deposit must be greater than or equal to the minimum deposit.",
                    {"min": min_usd_cents, "max": max_usd_cents},
                )

            rate = await self.rate_resolver.resolve()

            session = Session(
                channel_id=channel_id,
                created_by=host_id,
                created_at=self._clock(),
                min_deposit_usd_cents=min_usd_cents,
                max_deposit_usd_cents=max_usd_cents,
                exchange_rate=rate,
            )
            self.store.set(channel_id, session)

        record_session_started(rate.source)
        self.logger.info(
            f"🎰 Session started in {channel_id} by {host_id} | "
            f"Bounds: {min_usd_cents}-{max_usd_cents}¢ | Rate: {rate.value} ({rate.source})"
        )
        return session

    async def finish_session(self, channel_id: str, host_id: str) -> Session:
        """
        Close the session; every player becomes inactive, deposits untouched.

        Raises:
            SessionNotFoundError: If the channel has no session
            NotSessionHostError: If ``host_id`` did not create the session
            SessionStateError: If the session is already finished
        """
        async with self.locks.lock(self._lock_name(channel_id), holder=f"finish:{host_id}"):
            session = self.store.get(channel_id)
            if session is None:
                raise SessionNotFoundError("No session to finish. Start one with `/start <minUSD> <maxUSD>`.")

            if session.created_by != host_id:
                raise NotSessionHostError(
                    "only the session creator can finish the game.",
                    {"host": session.created_by, "caller": host_id},
                )

            if not session.is_active:
                raise SessionStateError(
                    "This session is already finished. "
                    "Players should run `/cashout <usd>` to record their payouts."
                )

            working = copy.deepcopy(session)
            working.status = SessionStatus.FINISHED
            working.finished_at = self._clock()
            for player in working.players.values():
                player.is_active = False

            self.store.set(channel_id, working)

        record_session_finished()
        self.logger.info(f"🏁 Session finished in {channel_id} | Players: {len(working.players)}")
        return working

    async def leave_session(self, channel_id: str, user_id: str) -> PlayerState:
        """
        Mark a player as away; the deposit stays recorded.

        Raises:
            SessionStateError: If there is no active session
            PlayerNotFoundError: If the player never deposited
            SessionStateError: If the player already left
        """
        async with self.locks.lock(self._lock_name(channel_id), holder=f"leave:{user_id}"):
            session = self.store.get(channel_id)
            if session is None or not session.is_active:
                raise SessionStateError("There is no active session to leave.")

            if user_id not in session.players:
                raise PlayerNotFoundError(
                    "You have not deposited into this session yet. Tip the bot within the allowed range to join."
                )

            if not session.players[user_id].is_active:
                raise SessionStateError("You already marked yourself as away from the table.")

            working = copy.deepcopy(session)
            player = working.players[user_id]
            now = self._clock()
            player.is_active = False
            player.left_at = now
            player.last_action_at = now

            self.store.set(channel_id, working)

        self.logger.info(f"🚶 {user_id} left the table in {channel_id}")
        return player

    # =========================================================
    # DEPOSITS
    # =========================================================

    async def apply_tip(self, tip: TipEvent) -> TipOutcome:
        """
        Record an inbound tip as a deposit, or as a rejected tip.

        Never raises for business outcomes; the returned TipOutcome carries
        the status. The echo transfer runs after the deposit is committed and
        its failure only shows up in ``echo_error``.
        """
        if tip.amount <= 0:
            return TipOutcome(status=TipStatus.IGNORED, amount_wei=tip.amount)

        channel_id = tip.channel_id
        async with self.locks.lock(self._lock_name(channel_id), holder=f"tip:{tip.event_id}"):
            session = self.store.get(channel_id)
            if session is None:
                record_tip(TipStatus.NO_SESSION.value)
                return TipOutcome(status=TipStatus.NO_SESSION, amount_wei=tip.amount)

            working = copy.deepcopy(session)
            now = self._clock()
            amount_usd_cents = wei_to_usd_cents(tip.amount, working.rate)

            if not working.is_active:
                return self._reject_tip(working, tip, amount_usd_cents, now, TipStatus.REJECTED_FINISHED)

            if not working.min_deposit_usd_cents <= amount_usd_cents <= working.max_deposit_usd_cents:
                return self._reject_tip(working, tip, amount_usd_cents, now, TipStatus.REJECTED_RANGE)

            player = working.players.get(tip.user_id)
            if player is None:
                player = PlayerState(
                    user_id=tip.user_id,
                    total_deposit_wei=tip.amount,
                    joined_at=now,
                    last_action_at=now,
                )
                working.players[tip.user_id] = player
            else:
                # Re-buy after a cashout reopens the stake
                player.total_deposit_wei += tip.amount
                player.is_active = True
                player.left_at = None
                player.last_action_at = now
                player.cashout_wei = None
                player.cashout_usd_cents = None
                player.last_payout_error = None

            self.store.set(channel_id, working)
            record_tip(TipStatus.ACCEPTED.value)
            self.logger.info(
                f"💰 Deposit {tip.amount} wei (~{amount_usd_cents}¢) from {tip.user_id} in {channel_id} | "
                f"Stack: {player.total_deposit_wei} wei"
            )

            echo_tx_hash, echo_error = None, None
            if self.echo_tips:
                echo_tx_hash, echo_error = await self._transfer(
                    kind="echo",
                    user_id=tip.user_id,
                    amount=tip.amount,
                    currency=tip.currency,
                    channel_id=channel_id,
                    message_id=tip.message_id,
                )

        return TipOutcome(
            status=TipStatus.ACCEPTED,
            amount_wei=tip.amount,
            amount_usd_cents=amount_usd_cents,
            session=working,
            player=player,
            echo_tx_hash=echo_tx_hash,
            echo_error=echo_error,
        )

    def _reject_tip(
        self, working: Session, tip: TipEvent, amount_usd_cents: int, now: datetime, status: TipStatus
    ) -> TipOutcome:
        reason = REASON_SESSION_FINISHED if status is TipStatus.REJECTED_FINISHED else REASON_OUT_OF_RANGE
        working.rejected_tips.append(
            RejectedTip(
                user_id=tip.user_id,
                amount_wei=tip.amount,
                amount_usd_cents=amount_usd_cents,
                received_at=now,
                reason=reason,
            )
        )
        self.store.set(working.channel_id, working)
        record_tip(status.value)
        self.logger.info(f"🚫 Tip from {tip.user_id} in {working.channel_id} rejected: {reason} (~{amount_usd_cents}¢)")
        return TipOutcome(status=status, amount_wei=tip.amount, amount_usd_cents=amount_usd_cents, session=working)

    # =========================================================
    # SETTLEMENT
    # =========================================================

    async def cashout(self, channel_id: str, user_id: str, raw_amount: str, message_id: str) -> CashoutOutcome:
        """
        Record a player's final stack and pay it out.

        The record is committed even when the transfer fails; the failure is
        kept in ``last_payout_error`` and a later call retries the transfer of
        the recorded amount only.

        Raises:
            SessionNotFoundError: If the channel has no session
            ValidationError: If the amount is malformed or too small to convert
            SessionStateError: If the session is still active
            PlayerNotFoundError: If the player never deposited
            CashoutAlreadyRecordedError: If the cashout is already settled
        """
        async with self.locks.lock(self._lock_name(channel_id), holder=f"cashout:{user_id}"):
            session = self.store.get(channel_id)
            if session is None:
                raise SessionNotFoundError("No session found. Start a new one with `/start <minUSD> <maxUSD>`.")

            claimed_usd_cents = parse_usd_amount(raw_amount)

            if session.is_active:
                raise SessionStateError(
                    "The session is still in progress. Cash out after the host runs `/finish`.",
                    {"channel_id": channel_id},
                )

            recorded = session.players.get(user_id)
            if recorded is None:
                raise PlayerNotFoundError(
                    "You did not participate in this session, so there is nothing to cash out."
                )

            if recorded.has_cashed_out:
                if recorded.last_payout_error is None or not recorded.cashout_wei:
                    raise CashoutAlreadyRecordedError("Your cashout has already been recorded. Thank you!")
                return await self._retry_payout(session, recorded, message_id)

            rate = session.rate
            cashout_wei = usd_cents_to_wei(claimed_usd_cents, rate)
            if claimed_usd_cents > 0 and cashout_wei <= 0:
                raise ValidationError(
                    "Cashout amount is too small to convert into ETH.", {"usd_cents": claimed_usd_cents}
                )

            deposit_usd_cents = wei_to_usd_cents(recorded.total_deposit_wei, rate)
            net = NetResult(
                usd_cents=claimed_usd_cents - deposit_usd_cents,
                wei=cashout_wei - recorded.total_deposit_wei,
            )

            tx_hash, payout_error = None, None
            if cashout_wei > 0:
                tx_hash, payout_error = await self._transfer(
                    kind="cashout",
                    user_id=user_id,
                    amount=cashout_wei,
                    currency=self.payout_currency,
                    channel_id=channel_id,
                    message_id=message_id,
                )

            working = copy.deepcopy(session)
            player = working.players[user_id]
            player.cashout_wei = cashout_wei
            player.cashout_usd_cents = claimed_usd_cents
            player.last_payout_error = payout_error
            player.is_active = False
            player.last_action_at = self._clock()

            self.store.set(channel_id, working)

        record_cashout("failed" if payout_error else ("sent" if tx_hash else "none"))
        self.logger.info(
            f"🧾 Cashout recorded for {user_id} in {channel_id} | {claimed_usd_cents}¢ = {cashout_wei} wei | "
            f"Net: {net.kind.value} {net.usd_cents}¢"
        )
        return CashoutOutcome(
            session=working,
            player=player,
            claimed_usd_cents=claimed_usd_cents,
            cashout_wei=cashout_wei,
            net=net,
            tx_hash=tx_hash,
            payout_error=payout_error,
        )

    async def _retry_payout(self, session: Session, recorded: PlayerState, message_id: str) -> CashoutOutcome:
        """Resend a failed payout for the already-recorded amount. Caller holds the lock."""
        self.logger.info(f"🔁 Retrying payout of {recorded.cashout_wei} wei to {recorded.user_id}")
        tx_hash, payout_error = await self._transfer(
            kind="cashout",
            user_id=recorded.user_id,
            amount=recorded.cashout_wei,
            currency=self.payout_currency,
            channel_id=session.channel_id,
            message_id=message_id,
        )

        working = copy.deepcopy(session)
        player = working.players[recorded.user_id]
        player.last_payout_error = payout_error
        player.last_action_at = self._clock()
        self.store.set(session.channel_id, working)

        deposit_usd_cents = wei_to_usd_cents(player.total_deposit_wei, working.rate)
        return CashoutOutcome(
            session=working,
            player=player,
            claimed_usd_cents=player.cashout_usd_cents,
            cashout_wei=player.cashout_wei,
            net=NetResult(
                usd_cents=player.cashout_usd_cents - deposit_usd_cents,
                wei=player.cashout_wei - player.total_deposit_wei,
            ),
            tx_hash=tx_hash,
            payout_error=payout_error,
            retried=True,
        )

    async def _transfer(
        self, kind: str, user_id: str, amount: int, currency: str, channel_id: str, message_id: str
    ) -> Tuple[Optional[str], Optional[str]]:
        """
        Call the payout transport.

        Returns:
            (tx_hash, None) on success, (None, error message) on failure
        """
        started = time.monotonic()
        try:
            receipt = await self.payout.send_tip(
                user_id=user_id,
                amount=amount,
                currency=currency,
                channel_id=channel_id,
                message_id=message_id,
            )
        except Exception as e:
            error = create_payout_error(user_id, amount, e)
            record_payout_failure(kind)
            self.logger.error(
                f"❌ {kind.capitalize()} transfer failed | user={user_id} amount={amount} "
                f"channel={channel_id} message={message_id}: {error.message}",
                exc_info=True,
            )
            return None, error.message
        finally:
            observe_payout_latency(kind, time.monotonic() - started)

        self.logger.info(f"📤 {kind.capitalize()} transfer sent to {user_id}: {receipt.tx_hash}")
        return receipt.tx_hash, None

    # =========================================================
    # READS
    # =========================================================

    def get_session(self, channel_id: str) -> Optional[Session]:
        return self.store.get(channel_id)
