"""
TipProcessor - Turns inbound tips into deposits.

This component is responsible for:
- Dropping tips not addressed to the bot and non-positive amounts
- Applying the tip to the ledger
- Rendering the deposit or rejection reply

Author: Poker Cashier Team
Version: 1.0.0
"""

import logging
from typing import Optional

from core.events import TipEvent
from core.ledger import SessionLedger, TipOutcome, TipStatus, get_session_totals, mention
from core.money import format_eth, format_usd, wei_to_usd_cents


class TipProcessor:
    """
    Applies tips addressed to the bot.

    Example:
        processor = TipProcessor(ledger, bot_address="0xabc...")
        reply = await processor.process(tip_event)  # None when ignored
    """

    def __init__(self, ledger: SessionLedger, bot_address: Optional[str] = None):
        """
        Args:
            ledger: Session ledger
            bot_address: Receiver address tips must match (case-insensitive); None accepts any
        """
        self.ledger = ledger
        self.bot_address = bot_address.lower() if bot_address else None
        self.logger = logging.getLogger("TipProcessor")

    def is_for_bot(self, tip: TipEvent) -> bool:
        if self.bot_address is None:
            return True
        return tip.receiver_address.lower() == self.bot_address

    async def process(self, tip: TipEvent) -> Optional[str]:
        if not self.is_for_bot(tip):
            self.logger.debug(f"Ignoring tip {tip.event_id} addressed to {tip.receiver_address}")
            return None

        if tip.amount <= 0:
            self.logger.debug(f"Ignoring non-positive tip {tip.event_id}")
            return None

        outcome = await self.ledger.apply_tip(tip)
        return self.render(tip, outcome)

    def render(self, tip: TipEvent, outcome: TipOutcome) -> Optional[str]:
        who = mention(tip.user_id)

        if outcome.status is TipStatus.IGNORED:
            return None

        if outcome.status is TipStatus.NO_SESSION:
            return (
                f"{who} tipped, but no poker session is active. "
                "Start one with `/start <minUSD> <maxUSD>` to track deposits."
            )

        if outcome.status is TipStatus.REJECTED_FINISHED:
            return f"{who} tipped, but the session is finished. Hold on to your chips until a new session begins."

        session = outcome.session
        if outcome.status is TipStatus.REJECTED_RANGE:
            return (
                f"{who} sent {format_eth(tip.amount)} (~{format_usd(outcome.amount_usd_cents)}), "
                f"which is outside the allowed range ({format_usd(session.min_deposit_usd_cents)} - "
                f"{format_usd(session.max_deposit_usd_cents)}). "
                "Tip not applied. Please send an amount within the limits."
            )

        rate = session.rate
        player = outcome.player
        totals = get_session_totals(session)
        reply = (
            f"{who} deposited {format_eth(tip.amount)} (~{format_usd(outcome.amount_usd_cents)}). "
            f"Their total stack: {format_eth(player.total_deposit_wei)} "
            f"(~{format_usd(wei_to_usd_cents(player.total_deposit_wei, rate))}). "
            f"Pot: {format_eth(totals.total_deposits_wei)} "
            f"(~{format_usd(wei_to_usd_cents(totals.total_deposits_wei, rate))})."
        )
        if outcome.echo_error:
            reply += f" Tip acknowledgement transfer failed: {outcome.echo_error}"
        return reply
