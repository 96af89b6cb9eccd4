"""
CashoutDesk - Records final stacks and reports the payout.

Author: Poker Cashier Team
Version: 1.0.0
"""

import logging

from core.events import SlashCommandEvent
from core.ledger import CashoutOutcome, NetKind, NetResult, SessionLedger, mention, shorten_hash
from core.money import format_eth, format_usd, wei_to_usd_cents

CASHOUT_USAGE = "Usage: `/cashout <usd>` (example: `/cashout 85` or `/cashout 83.25`)."


class CashoutDesk:
    """
    Handles ``/cashout <usd>``.

    Example:
        desk = CashoutDesk(ledger)
        reply = await desk.cashout(event)
    """

    def __init__(self, ledger: SessionLedger):
        self.ledger = ledger
        self.logger = logging.getLogger("CashoutDesk")

    async def cashout(self, event: SlashCommandEvent) -> str:
        if self.ledger.get_session(event.channel_id) is None:
            return "No session found. Start a new one with `/start <minUSD> <maxUSD>`."

        if not event.args or not event.args[0].strip():
            return CASHOUT_USAGE

        outcome = await self.ledger.cashout(
            channel_id=event.channel_id,
            user_id=event.user_id,
            raw_amount=event.args[0],
            message_id=event.event_id,
        )
        return self.render(event.user_id, outcome)

    def render(self, user_id: str, outcome: CashoutOutcome) -> str:
        rate = outcome.session.rate
        outstanding_wei = outcome.totals.outstanding_wei

        if outcome.retried:
            header = (
                f"{mention(user_id)}, your cashout of {format_usd(outcome.claimed_usd_cents)} "
                f"(~{format_eth(outcome.cashout_wei)}) has already been recorded. Retrying the payout."
            )
        else:
            header = (
                f"{mention(user_id)} cashes out {format_usd(outcome.claimed_usd_cents)} "
                f"(~{format_eth(outcome.cashout_wei)})."
            )

        return (
            f"{header}\n\n"
            f"{format_net_summary(outcome.net)}{format_payout_notice(outcome)}\n\n"
            f"Outstanding pot balance: {format_usd(wei_to_usd_cents(outstanding_wei, rate))} "
            f"(~{format_eth(outstanding_wei)})."
        )


def format_net_summary(net: NetResult) -> str:
    if net.kind is NetKind.EVEN:
        return "Net result: even."
    return f"Net result: {net.kind.value} {format_usd(abs(net.usd_cents))} (~{format_eth(abs(net.wei))})."


def format_payout_notice(outcome: CashoutOutcome) -> str:
    if outcome.tx_hash:
        return f" Tip sent on\\-chain (tx: {shorten_hash(outcome.tx_hash)})."
    if outcome.payout_error:
        return (
            f" Attempted tip transfer failed: {outcome.payout_error}. "
            "Run `/cashout <usd>` again once the issue is resolved to retry the transfer."
        )
    return ""
