"""
SessionCommands - Host and player commands that are not money movements.

This component is responsible for:
- /help, /start, /state, /leave, /finish
- Parsing command arguments before they reach the ledger
- Rendering the replies

Ledger failures (CashierError) propagate to the Croupier, which replies with
their message.

Author: Poker Cashier Team
Version: 1.0.0
"""

import logging

from core.events import SlashCommandEvent
from core.exceptions import NotSessionHostError, RateUnavailableError, SessionStateError
from core.ledger import SessionLedger, build_game_state_message, mention
from core.money import format_rate, format_usd, parse_usd_amount

START_USAGE = "Usage: `/start <minUSD> <maxUSD>` (example: `/start 20 200`)."

HELP_TEXT = (
    "**Poker Cashier Bot**\n\n"
    "• `/start <minUSD> <maxUSD>`: Host starts a session and sets the per-tip deposit bounds (USD).\n"
    "• Players send ETH tips within the allowed range; deposits are recorded using the ETH/USD rate "
    "frozen at session start.\n"
    "• `/state`: View current standings, deposits, and outstanding pot balance.\n"
    "• `/leave`: Mark yourself as away from the table (deposit stays recorded).\n"
    "• `/finish`: Host closes the session when play ends (tips blocked).\n"
    "• `/cashout <usd>`: After finish, report your final stack (USD). "
    "The bot converts it to ETH and sends the payout."
)


class SessionCommands:
    """
    Session lifecycle commands.

    Example:
        commands = SessionCommands(ledger)
        reply = await commands.start(event)
    """

    def __init__(self, ledger: SessionLedger):
        self.ledger = ledger
        self.logger = logging.getLogger("SessionCommands")

    async def help(self, event: SlashCommandEvent) -> str:
        return HELP_TEXT

    async def start(self, event: SlashCommandEvent) -> str:
        existing = self.ledger.get_session(event.channel_id)
        if existing is not None and existing.is_active:
            raise SessionStateError("A poker session is already active. Use `/finish` before starting another.")

        if len(event.args) < 2:
            return START_USAGE

        min_usd_cents = parse_usd_amount(event.args[0])
        max_usd_cents = parse_usd_amount(event.args[1])

        try:
            session = await self.ledger.start_session(event.channel_id, event.user_id, min_usd_cents, max_usd_cents)
        except RateUnavailableError as e:
            self.logger.warning(f"⚠️ Session start aborted in {event.channel_id}: {e}")
            return f"Unable to start session: {e.message}"

        return (
            f"Started a new poker session. Accepted deposit per tip: "
            f"{format_usd(session.min_deposit_usd_cents)} to {format_usd(session.max_deposit_usd_cents)}.\n\n"
            f"{format_rate(session.exchange_rate)}\n\n"
            "Tip the bot within the allowed range to sit down or add to your stack."
        )

    async def state(self, event: SlashCommandEvent) -> str:
        session = self.ledger.get_session(event.channel_id)
        if session is None:
            return "No poker session has been started yet. Use `/start <minUSD> <maxUSD>` to begin one."
        return build_game_state_message(session)

    async def leave(self, event: SlashCommandEvent) -> str:
        await self.ledger.leave_session(event.channel_id, event.user_id)
        return f"{mention(event.user_id)} left the table. Their deposit remains recorded for settlement."

    async def finish(self, event: SlashCommandEvent) -> str:
        try:
            session = await self.ledger.finish_session(event.channel_id, event.user_id)
        except NotSessionHostError as e:
            return f"{mention(event.user_id)}, {e.message}"

        return (
            "The game is now finished. Each player, please run `/cashout <usd>` with the cash value "
            "of your chips so we can settle the pot.\n\n" + build_game_state_message(session)
        )
