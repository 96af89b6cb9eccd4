"""
Croupier - Event Dispatcher.

Lightweight orchestrator that delegates to specialized components:
- SessionCommands: /help, /start, /state, /leave, /finish
- TipProcessor: Inbound tips → deposits
- CashoutDesk: /cashout settlement

Every reply goes back through the BotHandler. CashierError messages are shown
to the channel as is; anything else is logged and reported as a generic
command failure.

Author: Poker Cashier Team
Version: 1.0.0
"""

import logging
from typing import Any, Dict, Optional

from config import cashier as cashier_config
from core.events import Command, InboundEvent, SlashCommandEvent, TipEvent, parse_event
from core.exceptions import CashierError
from core.interfaces import BotHandler
from core.ledger import SessionLedger
from core.observability import bind_context, get_logger, unbind_context

from .components.cashout_desk import CashoutDesk
from .components.session_commands import SessionCommands
from .components.tip_processor import TipProcessor

_CONTEXT_KEYS = ("event_id", "channel_id", "user_id")


class Croupier:
    """
    Routes inbound events to the component that owns them.

    Example:
        ledger = SessionLedger(SessionStore(), resolver, payout=bot_handler)
        croupier = Croupier(ledger, bot_handler, bot_address="0xabc...")

        await croupier.handle_payload({
            "type": "slash_command",
            "command": "start",
            "args": ["20", "200"],
            "user_id": "0xhost",
            "channel_id": "channel-1",
            "event_id": "evt-1",
        })
    """

    def __init__(
        self,
        ledger: SessionLedger,
        bot_handler: BotHandler,
        bot_address: Optional[str] = cashier_config.BOT_ADDRESS,
    ):
        """
        Args:
            ledger: Session ledger shared by all components
            bot_handler: Transport for replies
            bot_address: Tips to other receivers are ignored (None accepts all)
        """
        self.ledger = ledger
        self.bot_handler = bot_handler
        self.logger = logging.getLogger("Croupier")
        self.event_log = get_logger("croupier.events")

        self.session_commands = SessionCommands(ledger)
        self.tip_processor = TipProcessor(ledger, bot_address=bot_address)
        self.cashout_desk = CashoutDesk(ledger)

        self._routes = {
            Command.HELP: self.session_commands.help,
            Command.START: self.session_commands.start,
            Command.STATE: self.session_commands.state,
            Command.LEAVE: self.session_commands.leave,
            Command.FINISH: self.session_commands.finish,
            Command.CASHOUT: self.cashout_desk.cashout,
        }

        self.logger.info(f"✅ Croupier initialized | Bot address: {bot_address or 'any'}")

    async def handle_payload(self, payload: Dict[str, Any]) -> Optional[str]:
        """
        Parse a raw transport payload and dispatch it.

        Malformed payloads are logged and dropped; there is no reliable
        channel to answer on.
        """
        try:
            event = parse_event(payload)
        except CashierError as e:
            self.logger.warning(f"⚠️ Dropping malformed event: {e}")
            return None
        return await self.handle_event(event)

    async def handle_event(self, event: InboundEvent) -> Optional[str]:
        """
        Dispatch one event and send the reply, if any.

        Returns:
            The reply text that was sent, or None
        """
        bind_context(event_id=event.event_id, channel_id=event.channel_id, user_id=event.user_id)
        try:
            reply = await self._dispatch(event)
            if reply:
                await self.bot_handler.send_message(event.channel_id, reply)
            return reply
        finally:
            unbind_context(*_CONTEXT_KEYS)

    async def _dispatch(self, event: InboundEvent) -> Optional[str]:
        if isinstance(event, TipEvent):
            self.event_log.info("tip_received", amount_wei=event.amount, currency=event.currency)
            label = "tip"
        else:
            self.event_log.info("command_received", command=event.command.value, args=list(event.args))
            label = f"/{event.command.value}"

        try:
            if isinstance(event, TipEvent):
                return await self.tip_processor.process(event)
            return await self._run_command(event)
        except CashierError as e:
            self.event_log.info("command_rejected", command=label, error_type=type(e).__name__, reason=e.message)
            return e.message
        except Exception as e:
            self.logger.error(f"❌ Unhandled error in {label} on {event.channel_id}: {e}", exc_info=True)
            return f"Command failed: {e}"

    async def _run_command(self, event: SlashCommandEvent) -> str:
        return await self._routes[event.command](event)
