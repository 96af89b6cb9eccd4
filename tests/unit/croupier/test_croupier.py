"""
Unit tests for Croupier dispatcher.

Drives full command/tip flows through handle_payload and checks the replies
delivered to the BotHandler.
"""

from unittest.mock import MagicMock

import pytest
from conftest import BOT_ADDRESS, NATIVE

from core.exceptions import RateUnavailableError
from croupier.croupier import Croupier

CHANNEL = "channel-1"


def command(user_id, name, *args, event_id=None):
    return {
        "type": "slash_command",
        "command": f"/{name}",
        "args": list(args),
        "user_id": user_id,
        "channel_id": CHANNEL,
        "event_id": event_id or f"{user_id}-{name}",
    }


def tip(user_id, amount, receiver=BOT_ADDRESS, event_id=None):
    event_id = event_id or f"{user_id}-tip-{amount}"
    return {
        "type": "tip",
        "user_id": user_id,
        "channel_id": CHANNEL,
        "event_id": event_id,
        "message_id": event_id,
        "sender_address": f"0x{user_id}",
        "receiver_address": receiver,
        "amount": amount,
        "currency": NATIVE,
    }


class TestCroupier:
    """Test suite for Croupier dispatcher."""

    @pytest.fixture
    def croupier(self, ledger, bot_handler):
        return Croupier(ledger, bot_handler, bot_address=BOT_ADDRESS.lower())

    def last_reply(self, bot_handler):
        channel_id, text = bot_handler.send_message.await_args.args
        assert channel_id == CHANNEL
        return text

    @pytest.mark.asyncio
    async def test_help(self, croupier, bot_handler):
        await croupier.handle_payload(command("alice", "help"))

        reply = self.last_reply(bot_handler)
        assert reply.startswith("**Poker Cashier Bot**")
        for name in ("/start", "/state", "/leave", "/finish", "/cashout"):
            assert name in reply

    @pytest.mark.asyncio
    async def test_start_usage(self, croupier, bot_handler):
        await croupier.handle_payload(command("alice", "start", "20"))

        assert self.last_reply(bot_handler) == "Usage: `/start <minUSD> <maxUSD>` (example: `/start 20 200`)."

    @pytest.mark.asyncio
    async def test_start_with_bad_amount(self, croupier, bot_handler):
        await croupier.handle_payload(command("alice", "start", "twenty", "200"))

        assert "up to two decimals" in self.last_reply(bot_handler)
        assert croupier.ledger.get_session(CHANNEL) is None

    @pytest.mark.asyncio
    async def test_start_reports_bounds_and_rate(self, croupier, bot_handler):
        await croupier.handle_payload(command("alice", "start", "20", "200"))

        reply = self.last_reply(bot_handler)
        assert reply.startswith("Started a new poker session. Accepted deposit per tip: USD 20 to USD 200.")
        assert "1 ETH = USD 2000 (source: test" in reply

    @pytest.mark.asyncio
    async def test_start_twice(self, croupier, bot_handler):
        await croupier.handle_payload(command("alice", "start", "20", "200"))
        await croupier.handle_payload(command("alice", "start", "5", "50", event_id="again"))

        assert self.last_reply(bot_handler) == "A poker session is already active. Use `/finish` before starting another."

    @pytest.mark.asyncio
    async def test_start_without_rate(self, croupier, bot_handler, rate_resolver):
        rate_resolver.resolve.side_effect = RateUnavailableError("Unable to resolve ETH/USD exchange rate.")

        await croupier.handle_payload(command("alice", "start", "20", "200"))

        assert self.last_reply(bot_handler) == "Unable to start session: Unable to resolve ETH/USD exchange rate."

    @pytest.mark.asyncio
    async def test_tip_without_session(self, croupier, bot_handler):
        await croupier.handle_payload(tip("bob", 10**16))

        assert self.last_reply(bot_handler).startswith("<@bob> tipped, but no poker session is active.")

    @pytest.mark.asyncio
    async def test_tip_to_other_address_is_ignored(self, croupier, bot_handler):
        await croupier.handle_payload(command("alice", "start", "20", "200"))
        bot_handler.send_message.reset_mock()

        reply = await croupier.handle_payload(tip("bob", 10**16, receiver="0xsomeoneelse"))

        assert reply is None
        bot_handler.send_message.assert_not_awaited()
        assert croupier.ledger.get_session(CHANNEL).players == {}

    @pytest.mark.asyncio
    async def test_receiver_match_is_case_insensitive(self, croupier, bot_handler):
        await croupier.handle_payload(command("alice", "start", "20", "200"))

        await croupier.handle_payload(tip("bob", 10**16, receiver=BOT_ADDRESS.upper().replace("0X", "0x")))

        assert "bob" in croupier.ledger.get_session(CHANNEL).players

    @pytest.mark.asyncio
    async def test_deposit_and_range_rejection_messages(self, croupier, bot_handler):
        await croupier.handle_payload(command("alice", "start", "20", "200"))

        await croupier.handle_payload(tip("bob", 10**16))
        assert self.last_reply(bot_handler) == (
            "<@bob> deposited ETH 0.01 (~USD 20). Their total stack: ETH 0.01 (~USD 20). Pot: ETH 0.01 (~USD 20)."
        )

        await croupier.handle_payload(tip("bob", 10**15))
        assert self.last_reply(bot_handler) == (
            "<@bob> sent ETH 0.001 (~USD 2), which is outside the allowed range (USD 20 - USD 200). "
            "Tip not applied. Please send an amount within the limits."
        )

    @pytest.mark.asyncio
    async def test_leave_flow(self, croupier, bot_handler):
        await croupier.handle_payload(command("alice", "start", "20", "200"))

        await croupier.handle_payload(command("bob", "leave"))
        assert self.last_reply(bot_handler).startswith("You have not deposited into this session yet.")

        await croupier.handle_payload(tip("bob", 10**16))
        await croupier.handle_payload(command("bob", "leave", event_id="leave-2"))
        assert self.last_reply(bot_handler) == "<@bob> left the table. Their deposit remains recorded for settlement."

    @pytest.mark.asyncio
    async def test_only_host_can_finish(self, croupier, bot_handler):
        await croupier.handle_payload(command("alice", "start", "20", "200"))

        await croupier.handle_payload(command("bob", "finish"))

        assert self.last_reply(bot_handler) == "<@bob>, only the session creator can finish the game."

    @pytest.mark.asyncio
    async def test_cashout_before_finish(self, croupier, bot_handler):
        await croupier.handle_payload(command("alice", "start", "20", "200"))
        await croupier.handle_payload(tip("bob", 10**16))

        await croupier.handle_payload(command("bob", "cashout", "25"))

        assert "still in progress" in self.last_reply(bot_handler)

    @pytest.mark.asyncio
    async def test_cashout_usage(self, croupier, bot_handler):
        await croupier.handle_payload(command("alice", "start", "20", "200"))

        await croupier.handle_payload(command("bob", "cashout"))

        assert self.last_reply(bot_handler).startswith("Usage: `/cashout <usd>`")

    @pytest.mark.asyncio
    async def test_full_game(self, croupier, bot_handler):
        await croupier.handle_payload(command("alice", "start", "20", "200"))
        await croupier.handle_payload(tip("bob", 10**16))

        await croupier.handle_payload(command("alice", "finish"))
        finish_reply = self.last_reply(bot_handler)
        assert finish_reply.startswith("The game is now finished.")
        assert "**Session Status:** Finished" in finish_reply
        assert "Awaiting cashout" in finish_reply

        await croupier.handle_payload(command("bob", "cashout", "25"))
        reply = self.last_reply(bot_handler)
        assert reply.startswith("<@bob> cashes out USD 25 (~ETH 0.0125).")
        assert "Net result: profit USD 5 (~ETH 0.0025)." in reply
        assert "Tip sent on\\-chain (tx: 0xabababab…ababab)." in reply
        assert reply.endswith("Outstanding pot balance: -USD 5 (~-ETH 0.0025).")

        await croupier.handle_payload(command("bob", "cashout", "25", event_id="again"))
        assert self.last_reply(bot_handler) == "Your cashout has already been recorded. Thank you!"

        await croupier.handle_payload(command("carol", "state"))
        assert "Settled" in self.last_reply(bot_handler)

    @pytest.mark.asyncio
    async def test_cashout_payout_failure_and_retry(self, croupier, bot_handler):
        await croupier.handle_payload(command("alice", "start", "20", "200"))
        await croupier.handle_payload(tip("bob", 10**16))
        await croupier.handle_payload(command("alice", "finish"))

        original = bot_handler.send_tip.return_value
        bot_handler.send_tip.side_effect = RuntimeError("wallet locked")
        await croupier.handle_payload(command("bob", "cashout", "20"))
        failed = self.last_reply(bot_handler)
        assert "Net result: even." in failed
        assert "Attempted tip transfer failed: wallet locked." in failed
        assert "again" in failed

        bot_handler.send_tip.side_effect = None
        bot_handler.send_tip.return_value = original
        await croupier.handle_payload(command("bob", "cashout", "20", event_id="retry"))
        retried = self.last_reply(bot_handler)
        assert "has already been recorded" in retried
        assert "Tip sent on\\-chain" in retried

    @pytest.mark.asyncio
    async def test_state_without_session(self, croupier, bot_handler):
        await croupier.handle_payload(command("alice", "state"))

        assert self.last_reply(bot_handler).startswith("No poker session has been started yet.")

    @pytest.mark.asyncio
    async def test_unexpected_error_reports_command_failed(self, croupier, bot_handler):
        croupier.ledger.get_session = MagicMock(side_effect=RuntimeError("kaput"))

        await croupier.handle_payload(command("alice", "state"))

        assert self.last_reply(bot_handler) == "Command failed: kaput"

    @pytest.mark.asyncio
    async def test_malformed_payload_is_dropped(self, croupier, bot_handler):
        reply = await croupier.handle_payload({"type": "slash_command", "command": "/dance", "channel_id": CHANNEL})

        assert reply is None
        bot_handler.send_message.assert_not_awaited()
