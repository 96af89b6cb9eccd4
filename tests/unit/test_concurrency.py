"""
Interleaving tests for the per-channel ledger lock.

The payout transport sleeps inside send_tip so that operations suspend in
the middle of their read-modify-write sequence.
"""

import asyncio

import pytest
from conftest import TX_HASH, make_tip

from core.exceptions import CashoutAlreadyRecordedError
from core.interfaces import TipReceipt
from core.ledger import CashoutOutcome, TipStatus

CHANNEL = "channel-1"
HOST = "alice"


async def slow_send_tip(**kwargs):
    await asyncio.sleep(0.01)
    return TipReceipt(tx_hash=TX_HASH)


class TestConcurrentTips:
    @pytest.mark.asyncio
    async def test_racing_tips_from_same_player_both_count(self, ledger, bot_handler):
        bot_handler.send_tip.side_effect = slow_send_tip
        await ledger.start_session(CHANNEL, HOST, 2000, 20000)

        outcomes = await asyncio.gather(
            ledger.apply_tip(make_tip("bob", 10**16, event_id="t1")),
            ledger.apply_tip(make_tip("bob", 3 * 10**16, event_id="t2")),
        )

        assert all(outcome.status is TipStatus.ACCEPTED for outcome in outcomes)
        assert ledger.get_session(CHANNEL).players["bob"].total_deposit_wei == 4 * 10**16

    @pytest.mark.asyncio
    async def test_many_players_racing(self, ledger, bot_handler):
        bot_handler.send_tip.side_effect = slow_send_tip
        await ledger.start_session(CHANNEL, HOST, 2000, 20000)
        players = [f"player-{i}" for i in range(10)]

        await asyncio.gather(
            *(ledger.apply_tip(make_tip(user, 10**16, event_id=f"t-{user}-{n}")) for user in players for n in range(3))
        )

        session = ledger.get_session(CHANNEL)
        assert len(session.players) == 10
        assert all(player.total_deposit_wei == 3 * 10**16 for player in session.players.values())

    @pytest.mark.asyncio
    async def test_channels_do_not_block_each_other(self, ledger, bot_handler):
        gate = asyncio.Event()

        async def gated_send_tip(**kwargs):
            if kwargs["channel_id"] == "slow":
                await gate.wait()
            return TipReceipt(tx_hash=TX_HASH)

        bot_handler.send_tip.side_effect = gated_send_tip
        await ledger.start_session("slow", HOST, 2000, 20000)
        await ledger.start_session("fast", HOST, 2000, 20000)

        slow = asyncio.create_task(ledger.apply_tip(make_tip("bob", 10**16, channel_id="slow")))
        await asyncio.sleep(0.01)
        assert ledger.locks.is_locked("session:slow")

        fast = await ledger.apply_tip(make_tip("carol", 10**16, channel_id="fast"))
        assert fast.status is TipStatus.ACCEPTED

        gate.set()
        await slow
        assert not ledger.locks.is_locked("session:slow")


class TestConcurrentCashouts:
    @pytest.mark.asyncio
    async def test_racing_cashouts_pay_once(self, ledger, bot_handler):
        await ledger.start_session(CHANNEL, HOST, 2000, 20000)
        await ledger.apply_tip(make_tip("bob", 10**16))
        await ledger.finish_session(CHANNEL, HOST)
        bot_handler.send_tip.reset_mock()
        bot_handler.send_tip.side_effect = slow_send_tip

        results = await asyncio.gather(
            ledger.cashout(CHANNEL, "bob", "25", "m1"),
            ledger.cashout(CHANNEL, "bob", "30", "m2"),
            return_exceptions=True,
        )

        assert isinstance(results[0], CashoutOutcome)
        assert isinstance(results[1], CashoutAlreadyRecordedError)
        bot_handler.send_tip.assert_awaited_once()
        assert ledger.get_session(CHANNEL).players["bob"].cashout_usd_cents == 2500

    @pytest.mark.asyncio
    async def test_reader_sees_pre_state_while_payout_in_flight(self, ledger, bot_handler):
        await ledger.start_session(CHANNEL, HOST, 2000, 20000)
        await ledger.apply_tip(make_tip("bob", 10**16))
        await ledger.finish_session(CHANNEL, HOST)
        seen = []

        async def observing_send_tip(**kwargs):
            seen.append(ledger.get_session(CHANNEL).players["bob"].cashout_wei)
            return TipReceipt(tx_hash=TX_HASH)

        bot_handler.send_tip.side_effect = observing_send_tip

        await ledger.cashout(CHANNEL, "bob", "25", "m1")

        assert seen == [None]
        assert ledger.get_session(CHANNEL).players["bob"].cashout_wei == 125 * 10**14

    @pytest.mark.asyncio
    async def test_finish_waits_for_inflight_tip(self, ledger, bot_handler):
        """A finish queued behind a slow tip echo sees the committed deposit."""
        bot_handler.send_tip.side_effect = slow_send_tip
        await ledger.start_session(CHANNEL, HOST, 2000, 20000)

        first = asyncio.create_task(ledger.apply_tip(make_tip("bob", 10**16, event_id="t1")))
        await asyncio.sleep(0)
        finish = asyncio.create_task(ledger.finish_session(CHANNEL, HOST))

        await asyncio.gather(first, finish)

        session = ledger.get_session(CHANNEL)
        assert not session.is_active
        assert session.players["bob"].total_deposit_wei == 10**16
        assert not session.players["bob"].is_active
