"""
Configuration file for pytest.
This file ensures the project root is in the Python path and provides
shared ledger fixtures.
"""

import os
import sys
from datetime import datetime, timezone
from unittest.mock import AsyncMock

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest

from core.events import TipEvent
from core.interfaces import TipReceipt
from core.ledger import EthUsdRate, SessionLedger, SessionStore

BOT_ADDRESS = "0xB0T00000000000000000000000000000000000B0"
NATIVE = "0x0000000000000000000000000000000000000000"
TX_HASH = "0x" + "ab" * 32

# USD 2000 per ETH: 0.01 ETH = USD 20, 0.001 ETH = USD 2
RATE_2000 = 2000 * 10**8
FIXED_AT = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_tip(user_id: str, amount: int, channel_id: str = "channel-1", event_id: str = None, receiver=BOT_ADDRESS):
    event_id = event_id or f"tip-{user_id}-{amount}"
    return TipEvent(
        user_id=user_id,
        channel_id=channel_id,
        event_id=event_id,
        message_id=f"msg-{event_id}",
        sender_address=f"0x{user_id}",
        receiver_address=receiver,
        amount=amount,
        currency=NATIVE,
    )


@pytest.fixture
def fixed_rate():
    return EthUsdRate(value=RATE_2000, fetched_at=FIXED_AT, source="test")


@pytest.fixture
def rate_resolver(fixed_rate):
    resolver = AsyncMock()
    resolver.resolve.return_value = fixed_rate
    return resolver


@pytest.fixture
def bot_handler():
    handler = AsyncMock()
    handler.send_tip.return_value = TipReceipt(tx_hash=TX_HASH)
    return handler


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def ledger(store, rate_resolver, bot_handler):
    return SessionLedger(store=store, rate_resolver=rate_resolver, payout=bot_handler, echo_tips=True)
