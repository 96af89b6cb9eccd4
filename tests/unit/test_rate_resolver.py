"""
Unit tests for ExchangeRateResolver: feed → static override → failure.
"""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from core.error_handling import CircuitBreaker, CircuitState
from core.exceptions import PriceFeedUnavailableError, RateUnavailableError
from core.interfaces import PriceFeed
from exchanges.rate_resolver import STATIC_SOURCE, ExchangeRateResolver

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeFeed(PriceFeed):
    def __init__(self, price=None, error=None):
        self.fetch = AsyncMock(return_value=price, side_effect=error)

    @property
    def name(self) -> str:
        return "FakeFeed"

    async def fetch_usd_price(self) -> Decimal:
        return await self.fetch()


def make_resolver(feed=None, static=None, breaker=None):
    return ExchangeRateResolver(
        price_feed=feed,
        static_rate_provider=lambda: static,
        breaker=breaker,
        clock=lambda: NOW,
    )


class TestExchangeRateResolver:
    @pytest.mark.asyncio
    async def test_live_feed_wins(self):
        resolver = make_resolver(FakeFeed(price=Decimal("2000.5")), static="1500")

        rate = await resolver.resolve()

        assert rate.value == 200050000000
        assert rate.source == "FakeFeed"
        assert rate.fetched_at == NOW

    @pytest.mark.asyncio
    async def test_feed_price_rounded_half_up_to_eight_decimals(self):
        resolver = make_resolver(FakeFeed(price=Decimal("2000.123456785")))

        rate = await resolver.resolve()

        assert rate.value == 200012345679

    @pytest.mark.asyncio
    async def test_falls_back_to_static_on_feed_failure(self):
        feed = FakeFeed(error=PriceFeedUnavailableError("Price feed returned HTTP 503"))
        resolver = make_resolver(feed, static="1850.25")

        rate = await resolver.resolve()

        assert rate.value == 185025000000
        assert rate.source == STATIC_SOURCE
        feed.fetch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_static_only_when_feed_disabled(self):
        rate = await make_resolver(None, static="3000").resolve()
        assert rate.value == 3000 * 10**8
        assert rate.source == "env(ETH_USD_RATE)"

    @pytest.mark.asyncio
    async def test_no_source_raises(self):
        feed = FakeFeed(error=PriceFeedUnavailableError("down"))

        with pytest.raises(RateUnavailableError) as exc_info:
            await make_resolver(feed, static=None).resolve()

        assert "ETH_USD_RATE" in exc_info.value.message

    @pytest.mark.asyncio
    @pytest.mark.parametrize("static", ["abc", "-5", "0", "0.000000001"])
    async def test_unusable_static_rate_raises(self, static):
        with pytest.raises(RateUnavailableError):
            await make_resolver(None, static=static).resolve()

    @pytest.mark.asyncio
    async def test_open_breaker_skips_feed(self):
        feed = FakeFeed(error=PriceFeedUnavailableError("down"))
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=60.0, name="test_feed")
        resolver = make_resolver(feed, static="2000", breaker=breaker)

        for _ in range(3):
            rate = await resolver.resolve()
            assert rate.source == STATIC_SOURCE

        assert feed.fetch.await_count == 2
        assert breaker.is_open

    @pytest.mark.asyncio
    async def test_successful_fetch_keeps_breaker_closed(self):
        breaker = CircuitBreaker(failure_threshold=1, name="test_feed")
        resolver = make_resolver(FakeFeed(price=Decimal("2000")), breaker=breaker)

        await resolver.resolve()

        assert not breaker.is_open

    @pytest.mark.asyncio
    @pytest.mark.parametrize("price", [Decimal("1e21"), Decimal("1e30"), Decimal("0.000000001")])
    async def test_unscalable_feed_price_falls_back(self, price):
        breaker = CircuitBreaker(failure_threshold=3, name="test_feed")
        resolver = make_resolver(FakeFeed(price=price), static="2000", breaker=breaker)

        rate = await resolver.resolve()

        assert rate.value == 2000 * 10**8
        assert rate.source == STATIC_SOURCE
        assert breaker.get_stats()["failure_count"] == 1

    @pytest.mark.asyncio
    async def test_unexpected_feed_error_falls_back(self):
        feed = FakeFeed(error=UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"))
        resolver = make_resolver(feed, static="2000")

        rate = await resolver.resolve()

        assert rate.source == STATIC_SOURCE

    @pytest.mark.asyncio
    async def test_breaker_recovers_after_half_open_call_raises_unexpected_error(self):
        now = [0.0]
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=60.0, name="test_feed", clock=lambda: now[0])
        feed = FakeFeed(error=RuntimeError("boom"))
        resolver = make_resolver(feed, static="2000", breaker=breaker)

        await resolver.resolve()
        assert breaker.is_open

        # Half-open call fails with a non-feed error and reopens the circuit
        now[0] = 61.0
        await resolver.resolve()
        assert breaker.is_open
        assert feed.fetch.await_count == 2

        feed.fetch.side_effect = None
        feed.fetch.return_value = Decimal("2100")
        now[0] = 122.0
        rate = await resolver.resolve()

        assert rate.source == "FakeFeed"
        assert rate.value == 2100 * 10**8
        assert breaker.state is CircuitState.CLOSED
