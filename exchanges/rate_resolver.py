"""
ETH/USD Rate Resolver.

Produces one EthUsdRate per session start:
1. Live price feed (skipped while its circuit breaker is open)
2. Static ETH_USD_RATE override
3. Fail with RateUnavailableError

The resolved rate is frozen into the session and never refreshed.

Author: Poker Cashier Team
Version: 1.0.0
"""

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Callable, Optional

from config import cashier as cashier_config
from core.error_handling import CircuitBreaker
from core.exceptions import PriceFeedUnavailableError, RateUnavailableError, ValidationError
from core.interfaces import PriceFeed
from core.ledger.models import EthUsdRate, utc_now
from core.money import RATE_DECIMALS, RATE_SCALE, to_scaled_int
from core.observability import record_rate_fallback

_RATE_QUANTUM = Decimal(1).scaleb(-RATE_DECIMALS)

STATIC_SOURCE = f"env({cashier_config.STATIC_RATE_ENV_VAR})"


class ExchangeRateResolver:
    """
    Resolve the ETH/USD rate used to freeze a session.

    Example:
        resolver = ExchangeRateResolver(price_feed=CoinGeckoPriceFeed())
        rate = await resolver.resolve()
    """

    def __init__(
        self,
        price_feed: Optional[PriceFeed] = None,
        static_rate_provider: Callable[[], Optional[str]] = cashier_config.get_static_rate,
        breaker: Optional[CircuitBreaker] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            price_feed: Live feed; None disables it entirely
            static_rate_provider: Returns the raw override string or None
            breaker: Circuit breaker for the feed (default from config)
            clock: Source of ``fetched_at`` timestamps
        """
        self.price_feed = price_feed
        self._static_rate_provider = static_rate_provider
        self.breaker = breaker or CircuitBreaker(
            failure_threshold=cashier_config.PRICE_FEED_FAILURE_THRESHOLD,
            recovery_timeout=cashier_config.PRICE_FEED_RECOVERY_TIMEOUT,
            name="price_feed",
        )
        self._clock = clock
        self.logger = logging.getLogger("RateResolver")

    async def resolve(self) -> EthUsdRate:
        """
        Raises:
            RateUnavailableError: If neither source yields a usable rate
        """
        fetched = await self._try_fetch()
        if fetched is not None:
            return fetched

        static = self._from_static()
        if static is not None:
            self.logger.info(f"📌 Using static ETH/USD rate: {static.value / RATE_SCALE}")
            return static

        self.logger.error("❌ No ETH/USD rate available from feed or ETH_USD_RATE")
        raise RateUnavailableError(
            "Unable to resolve ETH/USD exchange rate. "
            "Set ETH_USD_RATE env variable or enable outbound network access."
        )

    async def _try_fetch(self) -> Optional[EthUsdRate]:
        if self.price_feed is None:
            return None

        if not self.breaker.allow_request():
            self.logger.warning("⚠️ Price feed circuit open, skipping live fetch")
            record_rate_fallback("breaker_open")
            return None

        try:
            price = await self.price_feed.fetch_usd_price()
            scaled = self._scale_price(price)
        except PriceFeedUnavailableError as e:
            self.breaker.record_failure()
            record_rate_fallback("feed_unavailable")
            self.logger.warning(f"⚠️ Failed to fetch ETH/USD rate from {self.price_feed.name}: {e}")
            return None
        except Exception as e:
            # Any failure counts against the breaker, half-open probes included
            self.breaker.record_failure()
            record_rate_fallback("feed_error")
            self.logger.error(f"❌ Unexpected error from {self.price_feed.name}: {e!r}", exc_info=True)
            return None

        self.breaker.record_success()
        return EthUsdRate(value=scaled, fetched_at=self._clock(), source=self.price_feed.name)

    @staticmethod
    def _scale_price(price: Decimal) -> int:
        try:
            scaled = int(price.quantize(_RATE_QUANTUM, rounding=ROUND_HALF_UP).scaleb(RATE_DECIMALS))
        except InvalidOperation as e:
            raise PriceFeedUnavailableError("Price feed returned an out-of-range price", {"price": str(price)}) from e

        if scaled <= 0:
            raise PriceFeedUnavailableError("Price feed price rounds to zero", {"price": str(price)})
        return scaled

    def _from_static(self) -> Optional[EthUsdRate]:
        raw = self._static_rate_provider()
        if raw is None:
            return None

        try:
            scaled = to_scaled_int(raw, RATE_DECIMALS)
        except ValidationError as e:
            raise RateUnavailableError(f"ETH_USD_RATE is not a valid number: {raw}", {"value": raw}) from e

        if scaled <= 0:
            raise RateUnavailableError("ETH_USD_RATE must be greater than zero.", {"value": raw})

        return EthUsdRate(value=scaled, fetched_at=self._clock(), source=STATIC_SOURCE)
