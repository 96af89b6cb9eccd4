"""
CoinGecko ETH/USD Price Feed.

Single REST call over aiohttp. Every failure mode (network error, timeout,
non-2xx status, undecodable body, missing or non-positive price) surfaces as
PriceFeedUnavailableError so callers can fall back without inspecting causes.
"""

import asyncio
import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

import aiohttp

from core.exceptions import PriceFeedUnavailableError
from core.interfaces import PriceFeed

from .coingecko_constants import COINGECKO_ASSET_ID, COINGECKO_QUOTE, COINGECKO_SIMPLE_PRICE_URL, SOURCE_NAME


class CoinGeckoPriceFeed(PriceFeed):
    """
    Live ETH/USD price from CoinGecko's simple-price endpoint.

    The HTTP session is created lazily and reused; call ``close`` (or use
    ``async with``) on shutdown.
    """

    def __init__(
        self,
        url: str = COINGECKO_SIMPLE_PRICE_URL,
        timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.logger = logging.getLogger("CoinGeckoFeed")
        self._url = url
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._http_session = session
        self._owns_session = session is None

    @property
    def name(self) -> str:
        return SOURCE_NAME

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    async def close(self) -> None:
        if self._owns_session and self._http_session is not None and not self._http_session.closed:
            await self._http_session.close()
        self._http_session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._http_session is None or self._http_session.closed:
            self._http_session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._http_session

    async def fetch_usd_price(self) -> Decimal:
        session = self._get_session()
        try:
            async with session.get(self._url, timeout=self._timeout) as resp:
                body = await resp.read()
                if resp.status < 200 or resp.status >= 300:
                    self.logger.warning(f"⚠️ CoinGecko returned HTTP {resp.status}: {resp.reason}")
                    raise PriceFeedUnavailableError(
                        f"Price feed returned HTTP {resp.status}", {"status": resp.status, "reason": resp.reason}
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.warning(f"⚠️ CoinGecko request failed: {e!r}")
            raise PriceFeedUnavailableError("Price feed request failed", {"error": repr(e)}) from e

        return self.parse_price(body)

    @staticmethod
    def parse_price(body: Union[bytes, str]) -> Decimal:
        """
        Extract ``ethereum.usd`` from a raw response body.

        Raises:
            PriceFeedUnavailableError: If the body is not JSON or the price is unusable
        """
        try:
            text = body.decode("utf-8") if isinstance(body, bytes) else body
            payload = json.loads(text, parse_float=Decimal)
        except (UnicodeDecodeError, ValueError, TypeError) as e:
            raise PriceFeedUnavailableError("Price feed returned malformed JSON", {"body": repr(body[:200])}) from e

        price: Any = None
        if isinstance(payload, dict):
            asset = payload.get(COINGECKO_ASSET_ID)
            if isinstance(asset, dict):
                price = asset.get(COINGECKO_QUOTE)

        if isinstance(price, bool) or not isinstance(price, (int, Decimal)):
            raise PriceFeedUnavailableError("Price feed returned no ETH/USD price", {"price": price})

        try:
            value = Decimal(price)
        except InvalidOperation as e:
            raise PriceFeedUnavailableError("Price feed returned an invalid price", {"price": price}) from e

        if not value.is_finite() or value <= 0:
            raise PriceFeedUnavailableError("Price feed returned a non-positive price", {"price": str(value)})

        return value
