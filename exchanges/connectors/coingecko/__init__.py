"""
CoinGecko Price Feed Package.

Usage:
    >>> from exchanges.connectors.coingecko import CoinGeckoPriceFeed
    >>> async with CoinGeckoPriceFeed(timeout=5.0) as feed:
    ...     price = await feed.fetch_usd_price()
"""

from .coingecko_price_feed import CoinGeckoPriceFeed

__all__ = ["CoinGeckoPriceFeed"]
