"""
Price Feed Connectors Module.

Each connector implements the ``core.interfaces.PriceFeed`` interface and
maps every transport or payload problem to ``PriceFeedUnavailableError``.

Available Connectors:
    - CoinGeckoPriceFeed: CoinGecko simple price endpoint

Usage:
    ```python
    from exchanges.connectors import CoinGeckoPriceFeed

    async with CoinGeckoPriceFeed(timeout=5.0) as feed:
        price = await feed.fetch_usd_price()
    ```
"""

from .coingecko import CoinGeckoPriceFeed

__all__ = [
    "CoinGeckoPriceFeed",
]
