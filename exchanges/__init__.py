"""
Exchange-rate integrations for the Poker Cashier.

This package contains:
- connectors/: Live ETH/USD price feeds (CoinGecko)
- rate_resolver: Feed → static override → failure resolution
"""

from .connectors import CoinGeckoPriceFeed
from .rate_resolver import ExchangeRateResolver

__all__ = [
    "CoinGeckoPriceFeed",
    "ExchangeRateResolver",
]
