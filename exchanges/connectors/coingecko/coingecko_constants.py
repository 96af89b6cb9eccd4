"""
CoinGecko Constants.
"""

# =========================================================
# 🌐 API
# =========================================================

COINGECKO_SIMPLE_PRICE_URL = "https://api.coingecko.com/api/v3/simple/price?ids=ethereum&vs_currencies=usd"

# Payload shape: {"ethereum": {"usd": 2000.12}}
COINGECKO_ASSET_ID = "ethereum"
COINGECKO_QUOTE = "usd"

SOURCE_NAME = "CoinGecko"
