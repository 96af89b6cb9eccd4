"""
====================================================
🪙 CONFIGURACIÓN DEL CAJERO - POKER CASHIER
====================================================

Parámetros del feed de precios, la tasa de respaldo y los pagos.
"""

import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = float(value)
    except ValueError:
        raise ValueError(f"Invalid {name}: '{value}'. Must be a number.")
    if parsed <= 0:
        raise ValueError(f"Invalid {name}: '{value}'. Must be greater than zero.")
    return parsed


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError:
        raise ValueError(f"Invalid {name}: '{value}'. Must be an integer.")
    if parsed <= 0:
        raise ValueError(f"Invalid {name}: '{value}'. Must be greater than zero.")
    return parsed


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


# =====================================================
# 📈 FEED DE PRECIOS ETH/USD
# =====================================================

PRICE_FEED_URL = os.getenv(
    "PRICE_FEED_URL",
    "https://api.coingecko.com/api/v3/simple/price?ids=ethereum&vs_currencies=usd",
)
PRICE_FEED_TIMEOUT = _get_float("PRICE_FEED_TIMEOUT", 10.0)

# Circuit breaker del feed
PRICE_FEED_FAILURE_THRESHOLD = _get_int("PRICE_FEED_FAILURE_THRESHOLD", 3)
PRICE_FEED_RECOVERY_TIMEOUT = _get_float("PRICE_FEED_RECOVERY_TIMEOUT", 60.0)

# Tasa estática de respaldo (USD por ETH)
STATIC_RATE_ENV_VAR = "ETH_USD_RATE"


def get_static_rate() -> Optional[str]:
    """
    Lee la tasa de respaldo en cada llamada.

    Returns:
        Valor crudo de ETH_USD_RATE, o None si no está definido
    """
    value = os.getenv(STATIC_RATE_ENV_VAR)
    if value is None or not value.strip():
        return None
    return value.strip()


# =====================================================
# 💸 PAGOS
# =====================================================

# Dirección cero = token nativo (ETH)
NATIVE_CURRENCY = "0x0000000000000000000000000000000000000000"

# Dirección propia del bot (filtro de tips entrantes; sin definir = sin filtro)
BOT_ADDRESS = os.getenv("CASHIER_BOT_ADDRESS") or None

# Reenvío del tip recibido por el transporte de pagos
TIP_ECHO_ENABLED = _get_bool("CASHIER_TIP_ECHO_ENABLED", True)
