"""
====================================================
⚙️ CONFIGURACIÓN MODULAR - POKER CASHIER
====================================================

Configuración organizada por categorías.

Uso:
    from config import cashier, system

    url = cashier.PRICE_FEED_URL
    level = system.LOG_LEVEL
"""

from . import cashier, system

__all__ = [
    "cashier",
    "system",
]
