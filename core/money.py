"""
Fixed-Point Money Helpers.

Exact integer conversion between wei (18 decimals) and USD cents (2 decimals)
through an ETH/USD rate carrying 8 implied decimals, plus parsing and display.

All divisions round half-up on the absolute value and re-apply the sign
afterwards, so ties move away from zero.

Author: Poker Cashier Team
Version: 1.0.0
"""

import re
from typing import TYPE_CHECKING

from core.exceptions import ValidationError

if TYPE_CHECKING:
    from core.ledger.models import EthUsdRate

WEI_PER_ETH = 10**18
USD_SCALE = 100
RATE_DECIMALS = 8
RATE_SCALE = 10**RATE_DECIMALS

DEFAULT_RATE_DISPLAY_DECIMALS = 2
DEFAULT_ETH_DISPLAY_DECIMALS = 6

USD_AMOUNT_HINT = "Use a USD amount with up to two decimals (example: 25 or 25.50)."

_USD_PATTERN = re.compile(r"[0-9]+(\.[0-9]{1,2})?")
_DECIMAL_PATTERN = re.compile(r"[0-9]+(\.[0-9]+)?")


def divide_rounded(numerator: int, denominator: int) -> int:
    """
    Integer division rounding half-up on the absolute value.

    Raises:
        ZeroDivisionError: If denominator is zero
    """
    if denominator == 0:
        raise ZeroDivisionError("Cannot divide by zero.")

    if numerator == 0:
        return 0

    negative = (numerator < 0) != (denominator < 0)
    quotient, remainder = divmod(abs(numerator), abs(denominator))

    if remainder * 2 >= abs(denominator):
        quotient += 1

    return -quotient if negative else quotient


def wei_to_usd_cents(wei: int, rate: int) -> int:
    """Convert wei to USD cents at ``rate`` (USD per ETH, 8 decimals)."""
    return divide_rounded(wei * rate * USD_SCALE, WEI_PER_ETH * RATE_SCALE)


def usd_cents_to_wei(usd_cents: int, rate: int) -> int:
    """Convert USD cents to wei at ``rate`` (USD per ETH, 8 decimals)."""
    return divide_rounded(usd_cents * RATE_SCALE * WEI_PER_ETH, USD_SCALE * rate)


def parse_usd_amount(raw: str) -> int:
    """
    Parse a human-entered USD amount into cents.

    Accepts ``digits`` or ``digits.d`` / ``digits.dd`` only.

    Raises:
        ValidationError: If the input is blank or malformed
    """
    normalized = (raw or "").strip()
    if not normalized:
        raise ValidationError("Amount is required (example: 25 or 25.50).", {"value": raw})

    if not _USD_PATTERN.fullmatch(normalized):
        raise ValidationError(USD_AMOUNT_HINT, {"value": raw})

    whole, _, fraction = normalized.partition(".")
    return int(whole) * USD_SCALE + int((fraction + "00")[:2])


def to_scaled_int(raw: str, decimals: int) -> int:
    """
    Parse a non-negative decimal string into an integer with ``decimals`` implied places.

    Extra fractional digits are truncated.

    Raises:
        ValidationError: If the input is blank or not a plain decimal
    """
    normalized = (raw or "").strip()
    if not normalized:
        raise ValidationError("Value must not be empty.")

    if not _DECIMAL_PATTERN.fullmatch(normalized):
        raise ValidationError(f"Invalid numeric format: {raw}", {"value": raw})

    whole, _, fraction = normalized.partition(".")
    padded = (fraction + "0" * decimals)[:decimals]
    return int(whole) * 10**decimals + int(padded or "0")


def format_usd(cents: int) -> str:
    return _format_currency(cents, USD_SCALE, 2, "USD")


def format_eth(wei: int, decimals: int = DEFAULT_ETH_DISPLAY_DECIMALS) -> str:
    return _format_currency(wei, WEI_PER_ETH, decimals, "ETH")


def format_rate(rate: "EthUsdRate", decimals: int = DEFAULT_RATE_DISPLAY_DECIMALS) -> str:
    """Render a frozen rate, e.g. ``1 ETH = USD 2000 (source: CoinGecko, fetched ...)``."""
    price = format_scaled_value(rate.value, RATE_SCALE, decimals)
    return f"1 ETH = USD {price} (source: {rate.source}, fetched {format_timestamp(rate.fetched_at)})"


def format_scaled_value(value: int, scale: int, decimals: int) -> str:
    """Render ``value / scale`` with at most ``decimals`` places and no separators."""
    sign, integer, fraction = _split_scaled(value, scale, decimals)
    return f"{sign}{integer}.{fraction}" if fraction else f"{sign}{integer}"


def format_timestamp(moment) -> str:
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")


def _format_currency(value: int, scale: int, decimals: int, prefix: str) -> str:
    sign, integer, fraction = _split_scaled(value, scale, decimals)
    grouped = f"{integer:,}"
    return f"{sign}{prefix} {grouped}.{fraction}" if fraction else f"{sign}{prefix} {grouped}"


def _split_scaled(value: int, scale: int, decimals: int):
    sign = "-" if value < 0 else ""
    factor = 10**decimals
    scaled = divide_rounded(abs(value) * factor, scale)
    integer, remainder = divmod(scaled, factor)
    fraction = str(remainder).rjust(decimals, "0").rstrip("0") if decimals else ""
    return sign, integer, fraction
