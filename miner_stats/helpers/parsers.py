"""Parsing utilities for common data transformations."""

from decimal import ROUND_HALF_UP, Decimal

from miner_stats.helpers.constants import DISPLAY_PLACES, ZATS_PER_COIN

_QUANTUM = Decimal(1).scaleb(-DISPLAY_PLACES)


def round_display(value: Decimal) -> Decimal:
    """Round a decimal to the display precision, halves away from zero.

    Example:
        >>> round_display(Decimal("33.3333"))
        Decimal('33.33')
    """
    return value.quantize(_QUANTUM, rounding=ROUND_HALF_UP)


def zats_to_coins(zats: int) -> Decimal:
    """Convert smallest units to major units rounded for display.

    Args:
        zats: Amount in the smallest unit

    Returns:
        Decimal: Amount in major units with two decimal places

    Example:
        >>> zats_to_coins(500_000_000)
        Decimal('5.00')
        >>> zats_to_coins(123_456_789)
        Decimal('1.23')
    """
    return round_display(Decimal(zats) / ZATS_PER_COIN)


def percent_share(part: int, total: int) -> Decimal:
    """Percentage of `part` in `total`, rounded to two places.

    Args:
        part: Counted items
        total: Population size

    Returns:
        Decimal: Share in percent, 0 when total is 0

    Example:
        >>> percent_share(1, 3)
        Decimal('33.33')
        >>> percent_share(5, 0)
        Decimal('0.00')
    """
    if total == 0:
        return round_display(Decimal(0))
    return round_display(Decimal(part) * 100 / Decimal(total))


def shorten_key(key: str) -> str:
    """Abbreviate a long key for messages.

    Example:
        >>> shorten_key("uview1qqqqqqqqqqqqqqqqqqqqqqqq")
        'uview1qq…qqqqqqqq'
    """
    if len(key) <= 16:
        return key
    return f"{key[:8]}…{key[-8:]}"


__all__ = [
    "percent_share",
    "round_display",
    "shorten_key",
    "zats_to_coins",
]
