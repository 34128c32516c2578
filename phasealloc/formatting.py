"""Display helpers for amounts and shares shown alongside allocation trees."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

DEFAULT_CURRENCY_SYMBOL = "¥"
MONEY_DUST_THRESHOLD = 0.01


def format_money(value: float, symbol: str = DEFAULT_CURRENCY_SYMBOL) -> str:
    """Return ``value`` as a whole-unit currency string such as ``"¥1,235"``.

    Values a hair below zero (within :data:`MONEY_DUST_THRESHOLD`) are shown
    as zero so floating-point noise does not render as ``"-¥0"``.
    """

    if -MONEY_DUST_THRESHOLD < value < 0:
        value = 0.0
    rounded = int(Decimal(repr(float(value))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(rounded):,}"


def format_percent(value: float) -> str:
    """Return a 0-1 ratio as a percentage with one decimal, e.g. ``"12.5%"``."""

    return f"{value * 100:.1f}%"


def clamp_progress(percent: float) -> float:
    """Return the progress-bar fill width (0-100) for a 0-1 ratio."""

    return min(max(percent * 100, 0.0), 100.0)


__all__ = [
    "DEFAULT_CURRENCY_SYMBOL",
    "MONEY_DUST_THRESHOLD",
    "clamp_progress",
    "format_money",
    "format_percent",
]
