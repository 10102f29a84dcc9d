"""Helper utilities for Appraiser."""

import math
from typing import List, Optional


def format_price(price: Optional[float]) -> str:
    """Format price for display.

    Args:
        price: Price value

    Returns:
        Formatted price string
    """
    if price is None:
        return "N/A"
    return f"${price:,.2f}"


def format_percentage(value: Optional[float]) -> str:
    """Format percentage for display.

    Args:
        value: Percentage value (0-1)

    Returns:
        Formatted percentage string
    """
    if value is None:
        return "N/A"
    return f"{value * 100:.1f}%"


def validate_decision(decision: str) -> str:
    """Validate and normalize a BUY/SELL decision.

    Args:
        decision: Decision string (any case)

    Returns:
        Normalized decision string

    Raises:
        ValueError: If decision is invalid
    """
    decision_upper = str(decision).strip().upper()
    if decision_upper not in ["BUY", "SELL"]:
        raise ValueError(f"Invalid decision: {decision}. Must be 'BUY' or 'SELL'.")
    return decision_upper


def round_cents(value: float) -> float:
    """Round a dollar amount to cents."""
    return round(value * 100) / 100


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def percentile(sorted_values: List[float], fraction: float) -> float:
    """Pick the element at floor(n * fraction) of an ascending list.

    Returns 0 for an empty list.
    """
    if not sorted_values:
        return 0
    index = min(len(sorted_values) - 1, int(math.floor(len(sorted_values) * fraction)))
    return sorted_values[index]
