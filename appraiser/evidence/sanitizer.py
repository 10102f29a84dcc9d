"""Price sanity checks for web-search evidence.

Suspect prices are tagged, never dropped, so the audit trail keeps them.
"""

import re
from typing import Iterable, List, Optional

from appraiser.config import get_settings
from appraiser.evidence.models import PricePoint
from appraiser.llm.models import ItemAnalysisResponse

MAX_ANCHOR_RATIO = 3.0
MIN_ANCHOR_RATIO = 0.33

ALL_SUSPECT_CONFIDENCE_FACTOR = 0.5
ALL_SUSPECT_CONFIDENCE_FLOOR = 0.3

REASON_ROUND_DEFAULT = "round_default"
REASON_ABOVE_ANCHOR = "above_anchor"
REASON_BELOW_ANCHOR = "below_anchor"

_DOLLAR_AMOUNT = re.compile(r"\$\s?(\d[\d,]*(?:\.\d{1,2})?)")


def parse_dollar_amounts(text: str) -> List[float]:
    """All ``$`` amounts mentioned in a piece of text."""
    amounts = []
    for match in _DOLLAR_AMOUNT.finditer(text):
        try:
            amounts.append(float(match.group(1).replace(",", "")))
        except ValueError:
            continue
    return amounts


def extract_prices(response: ItemAnalysisResponse) -> List[float]:
    """Collect the distinct positive prices a web-search answer reports.

    Args:
        response: Parsed provider answer

    Returns:
        Prices in first-seen order
    """
    candidates: List[float] = [response.estimated_value]
    details = response.market_details
    if details is not None:
        candidates.extend(p for p in (details.average_price, details.median_price) if p is not None)
        candidates.extend(details.recent_sold)
    for factor in response.valuation_factors:
        candidates.extend(parse_dollar_amounts(factor))

    seen = set()
    prices = []
    for price in candidates:
        if price is None or price <= 0:
            continue
        key = round(price, 2)
        if key in seen:
            continue
        seen.add(key)
        prices.append(price)
    return prices


def is_round_default(price: float, defaults: Optional[Iterable[float]] = None) -> bool:
    """Whether ``price`` is one of the configured fallback defaults."""
    if defaults is None:
        defaults = get_settings().suspicious_default_prices
    return any(abs(price - default) < 0.005 for default in defaults)


def suspicion_reasons(
    price: float, anchor: Optional[float], defaults: Optional[Iterable[float]] = None
) -> List[str]:
    """Why a price looks implausible; empty when it looks fine.

    Args:
        price: Candidate price
        anchor: Trusted reference price (marketplace median), if known
        defaults: Fallback prices to flag. If None, uses config value.

    Returns:
        Reason tags
    """
    reasons = []
    if is_round_default(price, defaults):
        reasons.append(REASON_ROUND_DEFAULT)
    if anchor is not None and anchor > 0:
        ratio = price / anchor
        if ratio > MAX_ANCHOR_RATIO:
            reasons.append(REASON_ABOVE_ANCHOR)
        elif ratio < MIN_ANCHOR_RATIO:
            reasons.append(REASON_BELOW_ANCHOR)
    return reasons


def sanitize_prices(
    prices: Iterable[float],
    source: str,
    anchor: Optional[float],
    defaults: Optional[Iterable[float]] = None,
) -> List[PricePoint]:
    """Tag each price from one source against the anchor."""
    defaults = list(get_settings().suspicious_default_prices if defaults is None else defaults)
    points = []
    for price in prices:
        reasons = suspicion_reasons(price, anchor, defaults)
        points.append(PricePoint(price=price, source=source, suspect=bool(reasons), reasons=reasons))
    return points


def penalize_confidence(confidence: float) -> float:
    """Halve the confidence of a source whose prices were all suspect.

    The floor only limits how far the penalty reaches; it never raises a
    confidence that was already below it.
    """
    return max(
        confidence * ALL_SUSPECT_CONFIDENCE_FACTOR,
        min(confidence, ALL_SUSPECT_CONFIDENCE_FLOOR),
    )
