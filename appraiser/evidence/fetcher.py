"""Concurrent evidence acquisition with price sanity filtering."""

import asyncio
import logging
from typing import List, Optional

from appraiser.category.detector import get_sources_for_category
from appraiser.config import get_settings
from appraiser.evidence.market import MarketDataProvider
from appraiser.evidence.models import (
    AuthorityEvidence,
    EvidenceSummary,
    FetchResult,
    MarketData,
    MarketplaceEvidence,
    WebPriceRange,
    WebSearchResult,
)
from appraiser.evidence.sanitizer import extract_prices, sanitize_prices
from appraiser.llm.manager import LLMManager
from appraiser.llm.models import ItemContext
from appraiser.utils.helpers import clamp, format_price

logger = logging.getLogger(__name__)

NO_EVIDENCE_TEXT = "No market evidence available; rely on item knowledge."

MANY_LISTINGS = 10
SOME_LISTINGS = 3


def market_confidence(
    listing_count: int,
    has_authority: bool,
    has_clean_web_prices: bool,
    has_blended_price: bool,
    all_web_prices_suspect: bool,
) -> float:
    """Additive confidence in the structured market evidence, clamped to [0, 1]."""
    score = 0.0
    if listing_count >= MANY_LISTINGS:
        score += 0.4
    elif listing_count >= SOME_LISTINGS:
        score += 0.2
    if has_authority:
        score += 0.3
    if has_clean_web_prices:
        score += 0.2
    if has_blended_price:
        score += 0.1
    if all_web_prices_suspect:
        score -= 0.1
    return round(clamp(score, 0.0, 1.0), 4)


def build_evidence_summary(
    market_data: MarketData, web_results: List[WebSearchResult]
) -> EvidenceSummary:
    """Summarize market data and sanitized web prices.

    Suspect prices are left out of the web range and the formatted text.

    Args:
        market_data: Structured market data
        web_results: Sanitized web-search answers

    Returns:
        Evidence summary
    """
    authority_source = market_data.authority
    authority = None
    if authority_source is not None:
        authority = AuthorityEvidence(
            source=authority_source.source,
            price=authority_source.price,
            details=authority_source.details,
        )

    marketplace = None
    median = market_data.marketplace_median
    if median is not None:
        marketplace = MarketplaceEvidence(median=median, listings=market_data.listing_count)

    clean: List[float] = []
    clean_sources: List[str] = []
    total_points = 0
    suspect_points = 0
    for result in web_results:
        total_points += len(result.prices)
        suspect_points += sum(1 for p in result.prices if p.suspect)
        prices = result.clean_prices
        if prices:
            clean.extend(prices)
            clean_sources.append(result.provider_id)

    web_prices = None
    if clean:
        web_prices = WebPriceRange(low=min(clean), high=max(clean), sources=clean_sources)

    blended = market_data.blended_price
    all_suspect = total_points > 0 and suspect_points == total_points

    lines = []
    if authority:
        lines.append(f"- Authority ({authority.source}): {format_price(authority.price)}")
        for key, value in sorted(authority.details.items()):
            lines.append(f"    {key}: {value}")
    if marketplace:
        lines.append(
            f"- Marketplace median: {format_price(marketplace.median)} "
            f"across {marketplace.listings} listings"
        )
    if web_prices:
        lines.append(
            f"- Web prices: {format_price(web_prices.low)} - {format_price(web_prices.high)} "
            f"({', '.join(web_prices.sources)})"
        )
    if blended is not None:
        lines.append(f"- Blended market price: {format_price(blended)}")

    formatted = "MARKET EVIDENCE:\n" + "\n".join(lines) if lines else NO_EVIDENCE_TEXT

    return EvidenceSummary(
        authority=authority,
        marketplace=marketplace,
        web_prices=web_prices,
        blended_price=blended,
        formatted=formatted,
        market_confidence=market_confidence(
            listing_count=market_data.listing_count,
            has_authority=authority is not None,
            has_clean_web_prices=web_prices is not None,
            has_blended_price=blended is not None,
            all_web_prices_suspect=all_suspect,
        ),
        suspect_price_count=suspect_points,
    )


class EvidenceFetcher:
    """Queries market data and web-search models concurrently."""

    def __init__(
        self,
        llm_manager: LLMManager,
        market_provider: Optional[MarketDataProvider] = None,
        search_provider_ids: Optional[List[str]] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize evidence fetcher.

        Args:
            llm_manager: Manager holding the web-search providers
            market_provider: Structured market data lookup. None skips it.
            search_provider_ids: Web-search providers to use. If None, every
                configured search provider.
            timeout: Default stage timeout in seconds. If None, uses config value.
        """
        self.llm_manager = llm_manager
        self.market_provider = market_provider
        self.search_provider_ids = search_provider_ids
        self.timeout = timeout or get_settings().evidence_timeout_seconds

    async def fetch_evidence(
        self,
        item_name: str,
        category: str,
        context: Optional[ItemContext] = None,
        timeout: Optional[float] = None,
    ) -> FetchResult:
        """Gather market data and web-search answers for an item.

        Every source races the same deadline; a source that loses contributes
        nothing and does not affect its siblings.

        Args:
            item_name: Item name
            category: Detected category
            context: Prompt context for the web-search models
            timeout: Deadline in seconds. If None, uses the fetcher default.

        Returns:
            Market data, sanitized web results, and the evidence summary
        """
        timeout = timeout or self.timeout
        search_context = context or ItemContext(item_name=item_name, category=category)

        market_data, search_results = await asyncio.gather(
            self._fetch_market_data(item_name, category, timeout),
            self.llm_manager.search_with_providers(
                search_context, provider_ids=self.search_provider_ids, timeout=timeout
            ),
        )

        anchor = market_data.marketplace_median
        web_results = []
        for result in search_results:
            if not result.ok:
                continue
            prices = sanitize_prices(extract_prices(result.response), result.provider_id, anchor)
            flagged = [p for p in prices if p.suspect]
            if flagged:
                logger.info(
                    f"{result.provider_id}: {len(flagged)}/{len(prices)} prices flagged suspect "
                    f"(anchor {format_price(anchor)})"
                )
            web_results.append(
                WebSearchResult(
                    provider_id=result.provider_id,
                    response=result.response,
                    latency_ms=result.latency_ms,
                    prices=prices,
                )
            )

        summary = build_evidence_summary(market_data, web_results)
        return FetchResult(
            market_data=market_data,
            web_search_results=web_results,
            evidence_summary=summary,
        )

    async def _fetch_market_data(self, item_name: str, category: str, timeout: float) -> MarketData:
        if self.market_provider is None:
            return MarketData()

        sources = get_sources_for_category(category)
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.market_provider.lookup, item_name, category, sources),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Market data lookup timed out after {timeout:.1f}s")
        except Exception as e:
            logger.warning(f"Market data lookup failed: {e}")
        return MarketData()
