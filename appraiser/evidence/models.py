"""Models for market evidence."""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from appraiser.llm.models import ItemAnalysisResponse

# Price blending weight per market-data source
MARKET_SOURCE_WEIGHTS: Dict[str, float] = {
    "psa": 1.6,
    "numista": 1.5,
    "brickset": 1.5,
    "pokemon_tcg": 1.5,
    "retailed": 1.5,
    "google_books": 1.4,
    "discogs": 1.4,
    "colnect": 1.4,
    "ebay": 1.2,
    "upcitemdb": 1.0,
    "nhtsa": 1.0,
    "comicvine": 0.5,
}
MARKETPLACE_SOURCE = "ebay"


def source_weight(source: str) -> float:
    """Blending weight for a market-data source (1.0 when unknown)."""
    return MARKET_SOURCE_WEIGHTS.get(source, 1.0)


class PricePoint(BaseModel):
    """One price reported by a source, tagged when it looks implausible."""

    price: float = Field(..., ge=0)
    source: str
    suspect: bool = False
    reasons: List[str] = Field(default_factory=list)


class MarketSource(BaseModel):
    """Result from one authority or marketplace lookup."""

    source: str
    available: bool = True
    price: Optional[float] = Field(None, ge=0)
    median_price: Optional[float] = Field(None, ge=0)
    listing_count: int = 0
    details: Dict[str, str] = Field(default_factory=dict)
    error: Optional[str] = None


class MarketData(BaseModel):
    """Combined structured market data for an item."""

    sources: List[MarketSource] = Field(default_factory=list)

    def _available(self) -> List[MarketSource]:
        return [s for s in self.sources if s.available]

    @property
    def marketplace(self) -> Optional[MarketSource]:
        """The live marketplace source, when it answered."""
        for source in self._available():
            if source.source == MARKETPLACE_SOURCE:
                return source
        return None

    @property
    def marketplace_median(self) -> Optional[float]:
        marketplace = self.marketplace
        if marketplace is None:
            return None
        median = marketplace.median_price or marketplace.price
        return median if median and median > 0 else None

    @property
    def listing_count(self) -> int:
        marketplace = self.marketplace
        return marketplace.listing_count if marketplace else 0

    @property
    def authority(self) -> Optional[MarketSource]:
        """Highest-weighted non-marketplace source that reported a price."""
        candidates = [
            s
            for s in self._available()
            if s.source != MARKETPLACE_SOURCE and s.price is not None and s.price > 0
        ]
        if not candidates:
            return None
        # max() keeps the first of equal weights
        return max(candidates, key=lambda s: source_weight(s.source))

    @property
    def blended_price(self) -> Optional[float]:
        """Source-weighted mean of every available price."""
        total = 0.0
        weight_sum = 0.0
        for source in self._available():
            price = source.price if source.price else source.median_price
            if not price or price <= 0:
                continue
            weight = source_weight(source.source)
            total += price * weight
            weight_sum += weight
        if weight_sum == 0:
            return None
        return total / weight_sum


class WebSearchResult(BaseModel):
    """Answer from one web-search-capable model, with sanitized prices."""

    provider_id: str
    response: ItemAnalysisResponse
    latency_ms: int = 0
    prices: List[PricePoint] = Field(default_factory=list)

    @property
    def clean_prices(self) -> List[float]:
        return [p.price for p in self.prices if not p.suspect]

    @property
    def all_suspect(self) -> bool:
        return bool(self.prices) and all(p.suspect for p in self.prices)


class WebPriceRange(BaseModel):
    """Range of clean web prices and where they came from."""

    low: float
    high: float
    sources: List[str]


class AuthorityEvidence(BaseModel):
    source: str
    price: float
    details: Dict[str, str] = Field(default_factory=dict)


class MarketplaceEvidence(BaseModel):
    median: float
    listings: int


class EvidenceSummary(BaseModel):
    """Non-vote market context for one analysis."""

    model_config = ConfigDict(frozen=True)

    authority: Optional[AuthorityEvidence] = None
    marketplace: Optional[MarketplaceEvidence] = None
    web_prices: Optional[WebPriceRange] = None
    blended_price: Optional[float] = None
    formatted: str = ""
    market_confidence: float = Field(0.0, ge=0.0, le=1.0)
    suspect_price_count: int = 0


class FetchResult(BaseModel):
    """Everything the evidence stage produced."""

    market_data: MarketData
    web_search_results: List[WebSearchResult] = Field(default_factory=list)
    evidence_summary: EvidenceSummary
