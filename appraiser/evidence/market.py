"""Market data providers: catalogue authorities and marketplace listings."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from appraiser.config import get_settings
from appraiser.evidence.exceptions import (
    MarketDataAPIError,
    MarketDataError,
    MarketDataNotFoundError,
    MarketDataRateLimitError,
)
from appraiser.evidence.models import MarketData, MarketSource

logger = logging.getLogger(__name__)


class MarketDataProvider(ABC):
    """Looks up structured price data for an item across several sources."""

    @abstractmethod
    def lookup(self, item_name: str, category: str, sources: List[str]) -> MarketData:
        """Query each source for the item.

        A failing source is reported as unavailable inside the result; only
        a failure of the provider as a whole raises.

        Args:
            item_name: Item name
            category: Detected category
            sources: Source ids to query, most authoritative first

        Returns:
            Combined market data
        """
        pass


class StaticMarketDataProvider(MarketDataProvider):
    """Returns fixed market data, for offline runs."""

    def __init__(self, market_data: Optional[MarketData] = None):
        self.market_data = market_data or MarketData()

    def lookup(self, item_name: str, category: str, sources: List[str]) -> MarketData:
        return self.market_data


class PriceServiceClient(MarketDataProvider):
    """Client for the HTTP price service fronting catalogue and marketplace APIs."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 10,
    ):
        """Initialize price service client.

        Args:
            base_url: Service root URL. If None, uses config value.
            api_key: Bearer token. If None, uses config value.
            timeout: Per-request timeout in seconds

        Raises:
            MarketDataError: If no service URL is configured
        """
        settings = get_settings()
        self.base_url = (base_url or settings.market_service_url or "").rstrip("/")
        self.api_key = api_key or settings.market_service_api_key
        self.timeout = timeout

        if not self.base_url:
            raise MarketDataError("Market service URL not configured")

        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        """Create requests session with retry logic."""
        session = requests.Session()

        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["HEAD", "GET", "OPTIONS"],
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        if self.api_key:
            session.headers["Authorization"] = f"Bearer {self.api_key}"

        return session

    def _make_request(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Make a GET request to the price service.

        Args:
            endpoint: API endpoint path
            params: Query parameters

        Returns:
            Response JSON data

        Raises:
            MarketDataAPIError: If request fails
            MarketDataRateLimitError: If rate limited
            MarketDataNotFoundError: If the item is unknown to the source
        """
        url = f"{self.base_url}{endpoint}"

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)

            if response.status_code == 429:
                raise MarketDataRateLimitError("Rate limit exceeded")

            response.raise_for_status()
            return response.json()

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            try:
                error_data = e.response.json() if e.response is not None else {}
            except ValueError:
                error_data = {}

            if status_code == 404:
                raise MarketDataNotFoundError(f"No data at {endpoint}")

            raise MarketDataAPIError(
                f"API request failed: {e}",
                status_code=status_code,
                response_data=error_data,
            )

        except requests.exceptions.RequestException as e:
            raise MarketDataAPIError(f"Request failed: {e}")

    def get_source_price(self, source: str, item_name: str, category: str) -> MarketSource:
        """Fetch one source's price summary.

        Args:
            source: Source id (e.g. "ebay", "numista")
            item_name: Item name
            category: Detected category

        Returns:
            Source result
        """
        data = self._make_request(
            f"/sources/{source}/price", params={"q": item_name, "category": category}
        )
        return MarketSource(
            source=source,
            price=data.get("price"),
            median_price=data.get("median_price"),
            listing_count=int(data.get("listing_count") or 0),
            details={str(k): str(v) for k, v in (data.get("details") or {}).items()},
        )

    def lookup(self, item_name: str, category: str, sources: List[str]) -> MarketData:
        results = []
        for source in sources:
            try:
                results.append(self.get_source_price(source, item_name, category))
            except MarketDataNotFoundError:
                results.append(MarketSource(source=source, available=False, error="not_found"))
            except MarketDataError as e:
                logger.warning(f"Market source {source} unavailable: {e}")
                results.append(MarketSource(source=source, available=False, error=str(e)))
        return MarketData(sources=results)
