"""Exceptions for market data operations."""


class MarketDataError(Exception):
    """Base exception for market data errors."""

    pass


class MarketDataAPIError(MarketDataError):
    """Market data request failed."""

    def __init__(self, message: str, status_code: int = None, response_data: dict = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class MarketDataRateLimitError(MarketDataError):
    """Rate limit exceeded."""

    pass


class MarketDataNotFoundError(MarketDataError):
    """No listing or catalogue entry for the item."""

    pass
