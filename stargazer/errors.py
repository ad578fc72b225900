class StargazerError(Exception):
    """Base exception for Stargazer errors."""


class ConfigError(StargazerError):
    """Raised for malformed configuration files."""


class ProviderError(StargazerError):
    """Raised when an external data provider fails or returns unusable data."""


class RateLimitExceeded(StargazerError):
    """Raised when a caller exceeds its request budget."""

    def __init__(self, retry_after_seconds: int, limit: int | None = None):
        super().__init__(f"Rate limit exceeded, retry after {retry_after_seconds}s")
        self.retry_after_seconds = retry_after_seconds
        self.limit = limit
