"""
Custom exception classes for granular error handling throughout the scraper.
"""


class ScrapingError(Exception):
    """Base exception for all scraping-related errors."""
    pass


class ConfigurationError(ScrapingError):
    """Raised when there are issues with configuration files or settings."""
    pass


class ValidationError(ScrapingError):
    """Raised when request parameters are missing or malformed."""
    pass


class NetworkError(ScrapingError):
    """Raised for transient network-related issues during fetching."""
    pass


class AggregateFailure(ScrapingError):
    """Raised when every operation of a batch failed."""
    pass


class PermanentNetworkError(NetworkError):
    """Raised for definite client-side rejections (4xx) that are not retried."""
    pass
