"""
Market Intelligence Exceptions - Custom error hierarchy.

Source and storage errors are raised internally and caught at the
registry, store and service seams. Callers of the service never see
them; they get fewer or staler articles instead.
"""

from datetime import datetime, timezone
from typing import Any, Optional


class MarketIntelError(Exception):
    """Base exception for all market intelligence errors."""
    
    def __init__(
        self,
        message: str,
        source_name: str = "",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.source_name = source_name
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(self.message)
    
    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "source_name": self.source_name,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class SourceError(MarketIntelError):
    """Base class for errors raised by a news source adapter."""
    pass


class FetchError(SourceError):
    """Failed to fetch data from the news source."""
    
    def __init__(
        self,
        message: str,
        source_name: str = "",
        status_code: Optional[int] = None,
        url: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, details)
        self.status_code = status_code
        self.url = url
    
    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "status_code": self.status_code,
            "url": self.url,
        })
        return data


class RateLimitError(SourceError):
    """Rate limit exceeded for the news source."""
    
    def __init__(
        self,
        message: str,
        source_name: str = "",
        retry_after_seconds: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, details)
        self.retry_after_seconds = retry_after_seconds
    
    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["retry_after_seconds"] = self.retry_after_seconds
        return data


class ParseError(SourceError):
    """Failed to parse a response payload."""
    
    def __init__(
        self,
        message: str,
        source_name: str = "",
        raw_data: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, details)
        self.raw_data = raw_data[:500] if raw_data else None
    
    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["raw_data_preview"] = self.raw_data[:100] if self.raw_data else None
        return data


class AuthenticationError(SourceError):
    """Missing or rejected API key."""
    pass


class NormalizationError(MarketIntelError):
    """A raw article could not be turned into a canonical Article."""
    
    def __init__(
        self,
        message: str,
        source_name: str = "",
        raw_value: Optional[Any] = None,
        target_field: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, source_name, details)
        self.raw_value = raw_value
        self.target_field = target_field
    
    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "raw_value": str(self.raw_value)[:100] if self.raw_value else None,
            "target_field": self.target_field,
        })
        return data


class LexiconError(MarketIntelError):
    """Keyword lexicon file is missing or malformed."""
    pass


class StorageError(MarketIntelError):
    """Persistence layer failure."""
    
    def __init__(
        self,
        message: str,
        operation: str = "",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, "", details)
        self.operation = operation
    
    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["operation"] = self.operation
        return data


class UnknownSourceError(MarketIntelError, KeyError):
    """A source name that is not configured was requested."""
    
    def __str__(self) -> str:
        return self.message
