"""HomeMinder error handling.

Custom exceptions and error codes for the recommendation functions.
"""

from typing import Optional, Dict, Any


# Error Codes
class ErrorCode:
    """Error code constants."""

    # Validation Errors (1xxx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_FIELD = "INVALID_FIELD"
    INVALID_ZIP_CODE = "INVALID_ZIP_CODE"
    INVALID_STATE = "INVALID_STATE"

    # Pipeline Errors (3xxx)
    PIPELINE_FAILED = "PIPELINE_FAILED"

    # Firestore Errors (5xxx)
    FIRESTORE_ERROR = "FIRESTORE_ERROR"
    CACHE_READ_FAILED = "CACHE_READ_FAILED"
    CACHE_WRITE_FAILED = "CACHE_WRITE_FAILED"

    # LLM Errors (6xxx)
    LLM_ERROR = "LLM_ERROR"
    LLM_RATE_LIMIT = "LLM_RATE_LIMIT"
    LLM_CONTEXT_TOO_LONG = "LLM_CONTEXT_TOO_LONG"
    LLM_INVALID_RESPONSE = "LLM_INVALID_RESPONSE"

    # External Service Errors (7xxx)
    EXTERNAL_API_ERROR = "EXTERNAL_API_ERROR"
    WEATHER_API_ERROR = "WEATHER_API_ERROR"


class HomeMinderError(Exception):
    """Base exception for HomeMinder errors.

    Provides structured error information for API responses.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API response.

        Returns:
            Dictionary with code, message, and details.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }

    def __repr__(self) -> str:
        return f"HomeMinderError(code={self.code!r}, message={self.message!r})"


class ValidationError(HomeMinderError):
    """Validation-specific error."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict] = None,
        code: str = ErrorCode.VALIDATION_ERROR
    ):
        super().__init__(
            code=code,
            message=message,
            details={**(details or {}), "field": field} if field else details
        )
        self.field = field


class CacheError(HomeMinderError):
    """ZIP code cache store error.

    Raised inside the cache service only; callers of the cache never see it.
    """

    def __init__(self, code: str, message: str, zip_code: Optional[str] = None):
        super().__init__(
            code=code,
            message=message,
            details={"zip_code": zip_code} if zip_code else None
        )
        self.zip_code = zip_code


class WeatherServiceError(HomeMinderError):
    """External weather API error (auth, rate limit, bad payload)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(
            code=ErrorCode.WEATHER_API_ERROR,
            message=message,
            details={"status_code": status_code} if status_code else None
        )
        self.status_code = status_code
