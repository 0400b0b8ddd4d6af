"""
Exception hierarchy for the VidVeil backend.

Every error the service raises on purpose inherits from VidVeilError, so route
handlers and the global exception handler can render them uniformly via
``to_dict()`` and ``status_code``.

Exception Hierarchy:
    VidVeilError (base)
    ├── ValidationError
    ├── ResourceNotFoundError
    ├── RateLimitError
    ├── ConfigurationError
    │   └── NoEnginesAvailableError
    └── ExternalServiceError
        └── SourceFetchError

    ExtractionSkip (internal signal, never leaves an adapter)

Usage:
    from exceptions import ValidationError, SourceFetchError

    raise ValidationError("Query is empty")
    raise SourceFetchError("HTTP 503", engine="pornhub", detail={"status": 503})
"""

from typing import Optional, Dict, Any


class VidVeilError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message: Human-readable error message
        detail: Optional dict with additional error context
        status_code: Suggested HTTP status code (for API errors)
    """

    def __init__(
        self,
        message: str,
        *,
        detail: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for JSON serialization."""
        result = {
            "error": self.__class__.__name__,
            "message": self.message,
        }
        if self.detail:
            result["detail"] = self.detail
        return result


class ValidationError(VidVeilError):
    """
    Raised when request input is unusable.

    Examples:
        raise ValidationError("Query is empty")
        raise ValidationError("Page out of range", detail={"max_pages": 10})
    """

    def __init__(self, message: str, *, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message, detail=detail, status_code=400)


class ResourceNotFoundError(VidVeilError):
    """
    Raised when a requested resource doesn't exist.

    Examples:
        raise ResourceNotFoundError("Engine not found", detail={"engine": "nope"})
    """

    def __init__(self, message: str, *, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message, detail=detail, status_code=404)


class RateLimitError(VidVeilError):
    """
    Raised when a client exceeds its request window.

    Examples:
        raise RateLimitError("Too many requests", retry_after=60)
    """

    def __init__(
        self,
        message: str,
        *,
        detail: Optional[Dict[str, Any]] = None,
        retry_after: Optional[int] = None,
    ):
        if retry_after and detail is None:
            detail = {"retry_after": retry_after}
        elif retry_after and detail:
            detail["retry_after"] = retry_after

        super().__init__(message, detail=detail, status_code=429)
        self.retry_after = retry_after


class ConfigurationError(VidVeilError):
    """
    Raised when the engine registry, bang table or settings are unusable.

    Fatal at startup and on config reload. A failed reload leaves the
    previous configuration in place.
    """

    def __init__(self, message: str, *, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message, detail=detail, status_code=500)


class NoEnginesAvailableError(ConfigurationError):
    """Raised when an explicit engine selection resolves to no enabled engine."""

    def __init__(
        self,
        message: str = "No enabled engines match the request",
        *,
        requested: Optional[list] = None,
    ):
        detail = {"requested": requested} if requested else None
        super().__init__(message, detail=detail)


class ExternalServiceError(VidVeilError):
    """
    Base exception for upstream failures.
    """

    def __init__(
        self,
        message: str,
        *,
        detail: Optional[Dict[str, Any]] = None,
        service_name: Optional[str] = None,
    ):
        if service_name and detail is None:
            detail = {"service": service_name}
        elif service_name and detail:
            detail["service"] = service_name

        super().__init__(message, detail=detail, status_code=502)


class SourceFetchError(ExternalServiceError):
    """
    Raised by an engine when its upstream fetch cannot be recovered.

    Covers network failures, non-2xx responses after retries, undecodable
    payloads and an open circuit breaker. The coordinator records it on the
    engine's status snapshot; it never fails the aggregate response.

    Examples:
        raise SourceFetchError("HTTP 503", engine="redtube")
        raise SourceFetchError("initials marker not found", engine="xhamster")
    """

    def __init__(
        self,
        message: str,
        *,
        detail: Optional[Dict[str, Any]] = None,
        engine: Optional[str] = None,
    ):
        if engine and detail is None:
            detail = {"engine": engine}
        elif engine and detail:
            detail["engine"] = engine

        self.engine = engine
        super().__init__(message, detail=detail, service_name="search_engine")


class ExtractionSkip(Exception):
    """Raised by item parsers for a single malformed item; caught per item."""
