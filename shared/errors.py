"""
Shared error handling for the todos proxy.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class ProxyException(Exception):
    """Base exception for proxy services."""

    status_code: int = 500

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class AdmissionRejected(ProxyException):
    """Client exceeded its request quota for the current window."""

    status_code = 429

    def __init__(self, message: str = "Too many requests, please try again later.", details: Optional[Dict[str, Any]] = None):
        super().__init__("RATE_LIMIT_ERROR", message, details)


class SnapshotUnavailable(ProxyException):
    """Local snapshot is absent, unreadable or not valid JSON."""

    def __init__(self, path: str, reason: str, details: Optional[Dict[str, Any]] = None):
        self.path = path
        self.reason = reason
        super().__init__("SNAPSHOT_UNAVAILABLE", f"Snapshot {path} unavailable: {reason}", details)


class UpstreamFetchFailed(ProxyException):
    """Network or status error while fetching from the upstream API."""

    def __init__(self, message: str = "Error fetching data from API", details: Optional[Dict[str, Any]] = None):
        super().__init__("UPSTREAM_FETCH_ERROR", message, details)


class CacheInteractionFailed(ProxyException):
    """Unexpected fault while reading or writing the volatile cache."""

    def __init__(self, message: str = "Error interacting with cache", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_INTERACTION_ERROR", message, details)
