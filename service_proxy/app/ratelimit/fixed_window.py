"""
Fixed window rate limiter for the Proxy service.
"""

import math
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from fastapi import Request
from fastapi.responses import PlainTextResponse

from shared.logging import get_logger
from shared.errors import AdmissionRejected


REJECTION_MESSAGE = AdmissionRejected().message


@dataclass
class RateWindow:
    """Request counter for one client identity."""

    identity: str
    count: int
    window_start: float


class FixedWindowRateLimiter:
    """In-process fixed window rate limiter keyed by client identity."""

    def __init__(
        self,
        window_ms: int,
        max_requests: int,
        clock: Optional[Callable[[], float]] = None,
        max_tracked_clients: int = 10000,
    ):
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        self.window_ms = window_ms
        self.max_requests = max_requests
        self.max_tracked_clients = max_tracked_clients
        self.logger = get_logger("proxy.rate_limiter")
        self._clock = clock or time.monotonic
        self._lock = threading.Lock()
        self._windows: Dict[str, RateWindow] = {}

    @property
    def window_seconds(self) -> float:
        return self.window_ms / 1000.0

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    def _current_window(self, identity: str, now_ms: float) -> RateWindow:
        """Return the active window for ``identity``, resetting it once elapsed. Caller holds the lock."""
        window = self._windows.get(identity)
        if window is None or now_ms - window.window_start >= self.window_ms:
            window = RateWindow(identity=identity, count=0, window_start=now_ms)
            self._windows[identity] = window
        return window

    def _reset_in_seconds(self, window: RateWindow, now_ms: float) -> int:
        remaining_ms = max(0.0, window.window_start + self.window_ms - now_ms)
        return int(math.ceil(remaining_ms / 1000.0))

    def _prune_expired(self, now_ms: float) -> None:
        """Drop windows that have fully elapsed. Caller holds the lock."""
        expired = [
            identity for identity, window in self._windows.items()
            if now_ms - window.window_start >= self.window_ms
        ]
        for identity in expired:
            del self._windows[identity]

    def check_rate_limit(self, client_id: str, endpoint: str) -> Dict[str, Any]:
        """Count the request against ``client_id`` and report whether it is admitted."""
        with self._lock:
            now_ms = self._now_ms()
            if len(self._windows) >= self.max_tracked_clients:
                self._prune_expired(now_ms)

            window = self._current_window(client_id, now_ms)
            reset_in = self._reset_in_seconds(window, now_ms)

            if window.count >= self.max_requests:
                current_count = window.count
                allowed = False
            else:
                window.count += 1
                current_count = window.count
                allowed = True

        if not allowed:
            self.logger.warning(
                "Rate limit exceeded",
                client_id=client_id,
                endpoint=endpoint,
                current_count=current_count,
                limit=self.max_requests
            )
            return {
                "allowed": False,
                "current_count": current_count,
                "limit": self.max_requests,
                "remaining": 0,
                "reset_in_seconds": reset_in,
                "retry_after": reset_in
            }

        return {
            "allowed": True,
            "current_count": current_count,
            "limit": self.max_requests,
            "remaining": max(0, self.max_requests - current_count),
            "reset_in_seconds": reset_in
        }

    def admit(self, identity: str, path: str) -> bool:
        """Boolean form of :meth:`check_rate_limit`."""
        return self.check_rate_limit(identity, path)["allowed"]

    def get_rate_limit_status(self, client_id: str) -> Dict[str, Any]:
        """Get current rate limit status for a client without counting a request."""
        with self._lock:
            now_ms = self._now_ms()
            window = self._windows.get(client_id)
            if window is None or now_ms - window.window_start >= self.window_ms:
                current_count = 0
                reset_in = int(math.ceil(self.window_seconds))
            else:
                current_count = window.count
                reset_in = self._reset_in_seconds(window, now_ms)

        return {
            "current_count": current_count,
            "limit": self.max_requests,
            "remaining": max(0, self.max_requests - current_count),
            "reset_in_seconds": reset_in
        }

    def reset_rate_limit(self, client_id: str) -> bool:
        """Forget the window for a client."""
        with self._lock:
            removed = self._windows.pop(client_id, None) is not None

        if removed:
            self.logger.info("Rate limit reset", client_id=client_id)
        return removed

    def get_global_stats(self) -> Dict[str, Any]:
        """Get rate limiting statistics across active windows."""
        with self._lock:
            self._prune_expired(self._now_ms())
            total_clients = len(self._windows)
            total_requests = sum(window.count for window in self._windows.values())

        return {
            "total_clients": total_clients,
            "total_requests": total_requests,
            "average_requests_per_client": total_requests / max(1, total_clients)
        }


def get_remote_address(request: Request) -> str:
    """Default client identity: the peer network address."""
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware:
    """Admission control for incoming proxy requests."""

    def __init__(
        self,
        rate_limiter: FixedWindowRateLimiter,
        key_func: Callable[[Request], str] = get_remote_address,
        bypass: Optional[Callable[[Request], bool]] = None,
    ):
        self.rate_limiter = rate_limiter
        self.key_func = key_func
        self.bypass = bypass
        self.logger = get_logger("proxy.rate_limit_middleware")

    def check_request(self, request: Request) -> Dict[str, Any]:
        """Check rate limit for request, honouring the bypass predicate."""
        endpoint_path = request.url.path

        if self.bypass is not None and self.bypass(request):
            self.logger.debug("Rate limit bypassed", endpoint=endpoint_path)
            return {"allowed": True, "bypassed": True}

        client_id = self.key_func(request)
        return self.rate_limiter.check_rate_limit(client_id, endpoint_path)

    def rejection_response(self, rate_result: Dict[str, Any]) -> PlainTextResponse:
        """Fixed 429 response for a rejected request."""
        error = AdmissionRejected(details=rate_result)
        response = PlainTextResponse(error.message, status_code=error.status_code)
        self.set_rate_limit_headers(response, rate_result)
        retry_after = rate_result.get("retry_after")
        if retry_after is not None:
            response.headers["Retry-After"] = str(retry_after)
        return response

    @staticmethod
    def set_rate_limit_headers(response, rate_result: Dict[str, Any]) -> None:
        """Propagate rate limiting metadata via standard headers."""
        limit = rate_result.get("limit")
        remaining = rate_result.get("remaining")
        reset = rate_result.get("reset_in_seconds")

        if limit is not None:
            response.headers["X-RateLimit-Limit"] = str(limit)
        if remaining is not None:
            response.headers["X-RateLimit-Remaining"] = str(remaining)
        if reset is not None:
            response.headers["X-RateLimit-Reset"] = str(reset)
