"""
Todos proxy service.
"""

from typing import Any, Callable, Dict, Optional

from fastapi import Request, Response
from fastapi.routing import APIRoute
from starlette.routing import Match

from shared.base_service import BaseService
from shared.config import ServiceConfig
from service_proxy.app.adapters import SnapshotStore, UpstreamClient
from service_proxy.app.caching import ReadThroughService, VolatileCache
from service_proxy.app.ratelimit import FixedWindowRateLimiter, RateLimitMiddleware
from service_proxy.app.refresh import SnapshotRefresher


PROXY_ROUTE_NAME = "proxy"


class ProxyService(BaseService):
    """Proxy service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        upstream_client: Optional[UpstreamClient] = None,
        snapshot_store: Optional[SnapshotStore] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        super().__init__("proxy", config)
        self.cache = VolatileCache(self.config.cache_duration, clock=clock)
        self.snapshot_store = snapshot_store or SnapshotStore(self.config.snapshot_path)
        self.upstream_client = upstream_client or UpstreamClient(
            self.config.api_url,
            timeout=self.config.upstream_timeout,
        )
        self.read_through = ReadThroughService(
            self.cache,
            self.snapshot_store,
            self.upstream_client,
            metrics=self.metrics,
        )
        self.rate_limiter = FixedWindowRateLimiter(
            self.config.rate_limit_window_ms,
            self.config.rate_limit_max,
            clock=clock,
        )
        self.refresher = SnapshotRefresher(
            self.upstream_client,
            self.snapshot_store,
            self.config.refresh_interval,
        )

        self._setup_proxy_routes()
        self._proxy_route = self._find_route(PROXY_ROUTE_NAME)
        self.rate_limit_middleware = RateLimitMiddleware(
            self.rate_limiter,
            bypass=self._is_cached_read,
        )

        @self.app.on_event("startup")
        async def _startup():
            self.logger.info(
                "Server running",
                port=self.config.port,
                api_url=self.config.api_url,
                cache_duration=self.config.cache_duration,
                rate_limit_window_ms=self.config.rate_limit_window_ms,
                rate_limit_max=self.config.rate_limit_max,
            )
            self.refresher.start()

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.refresher.stop()

        # Expose service instance via app state for introspection/testing
        self.app.state.proxy_service = self

    def _find_route(self, name: str) -> APIRoute:
        for route in self.app.routes:
            if isinstance(route, APIRoute) and route.name == name:
                return route
        raise LookupError(f"Route {name!r} is not registered")

    def _is_cached_read(self, request: Request) -> bool:
        """Requests for the read-through route skip admission while the cache is live."""
        match, _ = self._proxy_route.matches(request.scope)
        return match == Match.FULL and self.read_through.has_live_entry()

    def _admit(self, request: Request) -> Optional[Response]:
        """Gate every request through the rate limiter."""
        rate_result = self.rate_limit_middleware.check_request(request)
        request.state.rate_limit = rate_result

        if rate_result.get("bypassed"):
            self.metrics.increment_counter("rate_limit_bypass_total", endpoint=request.url.path)
            return None

        if not rate_result.get("allowed", False):
            self.metrics.increment_counter("rate_limit_hits_total", endpoint=request.url.path)
            return self.rate_limit_middleware.rejection_response(rate_result)

        return None

    def _finalize_response(self, request: Request, response: Response) -> None:
        rate_result = getattr(request.state, "rate_limit", None) or {}
        if not rate_result.get("bypassed"):
            self.rate_limit_middleware.set_rate_limit_headers(response, rate_result)

    def _setup_proxy_routes(self):
        """Set up proxy-specific routes."""

        async def proxy(request: Request, response: Response):
            """Serve the todos resource, forwarding query parameters upstream on a miss."""
            result = await self.read_through.get(request.query_params.multi_items())
            response.headers["X-Cache-Source"] = result.source
            return result.to_envelope()

        self.app.add_api_route("/proxy", proxy, methods=["GET"], name=PROXY_ROUTE_NAME)

    async def _check_dependencies(self) -> Dict[str, Any]:
        return {
            "cache": "warm" if self.read_through.has_live_entry() else "cold",
            "snapshot": "present" if self.snapshot_store.exists() else "missing",
            "refresher": "running" if self.refresher.running else "idle",
        }


def create_app(config: Optional[ServiceConfig] = None, **kwargs):
    """Create FastAPI application."""
    service = ProxyService(config, **kwargs)
    return service.app


if __name__ == "__main__":
    service = ProxyService()
    service.run()
