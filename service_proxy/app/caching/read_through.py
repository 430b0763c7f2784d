"""
Read-through service: volatile cache, then local snapshot, then upstream.
"""

import time
from dataclasses import dataclass
from typing import Any, Optional, TYPE_CHECKING

from shared.logging import get_logger
from shared.errors import CacheInteractionFailed, UpstreamFetchFailed
from .volatile_cache import CacheEntry, VolatileCache

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from ..adapters.snapshot_store import SnapshotStore
    from ..adapters.upstream_client import UpstreamClient, QueryParams
    from shared.metrics import MetricsCollector


RESOURCE_KEY = "todos"

SOURCE_CACHE = "cache"
SOURCE_SNAPSHOT = "snapshot"
SOURCE_UPSTREAM = "upstream"


@dataclass
class ProxyResult:
    """Resource plus where it came from."""

    data: Any
    cache_flag: bool
    source: str

    def to_envelope(self) -> dict:
        return {"data": self.data, "cacheFlag": self.cache_flag}


class ReadThroughService:
    """Serves the resource from the cheapest layer that has it.

    ``cache_flag`` is True whenever the response was produced without
    contacting the upstream, so snapshot hits report True as well as cache
    hits. Only the upstream branch writes the snapshot.
    """

    def __init__(
        self,
        cache: VolatileCache,
        snapshot_store: "SnapshotStore",
        upstream_client: "UpstreamClient",
        *,
        metrics: Optional["MetricsCollector"] = None,
        resource_key: str = RESOURCE_KEY,
    ):
        self.cache = cache
        self.snapshot_store = snapshot_store
        self.upstream_client = upstream_client
        self.metrics = metrics
        self.resource_key = resource_key
        self.logger = get_logger("proxy.read_through")

    def has_live_entry(self) -> bool:
        """True when the cache can answer without I/O."""
        try:
            return self.cache.has(self.resource_key)
        except Exception as exc:
            self.logger.error("Error interacting with cache", error=str(exc))
            return False

    async def get(self, params: Optional["QueryParams"] = None) -> ProxyResult:
        """Resolve the resource for one request."""
        cached = self._cache_lookup()
        if cached is not None:
            self.logger.info("Serving from cache", key=self.resource_key)
            self._record_hit(SOURCE_CACHE)
            return ProxyResult(data=cached.value, cache_flag=True, source=SOURCE_CACHE)

        self.logger.info("Cache miss", key=self.resource_key)
        self._increment("cache_misses_total", cache_type="volatile")

        snapshot = await self.snapshot_store.load()
        if snapshot.found:
            self._cache_store(snapshot.data)
            self.logger.info("Serving from local storage", path=str(self.snapshot_store.path))
            self._record_hit(SOURCE_SNAPSHOT)
            return ProxyResult(data=snapshot.data, cache_flag=True, source=SOURCE_SNAPSHOT)

        self.logger.warning(
            "Local snapshot unavailable, fetching from API",
            path=str(self.snapshot_store.path),
            reason=snapshot.error.reason if snapshot.error else None,
        )

        data = await self._fetch_upstream(params)
        self._cache_store(data)

        if not await self.snapshot_store.save(data):
            self.logger.error("Failed to persist snapshot", path=str(self.snapshot_store.path))
            if self.metrics:
                self.metrics.record_error("SNAPSHOT_WRITE_ERROR")

        self.logger.info("Serving from API")
        self._record_hit(SOURCE_UPSTREAM)
        return ProxyResult(data=data, cache_flag=False, source=SOURCE_UPSTREAM)

    async def _fetch_upstream(self, params: Optional["QueryParams"]) -> Any:
        start_time = time.time()
        try:
            data = await self.upstream_client.fetch(params)
        except UpstreamFetchFailed as exc:
            self._observe_fetch(start_time, "error")
            self.logger.error("Error fetching data from API", error=exc.message, details=exc.details)
            raise
        except Exception as exc:
            self._observe_fetch(start_time, "error")
            self.logger.error("Error fetching data from API", error=str(exc))
            raise UpstreamFetchFailed(details={"error": str(exc)}) from exc

        self._observe_fetch(start_time, "ok")
        return data

    def _cache_lookup(self) -> Optional[CacheEntry]:
        try:
            return self.cache.get_entry(self.resource_key)
        except Exception as exc:
            self.logger.error("Error interacting with cache", error=str(exc))
            raise CacheInteractionFailed(details={"operation": "get", "error": str(exc)}) from exc

    def _cache_store(self, value: Any) -> None:
        try:
            self.cache.set(self.resource_key, value)
        except Exception as exc:
            self.logger.error("Error interacting with cache", error=str(exc))
            raise CacheInteractionFailed(details={"operation": "set", "error": str(exc)}) from exc

    def _record_hit(self, source: str) -> None:
        self._increment("read_path_hits_total", source=source)

    def _increment(self, metric_name: str, **labels) -> None:
        if self.metrics:
            self.metrics.increment_counter(metric_name, **labels)

    def _observe_fetch(self, start_time: float, outcome: str) -> None:
        if self.metrics:
            self.metrics.observe_histogram(
                "upstream_fetch_duration_seconds",
                time.time() - start_time,
                outcome=outcome,
            )
