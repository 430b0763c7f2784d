"""
Upstream API client for the proxy.
"""

from typing import Any, Optional, Sequence, Tuple, Union, Mapping
import httpx

from shared.logging import get_logger
from shared.errors import UpstreamFetchFailed


QueryParams = Union[Mapping[str, Any], Sequence[Tuple[str, str]]]


class UpstreamClient:
    """Client for the single upstream JSON resource."""

    def __init__(self, api_url: str, timeout: float = 10.0):
        self.api_url = api_url
        self.timeout = timeout
        self.logger = get_logger("proxy.upstream_client")

    async def fetch(self, params: Optional[QueryParams] = None) -> Any:
        """GET the resource, forwarding ``params`` verbatim as the query string."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.api_url, params=params)
        except httpx.HTTPError as exc:
            self.logger.error("Upstream request failed", url=self.api_url, error=str(exc))
            raise UpstreamFetchFailed(details={"url": self.api_url, "error": str(exc)}) from exc

        if not response.is_success:
            self.logger.error(
                "Upstream returned unexpected status",
                url=self.api_url,
                status_code=response.status_code,
                response=response.text[:500]
            )
            raise UpstreamFetchFailed(
                details={"url": self.api_url, "status_code": response.status_code}
            )

        try:
            data = response.json()
        except ValueError as exc:
            self.logger.error("Upstream returned invalid JSON", url=self.api_url, error=str(exc))
            raise UpstreamFetchFailed(details={"url": self.api_url, "error": "invalid JSON"}) from exc

        self.logger.debug("Upstream resource retrieved", url=self.api_url)
        return data
