"""
Unit tests for the upstream client.
"""

import pytest
import httpx
from unittest.mock import AsyncMock, patch

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_proxy.app.adapters.upstream_client import UpstreamClient
from shared.errors import UpstreamFetchFailed
from shared.test_helpers import ProxyTestData


API_URL = "https://upstream.test/todos"


class TestUpstreamClient:
    """Test cases for UpstreamClient."""

    @pytest.fixture
    def upstream_client(self):
        return UpstreamClient(API_URL, timeout=5.0)

    @pytest.mark.asyncio
    async def test_fetch_success_forwards_params(self, upstream_client):
        todos = ProxyTestData.create_todos()
        params = [("userId", "1"), ("completed", "true"), ("userId", "2")]

        with patch('httpx.AsyncClient') as mock_client:
            mock_get = AsyncMock(return_value=ProxyTestData.upstream_response(todos))
            mock_client.return_value.__aenter__.return_value.get = mock_get

            result = await upstream_client.fetch(params)

        assert result == todos
        mock_client.assert_called_once_with(timeout=5.0)
        mock_get.assert_awaited_once_with(API_URL, params=params)

    @pytest.mark.asyncio
    async def test_fetch_non_success_status(self, upstream_client):
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.get = AsyncMock(
                return_value=ProxyTestData.upstream_response({"error": "down"}, status_code=503)
            )

            with pytest.raises(UpstreamFetchFailed) as exc_info:
                await upstream_client.fetch()

        assert exc_info.value.message == "Error fetching data from API"
        assert exc_info.value.details["status_code"] == 503

    @pytest.mark.asyncio
    async def test_fetch_network_error(self, upstream_client):
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.get = AsyncMock(
                side_effect=httpx.ConnectError("connection refused")
            )

            with pytest.raises(UpstreamFetchFailed) as exc_info:
                await upstream_client.fetch()

        assert "connection refused" in exc_info.value.details["error"]
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_fetch_invalid_json(self, upstream_client):
        response = httpx.Response(
            status_code=200,
            content=b"<html>not json</html>",
            request=httpx.Request("GET", API_URL),
        )

        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.get = AsyncMock(return_value=response)

            with pytest.raises(UpstreamFetchFailed) as exc_info:
                await upstream_client.fetch()

        assert exc_info.value.details["error"] == "invalid JSON"
