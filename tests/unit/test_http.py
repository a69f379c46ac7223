"""
Unit tests for the HTTP fetcher (retry, rate limits, error mapping)
"""

import httpx
import pytest
from core.exceptions import (
    AuthenticationError,
    NetworkError,
    PlatformCommunicationError,
    RateLimitError,
    ResourceNotFoundError,
)
from enumeration.http import HttpFetcher


def fetcher_for(handler, max_retries=3):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpFetcher("github", token="t0k", max_retries=max_retries, retry_delay=0, client=client)


class TestSuccess:

    @pytest.mark.asyncio
    async def test_get_json(self):
        def handler(request):
            assert request.url.params["q"] == "stars:>=1"
            return httpx.Response(200, json={"total_count": 3})

        async with fetcher_for(handler) as fetcher:
            data = await fetcher.get_json("https://api.example.com/search", params={"q": "stars:>=1"})

        assert data == {"total_count": 3}

    def test_token_becomes_bearer_header(self):
        fetcher = HttpFetcher("gitlab", token="secret", headers={"X-Extra": "1"})
        assert fetcher.headers["Authorization"] == "Bearer secret"
        assert fetcher.headers["X-Extra"] == "1"
        assert fetcher.headers["Accept"] == "application/json"


class TestRetry:

    @pytest.mark.asyncio
    async def test_server_error_is_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < 3:
                return httpx.Response(502, text="bad gateway")
            return httpx.Response(200, json={"ok": True})

        async with fetcher_for(handler) as fetcher:
            data = await fetcher.get_json("https://api.example.com/x")

        assert data == {"ok": True}
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_server_error_after_max_retries(self):
        async with fetcher_for(lambda request: httpx.Response(500, text="oops"), max_retries=2) as fetcher:
            with pytest.raises(NetworkError) as exc_info:
                await fetcher.get("https://api.example.com/x")

        assert exc_info.value.context["status_code"] == 500
        assert exc_info.value.context["retry_count"] == 2

    @pytest.mark.asyncio
    async def test_transport_error_becomes_network_error(self):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        async with fetcher_for(handler) as fetcher:
            with pytest.raises(NetworkError) as exc_info:
                await fetcher.get("https://api.example.com/x")

        assert isinstance(exc_info.value.original_exception, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_timeout_becomes_network_error(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        async with fetcher_for(handler, max_retries=1) as fetcher:
            with pytest.raises(NetworkError):
                await fetcher.get("https://api.example.com/x")


class TestRateLimit:

    @pytest.mark.asyncio
    async def test_retry_after_then_success(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(429, headers={"Retry-After": "0"})
            return httpx.Response(200, json=[])

        async with fetcher_for(handler) as fetcher:
            assert await fetcher.get_json("https://api.example.com/x") == []

    @pytest.mark.asyncio
    async def test_exhausted_rate_limit(self):
        async with fetcher_for(lambda request: httpx.Response(429, headers={"Retry-After": "0"})) as fetcher:
            with pytest.raises(RateLimitError):
                await fetcher.get("https://api.example.com/x")

    @pytest.mark.asyncio
    async def test_github_primary_rate_limit_is_not_auth_failure(self):
        response = httpx.Response(403, headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "0"})

        async with fetcher_for(lambda request: response, max_retries=1) as fetcher:
            with pytest.raises(RateLimitError):
                await fetcher.get("https://api.example.com/x")

    def test_rate_limit_wait_is_capped(self):
        fetcher = HttpFetcher("github", retry_delay=1)
        response = httpx.Response(429, headers={"Retry-After": "100000"})
        assert fetcher._rate_limit_wait(response, 0) == 300.0
        assert fetcher._rate_limit_wait(httpx.Response(200), 0) is None


class TestErrorMapping:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,error", [
        (401, AuthenticationError),
        (403, AuthenticationError),
        (404, ResourceNotFoundError),
        (422, PlatformCommunicationError),
    ])
    async def test_status_codes(self, status, error):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(status, text="no")

        async with fetcher_for(handler) as fetcher:
            with pytest.raises(error):
                await fetcher.get("https://api.example.com/x")
        assert len(calls) == 1  # Not retried

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        async with fetcher_for(lambda request: httpx.Response(200, text="<html>")) as fetcher:
            with pytest.raises(PlatformCommunicationError) as exc_info:
                await fetcher.get_json("https://api.example.com/x")
        assert "Failed to parse JSON" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_used_outside_context(self):
        with pytest.raises(PlatformCommunicationError):
            await HttpFetcher("npm").get("https://registry.example.com/")

    @pytest.mark.asyncio
    async def test_all_failures_are_platform_communication_errors(self):
        async with fetcher_for(lambda request: httpx.Response(404)) as fetcher:
            with pytest.raises(PlatformCommunicationError):
                await fetcher.get("https://api.example.com/x")
