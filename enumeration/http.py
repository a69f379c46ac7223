"""
HTTP fetching with authentication, rate limiting, and retry logic.

Shared by every platform driver:
- Exponential backoff for timeouts, network errors and 5xx responses
- ``Retry-After`` and GitHub ``X-RateLimit-*`` aware waiting
- Mapping of HTTP failures onto the PlatformCommunicationError family
"""

import httpx
import asyncio
import time
from typing import Dict, Any, Optional
from core.config import settings
from core.exceptions import (
    PlatformCommunicationError,
    NetworkError,
    RateLimitError,
    AuthenticationError,
    ResourceNotFoundError,
)
import logging

logger = logging.getLogger(__name__)

# Upper bound on a single rate-limit wait
MAX_RATE_LIMIT_WAIT = 300.0


class HttpFetcher:
    """
    Thin resilient wrapper around ``httpx.AsyncClient``.

    One fetcher is shared by all worker tasks of a driver; httpx clients are
    safe for concurrent requests.

    Attributes:
        platform: Platform name used in error context
        max_retries: Maximum number of attempts per request
        retry_delay: Initial backoff delay in seconds
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        platform: str,
        token: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.platform = platform
        self.max_retries = max_retries or settings.MAX_RETRIES
        self.retry_delay = settings.RETRY_DELAY if retry_delay is None else retry_delay
        self.timeout = timeout or settings.HTTP_TIMEOUT

        self.headers = {"Accept": "application/json"}
        if headers:
            self.headers.update(headers)
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "HttpFetcher":
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, headers=self.headers)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _rate_limit_wait(self, response: httpx.Response, attempt: int) -> Optional[float]:
        """Seconds to wait if ``response`` is a rate-limit rejection, else None"""
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            if retry_after is not None:
                try:
                    return min(float(retry_after), MAX_RATE_LIMIT_WAIT)
                except ValueError:
                    pass
            return self.retry_delay * (2 ** attempt)

        if response.status_code == 403:
            if response.headers.get("X-RateLimit-Remaining") == "0":
                reset = response.headers.get("X-RateLimit-Reset")
                if reset is not None:
                    try:
                        return min(max(float(reset) - time.time(), 1.0), MAX_RATE_LIMIT_WAIT)
                    except ValueError:
                        pass
                return self.retry_delay * (2 ** attempt)
            if response.headers.get("Retry-After") is not None:
                # GitHub secondary rate limit
                try:
                    return min(float(response.headers["Retry-After"]), MAX_RATE_LIMIT_WAIT)
                except ValueError:
                    return self.retry_delay * (2 ** attempt)
        return None

    async def get(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """
        GET ``url`` with retry logic and exponential backoff.

        Raises:
            AuthenticationError: 401 or 403 that is not a rate limit
            ResourceNotFoundError: 404
            RateLimitError: Still rate limited after max retries
            NetworkError: Timeouts, transport errors or 5xx after max retries
        """
        if self._client is None:
            raise PlatformCommunicationError(
                "HttpFetcher used outside of its async context",
                context={"platform": self.platform, "url": url}
            )

        for attempt in range(self.max_retries):
            last_attempt = attempt == self.max_retries - 1
            try:
                logger.debug(f"Request attempt {attempt + 1}/{self.max_retries} to {url}")
                response = await self._client.get(url, params=params, headers=headers)
            except httpx.TimeoutException as e:
                if not last_attempt:
                    delay = self.retry_delay * (2 ** attempt)
                    logger.warning(f"Request timeout for {url}. Retrying in {delay} seconds")
                    await asyncio.sleep(delay)
                    continue
                raise NetworkError(
                    f"Request timeout after {self.max_retries} retries",
                    context={
                        "platform": self.platform,
                        "url": url,
                        "timeout": self.timeout,
                        "retry_count": attempt + 1
                    },
                    original_exception=e
                )
            except httpx.TransportError as e:
                if not last_attempt:
                    delay = self.retry_delay * (2 ** attempt)
                    logger.warning(f"Network error for {url}. Retrying in {delay} seconds")
                    await asyncio.sleep(delay)
                    continue
                raise NetworkError(
                    f"Network error after {self.max_retries} retries",
                    context={
                        "platform": self.platform,
                        "url": url,
                        "retry_count": attempt + 1
                    },
                    original_exception=e
                )

            wait = self._rate_limit_wait(response, attempt)
            if wait is not None:
                if not last_attempt:
                    logger.warning(f"Rate limited by {self.platform}. Retrying after {wait:.1f} seconds")
                    await asyncio.sleep(wait)
                    continue
                raise RateLimitError(
                    f"Rate limit exceeded for {url}",
                    context={
                        "platform": self.platform,
                        "status_code": response.status_code,
                        "url": url,
                        "retry_count": attempt + 1
                    },
                    retry_after=wait
                )

            if response.status_code in (401, 403):
                raise AuthenticationError(
                    f"Authentication failed for {url}",
                    context={
                        "platform": self.platform,
                        "status_code": response.status_code,
                        "url": url
                    }
                )

            if response.status_code == 404:
                raise ResourceNotFoundError(
                    f"Resource not found: {url}",
                    context={"platform": self.platform, "status_code": 404, "url": url}
                )

            if response.status_code >= 500:
                if not last_attempt:
                    delay = self.retry_delay * (2 ** attempt)
                    logger.warning(
                        f"Server error {response.status_code} from {self.platform}. "
                        f"Retrying in {delay} seconds (attempt {attempt + 1}/{self.max_retries})"
                    )
                    await asyncio.sleep(delay)
                    continue
                raise NetworkError(
                    f"Server error after {self.max_retries} retries",
                    context={
                        "platform": self.platform,
                        "status_code": response.status_code,
                        "url": url,
                        "retry_count": attempt + 1,
                        "response_body": response.text[:500]
                    }
                )

            if response.status_code >= 400:
                raise PlatformCommunicationError(
                    f"Unexpected status {response.status_code} for {url}",
                    context={
                        "platform": self.platform,
                        "status_code": response.status_code,
                        "url": url,
                        "response_body": response.text[:500]
                    }
                )

            return response

        raise NetworkError(
            "Max retries exceeded",
            context={"platform": self.platform, "url": url, "retry_count": self.max_retries}
        )

    async def get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """GET and decode JSON, wrapping decode failures as platform errors"""
        response = await self.get(url, params=params, headers=headers)
        try:
            return response.json()
        except ValueError as e:
            raise PlatformCommunicationError(
                "Failed to parse JSON response",
                context={
                    "platform": self.platform,
                    "url": url,
                    "response_body": response.text[:500]
                },
                original_exception=e
            )
