"""
Async HTTP API client shared by the paper providers.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Optional

import aiohttp
from aiohttp import ClientTimeout

from papertriage.infrastructure.api_clients.errors import ProviderError, RateLimitedError

logger = logging.getLogger(__name__)

USER_AGENT = "papertriage/0.1"


class RateLimiter:
    """
    Minimum spacing between consecutive calls.

    Each instance keeps its own clock; limiters never share state.
    """

    def __init__(self, min_interval: float = 1.0):
        self.min_interval = min_interval
        self._last_request_time = 0.0

    async def wait(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last_request_time
        if self._last_request_time and elapsed < self.min_interval:
            await asyncio.sleep(self.min_interval - elapsed)
        self._last_request_time = time.monotonic()


class APIClient:
    """
    Async JSON GET client.

    Status mapping: 200 -> parsed body, 404 -> ``None``, 429 -> RateLimitedError,
    anything else -> ProviderError. No retries happen here.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        *,
        provider: str = "api",
        timeout: int = 30,
        rate_limiter: Optional[RateLimiter] = None,
        api_key_header: str = "x-api-key",
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.provider = provider
        self.timeout = ClientTimeout(total=timeout)
        self.rate_limiter = rate_limiter
        self.api_key_header = api_key_header
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            headers = {"User-Agent": USER_AGENT}
            if self.api_key:
                headers[self.api_key_header] = self.api_key
            self._session = aiohttp.ClientSession(timeout=self.timeout, headers=headers)
        return self._session

    async def get(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        if self.rate_limiter is not None:
            await self.rate_limiter.wait()

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        session = await self._get_session()
        try:
            async with session.get(url, params=params) as response:
                if response.status == 200:
                    return await response.json(content_type=None)
                if response.status == 404:
                    logger.info("Resource not found: %s", url)
                    return None
                if response.status == 429:
                    await response.read()
                    logger.warning("%s rate limited: %s", self.provider, url)
                    raise RateLimitedError(provider=self.provider)
                text = await response.text()
                logger.error("%s API error %s: %s", self.provider, response.status, text[:200])
                raise ProviderError(
                    f"{self.provider} API error: {response.status}",
                    status=response.status,
                    provider=self.provider,
                )
        except asyncio.TimeoutError as exc:
            raise ProviderError(f"{self.provider} request timeout", provider=self.provider) from exc
        except aiohttp.ClientError as exc:
            raise ProviderError(f"{self.provider} request failed: {exc}", provider=self.provider) from exc

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
