"""
Shared aiohttp plumbing for the platform API clients.

Maps HTTP outcomes onto the prober error taxonomy:
- 403 / 429 -> ProberRateLimitError (the platform gets suspended)
- 404 -> ProberNotFoundError
- 5xx, timeouts and connection errors -> retried twice, then ProberTransientError
- any other non-2xx -> ProberTransientError
"""

import asyncio
from typing import Any, Dict, Optional

import aiohttp

from assistabot.core.interfaces import (
    ProberRateLimitError,
    ProberNotFoundError,
    ProberTransientError,
)
from assistabot.utils import async_retry, get_logger
from assistabot.utils.cache import ExpiringCache


logger = get_logger('integrations')

REQUEST_TIMEOUT_SECONDS = 10
USER_AGENT = 'AssistaBot (stream notifier)'


class RetryableRequestError(ProberTransientError):
    """Transient failure worth another attempt (5xx, timeout, connection reset)."""
    pass


def _retry_after(headers) -> Optional[float]:
    value = headers.get('Retry-After') if headers is not None else None
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


class BaseApiClient:
    """
    Base class for JSON REST clients sharing one aiohttp session.

    The session is created lazily when none is injected and is only closed
    by the client that created it.
    """

    platform_name = 'api'

    def __init__(
        self,
        cache: Optional[ExpiringCache] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the client.

        Args:
            cache: Shared expiring cache (a private one is created if omitted)
            session: Shared aiohttp session
        """
        self.cache = cache if cache is not None else ExpiringCache()
        self._session = session
        self._own_session = False

    # ==================== Session lifecycle ====================

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_SECONDS),
                headers={'User-Agent': USER_AGENT},
            )
            self._own_session = True
        return self._session

    async def close(self) -> None:
        """Close the session if this client created it."""
        if self._own_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
        self._own_session = False

    # ==================== Requests ====================

    @async_retry(retries=2, delay=0.5, exceptions=(RetryableRequestError,))
    async def _request_json(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Perform a request and decode the JSON body.

        Args:
            method: HTTP method
            url: Absolute URL
            params: Query parameters
            headers: Extra request headers
            data: Form body

        Returns:
            Decoded JSON payload

        Raises:
            ProberRateLimitError, ProberNotFoundError, ProberTransientError
        """
        session = self._ensure_session()
        try:
            async with session.request(method, url, params=params, headers=headers, data=data) as resp:
                status = resp.status
                try:
                    payload = await resp.json(content_type=None)
                except (ValueError, aiohttp.ContentTypeError):
                    payload = None

                self._check_payload(status, payload)

                if status in (403, 429):
                    raise ProberRateLimitError(
                        f"{self.platform_name} API returned HTTP {status}",
                        retry_after=_retry_after(resp.headers),
                    )
                if status == 404:
                    raise ProberNotFoundError(f"{self.platform_name} API returned HTTP 404 for {url}")
                if status >= 500:
                    raise RetryableRequestError(f"{self.platform_name} API returned HTTP {status}")
                if status >= 400:
                    raise ProberTransientError(f"{self.platform_name} API returned HTTP {status}")
                return payload
        except (asyncio.TimeoutError, aiohttp.ClientError) as e:
            logger.debug(f"{self.platform_name} request to {url} failed: {e!r}")
            raise RetryableRequestError(f"{self.platform_name} request failed: {e!r}") from e

    def _check_payload(self, status: int, payload: Any) -> None:
        """Hook for platforms that report errors inside the JSON body."""
        return None

    # ==================== Caching ====================

    async def _cached(self, key: tuple, ttl: float, loader, fresh: bool = False):
        """
        Return ``cache[key]`` or load, store and return it.

        Args:
            key: Cache key tuple (platform, kind, id)
            ttl: Lifetime of a freshly loaded value, in seconds
            loader: Zero-argument coroutine function producing the value
            fresh: Ignore any cached value
        """
        if not fresh:
            value = self.cache.get(key)
            if value is not ExpiringCache.MISSING:
                return value
        value = await loader()
        self.cache.set(key, value, ttl)
        return value
