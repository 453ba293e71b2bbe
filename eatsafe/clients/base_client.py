"""
Shared aiohttp plumbing for the JSON APIs behind the collaborators.
"""
import asyncio
import time
from typing import Any, Dict, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout
from aiolimiter import AsyncLimiter
from loguru import logger

from eatsafe.config import CONCURRENCY
from eatsafe.errors import HTTP_ERROR, NETWORK_ERROR, TIMEOUT, ApiError


class JsonApiClient:
    """
    Rate-limited GET-and-decode client with a lazily created session.

    Subclasses set `source` and call `_get_json`. Transport failures surface
    as ApiError tagged with that source.
    """
    source = "http"

    def __init__(self, timeout: float, max_rate: int = CONCURRENCY):
        self.timeout = timeout
        self.rate_limiter = AsyncLimiter(max_rate=max_rate, time_period=1.0)
        self._session: Optional[ClientSession] = None

    async def _get_session(self) -> ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = ClientSession(timeout=ClientTimeout(total=self.timeout))
        return self._session

    async def _get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        GET `url` and return the decoded JSON body.

        Args:
            url (str): Fully built endpoint URL.
            params (Optional[Dict[str, Any]]): Query string parameters.
            headers (Optional[Dict[str, str]]): Extra request headers.

        Returns:
            Dict[str, Any]: Parsed response body.

        Raises:
            ApiError: HTTP_ERROR for non-2xx responses, TIMEOUT when the
            client timeout elapses, NETWORK_ERROR for anything else on the wire.
        """
        start = time.perf_counter()
        async with self.rate_limiter:
            session = await self._get_session()
            try:
                async with session.get(url, params=params, headers=headers) as resp:
                    if resp.status >= 400:
                        text = await resp.text()
                        raise ApiError(f"HTTP error: {resp.status} {text[:200]}", HTTP_ERROR, self.source, resp.status)
                    data = await resp.json(content_type=None)
            except asyncio.TimeoutError:
                logger.debug(f"⏱️ {self.source} request timed out after {time.perf_counter() - start:.2f}s")
                raise ApiError("Request timeout", TIMEOUT, self.source)
            except (ClientError, ValueError) as e:
                logger.debug(f"⚠️ {self.source} request failed: {e}")
                raise ApiError(str(e), NETWORK_ERROR, self.source)

        logger.debug(f"✅ {self.source} responded in {time.perf_counter() - start:.2f}s")
        return data if isinstance(data, dict) else {}

    async def close(self):
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
