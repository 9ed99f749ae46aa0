"""
Shared async HTTP client for source adapters.

One httpx.AsyncClient is created lazily and reused by every adapter. Each
request carries its own deadline; failures are translated into the
SourceFetchError family so the retry policy can classify them.
"""
import asyncio
import logging
import time
from email.utils import parsedate_to_datetime
from typing import Dict, Mapping, Optional

import httpx

from template_feed.config import DEFAULT_UA
from template_feed.core.errors import (
    RateLimitError,
    SourceConnectionError,
    SourceHTTPError,
    SourceTimeoutError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


def parse_retry_after(headers: Mapping[str, str]) -> Optional[float]:
    """
    Read a Retry-After header.

    The value may be delay-seconds or an HTTP date (RFC 7231). Returns the
    wait in seconds, or None when the header is absent or unparseable.
    """
    value = headers.get("Retry-After") or headers.get("retry-after")
    if not value:
        return None
    try:
        return max(0.0, float(int(value.strip())))
    except ValueError:
        pass
    try:
        retry_date = parsedate_to_datetime(value)
        return max(0.0, retry_date.timestamp() - time.time())
    except (TypeError, ValueError):
        logger.warning(f"[net] Could not parse Retry-After header: {value}")
        return None


class HTTPClient:
    """Async GET client with a descriptive User-Agent and per-request deadlines"""

    def __init__(
        self,
        user_agent: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.user_agent = user_agent or DEFAULT_UA
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                headers=self._get_headers(),
                transport=self._transport,
            )
        return self._client

    async def get_text(self, url: str, source: str, timeout: Optional[float] = None) -> str:
        """
        GET a page and return its decoded body.

        Raises:
            SourceTimeoutError: the deadline elapsed
            RateLimitError: HTTP 429 (retry_after taken from the response)
            SourceHTTPError: any other non-2xx status
            SourceConnectionError: DNS, connect or protocol failures
        """
        timeout = timeout or self.timeout
        client = self._get_client()
        start = time.time()

        try:
            response = await asyncio.wait_for(client.get(url, timeout=timeout), timeout=timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning(f"[net] Timeout fetching {url} after {timeout}s")
            raise SourceTimeoutError(source, f"Request to {url} timed out after {timeout}s")
        except httpx.TransportError as e:
            logger.warning(f"[net] Connection error fetching {url}: {e}")
            raise SourceConnectionError(source, f"{type(e).__name__}: {e}")

        duration_ms = int((time.time() - start) * 1000)
        logger.info(f"[net] GET {response.status_code} {url} ({len(response.content)} bytes, {duration_ms}ms)")

        if response.status_code == 429:
            raise RateLimitError(source, parse_retry_after(response.headers))
        if response.status_code >= 400:
            raise SourceHTTPError(source, response.status_code, f"HTTP {response.status_code}: {response.reason_phrase}")

        return response.text

    async def aclose(self):
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
