"""
HTTP client with retries, backoff and Retry-After support.
"""
import asyncio
import logging
import time
from typing import Dict, List, Optional, Sequence, Tuple

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)

DEFAULT_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36"
DEFAULT_TIMEOUT = 30.0
MAX_RETRIES = 3

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class RetryableStatusError(Exception):
    """Raised for responses worth retrying (throttling, server errors)."""

    def __init__(self, status_code: int, url: str):
        super().__init__(f"HTTP {status_code} for {url}")
        self.status_code = status_code
        self.url = url


class HTTPClient:
    """
    Shared async HTTP client used by the crawl driver.

    With ``proxy_urls`` set, one connection pool is opened per proxy and
    requests take turns across them.
    """

    def __init__(
        self,
        user_agent: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        proxy_urls: Optional[Sequence[str]] = None,
    ):
        self.user_agent = user_agent or DEFAULT_UA
        self.timeout = httpx.Timeout(timeout)
        self.max_retries = max(0, max_retries)
        self.proxy_urls: List[str] = [p for p in (proxy_urls or []) if p]
        self._clients: List[httpx.AsyncClient] = []
        self._turn = 0

    def _build_client(self, proxy: Optional[str]) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers=self._get_headers(),
            proxy=proxy,
        )

    async def __aenter__(self) -> "HTTPClient":
        if self.proxy_urls:
            logger.info(f"[net] Routing requests through {len(self.proxy_urls)} proxy URL(s)")
            self._clients = [self._build_client(proxy) for proxy in self.proxy_urls]
        else:
            self._clients = [self._build_client(None)]
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self):
        clients, self._clients = self._clients, []
        for client in clients:
            await client.aclose()

    def _next_client(self) -> httpx.AsyncClient:
        if not self._clients:
            raise RuntimeError("HTTPClient used outside of its async context")
        client = self._clients[self._turn % len(self._clients)]
        self._turn += 1
        return client

    def _get_headers(self) -> Dict[str, str]:
        """Build request headers"""
        return {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }

    async def _handle_retry_after(self, headers: httpx.Headers, url: str):
        """Honour a numeric Retry-After header before the next attempt"""
        retry_after = headers.get("Retry-After")
        if not retry_after:
            return
        try:
            wait_seconds = min(int(retry_after), 60)
        except ValueError:
            logger.warning(f"[net] Could not parse Retry-After header: {retry_after}")
            return
        if wait_seconds > 0:
            logger.info(f"[net] Retry-After header: waiting {wait_seconds}s for {url}")
            await asyncio.sleep(wait_seconds)

    async def _get(self, url: str) -> Tuple[int, str]:
        client = self._next_client()
        start_time = time.time()
        response = await client.get(url)
        elapsed_ms = int((time.time() - start_time) * 1000)
        logger.info(f"[net] GET {response.status_code} {url} ({len(response.content)} bytes, {elapsed_ms}ms)")

        if response.status_code in RETRYABLE_STATUS_CODES:
            await self._handle_retry_after(response.headers, url)
            raise RetryableStatusError(response.status_code, url)
        return response.status_code, response.text

    async def fetch(self, url: str) -> Tuple[int, str]:
        """
        Fetch a page, retrying timeouts, connection errors and 429/5xx responses.

        Returns:
            (status_code, body_text)
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.TransportError, RetryableStatusError)),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self._get(url)
        except httpx.TimeoutException as e:
            logger.error(f"[net] Timeout fetching {url}: {e}")
            raise
        except httpx.TransportError as e:
            logger.error(f"[net] Connection error fetching {url}: {e}")
            raise
        except RetryableStatusError as e:
            logger.error(f"[net] Giving up on {url}: {e}")
            raise
