"""
Async crawl driver.

Owns the request queue, fetches pages with a bounded number of workers and
feeds parsed pages to the state machine. Parsing and extraction run in a
worker thread so the event loop keeps fetching meanwhile.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, List, Set

import httpx
from bs4 import BeautifulSoup

from ..core.net import RetryableStatusError
from ..exceptions import CrawlDriverError
from ..models import CrawlRequest, PageKind
from .state_machine import CrawlStateMachine

logger = logging.getLogger(__name__)


@dataclass
class CrawlStats:
    pages_fetched: int = 0
    failed_requests: int = 0
    skipped_requests: int = 0
    saved: int = 0

    def to_dict(self):
        return {
            'pages_fetched': self.pages_fetched,
            'failed_requests': self.failed_requests,
            'skipped_requests': self.skipped_requests,
            'saved': self.saved,
        }


class CrawlDriver:
    def __init__(self, state_machine: CrawlStateMachine, http_client, max_concurrency: int = 5):
        self.state_machine = state_machine
        self.http_client = http_client
        self.max_concurrency = max(1, max_concurrency)
        self.stats = CrawlStats()
        self._seen: Set[str] = set()
        self._seeds: Set[str] = set()
        self._failed_seeds: Set[str] = set()

    def _enqueue(self, queue: asyncio.Queue, request: CrawlRequest):
        key = f"{request.page_kind.value}:{request.url}"
        if key in self._seen:
            logger.debug(f"[driver] Already queued: {request.url}")
            return
        self._seen.add(key)
        queue.put_nowait(request)

    async def run(self, seeds: Iterable[CrawlRequest]) -> CrawlStats:
        seeds = list(seeds)
        queue: asyncio.Queue = asyncio.Queue()
        for request in seeds:
            self._seeds.add(request.url)
            self._enqueue(queue, request)

        logger.info(f"[driver] Starting crawl with {len(seeds)} start URL(s), concurrency={self.max_concurrency}")
        workers = [asyncio.create_task(self._worker(queue)) for _ in range(self.max_concurrency)]
        try:
            await queue.join()
        finally:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        self.stats.saved = self.state_machine.budget.saved
        logger.info(f"[driver] Crawl finished: {self.stats.to_dict()}")

        if self._seeds and self._failed_seeds == self._seeds:
            raise CrawlDriverError(f"All {len(self._seeds)} start URL(s) failed to load")
        return self.stats

    async def _worker(self, queue: asyncio.Queue):
        while True:
            request = await queue.get()
            try:
                for follow_up in await self._process(request):
                    self._enqueue(queue, follow_up)
            except Exception as e:
                logger.error(f"[driver] Unexpected error on {request.url}: {e}", exc_info=True)
            finally:
                queue.task_done()

    async def _process(self, request: CrawlRequest) -> List[CrawlRequest]:
        if self.state_machine.budget.is_exhausted():
            self.stats.skipped_requests += 1
            logger.debug(f"[driver] Target reached, not fetching {request.url}")
            return []

        try:
            status, html = await self.http_client.fetch(request.url)
        except (httpx.HTTPError, RetryableStatusError) as e:
            self._record_failure(request, f"{type(e).__name__}: {e}", level=logging.ERROR)
            return []

        if status != 200:
            self._record_failure(request, f"HTTP {status}", level=logging.WARNING)
            return []

        self.stats.pages_fetched += 1
        return await asyncio.to_thread(self._parse_and_handle, request, html)

    def _parse_and_handle(self, request: CrawlRequest, html: str) -> List[CrawlRequest]:
        soup = BeautifulSoup(html, 'lxml')
        return self.state_machine.handle(request, soup)

    def _record_failure(self, request: CrawlRequest, reason: str, level: int):
        self.stats.failed_requests += 1
        if request.page_kind is PageKind.LISTING and request.url in self._seeds:
            self._failed_seeds.add(request.url)
        logger.log(level, f"[driver] Failed to fetch {request.page_kind.value} page {request.url}: {reason}")
