"""
Crawl state machine.

Handles one fetched page at a time and returns the follow-up requests.
Search pages (LISTING) yield detail requests plus the next search page;
detail pages (DETAIL) yield a saved record and nothing to follow.
"""

import logging
from typing import List, Optional

from bs4 import BeautifulSoup

from ..config import RunConfig
from ..models import CrawlRequest, LinkStub, PageKind
from ..pipeline.assembler import RecordAssembler
from ..pipeline.extractor import Extractor
from ..pipeline.fields import ExtractionContext
from ..pipeline.heuristics import MatchRules
from .budget import CrawlBudget
from .links import find_job_links, find_next_page_url

logger = logging.getLogger(__name__)


class CrawlStateMachine:
    def __init__(
        self,
        config: RunConfig,
        sink,
        budget: Optional[CrawlBudget] = None,
        extractor: Optional[Extractor] = None,
        assembler: Optional[RecordAssembler] = None,
    ):
        self.config = config
        self.sink = sink
        self.budget = budget or CrawlBudget(config.results_wanted)
        rules = MatchRules(
            location_keywords=tuple(config.location_keywords),
            case_sensitive=config.location_keywords_case_sensitive,
        )
        self.extractor = extractor or Extractor(rules)
        self.assembler = assembler or RecordAssembler(config.max_job_age)

    def seed_requests(self) -> List[CrawlRequest]:
        return [CrawlRequest.listing(url, page_number=1) for url in self.config.seed_urls()]

    def handle(self, request: CrawlRequest, soup: BeautifulSoup) -> List[CrawlRequest]:
        """Process one page. Errors are logged and the page is dropped; the crawl goes on."""
        try:
            if request.page_kind is PageKind.LISTING:
                return self._handle_listing(request, soup)
            elif request.page_kind is PageKind.DETAIL:
                return self._handle_detail(request, soup)
            logger.warning(f"[crawler] Unknown page kind {request.page_kind!r} for {request.url}")
            return []
        except Exception as e:
            logger.error(f"[crawler] Error processing {request.page_kind.value} page {request.url}: {e}", exc_info=True)
            return []

    def _handle_listing(self, request: CrawlRequest, soup: BeautifulSoup) -> List[CrawlRequest]:
        page_no = request.page_number or 1
        seed = request.seed or request.url
        raw_links = find_job_links(soup, request.url)
        logger.info(f"[crawler] LIST page {page_no}: found {len(raw_links)} job links ({request.url})")

        follow_ups: List[CrawlRequest] = []
        if self.config.collect_details:
            reservation = self.budget.reserve_links(raw_links)
            follow_ups.extend(CrawlRequest.detail(url, seed=seed) for url in reservation.selected)
        else:
            reservation = self.budget.reserve_links(raw_links, count_as_saved=True)
            for url in reservation.selected:
                self.sink.push(LinkStub(url=url).model_dump())
        logger.info(
            f"[crawler] LIST page {page_no}: {reservation.fresh} new, {len(reservation.selected)} queued "
            f"(saved {self.budget.saved}/{self.budget.results_wanted})"
        )

        duplicate_run = self.budget.note_listing_page(seed, had_fresh_links=reservation.fresh > 0)
        if not raw_links:
            logger.info(f"[crawler] No job links on page {page_no}, stopping pagination")
            return follow_ups
        if self.budget.is_exhausted():
            return follow_ups
        if page_no >= self.config.max_pages:
            logger.info(f"[crawler] Reached max pages ({self.config.max_pages}) for {seed}")
            return follow_ups
        if duplicate_run > self.config.max_duplicate_pages:
            logger.warning(f"[crawler] {duplicate_run} consecutive pages without new jobs, stopping pagination for {seed}")
            return follow_ups

        next_url = find_next_page_url(soup, request.url, page_no)
        if not next_url or next_url == request.url:
            logger.info(f"[crawler] No next page after page {page_no}")
            return follow_ups
        logger.info(f"[crawler] Enqueued page {page_no + 1}: {next_url}")
        follow_ups.append(CrawlRequest.listing(next_url, page_number=page_no + 1, seed=seed))
        return follow_ups

    def _handle_detail(self, request: CrawlRequest, soup: BeautifulSoup) -> List[CrawlRequest]:
        if self.budget.is_exhausted():
            logger.debug(f"[crawler] Target reached, skipping detail page {request.url}")
            return []

        result = self.extractor.extract(ExtractionContext(soup=soup, url=request.url))
        record = self.assembler.assemble(result)
        if record is None:
            return []

        saved = self.budget.claim_slot()
        if saved is None:
            logger.info(f"[crawler] Target reached before saving {request.url}, dropping record")
            return []
        self.sink.push(record.model_dump())
        logger.info(f"[crawler] Saved job {saved}/{self.budget.results_wanted}: {record.title}")
        return []
