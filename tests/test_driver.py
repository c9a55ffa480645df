"""
Tests for the async crawl driver with a stubbed HTTP client.
"""

import json

import httpx
import pytest

from wuzzuf_scraper.config import RunConfig
from wuzzuf_scraper.crawler.driver import CrawlDriver
from wuzzuf_scraper.crawler.sink import MemorySink
from wuzzuf_scraper.crawler.state_machine import CrawlStateMachine
from wuzzuf_scraper.exceptions import CrawlDriverError

SEARCH_URL = "https://wuzzuf.net/search/jobs/?q=python"


def detail_html(title: str) -> str:
    data = {"@type": "JobPosting", "title": title, "hiringOrganization": {"name": "Acme Egypt"}}
    return f'<html><head><script type="application/ld+json">{json.dumps(data)}</script></head><body></body></html>'


LISTING_HTML = """
<html><body>
  <h2><a href="/jobs/p/job-1-Python-Developer">Python Developer</a></h2>
  <h2><a href="/jobs/p/job-2-Data-Engineer">Data Engineer</a></h2>
</body></html>
"""

PAGES = {
    SEARCH_URL: LISTING_HTML,
    "https://wuzzuf.net/jobs/p/job-1-Python-Developer": detail_html("Python Developer"),
    "https://wuzzuf.net/jobs/p/job-2-Data-Engineer": detail_html("Data Engineer"),
}


class FakeClient:
    """Serves canned pages; anything else is a 404."""

    def __init__(self, pages, error=None):
        self.pages = pages
        self.error = error
        self.calls = []

    async def fetch(self, url):
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        if url not in self.pages:
            return 404, ""
        return 200, self.pages[url]


def make_driver(client, **config):
    machine = CrawlStateMachine(RunConfig(start_urls=[SEARCH_URL], **config), MemorySink())
    return CrawlDriver(machine, client, max_concurrency=2), machine


@pytest.mark.asyncio
async def test_crawl_listing_and_details():
    client = FakeClient(PAGES)
    driver, machine = make_driver(client, results_wanted=10)

    stats = await driver.run(machine.seed_requests())

    titles = sorted(item['title'] for item in machine.sink.items)
    assert titles == ["Data Engineer", "Python Developer"]
    assert stats.saved == 2
    assert stats.pages_fetched == 3
    # Page 2 of the search is not in the canned pages
    assert stats.failed_requests == 1
    assert f"{SEARCH_URL}&start=15" in client.calls


@pytest.mark.asyncio
async def test_stops_fetching_once_target_reached():
    client = FakeClient(PAGES)
    driver, machine = make_driver(client, results_wanted=1, max_pages=1)

    stats = await driver.run(machine.seed_requests())

    assert stats.saved == 1
    assert len(machine.sink.items) == 1
    assert len(client.calls) == 2


@pytest.mark.asyncio
async def test_duplicate_requests_fetched_once():
    client = FakeClient(PAGES)
    driver, machine = make_driver(client, results_wanted=10, max_pages=1)

    seeds = machine.seed_requests() * 2
    await driver.run(seeds)

    assert client.calls.count(SEARCH_URL) == 1


@pytest.mark.asyncio
async def test_all_seeds_failing_raises():
    driver, machine = make_driver(FakeClient({}))
    with pytest.raises(CrawlDriverError):
        await driver.run(machine.seed_requests())


@pytest.mark.asyncio
async def test_transport_errors_are_counted():
    driver, machine = make_driver(FakeClient(PAGES, error=httpx.ConnectError("connection refused")))
    with pytest.raises(CrawlDriverError):
        await driver.run(machine.seed_requests())
    assert driver.stats.failed_requests == 1
