"""
Command-line entry point.

Reads run input from a JSON file (actor-style camelCase or snake_case keys)
and/or command-line flags, crawls wuzzuf.net and appends records to a JSONL file.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from .config import CrawlerSettings, RunConfig
from .core.net import HTTPClient
from .crawler.driver import CrawlDriver, CrawlStats
from .crawler.sink import JsonlSink
from .crawler.state_machine import CrawlStateMachine
from .exceptions import WuzzufScraperError

logger = logging.getLogger(__name__)


async def run_crawl(config: RunConfig, settings: CrawlerSettings, sink) -> CrawlStats:
    """Crawl every seed of ``config`` and push records to ``sink``."""
    state_machine = CrawlStateMachine(config, sink)
    async with HTTPClient(
        user_agent=settings.user_agent,
        timeout=settings.timeout_secs,
        max_retries=settings.max_retries,
        proxy_urls=config.proxy_urls or settings.proxy_urls,
    ) as client:
        driver = CrawlDriver(state_machine, client, max_concurrency=settings.max_concurrency)
        return await driver.run(state_machine.seed_requests())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Scrape job listings from wuzzuf.net")
    parser.add_argument("--input", type=str, help="JSON file with run input")
    parser.add_argument("--keyword", type=str)
    parser.add_argument("--location", type=str)
    parser.add_argument("--category", type=str)
    parser.add_argument("--career-level", dest="career_level", type=str)
    parser.add_argument("--job-type", dest="job_type", type=str)
    parser.add_argument("--max-job-age", dest="max_job_age", choices=["all", "7 days", "30 days", "90 days"])
    parser.add_argument("--results-wanted", dest="results_wanted", type=int)
    parser.add_argument("--max-pages", dest="max_pages", type=int)
    parser.add_argument("--no-details", dest="collect_details", action="store_false", default=None,
                        help="Only collect job URLs, do not open detail pages")
    parser.add_argument("--start-url", dest="start_urls", action="append",
                        help="Search URL to start from (repeatable)")
    parser.add_argument("--proxy-url", dest="proxy_urls", action="append",
                        help="Proxy to route requests through (repeatable, default: $WUZZUF_PROXY_URLS)")
    parser.add_argument("--output", type=str, help="Output JSONL path (default: $WUZZUF_OUTPUT_PATH)")
    return parser


def load_input(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise WuzzufScraperError(f"Input file {path} must contain a JSON object")
    return data


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    settings = CrawlerSettings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    args = build_parser().parse_args(argv)
    try:
        data = load_input(args.input)
    except (OSError, ValueError, WuzzufScraperError) as e:
        logger.error(f"Could not read input: {e}")
        return 1

    overrides = {
        name: value
        for name, value in vars(args).items()
        if name not in ("input", "output") and value is not None
    }
    data.update(overrides)
    try:
        config = RunConfig.from_input(data)
    except ValidationError as e:
        logger.error(f"Invalid run input: {e}")
        return 1
    output_path = args.output or settings.output_path
    logger.info(
        f"Run input: keyword={config.keyword!r} location={config.location!r} "
        f"results_wanted={config.results_wanted} max_pages={config.max_pages} "
        f"collect_details={config.collect_details} max_job_age={config.max_job_age!r}"
    )

    try:
        stats = asyncio.run(run_crawl(config, settings, JsonlSink(output_path)))
    except WuzzufScraperError as e:
        logger.error(f"Crawl failed: {e}")
        return 1

    logger.info(f"Scraping completed. Saved {stats.saved} records to {output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
