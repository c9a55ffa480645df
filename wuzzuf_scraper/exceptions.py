class WuzzufScraperError(Exception):
    """Base error for the scraper."""


class CrawlDriverError(WuzzufScraperError):
    """The crawl driver could not make progress (e.g. every seed page failed)."""
