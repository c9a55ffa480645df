"""
Data model shared by the pipeline and the crawler.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

NOT_DISCLOSED = "Not disclosed"
SOURCE_SITE = "wuzzuf.net"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class PageKind(str, Enum):
    """Role of a fetched page in the crawl."""
    LISTING = "LISTING"
    DETAIL = "DETAIL"


@dataclass(frozen=True)
class CrawlRequest:
    """A page the crawl driver should fetch and hand back to the state machine."""
    url: str
    page_kind: PageKind
    page_number: Optional[int] = None
    # Start URL this request descends from; pagination limits are per seed
    seed: Optional[str] = None

    @classmethod
    def listing(cls, url: str, page_number: int = 1, seed: Optional[str] = None) -> "CrawlRequest":
        return cls(url=url, page_kind=PageKind.LISTING, page_number=page_number, seed=seed or url)

    @classmethod
    def detail(cls, url: str, seed: Optional[str] = None) -> "CrawlRequest":
        return cls(url=url, page_kind=PageKind.DETAIL, seed=seed)


class JobRecord(BaseModel):
    """A fully assembled job posting. Immutable once built."""
    model_config = ConfigDict(frozen=True)

    title: str
    company: Optional[str] = None
    company_logo: Optional[str] = None
    location: Optional[str] = None
    salary: str = NOT_DISCLOSED
    job_type: Optional[str] = None
    job_categories: List[str] = Field(default_factory=list)
    career_level: Optional[str] = None
    date_posted: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    description_html: Optional[str] = None
    description_text: Optional[str] = None
    url: str
    scraped_at: str = Field(default_factory=utc_timestamp)


class LinkStub(BaseModel):
    """Output record emitted when detail pages are not collected."""
    model_config = ConfigDict(frozen=True)

    url: str
    source: str = SOURCE_SITE
    scraped_at: str = Field(default_factory=utc_timestamp)
