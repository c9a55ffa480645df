"""
Run configuration and crawler settings.

``RunConfig`` is the per-run input (filters, budget, seeds).
``CrawlerSettings`` comes from the environment (.env is loaded by the entry point).
"""

import os
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .core.urls import build_search_url

DEFAULT_RESULTS_WANTED = 100
DEFAULT_MAX_PAGES = 20
DEFAULT_MAX_DUPLICATE_PAGES = 2

MaxJobAge = Literal["all", "7 days", "30 days", "90 days"]

# Input keys accepted from actor-style JSON input -> RunConfig field names
INPUT_ALIASES = {
    "careerLevel": "career_level",
    "jobType": "job_type",
    "maxJobAge": "max_job_age",
    "results_wanted": "results_wanted",
    "resultsWanted": "results_wanted",
    "max_pages": "max_pages",
    "maxPages": "max_pages",
    "collectDetails": "collect_details",
    "maxDuplicatePages": "max_duplicate_pages",
    "locationKeywords": "location_keywords",
    "proxyConfiguration": "proxy_urls",
    "proxyUrls": "proxy_urls",
}


def _coerce_positive_int(value: Any, default: int) -> int:
    try:
        number = int(float(value))
    except (TypeError, ValueError):
        return default
    return max(1, number)


def _split_proxy_urls(value: Any) -> List[str]:
    # Actor input wraps the list: {"proxyConfiguration": {"proxyUrls": [...]}}
    if isinstance(value, dict):
        value = value.get("proxyUrls")
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [str(item).strip() for item in value if item and str(item).strip()]


class RunConfig(BaseModel):
    keyword: str = ""
    location: str = ""
    category: str = ""
    career_level: str = ""
    job_type: str = ""
    max_job_age: MaxJobAge = "all"
    results_wanted: int = DEFAULT_RESULTS_WANTED
    max_pages: int = DEFAULT_MAX_PAGES
    collect_details: bool = True
    start_urls: List[str] = Field(default_factory=list)
    max_duplicate_pages: int = DEFAULT_MAX_DUPLICATE_PAGES
    location_keywords: List[str] = Field(default_factory=lambda: ["remote", "hybrid"])
    location_keywords_case_sensitive: bool = False
    proxy_urls: List[str] = Field(default_factory=list)

    @field_validator("results_wanted", mode="before")
    @classmethod
    def _results_wanted(cls, value):
        return _coerce_positive_int(value, DEFAULT_RESULTS_WANTED)

    @field_validator("max_pages", mode="before")
    @classmethod
    def _max_pages(cls, value):
        return _coerce_positive_int(value, DEFAULT_MAX_PAGES)

    @field_validator("max_duplicate_pages", mode="before")
    @classmethod
    def _max_duplicate_pages(cls, value):
        return _coerce_positive_int(value, DEFAULT_MAX_DUPLICATE_PAGES)

    @field_validator("start_urls", mode="before")
    @classmethod
    def _start_urls(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        urls = []
        for item in value:
            # Actor inputs sometimes pass request objects instead of plain strings
            if isinstance(item, dict):
                item = item.get("url")
            if item and str(item).strip() and str(item).strip() not in urls:
                urls.append(str(item).strip())
        return urls

    @field_validator("proxy_urls", mode="before")
    @classmethod
    def _proxy_urls(cls, value):
        return _split_proxy_urls(value)

    @classmethod
    def from_input(cls, data: Optional[Dict[str, Any]]) -> "RunConfig":
        """Build a config from raw input using either snake_case or camelCase keys."""
        data = dict(data or {})
        start_urls: List[Any] = []
        for key in ("startUrls", "start_urls", "startUrl", "url"):
            value = data.pop(key, None)
            if isinstance(value, list):
                start_urls.extend(value)
            elif value:
                start_urls.append(value)

        fields: Dict[str, Any] = {}
        for key, value in data.items():
            name = INPUT_ALIASES.get(key, key)
            if name in cls.model_fields:
                fields[name] = value
        fields["start_urls"] = start_urls
        return cls(**fields)

    def seed_urls(self) -> List[str]:
        """Explicit start URLs, or the search URL built from the filters."""
        if self.start_urls:
            return list(self.start_urls)
        return [build_search_url(self.keyword, self.location, self.category, self.career_level, self.job_type)]


class CrawlerSettings(BaseModel):
    user_agent: Optional[str] = None
    max_concurrency: int = 5
    timeout_secs: float = 30.0
    max_retries: int = 3
    output_path: str = "output/jobs.jsonl"
    log_level: str = "INFO"
    proxy_urls: List[str] = Field(default_factory=list)

    @classmethod
    def from_env(cls) -> "CrawlerSettings":
        return cls(
            user_agent=os.getenv("WUZZUF_USER_AGENT") or None,
            max_concurrency=int(os.getenv("WUZZUF_MAX_CONCURRENCY", "5")),
            timeout_secs=float(os.getenv("WUZZUF_TIMEOUT_SECS", "30")),
            max_retries=int(os.getenv("WUZZUF_MAX_RETRIES", "3")),
            output_path=os.getenv("WUZZUF_OUTPUT_PATH", "output/jobs.jsonl"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            proxy_urls=_split_proxy_urls(os.getenv("WUZZUF_PROXY_URLS", "")),
        )
