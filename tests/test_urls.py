"""
Unit tests for URL helpers.
"""

from wuzzuf_scraper.core.urls import build_search_url, normalize_url, to_absolute


def test_normalize_strips_query_and_fragment():
    url = normalize_url("/jobs/p/abc-Senior-Dev?o=1&amp;l=sp#top")
    assert url == "https://wuzzuf.net/jobs/p/abc-Senior-Dev"


def test_normalize_against_explicit_base():
    assert normalize_url("/jobs/p/123?utm=x#frag", "https://site.example") == "https://site.example/jobs/p/123"


def test_normalize_rejects_unusable_schemes():
    assert normalize_url("javascript:void(0)") is None
    assert normalize_url("mailto:hr@example.com") is None
    assert normalize_url("data:image/png;base64,AAAA") is None
    assert normalize_url(None) is None


def test_to_absolute_keeps_query():
    url = to_absolute("/search/jobs/?q=a&amp;start=15", "https://wuzzuf.net/search/jobs/?q=a")
    assert url == "https://wuzzuf.net/search/jobs/?q=a&start=15"


def test_build_search_url_without_filters():
    assert build_search_url() == "https://wuzzuf.net/search/jobs/"


def test_build_search_url_encodes_keyword():
    assert build_search_url(keyword="python developer") == "https://wuzzuf.net/search/jobs/?q=python%20developer"


def test_build_search_url_with_all_filters():
    url = build_search_url("python", "Cairo", "IT-Software-Development", "Entry Level", "Full Time")
    assert url == (
        "https://wuzzuf.net/search/jobs/?q=python"
        "&a0=Location&l0=0&l1=2&l2=4&filters[location][0]=Cairo"
        "&filters[categories][0]=IT-Software-Development"
        "&filters[career_level][0]=Entry%20Level"
        "&filters[job_type][0]=Full%20Time"
    )


def test_build_search_url_ignores_blank_filters():
    assert build_search_url(keyword="  ", location="") == "https://wuzzuf.net/search/jobs/"
