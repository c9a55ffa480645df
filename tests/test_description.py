"""
Unit tests for description extraction and cleaning.
"""

from bs4 import BeautifulSoup

from wuzzuf_scraper.pipeline.description import (
    clean_description_html,
    description_from_blocks,
    description_from_container,
)
from wuzzuf_scraper.pipeline.fields import ExtractionContext

URL = "https://wuzzuf.net/jobs/p/xyz-Data-Engineer"


def ctx_for(html: str) -> ExtractionContext:
    return ExtractionContext(soup=BeautifulSoup(html, 'lxml'), url=URL)


def test_clean_strips_attributes_and_scripts():
    markup = '<div class="css-1abcd" style="color:red" data-id="1"><p id="x">Hello</p><script>track()</script></div>'
    assert clean_description_html(markup) == "<div><p>Hello</p></div>"


def test_clean_empty():
    assert clean_description_html("   ") is None
    assert clean_description_html(None) is None


def test_container_strategy():
    html = """<html><body>
      <div data-qa="job-description"><p>Own the ingestion pipelines and the warehouse models.</p></div>
    </body></html>"""
    candidate = description_from_container(ctx_for(html))
    assert candidate.source == 'dom'
    assert candidate.value.startswith("<p>Own the ingestion")


def test_container_too_short_is_skipped():
    html = '<html><body><div class="job-description"><p>TBD</p></div></body></html>'
    assert description_from_container(ctx_for(html)) is None


def test_blocks_drop_related_jobs_and_stats():
    html = """<html><body><main>
      <p>We are hiring an engineer to build our data platform.</p>
      <ul><li>12 Applicants</li><li>Viewed 40</li></ul>
      <section><h3>Similar Jobs</h3><p>Senior Data Engineer at Other Company in Giza</p></section>
      <p>Short</p>
    </main></body></html>"""
    ctx = ctx_for(html)
    candidate = description_from_blocks(ctx)

    assert candidate.value == "<p>We are hiring an engineer to build our data platform.</p>"
    # The page itself is left untouched
    assert "Similar Jobs" in ctx.soup.get_text()


def test_blocks_skip_nested_lists():
    html = """<html><body><article>
      <ul><li>Responsibilities include design reviews<ul><li>and mentoring junior engineers daily</li></ul></li></ul>
    </article></body></html>"""
    candidate = description_from_blocks(ctx_for(html))
    assert candidate.value.count("<ul>") == 2
    assert candidate.raw_snippet == "1 blocks"
