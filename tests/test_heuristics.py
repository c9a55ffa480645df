"""
Unit tests for the per-field fallback chains.
"""

import pytest
from bs4 import BeautifulSoup

from wuzzuf_scraper.pipeline.fields import ExtractionContext
from wuzzuf_scraper.pipeline.heuristics import (
    HeuristicExtractor,
    MatchRules,
    accept_location,
    location_dash_suffix,
    location_from_metadata,
    location_from_page_title,
    location_from_text_nodes,
    location_near_company,
)

URL = "https://wuzzuf.net/jobs/p/xyz-Python-Developer-Acme-Egypt-Cairo-Egypt"

DETAIL_HTML = """
<html>
<head><title>Python Developer Job in Cairo, Egypt - Acme Egypt - Apply Now</title></head>
<body>
<main>
  <h1 class="css-f9uh36">Python Developer</h1>
  <div><a href="/jobs/careers/Acme-Egypt-12345">Acme Egypt -</a> <span>Posted 3 days ago</span></div>
  <div>
    <a href="/a/Full-Time-Jobs-in-Egypt"><span>Full Time</span></a>
    <a href="/a/Work-From-Home-Jobs-in-Egypt"><span>Work From Home</span></a>
  </div>
  <div><span>Career Level:</span><span><a href="/a/Experienced-Jobs-in-Egypt">Experienced</a></span></div>
  <div><span>Salary:</span><span>Confidential</span></div>
  <div>
    <span>Job Categories:</span>
    <a href="/a/IT-Software-Development-Jobs-in-Egypt">IT/Software Development</a>
    <a href="/a/Engineering-Telecom-Technology-Jobs-in-Egypt">Engineering - Telecom/Technology</a>
  </div>
  <div>
    <a data-qa="skill-tag" href="/search/jobs/?q=Python">Python</a>
    <a data-qa="skill-tag" href="/search/jobs/?q=Django">Django</a>
    <a data-qa="skill-tag" href="/search/jobs/?q=python">python</a>
  </div>
  <section>
    <h2>Job Description</h2>
    <ul>
      <li>Design and build REST APIs with Django.</li>
      <li>Write tests for every feature you ship.</li>
    </ul>
  </section>
</main>
</body>
</html>
"""


def ctx_for(html: str) -> ExtractionContext:
    return ExtractionContext(soup=BeautifulSoup(html, 'lxml'), url=URL)


@pytest.fixture
def extractor():
    return HeuristicExtractor()


class TestHeuristicExtractor:

    def test_fields_from_wuzzuf_markup(self, extractor):
        fields = extractor.extract(ctx_for(DETAIL_HTML))

        assert fields['title'].value == "Python Developer"
        assert fields['title'].source == 'dom'
        assert fields['company'].value == "Acme Egypt"
        assert fields['location'].value == "Cairo, Egypt"
        assert fields['job_type'].value == "Full Time / Work From Home"
        assert fields['career_level'].value == "Experienced"
        assert fields['salary'].value == "Confidential"
        assert fields['job_categories'].value == ["IT/Software Development", "Engineering - Telecom/Technology"]
        assert fields['skills'].value == ["Python", "Django"]
        assert fields['date_posted'].value == "3 days ago"
        assert "REST APIs" in fields['description_html'].value
        assert 'company_logo' not in fields

    def test_skip_leaves_fields_alone(self, extractor):
        fields = extractor.extract(ctx_for(DETAIL_HTML), skip=['title', 'company'])
        assert 'title' not in fields
        assert 'company' not in fields
        assert 'location' in fields

    def test_first_heading_fallback(self, extractor):
        candidate = extractor.extract_field('title', ctx_for("<html><body><h1>Accountant</h1></body></html>"))
        assert candidate.value == "Accountant"
        assert candidate.source == 'heuristic'

    def test_invalid_candidate_falls_through(self, extractor):
        html = """<html><body>
          <a href="/jobs/careers/Acme-Egypt-12345">{Acme}</a>
          <div class="company-name">Acme Egypt</div>
        </body></html>"""
        candidate = extractor.extract_field('company', ctx_for(html))
        assert candidate.value == "Acme Egypt"
        assert candidate.source == 'heuristic'

    def test_salary_pattern(self, extractor):
        html = "<html><body><p>Pay: 10,000 - 15,000 EGP per month</p></body></html>"
        candidate = extractor.extract_field('salary', ctx_for(html))
        assert candidate.value == "10,000 - 15,000 EGP per month"
        assert candidate.source == 'regex'

    def test_logo_from_company_link(self, extractor):
        html = """<html><body>
          <a href="/jobs/careers/Acme-Egypt-12345"><img src="/images/acme-logo.png"></a>
        </body></html>"""
        candidate = extractor.extract_field('company_logo', ctx_for(html))
        assert candidate.value == "https://wuzzuf.net/images/acme-logo.png"

    def test_logo_ignores_similar_job_cards(self, extractor):
        html = """<html><body>
          <a href="/jobs/careers/Acme-Egypt-12345">Acme Egypt</a>
          <section><a href="/jobs/careers/Other-Co-9"><img src="/images/other-logo.png"></a></section>
        </body></html>"""
        assert extractor.extract_field('company_logo', ctx_for(html)) is None

    @pytest.mark.parametrize("img, expected", [
        ('<img data-qa="company-logo" src="/img/src.png" data-src="/img/lazy.png">', "https://wuzzuf.net/img/src.png"),
        ('<img data-qa="company-logo" src="data:image/png;base64,AAAA" data-src="/img/lazy.png">',
         "https://wuzzuf.net/img/lazy.png"),
        ('<img data-qa="company-logo" srcset="/img/logo-1x.png 1x, /img/logo-2x.png 2x">', "https://wuzzuf.net/img/logo-1x.png"),
    ])
    def test_logo_source_order(self, extractor, img, expected):
        candidate = extractor.extract_field('company_logo', ctx_for(f"<html><body>{img}</body></html>"))
        assert candidate.value == expected

    def test_logo_data_uri_only_is_rejected(self, extractor):
        html = '<html><body><img data-qa="company-logo" src="data:image/png;base64,AAAA"></body></html>'
        assert extractor.extract_field('company_logo', ctx_for(html)) is None

    def test_career_level_from_label(self, extractor):
        html = "<html><body><div><span>Career Level:</span><span>Entry Level</span></div></body></html>"
        candidate = extractor.extract_field('career_level', ctx_for(html))
        assert candidate.value == "Entry Level"
        assert candidate.source == 'heuristic'

    def test_skills_under_heading(self, extractor):
        html = """<html><body>
          <div class="skills">
            <h3>Skills And Tools:</h3>
            <ul><li>Skills And Tools</li><li>Python</li><li>Docker</li><li>python</li></ul>
          </div>
        </body></html>"""
        candidate = extractor.extract_field('skills', ctx_for(html))
        assert candidate.value == ["Python", "Docker"]
        assert candidate.source == 'heuristic'


class TestLocation:

    def test_text_next_to_company_link(self):
        html = """<html><body>
          <div><a href="/jobs/careers/Acme-Egypt-12345">Acme Egypt -</a> Maadi, Cairo, Egypt <span>Posted 3 days ago</span></div>
        </body></html>"""
        candidate = location_near_company(ctx_for(html), MatchRules())
        assert candidate.value == "Maadi, Cairo, Egypt"

    def test_keyword_match_ignores_case_by_default(self):
        html = "<html><body><h1>Backend Engineer</h1><p>Work mode</p><span>Remote</span></body></html>"
        candidate = location_from_text_nodes(ctx_for(html), MatchRules())
        assert candidate.value == "Remote"

    def test_keyword_match_case_sensitive(self):
        html = "<html><body><h1>Backend Engineer</h1><span>Remote</span></body></html>"
        rules = MatchRules(location_keywords=('remote',), case_sensitive=True)
        assert location_from_text_nodes(ctx_for(html), rules) is None

    def test_posted_line_is_not_a_location(self):
        html = "<html><body><span>Posted 2 days ago, Cairo</span></body></html>"
        assert location_from_text_nodes(ctx_for(html), MatchRules()) is None

    @pytest.mark.parametrize("text, expected", [
        ("  Cairo, Egypt - ", "Cairo, Egypt"),
        ("Similar Jobs, Cairo", None),
        ("x", None),
        ("Cairo {Egypt}", None),
        ("A" * 81, None),
    ])
    def test_accept_location(self, text, expected):
        assert accept_location(text) == expected

    def test_company_block_without_location_reads_next_sibling(self):
        html = """<html><body>
          <div><a href="/jobs/careers/Acme-Egypt-123">Acme Egypt -</a></div>
          <span>Nasr City, Cairo, Egypt</span>
          <section class="similar">
            <div><a href="/jobs/careers/Other-Co-9">Other Co</a> - Alexandria, Egypt</div>
          </section>
        </body></html>"""
        ctx = ctx_for(html)
        assert location_near_company(ctx, MatchRules()).value == "Nasr City, Cairo, Egypt"
        assert location_dash_suffix(ctx, MatchRules()).value == "Nasr City, Cairo, Egypt"

    def test_similar_job_cards_never_supply_location(self):
        html = """<html><body>
          <div><a href="/jobs/careers/Acme-Egypt-123">Acme Egypt</a> <span>Posted 3 days ago</span></div>
          <section class="similar">
            <div><a href="/jobs/careers/Other-Co-9">Other Co</a> - Alexandria, Egypt</div>
          </section>
        </body></html>"""
        ctx = ctx_for(html)
        assert location_near_company(ctx, MatchRules()) is None
        assert location_dash_suffix(ctx, MatchRules()) is None

    def test_metadata_parts_combined_and_deduplicated(self):
        html = """<html><head>
          <meta property="og:locality" content="Cairo">
          <meta property="og:region" content="cairo">
          <meta property="og:country-name" content="Egypt">
        </head><body><span data-qa="job-location">Giza, Egypt</span></body></html>"""
        candidate = HeuristicExtractor().extract_field('location', ctx_for(html))
        assert candidate.value == "Cairo, Egypt"
        assert candidate.source == 'meta'

    def test_metadata_from_itemprop(self):
        html = """<html><body><div itemprop="address">
          <span itemprop="addressLocality">Nasr City</span>
          <span itemprop="addressRegion">Cairo</span>
          <span itemprop="addressCountry">Egypt</span>
        </div></body></html>"""
        assert location_from_metadata(ctx_for(html), MatchRules()).value == "Nasr City, Cairo, Egypt"

    def test_page_title_used_when_nothing_earlier_matches(self):
        html = """<html><head><title>Accountant Job in Giza, Egypt - Acme - Apply Now</title></head>
        <body><h1>Accountant</h1></body></html>"""
        candidate = HeuristicExtractor().extract_field('location', ctx_for(html))
        assert candidate.value == "Giza, Egypt"
        assert candidate.source == 'meta'

    @pytest.mark.parametrize("title, expected", [
        ("Specialist in Marketing Job in Cairo - Acme - Apply Now", "Cairo"),
        ("Full-Stack Developer Job in 6th of October, Giza - Acme - Apply Now", "6th of October, Giza"),
        ("Accountant Job in Cairo - Apply Now", "Cairo"),
        ("Accountant - Acme", None),
    ])
    def test_page_title_takes_last_in_before_dash(self, title, expected):
        candidate = location_from_page_title(ctx_for(f"<html><head><title>{title}</title></head></html>"), MatchRules())
        assert (candidate.value if candidate else None) == expected

    def test_text_node_fallback(self):
        html = """<html><body>
          <h1>Accountant, Senior</h1>
          <p>Posted 2 days ago</p>
          <span>Heliopolis, Cairo</span>
        </body></html>"""
        candidate = HeuristicExtractor().extract_field('location', ctx_for(html))
        assert candidate.value == "Heliopolis, Cairo"
        assert candidate.source == 'heuristic'
