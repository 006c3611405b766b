"""Static site and RSS feed unit tests"""

import xml.etree.ElementTree as ET
from datetime import datetime, timezone

import pytest
from jinja2 import TemplateRuntimeError

from proposal_digest.config import SiteConfig
from proposal_digest.content import Link, ProposalContent, WeeklyContent
from proposal_digest.enums import Status
from proposal_digest.errors import ContentException
from proposal_digest.site import SiteGenerator, build_feed, render_feed
from proposal_digest.site.generator import status_label
from proposal_digest.site.rss import build_description


def proposal(number, status, day, previous=None, summary="", title=None):
    return ProposalContent(
        issue_number=number,
        title=title or f"proposal {number}",
        current_status=status,
        previous_status=previous,
        changed_at=datetime(2024, 1, day, tzinfo=timezone.utc),
        comment_url=f"https://github.com/golang/go/issues/33502#issuecomment-{number}",
        summary=summary,
        links=[Link("proposal issue", f"https://github.com/golang/go/issues/{number}")],
    )


@pytest.fixture
def site():
    return SiteConfig(url="https://digest.example.com")


@pytest.fixture
def weeks():
    return [
        WeeklyContent(
            year=2024,
            week=1,
            proposals=[proposal(1, Status.HOLD, 3)],
        ),
        WeeklyContent(
            year=2024,
            week=2,
            proposals=[
                proposal(
                    61405,
                    Status.ACCEPTED,
                    10,
                    previous=Status.LIKELY_ACCEPT,
                    summary="Adds **range-over-func** to the language.",
                    title="spec: add <range-over-func>",
                ),
                proposal(62113, Status.LIKELY_DECLINE, 11),
            ],
        ),
    ]


def feed_items(data: bytes):
    return ET.fromstring(data).find("channel").findall("item")


# ========== Test Cases ==========


class TestSiteGenerator:
    def test_output_layout(self, tmp_path, site, weeks):
        dist = tmp_path / "dist"

        SiteGenerator(dist, site).generate(weeks)

        assert (dist / "index.html").is_file()
        assert (dist / "feed.xml").is_file()
        assert (dist / "2024" / "w01" / "index.html").is_file()
        assert (dist / "2024" / "w01" / "1.html").is_file()
        assert (dist / "2024" / "w02" / "index.html").is_file()
        assert (dist / "2024" / "w02" / "61405.html").is_file()
        assert (dist / "2024" / "w02" / "62113.html").is_file()

    def test_home_lists_weeks_newest_first(self, tmp_path, site, weeks):
        SiteGenerator(tmp_path, site).generate(weeks)

        html = (tmp_path / "index.html").read_text(encoding="utf-8")
        assert html.index("/2024/w02/") < html.index("/2024/w01/")
        assert 'href="/feed.xml"' in html

    def test_weekly_page(self, tmp_path, site, weeks):
        SiteGenerator(tmp_path, site).generate(weeks)

        html = (tmp_path / "2024" / "w02" / "index.html").read_text(encoding="utf-8")
        assert "#61405: spec: add &lt;range-over-func&gt;" in html
        assert "Likely Accept → Accepted" in html
        assert "<strong>range-over-func</strong>" in html

    def test_proposal_page(self, tmp_path, site, weeks):
        SiteGenerator(tmp_path, site).generate(weeks)

        html = (tmp_path / "2024" / "w02" / "62113.html").read_text(encoding="utf-8")
        assert "New → Likely Decline" in html
        assert 'href="https://github.com/golang/go/issues/62113"' in html
        assert 'href="https://github.com/golang/go/issues/33502#issuecomment-62113"' in html

    def test_no_weeks(self, tmp_path, site):
        SiteGenerator(tmp_path, site).generate([])

        assert "No digests yet." in (tmp_path / "index.html").read_text(encoding="utf-8")
        assert feed_items((tmp_path / "feed.xml").read_bytes()) == []

    def test_failed_render_removes_partial_file(self, tmp_path, site, weeks):
        generator = SiteGenerator(tmp_path, site)

        def boom(_):
            raise TemplateRuntimeError("boom")

        generator.jinja_env.filters["markdown"] = boom

        with pytest.raises(ContentException, match="boom"):
            generator.generate(weeks)

        assert (tmp_path / "index.html").exists()
        assert not (tmp_path / "2024" / "w02" / "index.html").exists()


@pytest.mark.parametrize(
    "status,expected",
    [(None, "New"), (Status.LIKELY_ACCEPT, "Likely Accept"), (Status.HOLD, "Hold")],
)
def test_status_label(status, expected):
    assert status_label(status) == expected


class TestFeed:
    def test_one_item_per_week_newest_first(self, site, weeks):
        items = feed_items(render_feed(weeks, site))

        assert [i.findtext("link") for i in items] == [
            "https://digest.example.com/2024/w02/",
            "https://digest.example.com/2024/w01/",
        ]
        assert items[0].findtext("guid") == "https://digest.example.com/2024/w02"
        assert items[0].findtext("pubDate").startswith("Thu, 11 Jan 2024")

    def test_item_limit(self, weeks):
        site = SiteConfig(url="https://digest.example.com", max_feed_items=1)

        assert len(feed_items(render_feed(weeks, site))) == 1

    def test_description(self, weeks):
        description = build_description(weeks[1])

        assert "<strong>#61405</strong>: spec: add &lt;range-over-func&gt;" in description
        assert "(<code>likely_accept</code> → <code>accepted</code>)" in description
        assert "(<code></code> → <code>likely_decline</code>)" in description
        assert "Adds **range-over-func** to the language." in description

    def test_description_truncates_summary(self):
        week = WeeklyContent(2024, 2, [proposal(1, Status.HOLD, 10, summary="x" * 300)])

        description = build_description(week)

        assert "x" * 197 + "..." in description
        assert "x" * 198 not in description

    def test_empty_week_description(self):
        assert "No updates this week." in build_description(WeeklyContent(2024, 2))

    def test_author_only_with_email(self, weeks):
        without = build_feed(weeks, SiteConfig()).rss_str()
        with_email = build_feed(
            weeks, SiteConfig(author_name="Digest", author_email="digest@example.com")
        ).rss_str()

        assert b"digest@example.com" not in without
        assert b"<author>" not in without
        assert b"digest@example.com" in with_email
