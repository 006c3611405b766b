"""RSS 2.0 feed of the weekly digests."""

import html
import logging

from feedgen.feed import FeedGenerator

from ..config import SiteConfig
from ..consts import FEED_SUMMARY_LENGTH
from ..content import WeeklyContent
from ..utils import get_now, truncate_with_ellipsis

logger = logging.getLogger(__name__)


def week_url(site_url: str, week: WeeklyContent) -> str:
    return f"{site_url}/{week.year}/w{week.week:02d}/"


def build_description(week: WeeklyContent) -> str:
    """HTML listing of the proposals whose status changed during ``week``."""
    parts = [f"<p>Go proposal updates for {week.year} week {week.week}</p>"]
    if not week.proposals:
        parts.append("<p>No updates this week.</p>")
        return "".join(parts)

    parts.append("<ul>")
    for p in week.proposals:
        previous = p.previous_status.value if p.previous_status else ""
        parts.append(
            f"<li><strong>#{p.issue_number}</strong>: {html.escape(p.title)}"
            f" (<code>{previous}</code> → <code>{p.current_status.value}</code>)"
        )
        if p.summary:
            summary = truncate_with_ellipsis(p.summary, FEED_SUMMARY_LENGTH)
            parts.append(f"<br/>{html.escape(summary)}")
        parts.append("</li>")
    parts.append("</ul>")
    return "".join(parts)


def build_feed(weeks: list[WeeklyContent], site: SiteConfig) -> FeedGenerator:
    """Build a feed with one item per week, newest ``site.max_feed_items`` weeks."""
    fg = FeedGenerator()
    fg.title(site.title)
    fg.link(href=site.url, rel="alternate")
    fg.description(site.description)
    fg.language(site.language)
    fg.lastBuildDate(get_now())
    if site.author_email:
        fg.author({"name": site.author_name, "email": site.author_email})

    ordered = sorted(weeks, key=lambda w: (w.year, w.week), reverse=True)
    for week in ordered[: site.max_feed_items]:
        link = week_url(site.url, week)

        fe = fg.add_entry(order="append")
        fe.title(f"{week.year} week {week.week} - Go proposal updates")
        fe.link(href=link)
        fe.guid(link.rstrip("/"), permalink=False)
        fe.description(build_description(week))

        pub_date = week.updated_at
        if pub_date is not None:
            fe.pubDate(pub_date)
        if site.author_email:
            fe.author({"name": site.author_name, "email": site.author_email})

    return fg


def render_feed(weeks: list[WeeklyContent], site: SiteConfig) -> bytes:
    return build_feed(weeks, site).rss_str(pretty=True)
