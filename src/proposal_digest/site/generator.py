"""Static HTML site generation for the weekly digests."""

import logging
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape
from markdown_it import MarkdownIt
from markupsafe import Markup
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.front_matter import front_matter_plugin

from ..config import SiteConfig
from ..consts import (
    FEED_FILENAME,
    MINUTES_ISSUE_NUMBER,
    STATUS_LABELS,
    TEMPLATE_HOME,
    TEMPLATE_PROPOSAL,
    TEMPLATE_WEEKLY,
)
from ..content import ProposalContent, WeeklyContent
from ..errors import ContentException
from .rss import render_feed

logger = logging.getLogger(__name__)

mdit = (
    MarkdownIt("commonmark", {"breaks": True, "html": True})
    .use(front_matter_plugin)
    .use(footnote_plugin)
)


def render_summary(summary: str | None) -> Markup:
    if not summary:
        return Markup("")
    return Markup(mdit.render(summary))


def status_label(status) -> str:
    if status is None:
        return "New"
    value = getattr(status, "value", status)
    return STATUS_LABELS.get(value, value)


class SiteGenerator:
    """Render ``index.html``, one page per week and per proposal, and ``feed.xml``.

    Output layout::

        <dist>/index.html
        <dist>/YYYY/wWW/index.html
        <dist>/YYYY/wWW/N.html
        <dist>/feed.xml
    """

    def __init__(self, dist_dir: Path | str, site: SiteConfig):
        self.dist_dir = Path(dist_dir)
        self.site = site

        template_dir = Path(__file__).parent.parent / "templates"
        self.jinja_env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html.j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.jinja_env.filters["markdown"] = render_summary
        self.jinja_env.filters["status_label"] = status_label
        self.jinja_env.globals.update(
            site=site,
            feed_url=f"/{FEED_FILENAME}",
            minutes_url=f"{site.issue_url_base}/{MINUTES_ISSUE_NUMBER}",
        )

    def generate(self, weeks: list[WeeklyContent]) -> None:
        """Render the whole site.

        Raises:
            ContentException: If a page cannot be rendered or written
        """
        weeks = sorted(weeks, key=lambda w: (w.year, w.week), reverse=True)
        self.dist_dir.mkdir(parents=True, exist_ok=True)

        self._render(self.dist_dir / "index.html", TEMPLATE_HOME, weeks=weeks)

        pages = 1
        for week in weeks:
            week_dir = self.dist_dir / str(week.year) / f"w{week.week:02d}"
            self._render(week_dir / "index.html", TEMPLATE_WEEKLY, week=week)
            pages += 1
            for proposal in week.proposals:
                self._render_proposal(week_dir, week, proposal)
                pages += 1

        self._write_feed(weeks)
        logger.info(f"Generated {pages} page(s) and {FEED_FILENAME} in {self.dist_dir}")

    def _render_proposal(self, week_dir: Path, week: WeeklyContent, proposal: ProposalContent):
        self._render(
            week_dir / f"{proposal.issue_number}.html",
            TEMPLATE_PROPOSAL,
            week=week,
            proposal=proposal,
        )

    def _render(self, path: Path, template_name: str, **context) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with path.open("w", encoding="utf-8") as f:
                template = self.jinja_env.get_template(template_name)
                for chunk in template.generate(**context):
                    f.write(chunk)
        except (OSError, TemplateError) as e:
            path.unlink(missing_ok=True)
            raise ContentException(f"Failed to render {path}: {e}") from e

    def _write_feed(self, weeks: list[WeeklyContent]) -> None:
        path = self.dist_dir / FEED_FILENAME
        try:
            path.write_bytes(render_feed(weeks, self.site))
        except (OSError, ValueError) as e:
            path.unlink(missing_ok=True)
            raise ContentException(f"Failed to write {path}: {e}") from e
