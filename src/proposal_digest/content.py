"""Weekly markdown content files under ``content/YYYY/Www/``."""

import json
import logging
import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Iterable

from .consts import (
    CONTENT_DIR_DEFAULT,
    ISSUE_URL_BASE,
    LINKS_SECTION_HEADING,
    SUMMARIES_DIR_DEFAULT,
    SUMMARY_MAX_LENGTH,
    SUMMARY_MIN_LENGTH,
    SUMMARY_SECTION_HEADING,
)
from .enums import Status
from .errors import ContentException
from .models import ProposalChange
from .utils import atomic_write_text, format_rfc3339, get_now, iso_week, parse_rfc3339

logger = logging.getLogger(__name__)

PROPOSAL_LINK_TITLE = "proposal issue"
RELATED_LINK_TITLE = "related discussion"

_YEAR_DIR_RE = re.compile(r"^(\d{4})$")
_WEEK_DIR_RE = re.compile(r"^W(\d{2})$")
_PROPOSAL_FILE_RE = re.compile(r"^proposal-(\d+)\.md$")
_SUMMARY_FILE_RE = re.compile(r"^(\d+)\.md$")

_FRONT_MATTER_FIELDS = {
    "issue_number": re.compile(r"^issue_number:\s*(\d+)\s*$"),
    "title": re.compile(r"^title:\s*(\".*\")\s*$"),
    "previous_status": re.compile(r"^previous_status:\s*(\w*)\s*$"),
    "current_status": re.compile(r"^current_status:\s*(\w+)\s*$"),
    "changed_at": re.compile(r"^changed_at:\s*(\S+)\s*$"),
    "comment_url": re.compile(r"^comment_url:\s*(\S*)\s*$"),
}
_LINK_TITLE_RE = re.compile(r"^\s*-\s*title:\s*(\".*\")\s*$")
_LINK_URL_RE = re.compile(r"^\s*url:\s*(\S+)\s*$")


@dataclass
class Link:
    title: str
    url: str


@dataclass
class ProposalContent:
    """One proposal entry of a weekly digest."""

    issue_number: int
    title: str
    current_status: Status
    changed_at: datetime
    previous_status: Status | None = None
    comment_url: str = ""
    summary: str = ""
    links: list[Link] = field(default_factory=list)


@dataclass
class WeeklyContent:
    year: int
    week: int
    proposals: list[ProposalContent] = field(default_factory=list)
    created_at: datetime | None = None

    @property
    def key(self) -> str:
        return f"{self.year}-W{self.week:02d}"

    @property
    def updated_at(self) -> datetime | None:
        """The latest ``changed_at`` of the week, else the creation time."""
        dates = [p.changed_at for p in self.proposals]
        if self.created_at is not None:
            dates.append(self.created_at)
        return max(dates) if dates else None


def validate_summary_length(summary: str) -> tuple[bool, str]:
    """Check a summary against the recommended length range.

    Returns:
        ``(True, "")`` when valid, else ``(False, reason)``
    """
    length = len(summary)
    if length < SUMMARY_MIN_LENGTH:
        return False, (
            f"summary too short: {length} characters (minimum: {SUMMARY_MIN_LENGTH})"
        )
    if length > SUMMARY_MAX_LENGTH:
        return False, (
            f"summary too long: {length} characters (maximum: {SUMMARY_MAX_LENGTH})"
        )
    return True, ""


def merge_links(existing: Iterable[Link], new: Iterable[Link]) -> list[Link]:
    """Merge two link lists by URL; a new link replaces an existing one's title."""
    by_url: dict[str, Link] = {}
    for link in existing:
        by_url[link.url] = link
    for link in new:
        by_url[link.url] = link
    return list(by_url.values())


def fallback_summary(p: ProposalContent) -> str:
    previous = p.previous_status.value if p.previous_status else "none"
    return (
        f"Proposal #{p.issue_number} “{p.title}” status changed "
        f"from {previous} to {p.current_status.value}."
    )


def strip_related_links_section(text: str) -> str:
    """Remove a ``## Related links`` section up to the next ``## `` heading."""
    kept = []
    in_links = False
    for line in text.splitlines():
        if line.startswith(LINKS_SECTION_HEADING):
            in_links = True
            continue
        if in_links and line.startswith("## "):
            in_links = False
        if not in_links:
            kept.append(line)
    return "\n".join(kept).strip()


def render_proposal_markdown(p: ProposalContent) -> str:
    lines = [
        "---",
        f"issue_number: {p.issue_number}",
        f"title: {json.dumps(p.title, ensure_ascii=False)}",
        f"previous_status: {p.previous_status.value if p.previous_status else ''}".rstrip(),
        f"current_status: {p.current_status.value}",
        f"changed_at: {format_rfc3339(p.changed_at)}",
        f"comment_url: {p.comment_url}".rstrip(),
        "related_issues:",
    ]
    for link in p.links:
        lines.append(f"  - title: {json.dumps(link.title, ensure_ascii=False)}")
        lines.append(f"    url: {link.url}")
    lines += ["---", "", SUMMARY_SECTION_HEADING, ""]
    if p.summary:
        lines += [p.summary, ""]
    lines += [LINKS_SECTION_HEADING, ""]
    for link in p.links:
        lines.append(f"- [{link.title}]({link.url})")
    return "\n".join(lines) + "\n"


def parse_proposal_markdown(text: str) -> ProposalContent:
    """Parse a file written by ``render_proposal_markdown``.

    Raises:
        ValueError: If a required field is missing or a value is invalid
    """
    values: dict[str, str] = {}
    links: list[Link] = []
    link_title: str | None = None
    body: list[str] = []
    section = "before"

    for line in text.splitlines():
        if line == "---" and section != "body":
            section = "front" if section == "before" else "body"
            continue

        if section == "front":
            for name, regex in _FRONT_MATTER_FIELDS.items():
                m = regex.match(line)
                if m:
                    values[name] = m.group(1)
                    break
            else:
                if m := _LINK_TITLE_RE.match(line):
                    link_title = json.loads(m.group(1))
                elif m := _LINK_URL_RE.match(line):
                    if link_title is None:
                        raise ValueError(f"link URL without a preceding title: {m.group(1)}")
                    links.append(Link(title=link_title, url=m.group(1)))
                    link_title = None
        elif section == "body":
            if line.startswith(SUMMARY_SECTION_HEADING):
                continue
            if line.startswith(LINKS_SECTION_HEADING):
                break
            body.append(line)

    for required in ("issue_number", "title", "current_status", "changed_at"):
        if not values.get(required):
            raise ValueError(f"missing required field: {required}")

    current = Status.parse(values["current_status"])
    return ProposalContent(
        issue_number=int(values["issue_number"]),
        title=json.loads(values["title"]),
        previous_status=Status.parse(values.get("previous_status")),
        current_status=current,
        changed_at=parse_rfc3339(values["changed_at"]),
        comment_url=values.get("comment_url", ""),
        summary="\n".join(body).strip(),
        links=links,
    )


class ContentManager:
    """Create, merge and read the weekly digest content tree.

    Each week lives in ``<base_dir>/YYYY/Www/`` with one ``proposal-N.md``
    per proposal. Summaries are read from ``<summaries_dir>/N.md``.
    """

    def __init__(
        self,
        base_dir: Path | str = CONTENT_DIR_DEFAULT,
        summaries_dir: Path | str = SUMMARIES_DIR_DEFAULT,
        issue_url_base: str = ISSUE_URL_BASE,
    ):
        self.base_dir = Path(base_dir)
        self.summaries_dir = Path(summaries_dir)
        self.issue_url_base = issue_url_base.rstrip("/")
        self._summary_link_re = re.compile(
            r"\[([^\]]+)\]\(("
            + re.escape(self.issue_url_base)
            + r"/\d+(?:#issuecomment-\d+)?)\)"
        )

    def issue_url(self, number: int) -> str:
        return f"{self.issue_url_base}/{number}"

    def week_dir(self, year: int, week: int) -> Path:
        return self.base_dir / str(year) / f"W{week:02d}"

    def prepare_content(self, changes: list[ProposalChange]) -> WeeklyContent:
        """Build a week of content from changes; the week comes from the first change."""
        if not changes:
            return WeeklyContent(year=0, week=0)

        year, week = iso_week(changes[0].changed_at)
        proposals = []
        for change in changes:
            links = [Link(PROPOSAL_LINK_TITLE, self.issue_url(change.issue_number))]
            links += [
                Link(RELATED_LINK_TITLE, self.issue_url(n)) for n in change.related_issues
            ]
            proposals.append(
                ProposalContent(
                    issue_number=change.issue_number,
                    title=change.title,
                    previous_status=change.previous_status,
                    current_status=change.current_status,
                    changed_at=change.changed_at,
                    comment_url=change.comment_url,
                    links=links,
                )
            )
        return WeeklyContent(year=year, week=week, proposals=proposals, created_at=get_now())

    def write_content(self, content: WeeklyContent | None) -> None:
        """Write one file per proposal; empty content writes nothing.

        Raises:
            ContentException: If a file cannot be written
        """
        if content is None or not content.proposals:
            return

        dir_path = self.week_dir(content.year, content.week)
        for p in content.proposals:
            path = dir_path / f"proposal-{p.issue_number}.md"
            try:
                atomic_write_text(path, render_proposal_markdown(p))
            except OSError as e:
                raise ContentException(f"Failed to write {path}: {e}") from e

        logger.info(f"Wrote {len(content.proposals)} proposal(s) to {dir_path}")

    def read_existing_content(self, year: int, week: int) -> WeeklyContent | None:
        """Read a stored week, or None when it has no proposal files.

        Raises:
            ContentException: If a proposal file cannot be read or parsed
        """
        dir_path = self.week_dir(year, week)
        if not dir_path.is_dir():
            return None

        proposals = []
        for path in sorted(dir_path.iterdir()):
            if not path.is_file() or not _PROPOSAL_FILE_RE.match(path.name):
                continue
            try:
                proposals.append(parse_proposal_markdown(path.read_text(encoding="utf-8")))
            except (OSError, ValueError) as e:
                raise ContentException(f"Failed to parse proposal file {path}: {e}") from e

        if not proposals:
            return None

        proposals.sort(key=lambda p: (p.changed_at, p.issue_number))
        return WeeklyContent(year=year, week=week, proposals=proposals)

    def merge_content(
        self, existing: WeeklyContent | None, new: WeeklyContent | None
    ) -> WeeklyContent | None:
        """Merge a new week into the stored one.

        A proposal present in both keeps its stored ``previous_status`` and,
        when the new one has none, its stored summary. Links are merged by URL.
        """
        if new is None:
            return existing
        if existing is None:
            return new

        merged = {p.issue_number: p for p in existing.proposals}
        for p in new.proposals:
            old = merged.get(p.issue_number)
            if old is None:
                merged[p.issue_number] = p
                continue
            merged[p.issue_number] = replace(
                p,
                previous_status=old.previous_status,
                summary=p.summary or old.summary,
                links=merge_links(old.links, p.links),
            )

        proposals = sorted(merged.values(), key=lambda p: (p.changed_at, p.issue_number))
        return WeeklyContent(
            year=new.year,
            week=new.week,
            proposals=proposals,
            created_at=existing.created_at or new.created_at,
        )

    def write_content_with_merge(self, content: WeeklyContent | None) -> None:
        if content is None or not content.proposals:
            return
        existing = self.read_existing_content(content.year, content.week)
        if existing is not None:
            logger.info(
                f"Merging {len(content.proposals)} proposal(s) into existing {content.key} "
                f"({len(existing.proposals)} proposal(s))"
            )
        self.write_content(self.merge_content(existing, content))

    def read_summaries(self) -> dict[int, str]:
        """Read ``N.md`` summary files keyed by issue number.

        Raises:
            ContentException: If a summary file cannot be read
        """
        summaries: dict[int, str] = {}
        if not self.summaries_dir.is_dir():
            logger.info(f"No summaries directory at {self.summaries_dir}")
            return summaries

        for path in sorted(self.summaries_dir.iterdir()):
            m = _SUMMARY_FILE_RE.match(path.name)
            if not m or not path.is_file():
                continue
            try:
                summaries[int(m.group(1))] = path.read_text(encoding="utf-8").strip()
            except OSError as e:
                raise ContentException(f"Failed to read summary file {path}: {e}") from e

        logger.info(f"Read {len(summaries)} summary file(s) from {self.summaries_dir}")
        return summaries

    def integrate_summaries(self, content: WeeklyContent | None, summaries: dict[int, str]) -> None:
        """Attach summaries to proposals, moving their issue links into ``links``."""
        if content is None:
            return

        for p in content.proposals:
            summary = summaries.get(p.issue_number)
            if not summary:
                continue
            extracted = [
                Link(title=m.group(1), url=m.group(2))
                for m in self._summary_link_re.finditer(summary)
            ]
            p.links = merge_links(p.links, extracted)
            p.summary = strip_related_links_section(summary)

            valid, reason = validate_summary_length(p.summary)
            if not valid:
                logger.warning(f"Summary for #{p.issue_number}: {reason}")

    def apply_fallback(self, content: WeeklyContent | None) -> None:
        if content is None:
            return
        for p in content.proposals:
            if not p.summary:
                p.summary = fallback_summary(p)

    def list_all_weeks(self) -> list[WeeklyContent]:
        """Read every stored week, newest first.

        Raises:
            ContentException: If a proposal file cannot be read or parsed
        """
        if not self.base_dir.is_dir():
            return []

        weeks = []
        for year_dir in self.base_dir.iterdir():
            year_match = _YEAR_DIR_RE.match(year_dir.name)
            if not year_dir.is_dir() or not year_match:
                continue
            for week_dir in year_dir.iterdir():
                week_match = _WEEK_DIR_RE.match(week_dir.name)
                if not week_dir.is_dir() or not week_match:
                    continue
                content = self.read_existing_content(
                    int(year_match.group(1)), int(week_match.group(1))
                )
                if content is not None:
                    weeks.append(content)

        weeks.sort(key=lambda w: (w.year, w.week), reverse=True)
        return weeks
