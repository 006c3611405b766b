"""Data models shared by the parser, reconciler and content layers."""

from dataclasses import dataclass, field
from datetime import datetime

from .enums import Status
from .utils import format_rfc3339, parse_rfc3339


@dataclass(frozen=True)
class ProposalChange:
    """A status transition of one proposal stated in one meeting comment.

    ``changed_at`` is the meeting date at midnight UTC, not the time the
    comment was posted. ``previous_status`` is None when the proposal had no
    known status before.
    """

    issue_number: int
    title: str
    current_status: Status
    changed_at: datetime
    previous_status: Status | None = None
    comment_url: str = ""
    related_issues: tuple[int, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "issue_number": self.issue_number,
            "title": self.title,
            "previous_status": self.previous_status.value if self.previous_status else "",
            "current_status": self.current_status.value,
            "changed_at": format_rfc3339(self.changed_at),
            "comment_url": self.comment_url,
            "related_issues": list(self.related_issues),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProposalChange":
        """Build a change from its ``changes.json`` representation.

        Raises:
            KeyError: If a required key is missing
            ValueError: If a status or timestamp is invalid
        """
        current = Status.parse(data["current_status"])
        if current is None:
            raise ValueError("current_status cannot be empty")
        return cls(
            issue_number=int(data["issue_number"]),
            title=data["title"],
            previous_status=Status.parse(data.get("previous_status")),
            current_status=current,
            changed_at=parse_rfc3339(data["changed_at"]),
            comment_url=data.get("comment_url") or "",
            related_issues=tuple(int(n) for n in data.get("related_issues") or ()),
        )


@dataclass(frozen=True)
class MeetingComment:
    """A comment on the minutes tracking issue as returned by the GitHub API."""

    id: int
    body: str
    created_at: datetime
    updated_at: datetime | None = None
    html_url: str = ""

    @property
    def effective_time(self) -> datetime:
        """The time GitHub's ``since`` filter applies to: last update, else creation."""
        return self.updated_at or self.created_at

    @property
    def sort_key(self) -> tuple[datetime, int]:
        return self.effective_time, self.id

    @classmethod
    def from_api(cls, data: dict) -> "MeetingComment":
        updated_at = data.get("updated_at")
        return cls(
            id=int(data["id"]),
            body=data.get("body") or "",
            created_at=parse_rfc3339(data["created_at"]),
            updated_at=parse_rfc3339(updated_at) if updated_at else None,
            html_url=data.get("html_url") or "",
        )
