"""Parser for Go proposal review meeting minutes.

A minutes comment looks like::

    **2019-08-20** / @rsc, @griesemer

    **Accepted**
    - #25530 **cmd/go: secure releases with transparency log**
      - **no final comments; accepted 🎉**

The parser finds the meeting date, then walks the lines keeping track of the
section heading in effect and the proposal entry currently open.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .classifier import classify_line, detect_status_in_line, extract_meeting_date
from .consts import COMMENT_PREVIEW_LENGTH
from .enums import LineKind, Status
from .models import ProposalChange
from .utils import truncate

logger = logging.getLogger(__name__)


@dataclass
class OpenProposal:
    issue_number: int
    title: str
    status: Status | None


@dataclass
class ParserState:
    """Mutable scan state for a single ``MinutesParser.parse`` call."""

    meeting_date: datetime
    section_status: Status | None = None
    current: OpenProposal | None = None
    changes: list[ProposalChange] = field(default_factory=list)

    def close_current(self) -> None:
        """Emit the open proposal if it carries a status, then forget it."""
        current = self.current
        self.current = None
        if current is None or current.status is None:
            return
        self.changes.append(
            ProposalChange(
                issue_number=current.issue_number,
                title=current.title,
                current_status=current.status,
                changed_at=self.meeting_date,
            )
        )


def parse_meeting_date(value: str) -> datetime:
    """Parse ``YYYY-MM-DD`` into midnight UTC.

    Raises:
        ValueError: If the value is not a calendar date
    """
    return datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=timezone.utc)


def find_meeting_date(lines: list[str]) -> datetime | None:
    """Return the date of the first line that holds a valid meeting date header."""
    for line in lines:
        date_str = extract_meeting_date(line)
        if date_str is None:
            continue
        try:
            return parse_meeting_date(date_str)
        except ValueError as e:
            logger.warning(
                f"Invalid date in minutes header "
                f"{truncate(line, COMMENT_PREVIEW_LENGTH)!r}: {e}"
            )
    return None


class MinutesParser:
    """Extract proposal status mentions from one minutes comment."""

    def parse(self, body: str, commented_at: datetime | None = None) -> list[ProposalChange]:
        """Parse a minutes comment.

        Args:
            body: Markdown body of the comment
            commented_at: Comment timestamp, kept for logging only; changes are
                dated by the meeting date found in the body

        Returns:
            One change per proposal whose status is stated in the comment, in
            order of appearance. ``previous_status`` is left unset. An empty
            list when the comment is not a minutes record.
        """
        if not body:
            return []

        lines = body.splitlines()

        meeting_date = find_meeting_date(lines)
        if meeting_date is None:
            logger.warning(
                f"No valid date header found in comment"
                f"{' posted at ' + commented_at.isoformat() if commented_at else ''}: "
                f"{truncate(body, COMMENT_PREVIEW_LENGTH)!r}"
            )
            return []

        state = ParserState(meeting_date=meeting_date)
        for line in lines:
            self._step(state, line)
        state.close_current()

        logger.debug(
            f"Parsed {len(state.changes)} status mention(s) from minutes of "
            f"{meeting_date.date().isoformat()}"
        )
        return state.changes

    @staticmethod
    def _step(state: ParserState, line: str) -> None:
        classified = classify_line(line)

        if classified.kind is LineKind.SECTION_HEADER:
            state.close_current()
            state.section_status = classified.status
            return

        if classified.kind is LineKind.PROPOSAL:
            state.close_current()
            state.current = OpenProposal(
                issue_number=classified.issue_number,
                title=classified.title,
                status=state.section_status,
            )
            return

        # Inline indicators only apply when no section heading governs the entry.
        if (
            classified.kind is LineKind.INDENTED
            and state.current is not None
            and state.section_status is None
        ):
            status = detect_status_in_line(line)
            if status is not None:
                state.current.status = status
