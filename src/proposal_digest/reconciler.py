"""Reconcile parsed minutes against the previous meeting's statuses.

The minutes do not say whether a status line is a change or a restatement,
so changes are computed by diffing each comment against the statuses known
before it: first the comment preceding the batch, then each comment of the
batch in chronological order.
"""

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Mapping, Sequence

from .enums import Status
from .models import MeetingComment, ProposalChange

logger = logging.getLogger(__name__)

StatusMap = dict[int, Status]


@dataclass(frozen=True)
class ParsedComment:
    comment: MeetingComment
    changes: Sequence[ProposalChange]


@dataclass(frozen=True)
class ReconcileResult:
    changes: list[ProposalChange]
    statuses: StatusMap
    latest_comment: MeetingComment | None


def sort_comments(comments: Iterable[MeetingComment]) -> list[MeetingComment]:
    """Order comments by effective time, then by ID.

    The reconciler's running status map assumes this order; feeding comments
    in any other order produces wrong previous statuses without any error.
    """
    return sorted(comments, key=lambda c: c.sort_key)


def baseline_from_changes(changes: Iterable[ProposalChange]) -> StatusMap:
    """Build a status map from one comment's parse result (later entries win)."""
    return {c.issue_number: c.current_status for c in changes}


def reconcile(
    baseline: Mapping[int, Status],
    parsed_comments: Iterable[ParsedComment],
) -> ReconcileResult:
    """Set previous statuses and drop restatements.

    Args:
        baseline: Status of each proposal as of the comment immediately
            preceding the batch
        parsed_comments: Parse results of the new comments, oldest first

    Returns:
        The real transitions, the final status map (a new dict; ``baseline`` is
        left untouched) and the latest comment of the batch by
        ``(effective_time, id)``.
    """
    statuses: StatusMap = dict(baseline)
    kept: list[ProposalChange] = []
    latest: MeetingComment | None = None

    for parsed in parsed_comments:
        comment = parsed.comment
        for change in parsed.changes:
            previous = statuses.get(change.issue_number)
            if change.current_status == previous:
                logger.debug(
                    f"Skipping unchanged proposal #{change.issue_number} "
                    f"({change.current_status.value})"
                )
                continue

            kept.append(
                replace(
                    change,
                    previous_status=previous,
                    comment_url=comment.html_url,
                )
            )
            statuses[change.issue_number] = change.current_status

        if latest is None or comment.sort_key > latest.sort_key:
            latest = comment

    return ReconcileResult(changes=kept, statuses=statuses, latest_comment=latest)
