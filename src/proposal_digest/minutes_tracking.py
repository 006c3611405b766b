import logging
from dataclasses import dataclass
from datetime import datetime

from .errors import GitHubException
from .github_client import CommentClient
from .minutes import MinutesParser
from .models import MeetingComment, ProposalChange
from .reconciler import (
    ParsedComment,
    StatusMap,
    baseline_from_changes,
    reconcile,
    sort_comments,
)
from .state import ProcessingState, StateManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchResult:
    changes: list[ProposalChange]
    latest_comment: MeetingComment | None
    processed_comments: int

    @property
    def has_changes(self) -> bool:
        return bool(self.changes)


def filter_new_comments(
    comments: list[MeetingComment], state: ProcessingState
) -> list[MeetingComment]:
    """Drop comments already covered by the stored pointer.

    GitHub's ``since`` filter works on ``updated_at``, so a comment edited
    after the last run comes back even if it was created long before.
    """
    if state.last_processed_at is None:
        return list(comments)

    last_id = state.last_comment_id_int
    fresh: list[MeetingComment] = []
    for c in comments:
        t = c.effective_time
        if t < state.last_processed_at:
            continue
        if t == state.last_processed_at and c.id <= last_id:
            continue
        fresh.append(c)
    return fresh


class MinutesTracker:
    """Turn new minutes comments into reconciled proposal changes.

    ``fetch_changes`` never touches the state file; call ``commit`` once the
    changes have been written so a failed run is retried from the same point.
    """

    def __init__(
        self,
        client: CommentClient,
        state_manager: StateManager,
        parser: MinutesParser | None = None,
    ):
        self.client = client
        self.state_manager = state_manager
        self.parser = parser or MinutesParser()

    def fetch_changes(self, now: datetime | None = None) -> FetchResult:
        state = self.state_manager.load()

        if state.is_fresh:
            logger.info("Fresh state detected, fetching only the latest comment")
            latest = self.client.fetch_latest_comment(now=now)
            new_comments = [latest] if latest else []
        else:
            logger.info(
                f"Fetching comments since {state.last_processed_at} "
                f"(last comment id: {state.last_comment_id or 'none'})"
            )
            comments = self.client.list_comments(since=state.last_processed_at)
            new_comments = filter_new_comments(comments, state)

        logger.info(f"Found {len(new_comments)} new comment(s)")
        if not new_comments:
            return FetchResult(changes=[], latest_comment=None, processed_comments=0)

        new_comments = sort_comments(new_comments)
        baseline = self._load_baseline(new_comments[0], now=now)

        parsed = [
            ParsedComment(comment=c, changes=changes)
            for c, changes in self._parse_all(new_comments)
        ]
        result = reconcile(baseline, parsed)

        logger.info(f"Extracted {len(result.changes)} proposal change(s)")
        return FetchResult(
            changes=result.changes,
            latest_comment=result.latest_comment,
            processed_comments=len(new_comments),
        )

    def commit(self, result: FetchResult) -> None:
        """Move the stored pointer to the latest processed comment."""
        latest = result.latest_comment
        if latest is None:
            return
        self.state_manager.update(latest.effective_time, latest.id)

    def _parse_all(self, comments: list[MeetingComment]):
        for comment in comments:
            try:
                changes = self.parser.parse(comment.body, comment.created_at)
            except Exception as e:
                logger.warning(f"Failed to parse comment {comment.id}, skipping: {e}")
                changes = []
            yield comment, changes

    def _load_baseline(self, earliest: MeetingComment, now: datetime | None) -> StatusMap:
        try:
            previous = self.client.fetch_previous_comment(earliest.id, now=now)
        except GitHubException as e:
            logger.warning(f"Failed to fetch previous comment, continuing without baseline: {e}")
            return {}

        if previous is None:
            logger.info(f"No comment found before {earliest.id}, using an empty baseline")
            return {}

        logger.info(
            f"Using comment {previous.id} ({previous.created_at.isoformat()}) as baseline"
        )
        try:
            baseline = baseline_from_changes(
                self.parser.parse(previous.body, previous.created_at)
            )
        except Exception as e:
            logger.warning(f"Failed to parse previous comment {previous.id}: {e}")
            return {}

        logger.info(f"Extracted {len(baseline)} baseline status(es)")
        return baseline
