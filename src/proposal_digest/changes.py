"""Ordering, grouping and serialization of reconciled proposal changes."""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable

from .errors import ContentException
from .models import ProposalChange
from .utils import atomic_write_text, get_now, iso_week

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangesFile:
    week: str
    changes: list[ProposalChange]

    def to_dict(self) -> dict:
        return {"week": self.week, "changes": [c.to_dict() for c in self.changes]}


def sort_changes(changes: Iterable[ProposalChange]) -> list[ProposalChange]:
    """Sort by ``changed_at`` ascending; equal dates keep their input order."""
    return sorted(changes, key=lambda c: c.changed_at)


def iso_week_key(dt: datetime) -> str:
    """Format the ISO-8601 week of ``dt``.

    Examples:
        >>> from datetime import timezone
        >>> iso_week_key(datetime(2019, 8, 20, tzinfo=timezone.utc))
        '2019-W34'
    """
    year, week = iso_week(dt)
    return f"{year}-W{week:02d}"


def group_by_week(changes: Iterable[ProposalChange]) -> dict[str, list[ProposalChange]]:
    """Group changes by ISO week key, keys in chronological order."""
    grouped: dict[str, list[ProposalChange]] = {}
    for change in changes:
        grouped.setdefault(iso_week_key(change.changed_at), []).append(change)
    return dict(sorted(grouped.items()))


def deduplicate_by_issue(changes: Iterable[ProposalChange]) -> list[ProposalChange]:
    """Keep only the latest change per issue.

    Latest means the greatest ``changed_at``; on a tie the record that comes
    later in the input wins. The result is ordered by date, then issue number.
    """
    latest: dict[int, ProposalChange] = {}
    for change in changes:
        existing = latest.get(change.issue_number)
        if existing is None or change.changed_at >= existing.changed_at:
            latest[change.issue_number] = change
    return sorted(latest.values(), key=lambda c: (c.changed_at, c.issue_number))


def build_changes_output(
    changes: Iterable[ProposalChange], now: datetime | None = None
) -> ChangesFile:
    """Build the ``changes.json`` payload.

    The week is taken from the latest change, or from ``now`` when there are
    no changes.
    """
    ordered = sort_changes(changes)
    reference = ordered[-1].changed_at if ordered else (now or get_now())
    return ChangesFile(week=iso_week_key(reference), changes=ordered)


def write_changes_json(
    changes: Iterable[ProposalChange],
    path: Path | str,
    now: datetime | None = None,
) -> ChangesFile:
    """Atomically write the changes file.

    Raises:
        ContentException: If the file cannot be written
    """
    output = build_changes_output(changes, now=now)
    try:
        text = json.dumps(output.to_dict(), ensure_ascii=False, indent=2)
        atomic_write_text(path, text + "\n")
    except (OSError, TypeError, ValueError) as e:
        raise ContentException(f"Failed to write changes file {path}: {e}") from e

    logger.info(f"Wrote {len(output.changes)} change(s) for {output.week} to {path}")
    return output


def load_changes_json(path: Path | str) -> ChangesFile:
    """Read a changes file written by ``write_changes_json``.

    Raises:
        ContentException: If the file is missing or malformed
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ContentException(f"Failed to read changes file {path}: {e}") from e

    try:
        changes = [ProposalChange.from_dict(item) for item in data.get("changes") or []]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ContentException(f"Invalid changes file {path}: {e}") from e

    return ChangesFile(week=data.get("week") or "", changes=changes)
