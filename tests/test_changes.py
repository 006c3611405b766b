"""Change feed and changes.json unit tests"""

import json
from datetime import datetime, timezone

import pytest

from proposal_digest.changes import (
    build_changes_output,
    deduplicate_by_issue,
    group_by_week,
    iso_week_key,
    load_changes_json,
    sort_changes,
    write_changes_json,
)
from proposal_digest.enums import Status
from proposal_digest.errors import ContentException
from proposal_digest.models import MeetingComment, ProposalChange


def change(number, status, day, previous=None, month=1, year=2024):
    return ProposalChange(
        issue_number=number,
        title=f"proposal {number}",
        current_status=status,
        previous_status=previous,
        changed_at=datetime(year, month, day, tzinfo=timezone.utc),
        comment_url=f"https://github.com/golang/go/issues/33502#issuecomment-{number}{day}",
    )


# ========== Test Cases ==========


class TestProposalChangeSerialization:
    def test_to_dict(self):
        c = change(61405, Status.ACCEPTED, 10, previous=Status.LIKELY_ACCEPT)

        assert c.to_dict() == {
            "issue_number": 61405,
            "title": "proposal 61405",
            "previous_status": "likely_accept",
            "current_status": "accepted",
            "changed_at": "2024-01-10T00:00:00Z",
            "comment_url": "https://github.com/golang/go/issues/33502#issuecomment-6140510",
            "related_issues": [],
        }

    def test_missing_previous_status_is_empty_string(self):
        assert change(1, Status.HOLD, 10).to_dict()["previous_status"] == ""

    def test_from_dict(self):
        c = change(1, Status.DECLINED, 10, previous=Status.LIKELY_DECLINE)

        assert ProposalChange.from_dict(c.to_dict()) == c

    def test_from_dict_rejects_empty_current_status(self):
        data = change(1, Status.DECLINED, 10).to_dict()
        data["current_status"] = ""

        with pytest.raises(ValueError):
            ProposalChange.from_dict(data)


class TestMeetingComment:
    def test_from_api(self):
        c = MeetingComment.from_api(
            {
                "id": 1234567,
                "body": "**2024-01-10** / @rsc",
                "created_at": "2024-01-10T18:00:00Z",
                "updated_at": "2024-01-11T09:30:00Z",
                "html_url": "https://github.com/golang/go/issues/33502#issuecomment-1234567",
            }
        )

        assert c.id == 1234567
        assert c.created_at == datetime(2024, 1, 10, 18, tzinfo=timezone.utc)
        assert c.effective_time == datetime(2024, 1, 11, 9, 30, tzinfo=timezone.utc)

    def test_effective_time_falls_back_to_created_at(self):
        c = MeetingComment.from_api(
            {"id": 1, "body": None, "created_at": "2024-01-10T18:00:00Z", "updated_at": None}
        )

        assert c.body == ""
        assert c.effective_time == c.created_at


class TestOrdering:
    def test_sort_is_stable(self):
        a = change(2, Status.HOLD, 10)
        b = change(1, Status.HOLD, 10)
        c = change(3, Status.HOLD, 3)

        assert sort_changes([a, b, c]) == [c, a, b]

    @pytest.mark.parametrize(
        "dt,expected",
        [
            (datetime(2024, 1, 10, tzinfo=timezone.utc), "2024-W02"),
            (datetime(2019, 8, 20, tzinfo=timezone.utc), "2019-W34"),
            # ISO year differs from the calendar year around new year
            (datetime(2024, 12, 30, tzinfo=timezone.utc), "2025-W01"),
            (datetime(2021, 1, 3, tzinfo=timezone.utc), "2020-W53"),
        ],
    )
    def test_iso_week_key(self, dt, expected):
        assert iso_week_key(dt) == expected

    def test_group_by_week(self):
        late = change(1, Status.ACCEPTED, 17)
        early = change(2, Status.HOLD, 3)
        same_week = change(3, Status.HOLD, 4)

        grouped = group_by_week([late, early, same_week])

        assert list(grouped) == ["2024-W01", "2024-W03"]
        assert grouped["2024-W01"] == [early, same_week]


class TestDeduplicateByIssue:
    def test_keeps_latest_per_issue(self):
        first = change(1, Status.LIKELY_ACCEPT, 3)
        second = change(1, Status.ACCEPTED, 4)
        other = change(2, Status.HOLD, 3)

        assert deduplicate_by_issue([second, other, first]) == [other, second]

    def test_tie_goes_to_later_record(self):
        a = change(1, Status.LIKELY_ACCEPT, 3)
        b = change(1, Status.ACCEPTED, 3)

        assert deduplicate_by_issue([a, b]) == [b]

    def test_sorted_by_date_then_issue(self):
        result = deduplicate_by_issue(
            [change(9, Status.HOLD, 4), change(5, Status.HOLD, 4), change(7, Status.HOLD, 3)]
        )

        assert [c.issue_number for c in result] == [7, 5, 9]


class TestChangesJson:
    def test_week_from_latest_change(self):
        output = build_changes_output([change(1, Status.HOLD, 17), change(2, Status.HOLD, 3)])

        assert output.week == "2024-W03"
        assert [c.issue_number for c in output.changes] == [2, 1]

    def test_week_from_now_when_empty(self):
        output = build_changes_output([], now=datetime(2024, 1, 10, tzinfo=timezone.utc))

        assert output.week == "2024-W02"
        assert output.changes == []

    def test_write_and_load(self, tmp_path):
        path = tmp_path / "out" / "changes.json"
        changes = [change(1, Status.ACCEPTED, 10, previous=Status.LIKELY_ACCEPT)]

        write_changes_json(changes, path)

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["week"] == "2024-W02"
        assert data["changes"][0]["current_status"] == "accepted"
        assert load_changes_json(path).changes == changes

    def test_write_keeps_non_ascii(self, tmp_path):
        path = tmp_path / "changes.json"
        c = ProposalChange(
            issue_number=1,
            title="unicode: 🎉 support",
            current_status=Status.ACCEPTED,
            changed_at=datetime(2024, 1, 10, tzinfo=timezone.utc),
        )

        write_changes_json([c], path)

        assert "🎉" in path.read_text(encoding="utf-8")

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(ContentException):
            load_changes_json(tmp_path / "missing.json")

    def test_load_invalid_status(self, tmp_path):
        path = tmp_path / "changes.json"
        data = {"week": "2024-W02", "changes": [change(1, Status.HOLD, 10).to_dict()]}
        data["changes"][0]["current_status"] = "paused"
        path.write_text(json.dumps(data), encoding="utf-8")

        with pytest.raises(ContentException):
            load_changes_json(path)
