"""Minutes parser unit tests"""

import logging
from datetime import datetime, timezone

import pytest

from proposal_digest.enums import Status
from proposal_digest.minutes import MinutesParser, find_meeting_date, parse_meeting_date

INLINE_MINUTES = """\
**2019-08-20** / @rsc, @griesemer, @ianlancetaylor, @bradfitz, @andybons, @spf13

- #25530 **cmd/go: secure releases with transparency log**
  - **no final comments; accepted 🎉**
- #32437 **spec: add try builtin**
  - retracted; **declined**
- #33389 **net/http: add Transport.Clone**
  - commented
- #29934 **errors: simplify Is and As**
  - **likely accept; last call for comments ⏳**
"""

SECTION_MINUTES = """\
2024-01-10 / **@rsc, @adonovan, @bradfitz, @cherrymui, @griesemer, @ianlancetaylor**

**Accepted**

- [#61405](https://go.dev/issue/61405) **spec: add range-over-func**
  - **no final comments; accepted 🎉**

**Likely Decline**

- #62113 **iter: new package**
  - **accepted**
- **x/tools: add analysis pass** [#60000](https://go.dev/issue/60000)

**Hold**
- #55555 **net: add Dialer.ControlContext**
"""


@pytest.fixture
def parser():
    return MinutesParser()


def statuses(changes):
    return [(c.issue_number, c.current_status) for c in changes]


# ========== Test Cases ==========


class TestParseMeetingDate:
    def test_midnight_utc(self):
        assert parse_meeting_date("2019-08-20") == datetime(2019, 8, 20, tzinfo=timezone.utc)

    def test_invalid_calendar_date(self):
        with pytest.raises(ValueError):
            parse_meeting_date("2024-02-30")

    def test_find_skips_invalid_dates(self, caplog):
        lines = ["**2024-13-45** / @rsc", "prose", "2024-01-10 / @rsc"]

        with caplog.at_level(logging.WARNING):
            found = find_meeting_date(lines)

        assert found == datetime(2024, 1, 10, tzinfo=timezone.utc)
        assert "Invalid date" in caplog.text

    def test_invalid_date_warning_is_truncated(self, caplog):
        attendees = ", ".join(f"@member{i}" for i in range(40))

        with caplog.at_level(logging.WARNING):
            find_meeting_date([f"**2024-13-45** / {attendees}"])

        assert "Invalid date" in caplog.text
        assert "@member39" not in caplog.text

    def test_find_none(self):
        assert find_meeting_date(["no date here", "- #1 **x**"]) is None


class TestMinutesParser:
    def test_inline_format(self, parser):
        changes = parser.parse(INLINE_MINUTES)

        assert statuses(changes) == [
            (25530, Status.ACCEPTED),
            (32437, Status.DECLINED),
            (29934, Status.LIKELY_ACCEPT),
        ]
        assert changes[0].title == "cmd/go: secure releases with transparency log"
        for change in changes:
            assert change.changed_at == datetime(2019, 8, 20, tzinfo=timezone.utc)
            assert change.previous_status is None
            assert change.comment_url == ""

    def test_section_format(self, parser):
        changes = parser.parse(SECTION_MINUTES)

        assert statuses(changes) == [
            (61405, Status.ACCEPTED),
            (62113, Status.LIKELY_DECLINE),
            (60000, Status.LIKELY_DECLINE),
            (55555, Status.HOLD),
        ]
        assert changes[2].title == "x/tools: add analysis pass"

    def test_section_status_ignores_inline_indicator(self, parser):
        body = "2024-01-10 / @rsc\n**Hold**\n- #1 **a**\n  - **accepted**\n"

        assert statuses(parser.parse(body)) == [(1, Status.HOLD)]

    def test_later_inline_indicator_wins(self, parser):
        body = (
            "**2019-08-20** / @rsc\n"
            "- #1 **a**\n"
            "  - **likely accept; last call for comments ⏳**\n"
            "  - **no final comments; accepted 🎉**\n"
        )

        assert statuses(parser.parse(body)) == [(1, Status.ACCEPTED)]

    @pytest.mark.parametrize("indicator", ["accepted  🎉", "accepted\t🎉"])
    def test_emoji_indicator_tolerates_whitespace(self, parser, indicator):
        body = f"**2024-01-10**\n- #1 **a**\n  - {indicator}\n"

        assert statuses(parser.parse(body)) == [(1, Status.ACCEPTED)]

    def test_proposal_without_status_is_dropped(self, parser):
        body = "**2019-08-20** / @rsc\n- #1 **a**\n  - commented\n- #2 **b**\n  - **declined**\n"

        assert statuses(parser.parse(body)) == [(2, Status.DECLINED)]

    def test_prose_does_not_close_proposal(self, parser):
        body = "**2019-08-20** / @rsc\n- #1 **a**\nSee the design doc.\n  - **declined**\n"

        assert statuses(parser.parse(body)) == [(1, Status.DECLINED)]

    def test_section_header_closes_open_proposal(self, parser):
        body = (
            "**2019-08-20** / @rsc\n"
            "- #1 **a**\n"
            "  - **likely decline**\n"
            "**Accepted**\n"
            "- #2 **b**\n"
        )

        assert statuses(parser.parse(body)) == [
            (1, Status.LIKELY_DECLINE),
            (2, Status.ACCEPTED),
        ]

    def test_repeated_issue_is_reported_twice(self, parser):
        body = (
            "**2019-08-20** / @rsc\n"
            "**Likely Accept**\n- #1 **a**\n"
            "**Accepted**\n- #1 **a**\n"
        )

        assert statuses(parser.parse(body)) == [
            (1, Status.LIKELY_ACCEPT),
            (1, Status.ACCEPTED),
        ]

    def test_crlf_line_endings(self, parser):
        body = SECTION_MINUTES.replace("\n", "\r\n")

        assert statuses(parser.parse(body)) == statuses(parser.parse(SECTION_MINUTES))

    def test_indented_bold_is_not_a_section_header(self, parser):
        body = "**2019-08-20** / @rsc\n- #1 **a**\n  **Accepted**\n- #2 **b**\n"

        # "  **Accepted**" is an action line for #1, and no section applies to #2
        assert statuses(parser.parse(body)) == [(1, Status.ACCEPTED)]

    @pytest.mark.parametrize("body", ["", None])
    def test_empty_body(self, parser, body):
        assert parser.parse(body) == []

    def test_no_date_header(self, parser, caplog):
        body = "Thanks everyone!\n- #1 **a**\n  - **accepted**\n"

        with caplog.at_level(logging.WARNING):
            changes = parser.parse(body, datetime(2024, 1, 11, tzinfo=timezone.utc))

        assert changes == []
        assert "No valid date header" in caplog.text

    def test_parse_is_deterministic(self, parser):
        assert parser.parse(INLINE_MINUTES) == parser.parse(INLINE_MINUTES)
