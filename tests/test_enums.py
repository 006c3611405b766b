import pytest

from proposal_digest.enums import Status


def test_status_enum_values():
    assert Status.DISCUSSIONS.value == "discussions"
    assert Status.LIKELY_ACCEPT.value == "likely_accept"
    assert Status.LIKELY_DECLINE.value == "likely_decline"
    assert Status.ACCEPTED.value == "accepted"
    assert Status.DECLINED.value == "declined"
    assert Status.HOLD.value == "hold"
    assert Status.ACTIVE.value == "active"


def test_status_is_string_enum():
    assert isinstance(Status.ACCEPTED, str)
    assert Status.ACCEPTED == "accepted"


@pytest.mark.parametrize("value", [None, ""])
def test_status_parse_empty(value):
    assert Status.parse(value) is None


def test_status_parse_known_value():
    assert Status.parse("likely_decline") is Status.LIKELY_DECLINE
    assert Status.parse(" hold ") is Status.HOLD


def test_status_parse_unknown_value():
    with pytest.raises(ValueError):
        Status.parse("retracted")
