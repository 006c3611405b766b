"""Enumeration type definitions"""

from enum import Enum


class Status(str, Enum):
    """Lifecycle status of a Go proposal as stated in the review minutes."""

    DISCUSSIONS = "discussions"
    LIKELY_ACCEPT = "likely_accept"
    LIKELY_DECLINE = "likely_decline"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    HOLD = "hold"
    ACTIVE = "active"

    @classmethod
    def parse(cls, value: str | None) -> "Status | None":
        """Return the status for ``value``, or None for an empty value.

        Raises:
            ValueError: If ``value`` is not one of the known statuses
        """
        if not value:
            return None
        return cls(value.strip())


class LineKind(Enum):
    """Classification of a single line of a minutes comment."""

    SECTION_HEADER = "section_header"
    PROPOSAL = "proposal"
    DATE_HEADER = "date_header"
    INDENTED = "indented"
    PROSE = "prose"
