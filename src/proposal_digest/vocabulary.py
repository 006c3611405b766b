"""Status vocabulary of the proposal review minutes.

The minutes use two conventions. Older comments state each proposal's
outcome on an indented action line (``  - **likely accept; last call**``),
newer ones group proposals under a bold section heading (``**Accepted**``)
that applies to every entry below it. Both tables live here.

All keywords are lowercase. Inline keywords are matched against the lowercased
line with whitespace runs collapsed to a single space.
"""

from dataclasses import dataclass

from .enums import Status


@dataclass(frozen=True)
class SectionHeaderPattern:
    keyword: str
    status: Status

    def matches(self, normalized_line: str) -> bool:
        return normalized_line.startswith(self.keyword)


@dataclass(frozen=True)
class InlinePattern:
    """An inline status indicator.

    Every keyword must be present in the line. With ``at_end`` the line must
    also end with the last keyword.
    """

    keywords: tuple[str, ...]
    status: Status
    at_end: bool = False

    def matches(self, normalized_line: str) -> bool:
        if not all(k in normalized_line for k in self.keywords):
            return False
        if self.at_end:
            return normalized_line.endswith(self.keywords[-1])
        return True


# Keywords carry their closing ``**`` so "**accepted**" never matches
# "**likely accept...**".
SECTION_HEADER_PATTERNS: tuple[SectionHeaderPattern, ...] = (
    SectionHeaderPattern("**accepted**", Status.ACCEPTED),
    SectionHeaderPattern("**declined**", Status.DECLINED),
    SectionHeaderPattern("**likely accept**", Status.LIKELY_ACCEPT),
    SectionHeaderPattern("**likely decline**", Status.LIKELY_DECLINE),
    SectionHeaderPattern("**active**", Status.ACTIVE),
    SectionHeaderPattern("**hold**", Status.HOLD),
    SectionHeaderPattern("**discussions**", Status.DISCUSSIONS),
    SectionHeaderPattern("**discussion**", Status.DISCUSSIONS),
)

# Most specific first: a line may satisfy several entries.
INLINE_PATTERNS: tuple[InlinePattern, ...] = (
    InlinePattern(("**no final comments; accepted",), Status.ACCEPTED),
    InlinePattern(("**accepted**",), Status.ACCEPTED),
    InlinePattern(("accepted 🎉",), Status.ACCEPTED),
    InlinePattern(("accepted🎉",), Status.ACCEPTED),
    InlinePattern(("**no final comments; declined",), Status.DECLINED),
    InlinePattern(("retracted", "**declined**"), Status.DECLINED),
    InlinePattern(("**declined**",), Status.DECLINED),
    InlinePattern(("**closed**",), Status.DECLINED),
    # the closing ** is often missing: "**likely accept; last call for comments**"
    InlinePattern(("**likely accept",), Status.LIKELY_ACCEPT),
    InlinePattern(("**likely decline",), Status.LIKELY_DECLINE),
    InlinePattern(("put on hold",), Status.HOLD),
    InlinePattern(("on hold",), Status.HOLD, at_end=True),
    InlinePattern(("**active**",), Status.ACTIVE),
    InlinePattern(("discussion ongoing",), Status.DISCUSSIONS),
)


def match_section_header(normalized_line: str) -> Status | None:
    for pattern in SECTION_HEADER_PATTERNS:
        if pattern.matches(normalized_line):
            return pattern.status
    return None


def match_inline_status(normalized_line: str) -> Status | None:
    for pattern in INLINE_PATTERNS:
        if pattern.matches(normalized_line):
            return pattern.status
    return None
