"""Line classification for proposal review minutes.

Every function here is pure and looks at a single line. Matching is done
with explicit prefix and delimiter scanning rather than regular expressions.
"""

from dataclasses import dataclass

from .enums import LineKind, Status
from .vocabulary import match_inline_status, match_section_header

DATE_LENGTH = 10


@dataclass(frozen=True)
class ClassifiedLine:
    kind: LineKind
    text: str
    status: Status | None = None
    issue_number: int | None = None
    title: str | None = None
    date: str | None = None


def _is_date_shape(value: str) -> bool:
    """Return True for ``YYYY-MM-DD`` shaped strings (not checked as a calendar date)."""
    if len(value) != DATE_LENGTH:
        return False
    for i, ch in enumerate(value):
        if i in (4, 7):
            if ch != "-":
                return False
        elif not ("0" <= ch <= "9"):
            return False
    return True


def _parse_issue_number(value: str) -> int | None:
    if not value or not value.isascii() or not value.isdigit():
        return None
    number = int(value)
    return number if number > 0 else None


def _bold_text(line: str, start: int) -> tuple[str, int] | None:
    """Read ``**text**`` starting at ``start``.

    Returns the text and the index just past the closing ``**``. The text is
    at least one character long and ends at the first ``**`` after that.
    """
    if not line.startswith("**", start):
        return None
    text_start = start + 2
    end = line.find("**", text_start + 1)
    if end == -1:
        return None
    return line[text_start:end], end + 2


def _issue_link(line: str, start: int) -> tuple[int, int] | None:
    """Read ``[#NNNNN](url)`` starting at ``start``.

    Returns the issue number and the index just past the closing ``)``.
    """
    if not line.startswith("[#", start):
        return None
    close = line.find("](", start + 2)
    if close == -1:
        return None
    number = _parse_issue_number(line[start + 2 : close])
    if number is None:
        return None
    url_start = close + 2
    url_end = line.find(")", url_start)
    if url_end <= url_start:
        return None
    return number, url_end + 1


def extract_meeting_date(line: str) -> str | None:
    """Extract the meeting date from a minutes header line.

    Recognizes ``**YYYY-MM-DD...`` and ``YYYY-MM-DD /...``.

    Examples:
        >>> extract_meeting_date("**2019-08-20** / @rsc, @griesemer")
        '2019-08-20'
        >>> extract_meeting_date("2024-01-10 / **@rsc, @adonovan**")
        '2024-01-10'
        >>> extract_meeting_date("- #25530 **cmd/go: ...**") is None
        True
    """
    if line.startswith("**"):
        candidate = line[2 : 2 + DATE_LENGTH]
        return candidate if _is_date_shape(candidate) else None

    candidate = line[:DATE_LENGTH]
    if not _is_date_shape(candidate):
        return None
    if line[DATE_LENGTH:].lstrip(" \t").startswith("/"):
        return candidate
    return None


def detect_section_header(line: str) -> Status | None:
    """Return the status implied by a bold section heading such as ``**Hold**``.

    Section headings start at column 0; indented bold text is an action line.
    """
    if not line or line[0].isspace():
        return None
    normalized = line.rstrip().lower()
    if not normalized.startswith("**"):
        return None
    return match_section_header(normalized)


def parse_proposal_line(line: str) -> tuple[int, str] | None:
    """Parse a proposal entry line into ``(issue_number, title)``.

    Supported shapes, tried in order:

    - ``- [#NNNNN](url) **title**``
    - ``- #NNNNN **title**``
    - ``- **title** [#NNNNN](url)``
    """
    if not line.startswith("- "):
        return None

    if line.startswith("- [#"):
        link = _issue_link(line, 2)
        if link is None:
            return None
        number, pos = link
        if not line.startswith(" ", pos):
            return None
        bold = _bold_text(line, pos + 1)
        if bold is None:
            return None
        return number, bold[0]

    if line.startswith("- #"):
        space = line.find(" ", 3)
        if space == -1:
            return None
        number = _parse_issue_number(line[3:space])
        if number is None:
            return None
        bold = _bold_text(line, space + 1)
        if bold is None:
            return None
        return number, bold[0]

    if line.startswith("- **"):
        bold = _bold_text(line, 2)
        if bold is None:
            return None
        title, pos = bold
        if not line.startswith(" ", pos):
            return None
        link = _issue_link(line, pos + 1)
        if link is None:
            return None
        return link[0], title

    return None


def is_indented(line: str) -> bool:
    return line.startswith((" ", "\t"))


def detect_status_in_line(line: str) -> Status | None:
    """Detect an inline status indicator on an indented action line."""
    if not is_indented(line):
        return None
    return match_inline_status(" ".join(line.split()).lower())


def classify_line(line: str) -> ClassifiedLine:
    status = detect_section_header(line)
    if status is not None:
        return ClassifiedLine(LineKind.SECTION_HEADER, line, status=status)

    proposal = parse_proposal_line(line)
    if proposal is not None:
        number, title = proposal
        return ClassifiedLine(
            LineKind.PROPOSAL, line, issue_number=number, title=title
        )

    date = extract_meeting_date(line)
    if date is not None:
        return ClassifiedLine(LineKind.DATE_HEADER, line, date=date)

    if is_indented(line):
        return ClassifiedLine(LineKind.INDENTED, line)

    return ClassifiedLine(LineKind.PROSE, line)
