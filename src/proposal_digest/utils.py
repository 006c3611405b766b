"""Utility functions for the proposal digest"""

import logging
import os
import tempfile
import time
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Callable, Literal, Optional, Tuple, Type
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)


BackoffStrategy = Literal["exponential", "fixed"]


def canonicalify(p: Path | str) -> Path:
    return Path(p).expanduser().resolve()


def ensure_path(p: Path | str) -> Path:
    path = canonicalify(p)
    path.mkdir(parents=True, exist_ok=True)
    return path


def retry(
    times: int,
    initial_delay: int = 1,
    backoff: BackoffStrategy = "exponential",
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable[[tuple, dict, Exception, int], None]] = None,
):
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            delay = initial_delay

            for attempt in range(times):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    is_last_attempt = attempt == times - 1
                    error_msg = str(e)[:100]

                    if is_last_attempt:
                        logger.error(f"Request failed, max retries ({times}) reached")
                        raise

                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{times}), "
                        f"retrying in {delay}s. Error: {error_msg}"
                    )

                    if on_retry:
                        on_retry(args, kwargs, e, attempt + 1)

                    time.sleep(delay)

                    if backoff == "exponential":
                        delay *= 2

        return wrapper

    return decorator


def sanitize(sensitive: str | None, keep_chars: int = 2) -> str:
    """Mask sensitive information for logging.

    Examples:
        >>> sanitize("ghp_abc123def456xyz789")
        'gh***89'
        >>> sanitize(None)
        '***'
    """
    if not sensitive:
        return "***"

    if len(sensitive) <= keep_chars * 2:
        return "***"

    return f"{sensitive[:keep_chars]}***{sensitive[-keep_chars:]}"


def truncate(text: str, length: int) -> str:
    """Return the first ``length`` characters of ``text`` followed by ``...``."""
    if len(text) <= length:
        return text
    return text[:length] + "..."


def truncate_with_ellipsis(text: str, max_chars: int) -> str:
    """Truncate ``text`` so the result, ellipsis included, fits in ``max_chars``."""
    if len(text) <= max_chars:
        return text
    if max_chars <= 3:
        return "..."
    return text[: max_chars - 3] + "..."


def get_now(tz: ZoneInfo | timezone = timezone.utc) -> datetime:
    """Get current time in specified timezone"""
    return datetime.now(tz)


def to_utc(dt: datetime) -> datetime:
    """Convert timezone-aware datetime to UTC

    Raises:
        ValueError: If input datetime does not contain timezone info
    """
    if dt.tzinfo is None:
        raise ValueError("Input datetime must contain timezone info")
    return dt.astimezone(timezone.utc)


def format_rfc3339(dt: datetime) -> str:
    """Format a timezone-aware datetime as RFC3339 in UTC with a ``Z`` suffix.

    Examples:
        >>> format_rfc3339(datetime(2019, 8, 20, tzinfo=timezone.utc))
        '2019-08-20T00:00:00Z'
    """
    return to_utc(dt).isoformat().replace("+00:00", "Z")


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC3339 timestamp (``Z`` or offset) into an aware UTC datetime.

    Raises:
        ValueError: If the value is not a valid timestamp
    """
    value = value.strip()
    if value.endswith("Z") or value.endswith("z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def iso_week(dt: datetime) -> tuple[int, int]:
    year, week, _ = dt.isocalendar()
    return year, week


def atomic_write_text(path: Path | str, content: str) -> Path:
    """Write ``content`` to ``path`` via a temporary file and an atomic rename.

    Raises:
        OSError: If the directory cannot be created or the file cannot be written
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    return target
