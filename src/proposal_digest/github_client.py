"""GitHub REST client for the minutes tracking issue comments."""

import logging
from datetime import datetime, timedelta
from typing import Optional

import requests

from .config import GitHubConfig
from .consts import GH_MAX_RETRIES, GH_RETRY_DELAY, GITHUB_ACCEPT, GITHUB_API_VERSION
from .errors import ClientError, GitHubException
from .models import MeetingComment
from .utils import format_rfc3339, get_now, retry, sanitize

logger = logging.getLogger(__name__)


def _check_http_status(_args, _kwargs, error, _attempt):
    status_code = getattr(getattr(error, "response", None), "status_code", None)
    if status_code and 400 <= status_code < 500:
        raise ClientError(f"GitHub API client error {status_code}: not retrying") from error


class CommentClient:
    """List comments of the proposal review minutes issue.

    Pages are fetched ``per_page`` at a time. The first page of every listing
    is sent with ``If-None-Match`` when an ETag for the same URL is known, and
    a ``304 Not Modified`` answer ends the listing with no comments.
    """

    def __init__(self, config: GitHubConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Accept": GITHUB_ACCEPT,
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            }
        )
        if config.token:
            self.session.headers["Authorization"] = f"Bearer {config.token}"
        if config.proxy:
            self.session.proxies.update({"http": config.proxy, "https": config.proxy})

        self._etags: dict[str, str] = {}

        logger.debug(
            f"CommentClient initialized: {config.owner}/{config.repo}#{config.issue_number} "
            f"(token: {sanitize(config.token) if config.token else 'None'})"
        )

    @property
    def comments_url(self) -> str:
        c = self.config
        return f"{c.api_url}/repos/{c.owner}/{c.repo}/issues/{c.issue_number}/comments"

    def list_comments(self, since: datetime | None = None) -> list[MeetingComment]:
        """List all comments updated at or after ``since``, following pagination.

        Raises:
            GitHubException: If a request fails after retries or the rate limit
                is exhausted
        """
        comments: list[MeetingComment] = []
        page = 1
        while True:
            try:
                batch, has_more = self._fetch_page(since, page)
            except GitHubException:
                raise
            except requests.RequestException as e:
                status_code = getattr(e.response, "status_code", "N/A")
                raise GitHubException(
                    f"Failed to list comments (page {page}, status: {status_code}): {e}"
                ) from e
            except (KeyError, TypeError, ValueError) as e:
                raise GitHubException(f"Unexpected comment payload on page {page}: {e}") from e

            comments.extend(batch)
            if not has_more:
                break
            page += 1

        logger.debug(
            f"Fetched {len(comments)} comment(s) since "
            f"{format_rfc3339(since) if since else 'the beginning'}"
        )
        return comments

    def fetch_latest_comment(self, now: datetime | None = None) -> MeetingComment | None:
        """Return the newest comment posted within the bootstrap lookback window."""
        since = (now or get_now()) - timedelta(days=self.config.bootstrap_lookback_days)
        comments = self.list_comments(since)
        if not comments:
            return None
        return max(comments, key=lambda c: (c.created_at, c.id))

    def fetch_previous_comment(
        self, before_id: int, now: datetime | None = None
    ) -> MeetingComment | None:
        """Return the comment immediately preceding comment ``before_id``.

        Only the baseline lookback window is searched; None when no earlier
        comment falls inside it.
        """
        since = (now or get_now()) - timedelta(days=self.config.baseline_lookback_days)
        candidates = [c for c in self.list_comments(since) if c.id < before_id]
        if not candidates:
            return None
        return max(candidates, key=lambda c: c.id)

    @retry(
        times=GH_MAX_RETRIES,
        initial_delay=GH_RETRY_DELAY,
        backoff="exponential",
        exceptions=(requests.RequestException,),
        on_retry=_check_http_status,
    )
    def _fetch_page(
        self, since: datetime | None, page: int
    ) -> tuple[list[MeetingComment], bool]:
        params: dict[str, str | int] = {"per_page": self.config.per_page, "page": page}
        if since is not None:
            params["since"] = format_rfc3339(since)

        cache_key = self._cache_key(params)
        headers = {}
        if page == 1 and cache_key in self._etags:
            headers["If-None-Match"] = self._etags[cache_key]

        response = self.session.get(
            self.comments_url,
            params=params,
            headers=headers,
            timeout=self.config.timeout,
        )
        self._log_rate_limit(response)

        if response.status_code == 304:
            logger.info("Comments not modified since last request (ETag match)")
            return [], False

        if response.status_code in (403, 429) and response.headers.get(
            "X-RateLimit-Remaining"
        ) == "0":
            reset = response.headers.get("X-RateLimit-Reset", "unknown")
            raise GitHubException(f"GitHub API rate limit exceeded (resets at {reset})")

        response.raise_for_status()

        etag = response.headers.get("ETag")
        if etag and page == 1:
            self._etags[cache_key] = etag

        payload = response.json()
        if not isinstance(payload, list):
            raise ValueError(f"expected a list of comments, got {type(payload).__name__}")

        comments = [MeetingComment.from_api(item) for item in payload]
        return comments, len(payload) == self.config.per_page

    def _cache_key(self, params: dict) -> str:
        since = params.get("since", "")
        return f"{self.comments_url}?since={since}"

    @staticmethod
    def _log_rate_limit(response: requests.Response) -> None:
        remaining = response.headers.get("X-RateLimit-Remaining")
        if remaining is None:
            return
        limit = response.headers.get("X-RateLimit-Limit", "?")
        logger.debug(f"GitHub API rate limit: {remaining}/{limit} remaining")
        if remaining.isdigit() and int(remaining) < 10:
            logger.warning(f"GitHub API rate limit nearly exhausted: {remaining}/{limit}")
