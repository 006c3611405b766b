"""Constants for the proposal digest"""

# ==================== File Paths ====================
STATE_FILE_DEFAULT = "content/state.json"
CHANGES_FILE_DEFAULT = "changes.json"
CONTENT_DIR_DEFAULT = "content"
SUMMARIES_DIR_DEFAULT = "summaries"
DIST_DIR_DEFAULT = "dist"
LOG_FILE_DEFAULT = "data/proposal-digest.log"

# ==================== GitHub ====================
GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_ACCEPT = "application/vnd.github+json"
MINUTES_OWNER = "golang"
MINUTES_REPO = "go"
MINUTES_ISSUE_NUMBER = 33502
COMMENTS_PER_PAGE = 100
ISSUE_URL_BASE = "https://github.com/golang/go/issues"

# ==================== Lookback windows (days) ====================
BASELINE_LOOKBACK_DAYS = 30  # previous comment search for the baseline
BOOTSTRAP_LOOKBACK_DAYS = 7  # latest comment search on a fresh state

# ==================== Timeouts (seconds) ====================
TIMEOUT_HTTP_REQUEST = 30

# ==================== Retry Configuration ====================
GH_MAX_RETRIES = 3
GH_RETRY_DELAY = 5  # seconds

# ==================== Parsing ====================
COMMENT_PREVIEW_LENGTH = 100

# ==================== Content ====================
SUMMARY_MIN_LENGTH = 200
SUMMARY_MAX_LENGTH = 500
SUMMARY_SECTION_HEADING = "## Summary"
LINKS_SECTION_HEADING = "## Related links"

# ==================== Site ====================
SITE_URL_DEFAULT = "https://example.com"
SITE_TITLE_DEFAULT = "Go Proposal Weekly Digest"
SITE_DESCRIPTION_DEFAULT = "Weekly digest of the Go proposal review meeting minutes"
FEED_FILENAME = "feed.xml"
MAX_FEED_ITEMS = 20
FEED_SUMMARY_LENGTH = 200

# ==================== Template Names ====================
TEMPLATE_HOME = "home.html.j2"
TEMPLATE_WEEKLY = "weekly.html.j2"
TEMPLATE_PROPOSAL = "proposal.html.j2"

STATUS_LABELS = {
    "discussions": "Discussions",
    "likely_accept": "Likely Accept",
    "likely_decline": "Likely Decline",
    "accepted": "Accepted",
    "declined": "Declined",
    "hold": "Hold",
    "active": "Active",
}
