"""Exception definitions for the proposal digest"""


class DigestException(Exception):
    """Base exception for all proposal digest errors.

    All custom exceptions in the application inherit from this class.
    Use this as a catch-all for digest-specific errors when you don't need
    to handle specific exception types.
    """

    pass


class ConfigException(DigestException):
    """Raised when configuration validation or loading fails.

    Use this exception when:
    - The configuration file cannot be found
    - The TOML syntax is invalid
    - Configuration validation fails (missing required fields, invalid values)
    """

    pass


class GitHubException(DigestException):
    """Raised when GitHub API operations fail.

    Use this exception when:
    - Comment listing requests fail after retries
    - The API rate limit is exhausted
    - The API returns an unexpected payload
    """

    pass


class ClientError(GitHubException):
    """Raised when HTTP 4XX client errors occur and should not be retried.

    This exception is distinct from transient 5xx errors or network issues.
    """

    pass


class StateException(DigestException):
    """Raised when the processing state file cannot be read or written."""

    pass


class ContentException(DigestException):
    """Raised when content, changes or site files cannot be read or written."""

    pass
