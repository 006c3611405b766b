"""Configuration file loading and validation."""

import logging
from pathlib import Path
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, available_timezones

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from .consts import (
    BASELINE_LOOKBACK_DAYS,
    BOOTSTRAP_LOOKBACK_DAYS,
    CHANGES_FILE_DEFAULT,
    COMMENTS_PER_PAGE,
    CONTENT_DIR_DEFAULT,
    DIST_DIR_DEFAULT,
    GITHUB_API_URL,
    ISSUE_URL_BASE,
    LOG_FILE_DEFAULT,
    MAX_FEED_ITEMS,
    MINUTES_ISSUE_NUMBER,
    MINUTES_OWNER,
    MINUTES_REPO,
    SITE_DESCRIPTION_DEFAULT,
    SITE_TITLE_DEFAULT,
    SITE_URL_DEFAULT,
    STATE_FILE_DEFAULT,
    SUMMARIES_DIR_DEFAULT,
    TIMEOUT_HTTP_REQUEST,
)
from .errors import ConfigException

logger = logging.getLogger(__name__)

ENV_PREFIX = "DIGEST_"


def validate_site_url(v: str) -> str:
    parsed = urlparse(v)
    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"site URL must use http or https scheme: {v}")
    if not parsed.netloc:
        raise ValueError(f"site URL must include a host: {v}")
    return v.rstrip("/")


class GitHubConfig(BaseModel):
    """GitHub API configuration."""

    token: str = ""
    api_url: str = GITHUB_API_URL
    owner: str = MINUTES_OWNER
    repo: str = MINUTES_REPO
    issue_number: int = Field(default=MINUTES_ISSUE_NUMBER, gt=0)
    per_page: int = Field(default=COMMENTS_PER_PAGE, ge=1, le=100)
    timeout: int = Field(default=TIMEOUT_HTTP_REQUEST, ge=1)
    baseline_lookback_days: int = Field(default=BASELINE_LOOKBACK_DAYS, ge=1)
    bootstrap_lookback_days: int = Field(default=BOOTSTRAP_LOOKBACK_DAYS, ge=1)
    proxy: str = ""

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class SiteConfig(BaseModel):
    """Static site and feed configuration."""

    url: str = SITE_URL_DEFAULT
    title: str = SITE_TITLE_DEFAULT
    description: str = SITE_DESCRIPTION_DEFAULT
    author_name: str = SITE_TITLE_DEFAULT
    author_email: str = ""
    language: str = "en"
    max_feed_items: int = Field(default=MAX_FEED_ITEMS, ge=1)
    issue_url_base: str = ISSUE_URL_BASE

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return validate_site_url(v)


class Config(BaseSettings):
    """Application configuration."""

    timezone: str = Field(default="UTC")
    state_file: str = Field(default=STATE_FILE_DEFAULT)
    changes_file: str = Field(default=CHANGES_FILE_DEFAULT)
    content_dir: str = Field(default=CONTENT_DIR_DEFAULT)
    summaries_dir: str = Field(default=SUMMARIES_DIR_DEFAULT)
    dist_dir: str = Field(default=DIST_DIR_DEFAULT)
    log_file: str = Field(default=LOG_FILE_DEFAULT)

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    site: SiteConfig = Field(default_factory=SiteConfig)

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
    )

    @field_validator("timezone", mode="before")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        if v not in available_timezones():
            raise ValueError(
                f"Invalid timezone configuration: '{v}'. "
                "Please use a valid IANA timezone identifier"
            )
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls),
        )

    @classmethod
    def load_from_file(cls, config_path: str) -> "Config":
        """Load configuration from specified path."""
        path = Path(config_path)
        if not path.exists():
            raise ConfigException(f"Configuration file not found: {config_path}")

        class _Config(cls):
            model_config = SettingsConfigDict(
                toml_file=str(path),
                env_prefix=ENV_PREFIX,
                env_nested_delimiter="__",
            )

        return cls._build(_Config)

    @classmethod
    def load_from_env(cls) -> "Config":
        """Load configuration from environment variables and defaults only."""
        return cls._build(cls)

    @staticmethod
    def _build(settings_cls: type["Config"]) -> "Config":
        try:
            return settings_cls()
        except ValidationError as e:
            error_lines = ["Configuration validation failed:"]
            for error in e.errors():
                loc = " -> ".join(str(item) for item in error["loc"])
                error_lines.append(f"  - {loc}: {error['msg']}")
            raise ConfigException("\n".join(error_lines)) from e
        except ValueError as e:
            # tomllib.TOMLDecodeError
            raise ConfigException(f"Invalid configuration file: {e}") from e

    def get_timezone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)
