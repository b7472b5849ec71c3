"""
Configuration management for Guardian.

Settings are loaded from environment variables (and an optional .env
file) using Pydantic settings. CI systems export most of what Guardian
needs, so the well-known GitHub Actions and GitLab CI variables are used
as defaults. Every value can be overridden by an explicit CLI flag.

Environment Variables:
    GUARDIAN_PLATFORM: Code review platform (github, gitlab, local)
    GITHUB_ACTIONS / GITLAB_CI: Used to infer the platform when unset
    GUARDIAN_GITHUB_TOKEN / GITHUB_TOKEN: GitHub access token
    GITHUB_APP_ID, GITHUB_APP_INSTALLATION_ID, GITHUB_APP_PRIVATE_KEY_PEM:
        GitHub App credentials, used when no token is set
    GITHUB_REPOSITORY: owner/repo
    GITHUB_SERVER_URL, GITHUB_API_URL: GitHub endpoints
    GITHUB_RUN_ID, GITHUB_RUN_ATTEMPT, GITHUB_JOB: Used to link to logs
    GITHUB_SHA, GITHUB_ACTOR, GITHUB_EVENT_NAME, GITHUB_EVENT_PATH
    GUARDIAN_GITLAB_TOKEN / GITLAB_TOKEN / CI_JOB_TOKEN: GitLab access token
    GITLAB_BASE_URL / CI_SERVER_URL / CI_API_V4_URL / CI_SERVER_HOST:
        GitLab instance URL
    GITLAB_PROJECT_ID / CI_PROJECT_ID: GitLab project ID
    GITLAB_MERGE_REQUEST_IID / CI_MERGE_REQUEST_IID / CI_MERGE_REQUEST_ID:
        Merge request number
    CI_JOB_URL: Linked from GitLab status notes
    GUARDIAN_MAX_RETRIES: Retries after the first attempt (default: 3)
    GUARDIAN_INITIAL_RETRY_DELAY: First backoff in seconds (default: 1)
    GUARDIAN_MAX_RETRY_DELAY: Backoff cap in seconds (default: 20)
    GUARDIAN_INCLUDE_TEAMS: Resolve team memberships for policy data
    GUARDIAN_OUTPUT_DIR: Directory for file outputs (default: .)
    LOG_LEVEL: Logging level (default: INFO)
    LOG_FORMAT: json or text (default: json)

Usage:
    from guardian.config import get_settings

    settings = get_settings()
    print(settings.github_owner)
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Self

from pydantic import AliasChoices, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from guardian.errors import ConfigurationError
from guardian.retry import (
    DEFAULT_INITIAL_DELAY_SECONDS,
    DEFAULT_MAX_DELAY_SECONDS,
    DEFAULT_MAX_RETRIES,
    RetryConfig,
)

PLATFORM_TYPE_UNSPECIFIED = ""
PLATFORM_TYPE_LOCAL = "local"
PLATFORM_TYPE_GITHUB = "github"
PLATFORM_TYPE_GITLAB = "gitlab"

SORTED_PLATFORM_TYPES = sorted(
    [PLATFORM_TYPE_LOCAL, PLATFORM_TYPE_GITHUB, PLATFORM_TYPE_GITLAB]
)


def _env(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class Settings(BaseSettings):
    """
    Guardian configuration settings.

    Identity fields are optional here; each platform validates the fields
    it needs before making any remote call.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Platform selection
    platform: str = Field(
        default=PLATFORM_TYPE_UNSPECIFIED,
        validation_alias=_env("GUARDIAN_PLATFORM"),
        description="Code review platform to integrate with",
    )
    github_actions: bool = Field(default=False, validation_alias=_env("GITHUB_ACTIONS"))
    gitlab_ci: bool = Field(default=False, validation_alias=_env("GITLAB_CI"))

    # Logging
    log_level: str = Field(default="INFO", validation_alias=_env("LOG_LEVEL"))
    log_format: str = Field(default="json", validation_alias=_env("LOG_FORMAT"))

    # Retry
    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES,
        ge=0,
        validation_alias=_env("GUARDIAN_MAX_RETRIES"),
    )
    initial_retry_delay: float = Field(
        default=DEFAULT_INITIAL_DELAY_SECONDS,
        ge=0,
        validation_alias=_env("GUARDIAN_INITIAL_RETRY_DELAY"),
    )
    max_retry_delay: float = Field(
        default=DEFAULT_MAX_DELAY_SECONDS,
        ge=0,
        validation_alias=_env("GUARDIAN_MAX_RETRY_DELAY"),
    )

    # GitHub
    github_token: str = Field(
        default="",
        validation_alias=_env("GUARDIAN_GITHUB_TOKEN", "GITHUB_TOKEN"),
    )
    github_app_id: str = Field(default="", validation_alias=_env("GITHUB_APP_ID"))
    github_app_installation_id: str = Field(
        default="", validation_alias=_env("GITHUB_APP_INSTALLATION_ID")
    )
    github_app_private_key_pem: str = Field(
        default="", validation_alias=_env("GITHUB_APP_PRIVATE_KEY_PEM")
    )
    github_repository: str = Field(default="", validation_alias=_env("GITHUB_REPOSITORY"))
    github_owner: str = Field(default="", validation_alias=_env("GITHUB_OWNER"))
    github_repo: str = Field(default="", validation_alias=_env("GITHUB_REPO"))
    github_server_url: str = Field(default="", validation_alias=_env("GITHUB_SERVER_URL"))
    github_api_url: str = Field(
        default="https://api.github.com", validation_alias=_env("GITHUB_API_URL")
    )
    github_run_id: int = Field(default=0, validation_alias=_env("GITHUB_RUN_ID"))
    github_run_attempt: int = Field(default=0, validation_alias=_env("GITHUB_RUN_ATTEMPT"))
    github_job: str = Field(default="", validation_alias=_env("GITHUB_JOB"))
    github_pull_request_number: int = Field(
        default=0, validation_alias=_env("GITHUB_PULL_REQUEST_NUMBER")
    )
    github_pull_request_body: str = Field(
        default="", validation_alias=_env("GITHUB_PULL_REQUEST_BODY")
    )
    github_sha: str = Field(default="", validation_alias=_env("GITHUB_SHA"))
    github_actor: str = Field(default="", validation_alias=_env("GITHUB_ACTOR"))
    github_event_name: str = Field(default="", validation_alias=_env("GITHUB_EVENT_NAME"))
    github_event_path: str = Field(default="", validation_alias=_env("GITHUB_EVENT_PATH"))
    include_teams: bool = Field(default=False, validation_alias=_env("GUARDIAN_INCLUDE_TEAMS"))

    # GitLab
    gitlab_token: str = Field(
        default="",
        validation_alias=_env("GUARDIAN_GITLAB_TOKEN", "GITLAB_TOKEN"),
    )
    gitlab_job_token: str = Field(default="", validation_alias=_env("CI_JOB_TOKEN"))
    gitlab_base_url: str = Field(
        default="",
        validation_alias=_env("GITLAB_BASE_URL", "CI_SERVER_URL"),
    )
    gitlab_api_v4_url: str = Field(default="", validation_alias=_env("CI_API_V4_URL"))
    gitlab_server_host: str = Field(default="", validation_alias=_env("CI_SERVER_HOST"))
    gitlab_project_id: int = Field(
        default=0,
        validation_alias=_env("GITLAB_PROJECT_ID", "CI_PROJECT_ID"),
    )
    gitlab_merge_request_iid: int = Field(
        default=0,
        validation_alias=_env(
            "GITLAB_MERGE_REQUEST_IID", "CI_MERGE_REQUEST_IID", "CI_MERGE_REQUEST_ID"
        ),
    )
    gitlab_job_url: str = Field(default="", validation_alias=_env("CI_JOB_URL"))

    # Outputs
    output_dir: str = Field(default=".", validation_alias=_env("GUARDIAN_OUTPUT_DIR"))

    @field_validator("platform")
    @classmethod
    def validate_platform(cls, v: str) -> str:
        """
        Normalize the platform flag and reject unsupported values.

        Args:
            v: Raw platform value

        Returns:
            Lower-cased platform value, empty when unspecified

        Raises:
            ConfigurationError: If the platform is not supported
        """
        v = v.strip().lower()
        if v and v not in SORTED_PLATFORM_TYPES:
            raise ConfigurationError(
                f"unsupported value for platform flag: {v}",
                config_key="GUARDIAN_PLATFORM",
                reason=f"Allowed values are {SORTED_PLATFORM_TYPES}",
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """
        Validate log level is recognized.

        Raises:
            ConfigurationError: If log level is invalid
        """
        valid_levels = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        v_upper = v.strip().upper()
        if v_upper not in valid_levels:
            raise ConfigurationError(
                f"LOG_LEVEL '{v}' is not valid. Must be one of: {', '.join(valid_levels)}",
                config_key="LOG_LEVEL",
                reason=f"Invalid log level: {v}",
            )
        return v_upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format is json or text."""
        v = v.strip().lower()
        if v not in ("json", "text"):
            raise ConfigurationError(
                f"LOG_FORMAT '{v}' is not valid. Must be one of: json, text",
                config_key="LOG_FORMAT",
            )
        return v

    @field_validator(
        "github_run_id",
        "github_run_attempt",
        "github_pull_request_number",
        "gitlab_project_id",
        "gitlab_merge_request_iid",
        mode="before",
    )
    @classmethod
    def empty_int_is_zero(cls, v: Any) -> Any:
        """CI systems export unset numeric variables as empty strings."""
        if isinstance(v, str) and not v.strip():
            return 0
        return v

    @model_validator(mode="after")
    def fill_derived_defaults(self) -> Self:
        """
        Derive owner/repo, pull request data and the GitLab URL.

        Explicit values always win over derived ones.
        """
        if self.github_repository and "/" in self.github_repository:
            owner, repo = self.github_repository.split("/", 1)
            self.github_owner = self.github_owner or owner
            self.github_repo = self.github_repo or repo

        if self.github_event_path:
            self._load_github_event(Path(self.github_event_path))

        if not self.gitlab_base_url:
            if self.gitlab_api_v4_url:
                self.gitlab_base_url = self.gitlab_api_v4_url.removesuffix("/").removesuffix(
                    "/api/v4"
                )
            elif self.gitlab_server_host:
                self.gitlab_base_url = f"https://{self.gitlab_server_host}"

        return self

    def _load_github_event(self, event_path: Path) -> None:
        if not event_path.is_file():
            return

        try:
            event: dict[str, Any] = json.loads(event_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"failed to read github event payload: {e}",
                config_key="GITHUB_EVENT_PATH",
                reason=str(e),
            ) from e

        number = event.get("number")
        if self.github_pull_request_number <= 0 and isinstance(number, int):
            self.github_pull_request_number = number

        pull_request = event.get("pull_request")
        if not self.github_pull_request_body and isinstance(pull_request, dict):
            self.github_pull_request_body = pull_request.get("body") or ""

    def retry_config(self) -> RetryConfig:
        """Build the immutable retry tuning for platform clients."""
        return RetryConfig(
            max_retries=self.max_retries,
            initial_delay=self.initial_retry_delay,
            max_delay=self.max_retry_delay,
        )


def load_settings(**overrides: Any) -> Settings:
    """
    Build settings from the environment with explicit overrides.

    Overrides are keyed by field name and typically come from CLI flags;
    None values are ignored so unset flags fall back to the environment.

    Args:
        **overrides: Field values that take precedence over the environment

    Returns:
        Validated Settings instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    values = {k: v for k, v in overrides.items() if v is not None}
    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigurationError(
            f"Failed to load configuration: {e}",
            reason=str(e),
        ) from e


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance built from the environment only.

    Returns:
        Validated Settings instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    return load_settings()
