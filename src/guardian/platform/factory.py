"""
Selection of the code review platform.

The platform is chosen from an explicit value first, then from the CI
system Guardian is running in, and falls back to the local platform.
"""

import os
import threading
from collections.abc import Mapping

from guardian.config import (
    PLATFORM_TYPE_GITHUB,
    PLATFORM_TYPE_GITLAB,
    PLATFORM_TYPE_LOCAL,
    SORTED_PLATFORM_TYPES,
    Settings,
)
from guardian.errors import ConfigurationError
from guardian.logging_config import get_logger, log_with_context
from guardian.platform.base import Platform
from guardian.platform.github import GitHubPlatform
from guardian.platform.gitlab import GitLabPlatform
from guardian.platform.local import LocalPlatform

logger = get_logger(__name__)

_TRUE_VALUES = frozenset({"1", "t", "true"})


def _is_truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in _TRUE_VALUES


def resolve_platform_type(explicit: str, environ: Mapping[str, str] | None = None) -> str:
    """
    Decide which platform to use.

    Args:
        explicit: Value of the platform flag, empty when unset
        environ: Environment to inspect (os.environ if None)

    Returns:
        One of github, gitlab or local

    Example:
        >>> resolve_platform_type("", {"GITLAB_CI": "true"})
        'gitlab'
    """
    explicit = explicit.strip().lower()
    if explicit:
        return explicit

    env = os.environ if environ is None else environ
    if _is_truthy(env.get("GITHUB_ACTIONS")):
        return PLATFORM_TYPE_GITHUB
    if _is_truthy(env.get("GITLAB_CI")):
        return PLATFORM_TYPE_GITLAB
    return PLATFORM_TYPE_LOCAL


def new_platform(settings: Settings, cancel_event: threading.Event | None = None) -> Platform:
    """
    Build the platform selected by settings.

    Args:
        settings: Guardian settings
        cancel_event: Event that aborts in-flight retries when set

    Returns:
        Platform instance

    Raises:
        ConfigurationError: If the platform is unsupported or lacks credentials
    """
    platform_type = resolve_platform_type(
        settings.platform,
        {
            "GITHUB_ACTIONS": str(settings.github_actions),
            "GITLAB_CI": str(settings.gitlab_ci),
        },
    )

    log_with_context(logger, "debug", "creating platform", platform=platform_type)

    if platform_type == PLATFORM_TYPE_GITHUB:
        return GitHubPlatform(settings, cancel_event=cancel_event)
    if platform_type == PLATFORM_TYPE_GITLAB:
        return GitLabPlatform(settings, cancel_event=cancel_event)
    if platform_type == PLATFORM_TYPE_LOCAL:
        return LocalPlatform()

    raise ConfigurationError(
        f"unknown platform type: {platform_type}",
        config_key="GUARDIAN_PLATFORM",
        reason=f"Allowed values are {SORTED_PLATFORM_TYPES}",
    )
