"""
Policy data file handling.

The policy data gathered from the platform is saved as JSON so that a
policy engine in a later CI step can evaluate it.
"""

import os
from pathlib import Path

from pydantic import ValidationError

from guardian.errors import ConfigurationError
from guardian.logging_config import get_logger, log_with_context
from guardian.platform.base import Platform
from guardian.platform.models import GetPolicyDataResult

logger = get_logger(__name__)

POLICY_DATA_FILENAME = "guardian_policy_context.json"
OWNER_READ_WRITE_PERMS = 0o600


def write_policy_data(result: GetPolicyDataResult, output_dir: str | Path = ".") -> Path:
    """
    Write policy data as JSON, readable by the owner only.

    Unset variants are omitted from the output; pull request approvers that
    were not fetched are written as null.

    Args:
        result: Policy data to save
        output_dir: Directory to write POLICY_DATA_FILENAME into

    Returns:
        Absolute path of the written file
    """
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / POLICY_DATA_FILENAME

    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, OWNER_READ_WRITE_PERMS)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(result.model_dump_json())

    log_with_context(logger, "debug", "wrote policy data", path=str(path))
    return path.resolve()


def read_policy_data(path: str | Path) -> GetPolicyDataResult:
    """
    Load policy data written by write_policy_data.

    Raises:
        ConfigurationError: If the file cannot be read or is not valid policy data
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
        return GetPolicyDataResult.model_validate_json(content)
    except (OSError, ValidationError) as e:
        raise ConfigurationError(
            f"failed to read policy data from {path}: {e}",
            config_key="policy_data",
            reason=str(e),
        ) from e


def fetch_policy_data(platform: Platform, output_dir: str | Path = ".") -> Path:
    """Gather policy data from a platform and save it."""
    return write_policy_data(platform.get_policy_data(), output_dir)
