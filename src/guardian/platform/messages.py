"""
Rendering of Guardian status comments.

Every rendered message starts with COMMENT_PREFIX. Platforms rely on that
prefix to find and delete Guardian's own comments, so changing it orphans
every comment posted before the change.
"""

import re

from guardian.platform.models import EntrypointsSummaryParams, Status, StatusParams

COMMENT_PREFIX = "#### 🔱 Guardian 🔱"
TRUNCATED_MESSAGE = (
    "\n\n> Message has been truncated. See workflow logs to view the full message."
)

GITHUB_MAX_COMMENT_LENGTH = 65536
# https://docs.gitlab.com/ee/administration/instance_limits.html#size-of-comments-and-descriptions-of-issues-merge-requests-and-epics
GITLAB_MAX_COMMENT_LENGTH = 1000000

STATUS_TEXT: dict[Status, str] = {
    Status.SUCCESS: "🟩 SUCCESS",
    Status.NO_OPERATION: "🟦 NO CHANGES",
    Status.FAILURE: "🟥 FAILED",
    Status.UNKNOWN: "⛔️ UNKNOWN",
    Status.POLICY_VIOLATION: "🚨 ATTENTION REQUIRED",
}

# Terraform marks in-place changes with "~"; diff highlighting wants "!".
_TILDE_CHANGED = re.compile(r"^([\t ]*)~", re.MULTILINE)

# Move leading indentation after the diff sigil (+, -, +/-, -/+, !) so the
# sigil lands in the first column.
_SWAP_LEADING_WHITESPACE = re.compile(
    r"^([\t ]*)((-(/\+)*)|(\+(/-)*)|(!))",
    re.MULTILINE,
)


def markdown_pill(text: str) -> str:
    """Return text bolded and wrapped in an inline code block."""
    return f"**`{text}`**"


def markdown_url(text: str, url: str) -> str:
    """Return a markdown link."""
    return f"[{text}]({url})"


def markdown_zippy(title: str, body: str) -> str:
    """Return a collapsible section."""
    return f"<details>\n<summary>{title}</summary>\n\n`{body}`\n</details>"


def markdown_diff_zippy(title: str, body: str) -> str:
    """Return a collapsible section holding a diff code block."""
    return f"<details>\n<summary>{title}</summary>\n\n```diff\n\n{body}\n```\n</details>"


def format_output_for_diff(content: str) -> str:
    """
    Format Terraform plan output for markdown diff highlighting.

    The tilde pass must run before the whitespace pass, since the latter
    only knows about "!".

    Args:
        content: Raw Terraform output

    Returns:
        Output with diff sigils moved to the first column

    Example:
        >>> format_output_for_diff("    ~ name = a")
        '!     name = a'
    """
    content = _TILDE_CHANGED.sub(r"\1!", content)
    return _SWAP_LEADING_WHITESPACE.sub(r"\2\1", content)


def status_message(
    status: Status | str,
    params: StatusParams,
    log_url: str,
    max_length: int,
) -> str:
    """
    Build the status comment for a Guardian run.

    If the whole message would be longer than max_length code points, the
    details section is replaced by a notice pointing at the logs. The
    details are never cut part way through.

    Args:
        status: Status of the run; unknown values render as UNKNOWN
        params: What to render
        log_url: Link to the run logs, omitted when empty
        max_length: Maximum message length; negative disables truncation

    Returns:
        Markdown message starting with COMMENT_PREFIX
    """
    parts: list[str] = [COMMENT_PREFIX]

    operation_text = params.operation.strip().upper()
    if operation_text:
        parts.append(f" {markdown_pill(operation_text)}")

    try:
        status_text = STATUS_TEXT[Status(status)]
    except ValueError:
        status_text = STATUS_TEXT[Status.UNKNOWN]
    parts.append(f" {markdown_pill(status_text)}")

    if log_url:
        parts.append(f" [{markdown_url('logs', log_url)}]")

    if params.dir:
        parts.append(f"\n\n**Entrypoint:** {params.dir}")

    if params.message:
        parts.append(f"\n\n {params.message}")

    if params.error_message:
        parts.append(f"\n\n **Error:** `{params.error_message}`")

    msg = "".join(parts)

    if params.details:
        if params.has_diff:
            details_text = f"\n\n{markdown_diff_zippy('Details', format_output_for_diff(params.details))}"
        else:
            details_text = f"\n\n{markdown_zippy('Details', params.details)}"

        if max_length >= 0 and len(msg) + len(details_text) > max_length:
            details_text = TRUNCATED_MESSAGE

        msg += details_text

    return msg


def entrypoints_summary_message(params: EntrypointsSummaryParams, log_url: str) -> str:
    """
    Build the entrypoints summary comment.

    Args:
        params: Summary message and directories
        log_url: Link to the run logs, omitted when empty

    Returns:
        Markdown message starting with COMMENT_PREFIX
    """
    msg = COMMENT_PREFIX

    if log_url:
        msg += f" [{markdown_url('logs', log_url)}]"

    if params.message:
        msg += f"\n\n{params.message}"

    if params.dirs:
        msg += "\n\n**Directories**\n" + "\n".join(params.dirs)

    return msg
