"""Validation of caller-supplied values before they become bd arguments.

Injection is prevented structurally: bd is spawned without a shell, user
text is passed as separate argv elements, and positional user values are
preceded by `--`. These checks close the remaining gaps (flag injection and
malformed identifiers) without altering free-text content.
"""

import re

# [project.]prefix-suffix, alphanumeric segments joined by single . - or _
# (the prefix itself may only join segments with _)
_ISSUE_ID_PATTERN = re.compile(
    r"^([a-z0-9]+([._-][a-z0-9]+)*\.)?[a-z0-9]+(_[a-z0-9]+)*-[a-z0-9]+([._-][a-z0-9]+)*$",
    re.IGNORECASE,
)
_SHELL_METACHARACTERS = re.compile(r"[;&|`$(){}\[\]<>\\'\"]")
_WHITESPACE = re.compile(r"\s")
_CONTROL_CHARACTERS = re.compile(r"[\x00-\x1f\x7f]")


class InvalidInputError(ValueError):
    """Raised when a value must not be passed to bd."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


def _printable(value: str) -> str:
    """Render a value for an error message with control characters escaped."""
    return _CONTROL_CHARACTERS.sub(lambda m: f"\\x{ord(m.group()):02x}", value)


def sanitize_arg(value: object) -> str:
    """Coerce to str and strip NUL bytes.

    Newlines and other whitespace are preserved; descriptions and notes carry
    markdown.
    """
    text = value if isinstance(value, str) else str(value)
    return text.replace("\0", "")


def validate_issue_id(issue_id: object) -> str:
    """Return the id unchanged, or raise InvalidInputError."""
    if not isinstance(issue_id, str) or not issue_id:
        raise InvalidInputError("issue_id", "Issue ID must be a non-empty string")

    shown = _printable(issue_id)
    if issue_id.startswith("-"):
        raise InvalidInputError("issue_id", f"Invalid issue ID: cannot start with hyphen ({shown})")

    if _WHITESPACE.search(issue_id):
        raise InvalidInputError("issue_id", f"Invalid issue ID: whitespace not allowed ({shown})")

    if _SHELL_METACHARACTERS.search(issue_id):
        raise InvalidInputError(
            "issue_id", f"Invalid issue ID: contains shell metacharacters ({shown})"
        )

    if _ISSUE_ID_PATTERN.match(issue_id) is None:
        raise InvalidInputError(
            "issue_id",
            f"Invalid issue ID format: {shown}. Expected prefix-suffix or project.prefix-suffix",
        )

    return issue_id


def validate_flag_value(value: str | None, field_name: str) -> None:
    """Reject values that bd's argument parser could read as a flag."""
    if value and value.startswith("-"):
        raise InvalidInputError(
            field_name, f"{field_name} cannot start with hyphen (possible flag injection attempt)"
        )
