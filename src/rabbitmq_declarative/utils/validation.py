"""
Validation utilities for declarative resources.

This module provides reusable value validators used by resource type
declarations. Every validator raises ValidationError with the offending
field name so that failures surface before any provider interaction.
"""

import logging
import re
from collections.abc import Collection
from typing import Any

from ..constants import ADMIN_FALSE, ADMIN_TRUE, NO_WHITESPACE_PATTERN
from ..errors import ValidationError

logger = logging.getLogger(__name__)

_NO_WHITESPACE_RE = re.compile(NO_WHITESPACE_PATTERN)
_BOOLEAN_LITERAL_RE = re.compile(rf"^({ADMIN_TRUE}|{ADMIN_FALSE})$")


def matches_no_whitespace(value: Any) -> bool:
    """Return True if value is a non-empty string without whitespace."""
    return isinstance(value, str) and _NO_WHITESPACE_RE.fullmatch(value) is not None


def validate_no_whitespace(value: Any, field: str, label: str = "value") -> None:
    """
    Validate that a value is a non-empty string without whitespace.

    Args:
        value: Value to validate
        field: Field name for error messages
        label: Noun describing the value (e.g. "tag")

    Raises:
        ValidationError: If value is not a string, is empty or contains whitespace
    """
    if not isinstance(value, str):
        raise ValidationError(
            f"Invalid {label}: {value!r} must be a string", field=field
        )

    if not value:
        raise ValidationError(f"Invalid {label}: cannot be empty", field=field)

    if not _NO_WHITESPACE_RE.fullmatch(value):
        raise ValidationError(
            f"Invalid {label}: {value!r} must not contain whitespace", field=field
        )


def validate_not_reserved(
    value: Any,
    reserved: Collection[str],
    field: str,
    user_action: str | None = None,
) -> None:
    """
    Validate that a value is not one of the reserved values.

    Args:
        value: Value to validate
        reserved: Values that may not be used
        field: Field name for error messages
        user_action: Guidance for resolving the error

    Raises:
        ValidationError: If value is reserved
    """
    if value in reserved:
        raise ValidationError(
            f"{value!r} is reserved and cannot be used here",
            field=field,
            user_action=user_action,
        )


def boolean_literal(value: Any) -> Any:
    """Convert a Python bool to its lowercase string form; pass anything else through."""
    if isinstance(value, bool):
        return ADMIN_TRUE if value else ADMIN_FALSE
    return value


def validate_boolean_literal(value: Any, field: str) -> None:
    """
    Validate that a value is the literal "true" or "false".

    Python booleans are accepted and treated as their lowercase string form.
    Other truthy spellings ("yes", "True", 1) are rejected.

    Args:
        value: Value to validate
        field: Field name for error messages

    Raises:
        ValidationError: If value is not a boolean literal
    """
    literal = boolean_literal(value)
    if not isinstance(literal, str) or not _BOOLEAN_LITERAL_RE.fullmatch(literal):
        raise ValidationError(
            f"Invalid value {value!r}. Valid values are {ADMIN_TRUE}, {ADMIN_FALSE}",
            field=field,
        )

    logger.debug(f"Validated boolean literal for {field}: {literal}")
