"""
Utils package - Helper modules for declarative resources.

Contains helper modules for:
- Input validation of declared attribute values
"""

from rabbitmq_declarative.utils.validation import (
    boolean_literal,
    matches_no_whitespace,
    validate_boolean_literal,
    validate_no_whitespace,
    validate_not_reserved,
)

__all__ = [
    "boolean_literal",
    "matches_no_whitespace",
    "validate_boolean_literal",
    "validate_no_whitespace",
    "validate_not_reserved",
]
