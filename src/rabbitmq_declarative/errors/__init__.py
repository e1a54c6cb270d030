"""
Error handling module for declarative resources.

This module provides the error hierarchy used when building resource
instances and converging them through a provider.
"""

from .resource_errors import (
    DuplicateIdentityError,
    DuplicateNameError,
    InsyncCheckError,
    InvalidIdentityError,
    ProviderError,
    ResourceError,
    SchemaError,
    ValidationError,
)

__all__ = [
    "ResourceError",
    "ValidationError",
    "InvalidIdentityError",
    "DuplicateIdentityError",
    "SchemaError",
    "DuplicateNameError",
    "ProviderError",
    "InsyncCheckError",
]
