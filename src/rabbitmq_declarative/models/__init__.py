"""
Models package - schemas and pydantic models for declarative resources.

Defines data models for:
- Resource type schemas and property declarations
- Desired-state resource instances
- Change reports and observed resource state
"""

from .instance import AutoRequirement, ChangeReport, ObservedResource, ResourceInstance
from .schema import (
    EnsureState,
    InsyncContext,
    PropertyDeclaration,
    PropertyKind,
    ResourceTypeSchema,
    format_value,
)

__all__ = [
    "AutoRequirement",
    "ChangeReport",
    "EnsureState",
    "InsyncContext",
    "ObservedResource",
    "PropertyDeclaration",
    "PropertyKind",
    "ResourceInstance",
    "ResourceTypeSchema",
    "format_value",
]
