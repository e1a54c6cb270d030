"""
Pydantic models for resource instances and reconciliation results.

This module defines the desired-state instance built from user-declared
attributes, the change reports produced by a sync pass, and the observed
state returned when querying existing resources.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import ENSURE_PRESENT


def _freeze(value: Any) -> Any:
    if isinstance(value, list | tuple):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


class AutoRequirement(BaseModel):
    """Implicit dependency of a resource on another named resource."""

    model_config = ConfigDict(frozen=True)

    resource_type: str = Field(..., description="Type of the required resource")
    name: str = Field(..., description="Name of the required resource")

    def __str__(self) -> str:
        return f"{self.resource_type.capitalize()}[{self.name}]"


class ResourceInstance(BaseModel):
    """
    Desired state of one resource, validated and munged at build time.

    Instances are immutable: the identity never changes once built, and the
    desired values are canonical so that insync checks only ever compare
    munged desired values against raw actual values.
    """

    model_config = ConfigDict(frozen=True)

    resource_type: str = Field(..., description="Name of the resource type")
    identity: str = Field(..., description="Value of the namevar property")
    ensure: str = Field(ENSURE_PRESENT, description="Desired ensure state")
    # Excluded from repr so secrets never end up in logs or tracebacks
    desired_values: Mapping[str, Any] = Field(
        default_factory=dict,
        repr=False,
        validate_default=True,
        description="Desired property values keyed by property name",
    )
    requirements: tuple[AutoRequirement, ...] = Field(
        default=(), description="Implicit ordering hints for an external scheduler"
    )

    @field_validator("desired_values", mode="after")
    @classmethod
    def freeze_desired_values(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        """Store desired values read-only, with lists as tuples."""
        return MappingProxyType({name: _freeze(item) for name, item in value.items()})

    @property
    def ref(self) -> str:
        """Human-readable reference, e.g. Rabbitmq_user[dan]."""
        return f"{self.resource_type.capitalize()}[{self.identity}]"

    def desired(self, property_name: str) -> Any:
        """Return a copy of the desired value of a property, or None if not managed."""
        return _thaw(self.desired_values.get(property_name))

    def desired_mapping(self) -> dict[str, Any]:
        """Return a mutable copy of all desired values, lists as lists."""
        return {name: _thaw(value) for name, value in self.desired_values.items()}


class ChangeReport(BaseModel):
    """One applied (or, in noop mode, pending) change of a single property."""

    model_config = ConfigDict(frozen=True)

    resource_type: str
    identity: str
    property_name: str = Field(..., description="Property that changed")
    from_display: str = Field(..., description="Displayed actual value")
    to_display: str = Field(..., description="Displayed desired value")
    message: str = Field(..., description="Human-readable change description")
    noop: bool = Field(False, description="True if the change was not applied")

    def __str__(self) -> str:
        suffix = " (noop)" if self.noop else ""
        return f"{self.resource_type}[{self.identity}]/{self.property_name}: {self.message}{suffix}"


class ObservedResource(BaseModel):
    """Actual state of an existing managed resource."""

    model_config = ConfigDict(frozen=True)

    resource_type: str
    identity: str
    ensure: str = ENSURE_PRESENT
    values: dict[str, Any] = Field(
        default_factory=dict,
        description="Actual values of every readable, non-secret property",
    )
