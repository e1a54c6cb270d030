"""
Resource error hierarchy with categorization and retry hints.

This module defines the error types raised while building resource instances
and while converging them through a provider. Validation errors are raised
before any provider interaction; provider errors abort the current sync pass.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..models.instance import ChangeReport


class ResourceError(Exception):
    """
    Base error class for all resource-related exceptions.

    Provides categorization, retry hints, and user guidance for resolution.
    """

    def __init__(
        self,
        message: str,
        category: str,
        retryable: bool = True,
        user_action: str | None = None,
        cause: Exception | None = None,
    ):
        """
        Initialize resource error.

        Args:
            message: Human-readable error description
            category: Error category (validation, schema, provider)
            retryable: Whether an orchestrator may retry the operation
            user_action: What user should do to resolve the issue
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.category = category
        self.retryable = retryable
        self.user_action = user_action
        self.cause = cause

    def __str__(self) -> str:
        """Enhanced string representation with user guidance."""
        base_msg = super().__str__()
        if self.user_action:
            return f"{base_msg}\nAction required: {self.user_action}"
        return base_msg


class ValidationError(ResourceError):
    """Error in a declared resource attribute."""

    def __init__(
        self, message: str, field: str | None = None, user_action: str | None = None
    ):
        action = user_action or "Check the resource declaration and fix invalid values"
        if field:
            message = f"Validation error in field '{field}': {message}"
        super().__init__(
            message=message, category="validation", retryable=False, user_action=action
        )
        self.field = field


class InvalidIdentityError(ValidationError):
    """Resource identity does not match the type's namevar pattern."""

    def __init__(self, identity: Any, resource_type: str, pattern: str):
        super().__init__(
            message=f"Invalid {resource_type} name {identity!r}: must match {pattern}",
            field="name",
            user_action="Use a non-empty name without whitespace",
        )
        self.identity = identity


class DuplicateIdentityError(ValidationError):
    """Two instances of the same type share an identity within one run."""

    def __init__(self, resource_type: str, identity: str):
        super().__init__(
            message=f"{resource_type} '{identity}' is declared more than once",
            field="name",
            user_action="Declare each resource identity only once per run",
        )
        self.identity = identity


class SchemaError(ResourceError):
    """Error in a resource type definition."""

    def __init__(self, message: str, user_action: str | None = None):
        super().__init__(
            message=message,
            category="schema",
            retryable=False,
            user_action=user_action or "Fix the resource type declaration",
        )


class DuplicateNameError(SchemaError):
    """A property with the same name is already registered on the schema."""

    def __init__(self, resource_type: str, name: str):
        super().__init__(
            message=f"Property '{name}' is already declared on {resource_type}",
            user_action="Give every property of a resource type a unique name",
        )
        self.name = name


class ProviderError(ResourceError):
    """Failure surfaced by a provider call during a sync pass."""

    def __init__(
        self,
        message: str,
        operation: str,
        identity: str | None = None,
        property_name: str | None = None,
        retryable: bool = True,
        user_action: str | None = None,
        cause: Exception | None = None,
    ):
        target = identity or "<unknown>"
        if property_name:
            target = f"{target}.{property_name}"
        super().__init__(
            message=f"Provider {operation} failed for {target}: {message}",
            category="provider",
            retryable=retryable,
            user_action=user_action
            or "Check that the managed service is reachable and retry the run",
            cause=cause,
        )
        self.operation = operation
        self.identity = identity
        self.property_name = property_name
        self.applied_changes: list["ChangeReport"] = []


class InsyncCheckError(ProviderError):
    """Failure while evaluating a property's equivalence check."""

    def __init__(
        self,
        message: str,
        identity: str | None = None,
        property_name: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(
            message=message,
            operation="insync",
            identity=identity,
            property_name=property_name,
            user_action="Check that the managed service can verify the property",
            cause=cause,
        )
