"""
Resource type schemas and property declarations.

A ResourceTypeSchema is built once per resource type. It holds the ordered
PropertyDeclarations of the type, the ensure lifecycle values and the
implicit ordering hints. Schemas are pure metadata: building one and
building instances from it never touches a managed system.
"""

import logging
import re
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from ..constants import (
    ENSURE_ABSENT,
    ENSURE_PRESENT,
    ENSURE_PROPERTY,
    NO_WHITESPACE_PATTERN,
    REDACTED_FROM_TEMPLATE,
    REDACTED_TO_TEMPLATE,
)
from ..errors import (
    DuplicateNameError,
    InvalidIdentityError,
    SchemaError,
    ValidationError,
)
from .instance import AutoRequirement, ResourceInstance

if TYPE_CHECKING:
    from ..providers.base import Provider

logger = logging.getLogger(__name__)


class PropertyKind(StrEnum):
    """Kind of a declared property."""

    NAMEVAR = "namevar"
    ENSURABLE = "ensurable-enum"
    SCALAR = "scalar"
    ORDERED_LIST = "ordered-list"


class EnsureState(StrEnum):
    """Built-in ensure lifecycle values."""

    PRESENT = ENSURE_PRESENT
    ABSENT = ENSURE_ABSENT


@dataclass(frozen=True)
class InsyncContext:
    """What an insync check may use besides the two values it compares."""

    resource_type: str
    identity: str
    provider: "Provider"


type Validator = Callable[[Any], None]
type Munger = Callable[[Any], Any]
type DefaultFactory = Callable[[], Any]
type InsyncCheck = Callable[[Any, Any, InsyncContext], bool]
type InstanceValidator = Callable[[str, Mapping[str, Any]], None]


def format_value(value: Any) -> str:
    """Default display of a property value in change reports."""
    if value is None:
        return "absent"
    if isinstance(value, list | tuple):
        return "[" + ", ".join(str(item) for item in value) + "]"
    return str(value)


@dataclass(frozen=True)
class PropertyDeclaration:
    """
    Declaration of one property of a resource type.

    Every rule is an explicit function value: ``validate`` raises
    ValidationError for malformed desired values, ``munge`` returns the
    canonical form, ``default`` supplies a value when none is declared and
    ``insync`` decides whether an actual value satisfies a desired one.
    For ordered-list properties ``validate`` and ``munge`` apply per entry.

    Attributes:
        name: Property name, unique within the schema
        kind: Property kind
        description: Human-readable documentation
        validate: Optional validator
        munge: Optional normalizer
        default: Optional default factory
        insync: Optional equivalence check, value equality if not given
        redact: Never reveal values of this property in change reports
        reads_actual: Fetch the actual value through Provider.read before
            calling insync. Secrets are checked live and never read back.
        change_message: Fixed message for change reports
    """

    name: str
    kind: PropertyKind = PropertyKind.SCALAR
    description: str = ""
    validate: Validator | None = None
    munge: Munger | None = None
    default: DefaultFactory | None = None
    insync: InsyncCheck | None = None
    redact: bool = False
    reads_actual: bool = True
    change_message: str | None = None

    def apply(self, value: Any) -> Any:
        """Validate and munge a declared value, returning the canonical form."""
        if self.kind == PropertyKind.ORDERED_LIST:
            # A single scalar is treated as a one-element list
            entries = list(value) if isinstance(value, list | tuple) else [value]
            return [self._apply_one(entry) for entry in entries]
        return self._apply_one(value)

    def _apply_one(self, value: Any) -> Any:
        if self.validate is not None:
            self.validate(value)
        if self.munge is not None:
            return self.munge(value)
        return value

    def default_value(self) -> Any:
        """Return the default value, or None if the property has no default."""
        if self.default is None:
            return None
        return self.default()

    def is_insync(self, actual: Any, desired: Any, context: InsyncContext) -> bool:
        """Decide whether the actual value satisfies the desired one."""
        if self.insync is not None:
            return self.insync(actual, desired, context)
        return actual == desired

    def display_from(self, actual: Any) -> str:
        """Display an actual value, redacted if the property is sensitive."""
        if self.redact:
            return REDACTED_FROM_TEMPLATE.format(name=self.name)
        return format_value(actual)

    def display_to(self, desired: Any) -> str:
        """Display a desired value, redacted if the property is sensitive."""
        if self.redact:
            return REDACTED_TO_TEMPLATE.format(name=self.name)
        return format_value(desired)

    def describe_change(self, actual: Any, desired: Any) -> str:
        """Human-readable description of a change of this property."""
        if self.change_message is not None:
            return self.change_message
        if self.redact:
            return f"{self.name} changed"
        if actual is None:
            return f"defined '{self.name}' as '{format_value(desired)}'"
        return f"{self.name} changed '{format_value(actual)}' to '{format_value(desired)}'"


class ResourceTypeSchema:
    """
    Declaration table of a resource type.

    Holds the ordered PropertyDeclarations, the ensure lifecycle values and
    the auto-requirements of the type. The ensure property is declared
    automatically; the namevar must be registered exactly once.

    Example:
        schema = ResourceTypeSchema("rabbitmq_user")
        schema.register(PropertyDeclaration("name", kind=PropertyKind.NAMEVAR))
        schema.register(PropertyDeclaration("tags", kind=PropertyKind.ORDERED_LIST))
        instance = schema.build_instance({"name": "dan", "tags": ["monitoring"]})
    """

    def __init__(
        self,
        name: str,
        description: str = "",
        namevar_pattern: str = NO_WHITESPACE_PATTERN,
        ensure_values: Sequence[str] = (ENSURE_PRESENT, ENSURE_ABSENT),
        default_ensure: str = ENSURE_PRESENT,
    ):
        """
        Initialize an empty schema with its ensure property declared.

        Args:
            name: Resource type name
            description: Human-readable documentation of the type
            namevar_pattern: Regex every identity must match
            ensure_values: Allowed ensure values
            default_ensure: Ensure value used when none is declared

        Raises:
            SchemaError: If default_ensure is not an allowed ensure value
        """
        if default_ensure not in ensure_values:
            raise SchemaError(
                f"Default ensure '{default_ensure}' of {name} is not one of {list(ensure_values)}"
            )

        self.name = name
        self.description = description
        self.namevar_pattern = namevar_pattern
        self.ensure_values = tuple(ensure_values)
        self._namevar_re = re.compile(namevar_pattern)
        self._declarations: dict[str, PropertyDeclaration] = {}
        self._requirements: list[tuple[str, str | Callable[[], str]]] = []
        self._instance_validators: list[InstanceValidator] = []

        self.register(
            PropertyDeclaration(
                name=ENSURE_PROPERTY,
                kind=PropertyKind.ENSURABLE,
                description="Whether the resource should exist",
                validate=self._validate_ensure,
                default=lambda: default_ensure,
            )
        )

    def _validate_ensure(self, value: Any) -> None:
        if value not in self.ensure_values:
            raise ValidationError(
                f"Invalid value {value!r}. Valid values are {', '.join(self.ensure_values)}",
                field=ENSURE_PROPERTY,
            )

    def register(self, declaration: PropertyDeclaration) -> PropertyDeclaration:
        """
        Append a property declaration.

        Args:
            declaration: Property to declare

        Returns:
            The registered declaration

        Raises:
            DuplicateNameError: If a property with the same name exists
            SchemaError: If a second namevar or ensure property is declared
        """
        if declaration.name in self._declarations:
            raise DuplicateNameError(self.name, declaration.name)

        if declaration.kind == PropertyKind.NAMEVAR and self._find_namevar():
            raise SchemaError(f"{self.name} already declares a namevar")

        if declaration.kind == PropertyKind.ENSURABLE and self._declarations:
            raise SchemaError(f"{self.name} declares ensure automatically")

        self._declarations[declaration.name] = declaration
        logger.debug(f"Registered {declaration.kind} property {self.name}.{declaration.name}")
        return declaration

    def autorequire(self, resource_type: str, name: str | Callable[[], str]) -> None:
        """
        Declare an implicit dependency on another named resource.

        Args:
            resource_type: Type of the required resource (e.g. "service")
            name: Name of the required resource, or a callable resolving it
                when instances are built
        """
        self._requirements.append((resource_type, name))

    def add_instance_validator(self, validator: InstanceValidator) -> None:
        """
        Add a check across the attributes of a whole instance.

        The validator receives the identity and the canonical values
        (ensure included) and raises ValidationError on failure.
        """
        self._instance_validators.append(validator)

    def _find_namevar(self) -> PropertyDeclaration | None:
        for declaration in self._declarations.values():
            if declaration.kind == PropertyKind.NAMEVAR:
                return declaration
        return None

    @property
    def namevar(self) -> PropertyDeclaration:
        """The property serving as identity key."""
        namevar = self._find_namevar()
        if namevar is None:
            raise SchemaError(f"{self.name} does not declare a namevar")
        return namevar

    def get(self, name: str) -> PropertyDeclaration:
        """Look up a declaration by name."""
        try:
            return self._declarations[name]
        except KeyError:
            raise KeyError(f"{self.name} has no property named '{name}'") from None

    def properties(self) -> list[PropertyDeclaration]:
        """Declared properties in order, excluding the namevar and ensure."""
        return [
            declaration
            for declaration in self._declarations.values()
            if declaration.kind not in (PropertyKind.NAMEVAR, PropertyKind.ENSURABLE)
        ]

    def __contains__(self, name: object) -> bool:
        return name in self._declarations

    def __iter__(self) -> Iterator[PropertyDeclaration]:
        return iter(self._declarations.values())

    def __len__(self) -> int:
        return len(self._declarations)

    def __repr__(self) -> str:
        return f"ResourceTypeSchema({self.name!r}, properties={list(self._declarations)})"

    def validate_identity(self, identity: Any) -> str:
        """
        Validate an identity against the namevar pattern and validator.

        Raises:
            InvalidIdentityError: If the identity is missing or malformed
        """
        if not isinstance(identity, str) or not self._namevar_re.fullmatch(identity):
            raise InvalidIdentityError(identity, self.name, self.namevar_pattern)

        return self.namevar.apply(identity)

    def requirements_for(self, identity: str) -> tuple[AutoRequirement, ...]:
        """Resolve the auto-requirements of an instance."""
        return tuple(
            AutoRequirement(
                resource_type=resource_type,
                name=name() if callable(name) else name,
            )
            for resource_type, name in self._requirements
        )

    def check_instance(self, instance: ResourceInstance) -> None:
        """
        Re-validate an instance against this schema.

        Instances constructed directly rather than through build_instance
        go through the same identity, ensure, property and instance rules.
        Validators must accept canonical (munged) values.

        Raises:
            InvalidIdentityError: If the identity is missing or malformed
            ValidationError: If the ensure value or any desired value is invalid
        """
        self.validate_identity(instance.identity)
        self._validate_ensure(instance.ensure)

        values = instance.desired_mapping()
        for name, value in values.items():
            declaration = self._declarations.get(name)
            if declaration is None or declaration.kind in (
                PropertyKind.NAMEVAR,
                PropertyKind.ENSURABLE,
            ):
                raise ValidationError(f"{self.name} has no property '{name}'", field=name)
            if value is not None:
                declaration.apply(value)

        for validator in self._instance_validators:
            validator(instance.identity, {ENSURE_PROPERTY: instance.ensure, **values})

    def build_instance(self, attributes: Mapping[str, Any]) -> ResourceInstance:
        """
        Build a validated, munged desired-state instance.

        Args:
            attributes: User-declared attributes keyed by property name

        Returns:
            Immutable ResourceInstance

        Raises:
            InvalidIdentityError: If the identity is missing or malformed
            ValidationError: If any attribute is unknown or invalid
        """
        namevar = self.namevar

        for key in attributes:
            if key not in self._declarations:
                raise ValidationError(
                    f"{self.name} has no attribute '{key}'",
                    field=key,
                    user_action=f"Use one of: {', '.join(self._declarations)}",
                )

        identity = self.validate_identity(attributes.get(namevar.name))

        values: dict[str, Any] = {}
        for declaration in self._declarations.values():
            if declaration.kind == PropertyKind.NAMEVAR:
                continue
            declared = attributes.get(declaration.name)
            if declared is not None:
                values[declaration.name] = declaration.apply(declared)
            else:
                values[declaration.name] = declaration.default_value()

        for validator in self._instance_validators:
            validator(identity, values)

        return ResourceInstance(
            resource_type=self.name,
            identity=identity,
            ensure=values[ENSURE_PROPERTY],
            desired_values={
                name: value for name, value in values.items() if name != ENSURE_PROPERTY
            },
            requirements=self.requirements_for(identity),
        )
