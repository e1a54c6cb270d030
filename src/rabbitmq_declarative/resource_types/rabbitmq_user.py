"""
The rabbitmq_user resource type.

Declares a RabbitMQ broker user: its name, password, admin flag and
additional tags. Convergence against the broker is left to a Provider.

Example declaration::

    rabbitmq_user = build_rabbitmq_user_schema()
    dan = rabbitmq_user.build_instance(
        {"name": "dan", "admin": True, "password": "bar", "tags": ["monitoring", "tag1"]}
    )

The administrator tag is expressed through the admin property, never
through tags.
"""

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from ..constants import (
    ADMIN_FALSE,
    ADMIN_TRUE,
    ADMINISTRATOR_TAG,
    ENSURE_PRESENT,
    ENSURE_PROPERTY,
    NAMEVAR_PROPERTY,
    PASSWORD_CHANGED_MESSAGE,
    RABBITMQ_SERVICE_TYPE,
    RABBITMQ_USER_TYPE,
)
from ..errors import ValidationError
from ..models.schema import (
    InsyncContext,
    PropertyDeclaration,
    PropertyKind,
    ResourceTypeSchema,
)
from ..settings import settings
from ..utils.validation import (
    boolean_literal,
    validate_boolean_literal,
    validate_no_whitespace,
    validate_not_reserved,
)


class AdminFlag(StrEnum):
    """Canonical values of the admin property."""

    TRUE = ADMIN_TRUE
    FALSE = ADMIN_FALSE


def validate_admin(value: Any) -> None:
    validate_boolean_literal(value, field="admin")


def munge_admin(value: Any) -> AdminFlag:
    """Coerce "true"/"false" (or a bool) to the canonical AdminFlag."""
    return AdminFlag(boolean_literal(value))


def validate_tag(value: Any) -> None:
    """Validate one tag entry."""
    validate_no_whitespace(value, field="tags", label="tag")
    validate_not_reserved(
        value,
        {ADMINISTRATOR_TAG},
        field="tags",
        user_action="must use admin property instead of administrator tag",
    )


def validate_password(value: Any) -> None:
    if not isinstance(value, str) or not value:
        raise ValidationError("password must be a non-empty string", field="password")


def tags_insync(actual: Any, desired: Any, context: InsyncContext) -> bool:
    """Tags compare order-insensitively; the broker does not keep tag order."""
    return sorted(actual or []) == sorted(desired or [])


def password_insync(actual: Any, desired: Any, context: InsyncContext) -> bool:
    """Ask the broker whether the desired password is the current one."""
    return context.provider.check_secret(context.identity, desired)


def require_password_when_present(identity: str, values: Mapping[str, Any]) -> None:
    if values.get(ENSURE_PROPERTY) == ENSURE_PRESENT and values.get("password") is None:
        raise ValidationError(
            f"password is required for {RABBITMQ_USER_TYPE} '{identity}'",
            field="password",
            user_action="Set a password or declare ensure => absent",
        )


def build_rabbitmq_user_schema() -> ResourceTypeSchema:
    """Build the schema of the rabbitmq_user resource type."""
    schema = ResourceTypeSchema(
        RABBITMQ_USER_TYPE, description="Native type for managing rabbitmq users"
    )

    # Resolved per instance so RABBITMQ_SERVICE_NAME overrides apply
    schema.autorequire(RABBITMQ_SERVICE_TYPE, lambda: settings.rabbitmq_service_name)

    schema.register(
        PropertyDeclaration(
            name=NAMEVAR_PROPERTY,
            kind=PropertyKind.NAMEVAR,
            description="Name of user",
        )
    )
    schema.register(
        PropertyDeclaration(
            name="password",
            description="User password to be set on creation and validated each run",
            validate=validate_password,
            insync=password_insync,
            redact=True,
            reads_actual=False,
            change_message=PASSWORD_CHANGED_MESSAGE,
        )
    )
    schema.register(
        PropertyDeclaration(
            name="admin",
            description="Whether or not user should be an admin",
            validate=validate_admin,
            munge=munge_admin,
            default=lambda: AdminFlag.FALSE,
        )
    )
    schema.register(
        PropertyDeclaration(
            name="tags",
            kind=PropertyKind.ORDERED_LIST,
            description="Additional tags for the user",
            validate=validate_tag,
            default=list,
            insync=tags_insync,
        )
    )
    schema.add_instance_validator(require_password_when_present)
    return schema


RABBITMQ_USER = build_rabbitmq_user_schema()
