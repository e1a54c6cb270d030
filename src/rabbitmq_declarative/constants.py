"""
Constants used throughout the declarative resource core.

This module defines all constant values used by the package including:
- Ensure lifecycle values
- Reserved property names
- Redaction markers and change messages
- RabbitMQ user type defaults
"""

# Ensure lifecycle values
ENSURE_PRESENT = "present"
ENSURE_ABSENT = "absent"

# Reserved property names
NAMEVAR_PROPERTY = "name"
ENSURE_PROPERTY = "ensure"

# Identity pattern shared by names and tags: non-empty, no whitespace
NO_WHITESPACE_PATTERN = r"^\S+$"

# Redaction markers for sensitive properties; formatted with the property name
REDACTED_FROM_TEMPLATE = "[old {name} redacted]"
REDACTED_TO_TEMPLATE = "[new {name} redacted]"

# Change report messages for lifecycle transitions
MESSAGE_CREATED = "created"
MESSAGE_REMOVED = "removed"

# RabbitMQ user type
RABBITMQ_USER_TYPE = "rabbitmq_user"
RABBITMQ_SERVICE_TYPE = "service"
DEFAULT_RABBITMQ_SERVICE_NAME = "rabbitmq-server"
ADMINISTRATOR_TAG = "administrator"
ADMIN_TRUE = "true"
ADMIN_FALSE = "false"
PASSWORD_CHANGED_MESSAGE = "password has been changed"

# RabbitMQ salted password hashing (rabbit_password_hashing_sha256)
PASSWORD_SALT_BYTES = 4
