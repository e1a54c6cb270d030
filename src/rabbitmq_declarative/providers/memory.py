"""
In-memory RabbitMQ user provider.

This provider keeps broker users in process memory and mirrors how a
RabbitMQ node stores them: passwords are kept only as salted SHA-256
hashes (rabbit_password_hashing_sha256), and the admin flag is the
"administrator" tag. It is used as a stand-in broker for dry runs,
examples and tests.
"""

import base64
import hashlib
import hmac
import logging
import secrets
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..constants import (
    ADMIN_FALSE,
    ADMIN_TRUE,
    ADMINISTRATOR_TAG,
    PASSWORD_SALT_BYTES,
)
from ..errors import ProviderError
from .base import Provider

logger = logging.getLogger(__name__)


def hash_password(password: str, salt: bytes | None = None) -> str:
    """
    Hash a password the way RabbitMQ stores it.

    The stored form is base64(salt + sha256(salt + password)) with a
    4-byte random salt.

    Args:
        password: Plaintext password
        salt: Salt to use, random if not given

    Returns:
        Base64-encoded salted hash
    """
    if salt is None:
        salt = secrets.token_bytes(PASSWORD_SALT_BYTES)
    digest = hashlib.sha256(salt + password.encode()).digest()
    return base64.b64encode(salt + digest).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plaintext password against a stored salted hash."""
    try:
        decoded = base64.b64decode(password_hash, validate=True)
    except ValueError:
        return False
    salt = decoded[:PASSWORD_SALT_BYTES]
    return hmac.compare_digest(hash_password(password, salt), password_hash)


@dataclass
class BrokerUser:
    """A broker user as stored by the in-memory provider."""

    name: str
    password_hash: str
    tags: list[str] = field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return ADMINISTRATOR_TAG in self.tags


class InMemoryRabbitmqUserProvider(Provider):
    """Provider for rabbitmq_user resources backed by a process-local store."""

    def __init__(self, users: Mapping[str, BrokerUser] | None = None):
        """
        Initialize the provider.

        Args:
            users: Initial broker users keyed by name
        """
        self._users: dict[str, BrokerUser] = dict(users or {})
        self._lock = threading.Lock()

    def add_user(
        self, name: str, password: str, tags: list[str] | None = None
    ) -> BrokerUser:
        """Seed a broker user directly, bypassing reconciliation."""
        user = BrokerUser(
            name=name, password_hash=hash_password(password), tags=list(tags or [])
        )
        with self._lock:
            self._users[name] = user
        return user

    def get_user(self, name: str) -> BrokerUser | None:
        """Return the stored user, or None if it does not exist."""
        with self._lock:
            return self._users.get(name)

    def _require(self, identity: str, operation: str) -> BrokerUser:
        user = self._users.get(identity)
        if user is None:
            raise ProviderError(
                "user does not exist",
                operation=operation,
                identity=identity,
                retryable=False,
            )
        return user

    def exists(self, identity: str) -> bool:
        with self._lock:
            return identity in self._users

    def list_identities(self) -> list[str]:
        with self._lock:
            return sorted(self._users)

    def read(self, identity: str, property_name: str) -> Any:
        with self._lock:
            user = self._require(identity, "read")
            if property_name == "admin":
                return ADMIN_TRUE if user.is_admin else ADMIN_FALSE
            if property_name == "tags":
                return [tag for tag in user.tags if tag != ADMINISTRATOR_TAG]
        raise ProviderError(
            f"unknown property '{property_name}'",
            operation="read",
            identity=identity,
            property_name=property_name,
            retryable=False,
        )

    def create(self, identity: str, desired_values: Mapping[str, Any]) -> None:
        password = desired_values.get("password")
        if not password:
            raise ProviderError(
                "a password is required to create a user",
                operation="create",
                identity=identity,
                retryable=False,
            )

        tags = list(desired_values.get("tags") or [])
        if desired_values.get("admin") == ADMIN_TRUE:
            tags.append(ADMINISTRATOR_TAG)

        with self._lock:
            if identity in self._users:
                raise ProviderError(
                    "user already exists",
                    operation="create",
                    identity=identity,
                    retryable=False,
                )
            self._users[identity] = BrokerUser(
                name=identity, password_hash=hash_password(password), tags=tags
            )
        logger.info(f"Created broker user {identity}")

    def destroy(self, identity: str) -> None:
        with self._lock:
            self._require(identity, "destroy")
            del self._users[identity]
        logger.info(f"Deleted broker user {identity}")

    def update(self, identity: str, property_name: str, value: Any) -> None:
        with self._lock:
            user = self._require(identity, "update")
            if property_name == "password":
                user.password_hash = hash_password(value)
            elif property_name == "admin":
                tags = [tag for tag in user.tags if tag != ADMINISTRATOR_TAG]
                if value == ADMIN_TRUE:
                    tags.append(ADMINISTRATOR_TAG)
                user.tags = tags
            elif property_name == "tags":
                user.tags = list(value) + (
                    [ADMINISTRATOR_TAG] if user.is_admin else []
                )
            else:
                raise ProviderError(
                    f"unknown property '{property_name}'",
                    operation="update",
                    identity=identity,
                    property_name=property_name,
                    retryable=False,
                )
        logger.info(f"Updated {property_name} of broker user {identity}")

    def check_secret(self, identity: str, candidate_secret: str) -> bool:
        with self._lock:
            user = self._require(identity, "check_secret")
            return verify_password(candidate_secret, user.password_hash)
