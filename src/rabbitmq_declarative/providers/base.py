"""
Provider interface for managed systems.

A provider performs the actual query, create, destroy and update calls
against one kind of managed system. The reconciliation engine never talks
to a managed system directly; it only calls the methods defined here.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any


class Provider(ABC):
    """
    Capability set required by the reconciliation engine.

    Implementations signal failures by raising. ProviderError subclasses
    propagate unchanged; any other exception is wrapped in a ProviderError
    by the engine. Calls are not retried by the engine.
    """

    @abstractmethod
    def exists(self, identity: str) -> bool:
        """Return True if the managed entity exists."""

    @abstractmethod
    def read(self, identity: str, property_name: str) -> Any:
        """Return the actual value of a property of an existing entity."""

    @abstractmethod
    def create(self, identity: str, desired_values: Mapping[str, Any]) -> None:
        """Create the entity with the full set of desired values."""

    @abstractmethod
    def destroy(self, identity: str) -> None:
        """Remove the entity."""

    @abstractmethod
    def update(self, identity: str, property_name: str, value: Any) -> None:
        """Set one property of an existing entity."""

    @abstractmethod
    def check_secret(self, identity: str, candidate_secret: str) -> bool:
        """Return True if the candidate matches the entity's stored secret."""

    def list_identities(self) -> list[str]:
        """
        Return the identities of all existing entities.

        Providers that cannot enumerate their managed system leave this
        unimplemented; querying them raises NotImplementedError.
        """
        raise NotImplementedError(
            f"{self.__class__.__name__} cannot enumerate existing resources"
        )
