"""
Providers - adapters performing convergence against managed systems.
"""

from .base import Provider
from .memory import BrokerUser, InMemoryRabbitmqUserProvider, hash_password, verify_password

__all__ = [
    "BrokerUser",
    "InMemoryRabbitmqUserProvider",
    "Provider",
    "hash_password",
    "verify_password",
]
