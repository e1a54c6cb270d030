"""
Service layer for declarative resources.

This module provides the reconciliation engine that converges desired-state
instances through a provider, and the per-identity locks orchestrators use
to run passes in parallel.
"""

from .locks import IdentityLockRegistry
from .reconciliation_engine import (
    DEFAULT_LIFECYCLE,
    LifecycleAction,
    ReconciliationEngine,
    SyncRunResult,
)

__all__ = [
    "DEFAULT_LIFECYCLE",
    "IdentityLockRegistry",
    "LifecycleAction",
    "ReconciliationEngine",
    "SyncRunResult",
]
