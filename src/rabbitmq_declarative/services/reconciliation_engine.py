"""
Reconciliation engine converging resource instances through a provider.

One sync pass queries whether the managed entity exists, then either runs
the lifecycle action of the desired ensure state (create or destroy, both
terminal for the pass) or checks every declared property in order and
updates the ones that are out of sync.
"""

import time
from collections.abc import Callable, Iterable, Mapping, Sequence
from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import Any, TypeVar

from ..constants import (
    ENSURE_ABSENT,
    ENSURE_PRESENT,
    ENSURE_PROPERTY,
    MESSAGE_CREATED,
    MESSAGE_REMOVED,
)
from ..errors import (
    DuplicateIdentityError,
    InsyncCheckError,
    ProviderError,
    ResourceError,
    SchemaError,
)
from ..models.instance import ChangeReport, ObservedResource, ResourceInstance
from ..models.schema import InsyncContext, PropertyDeclaration, ResourceTypeSchema
from ..observability.logging import ResourceLogger, correlation_scope
from ..observability.metrics import MetricsCollector, metrics_collector
from ..observability.tracing import sync_span, traced
from ..providers.base import Provider
from ..settings import settings
from .locks import IdentityLockRegistry

T = TypeVar("T")


def _create(provider: Provider, instance: ResourceInstance) -> None:
    provider.create(instance.identity, instance.desired_mapping())


def _destroy(provider: Provider, instance: ResourceInstance) -> None:
    provider.destroy(instance.identity)


@dataclass(frozen=True)
class LifecycleAction:
    """
    What the engine does for one desired ensure value.

    Attributes:
        ensure: Ensure value this action belongs to
        operation: Provider operation name, used in errors and logs
        run: Performs the provider call
        triggered_when_exists: Actual existence that triggers the action
        message: Change report message
        sync_properties: Check individual properties when not triggered and
            the entity exists
    """

    ensure: str
    operation: str
    run: Callable[[Provider, ResourceInstance], None]
    triggered_when_exists: bool
    message: str
    sync_properties: bool


DEFAULT_LIFECYCLE: dict[str, LifecycleAction] = {
    ENSURE_PRESENT: LifecycleAction(
        ensure=ENSURE_PRESENT,
        operation="create",
        run=_create,
        triggered_when_exists=False,
        message=MESSAGE_CREATED,
        sync_properties=True,
    ),
    ENSURE_ABSENT: LifecycleAction(
        ensure=ENSURE_ABSENT,
        operation="destroy",
        run=_destroy,
        triggered_when_exists=True,
        message=MESSAGE_REMOVED,
        sync_properties=False,
    ),
}


@dataclass
class SyncRunResult:
    """Outcome of syncing several instances in one run."""

    changes: dict[str, list[ChangeReport]] = field(default_factory=dict)
    failures: dict[str, ResourceError] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return not self.failures

    def all_changes(self) -> list[ChangeReport]:
        """Every change report of the run, in sync order."""
        return [report for reports in self.changes.values() for report in reports]


class ReconciliationEngine:
    """
    Converges resource instances against the state reported by a provider.

    Provides:
    - Lifecycle dispatch through an explicit ensure-to-action table
    - Per-property insync checks with redacted change reports
    - Dry runs that report without applying (noop)
    - Logging, metrics and a tracing span per sync pass
    """

    def __init__(
        self,
        schemas: Iterable[ResourceTypeSchema] | None = None,
        noop: bool | None = None,
        lifecycle: Mapping[str, LifecycleAction] | None = None,
        locks: IdentityLockRegistry | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the engine.

        Args:
            schemas: Resource types the engine can sync, all built-in
                types if not given
            noop: Report changes without applying them, defaults to the
                DRY_RUN setting
            lifecycle: Ensure-to-action table, the present/absent table if
                not given
            locks: Per-identity locks held for the duration of each pass
            metrics: Metrics collector, the global collector if not given
        """
        if schemas is None:
            from ..resource_types import BUILTIN_TYPES

            schemas = BUILTIN_TYPES

        self.schemas: dict[str, ResourceTypeSchema] = {
            schema.name: schema for schema in schemas
        }
        self.noop = settings.dry_run if noop is None else noop
        self.lifecycle: dict[str, LifecycleAction] = dict(lifecycle or DEFAULT_LIFECYCLE)
        self.locks = locks
        self.metrics = metrics or metrics_collector
        self.logger = ResourceLogger(self.__class__.__name__)

    def register_schema(self, schema: ResourceTypeSchema) -> None:
        """Make another resource type syncable."""
        self.schemas[schema.name] = schema

    def register_lifecycle(self, action: LifecycleAction) -> None:
        """Add or replace the lifecycle action of an ensure value."""
        self.lifecycle[action.ensure] = action

    def _schema_for(self, instance: ResourceInstance) -> ResourceTypeSchema:
        schema = self.schemas.get(instance.resource_type)
        if schema is None:
            raise SchemaError(f"No schema registered for {instance.resource_type}")
        return schema

    def _action_for(self, instance: ResourceInstance) -> LifecycleAction:
        action = self.lifecycle.get(instance.ensure)
        if action is None:
            raise SchemaError(
                f"No lifecycle action for ensure '{instance.ensure}' of {instance.ref}"
            )
        return action

    def sync(self, instance: ResourceInstance, provider: Provider) -> list[ChangeReport]:
        """
        Converge one instance.

        Args:
            instance: Desired state
            provider: Provider of the managed system

        Returns:
            Change reports, empty if the instance was already converged

        Raises:
            SchemaError: If the type or ensure value is not known to the engine
            ValidationError: If the instance does not satisfy its schema;
                raised before any provider call
            ProviderError: If a provider call fails; the pass is aborted and
                ``applied_changes`` lists the changes already made
        """
        schema = self._schema_for(instance)
        action = self._action_for(instance)
        schema.check_instance(instance)

        lock = (
            self.locks.hold(instance.resource_type, instance.identity)
            if self.locks is not None
            else nullcontext()
        )

        with lock, correlation_scope() as corr_id:
            start_time = time.time()
            self.logger.log_sync_start(
                resource_type=instance.resource_type,
                resource_name=instance.identity,
                correlation_id=corr_id,
            )

            try:
                with (
                    self.metrics.track_sync(instance.resource_type),
                    sync_span(
                        instance.resource_type,
                        instance.identity,
                        instance.ensure,
                        self.noop,
                    ),
                ):
                    reports = self._converge(schema, action, instance, provider)
            except Exception as e:
                self.logger.log_sync_error(
                    resource_type=instance.resource_type,
                    resource_name=instance.identity,
                    error=e,
                    duration=time.time() - start_time,
                )
                raise

            self.logger.log_sync_success(
                resource_type=instance.resource_type,
                resource_name=instance.identity,
                change_count=len(reports),
                duration=time.time() - start_time,
            )
            return reports

    def _converge(
        self,
        schema: ResourceTypeSchema,
        action: LifecycleAction,
        instance: ResourceInstance,
        provider: Provider,
    ) -> list[ChangeReport]:
        identity = instance.identity
        exists = self._call("exists", identity, lambda: provider.exists(identity))

        if exists == action.triggered_when_exists:
            if not self.noop:
                self._call(action.operation, identity, lambda: action.run(provider, instance))
            return [
                self._report(
                    instance,
                    property_name=ENSURE_PROPERTY,
                    from_display=ENSURE_PRESENT if exists else ENSURE_ABSENT,
                    to_display=instance.ensure,
                    message=action.message,
                )
            ]

        if not (exists and action.sync_properties):
            return []

        reports: list[ChangeReport] = []
        context = InsyncContext(
            resource_type=instance.resource_type, identity=identity, provider=provider
        )
        try:
            for declaration in schema.properties():
                report = self._sync_property(declaration, instance, provider, context)
                if report is not None:
                    reports.append(report)
        except ProviderError as e:
            e.applied_changes = list(reports)
            raise

        return reports

    def _sync_property(
        self,
        declaration: PropertyDeclaration,
        instance: ResourceInstance,
        provider: Provider,
        context: InsyncContext,
    ) -> ChangeReport | None:
        name = declaration.name
        identity = instance.identity
        desired = instance.desired(name)
        if desired is None:
            return None

        actual = None
        if declaration.reads_actual:
            actual = self._call(
                "read", identity, lambda: provider.read(identity, name), property_name=name
            )

        try:
            in_sync = declaration.is_insync(actual, desired, context)
        except ResourceError:
            raise
        except Exception as e:
            raise InsyncCheckError(
                str(e), identity=identity, property_name=name, cause=e
            ) from e

        if in_sync:
            self.logger.debug(
                f"{instance.ref}/{name} is in sync",
                resource_type=instance.resource_type,
                resource_name=identity,
                property_name=name,
            )
            return None

        if not self.noop:
            self._call(
                "update",
                identity,
                lambda: provider.update(identity, name, desired),
                property_name=name,
            )

        return self._report(
            instance,
            property_name=name,
            from_display=declaration.display_from(actual),
            to_display=declaration.display_to(desired),
            message=declaration.describe_change(actual, desired),
        )

    def _report(
        self,
        instance: ResourceInstance,
        property_name: str,
        from_display: str,
        to_display: str,
        message: str,
    ) -> ChangeReport:
        report = ChangeReport(
            resource_type=instance.resource_type,
            identity=instance.identity,
            property_name=property_name,
            from_display=from_display,
            to_display=to_display,
            message=message,
            noop=self.noop,
        )
        self.logger.log_change(
            resource_type=instance.resource_type,
            resource_name=instance.identity,
            property_name=property_name,
            message=message,
            noop=self.noop,
        )
        self.metrics.record_change(instance.resource_type, property_name, noop=self.noop)
        return report

    def _call(
        self,
        operation: str,
        identity: str | None,
        call: Callable[[], T],
        property_name: str | None = None,
    ) -> T:
        """Run a provider call, wrapping foreign exceptions in ProviderError."""
        try:
            return call()
        except ResourceError:
            raise
        except NotImplementedError as e:
            raise ProviderError(
                str(e) or "operation not supported",
                operation=operation,
                identity=identity,
                property_name=property_name,
                retryable=False,
                cause=e,
            ) from e
        except Exception as e:
            raise ProviderError(
                str(e),
                operation=operation,
                identity=identity,
                property_name=property_name,
                cause=e,
            ) from e

    @traced("sync_all")
    def sync_all(
        self, instances: Sequence[ResourceInstance], provider: Provider
    ) -> SyncRunResult:
        """
        Sync several instances in order, isolating failures per instance.

        Args:
            instances: Desired states, identities unique per resource type
            provider: Provider of the managed system

        Returns:
            Changes and failures keyed by resource reference

        Raises:
            DuplicateIdentityError: If two instances share type and identity;
                raised before any provider call
        """
        seen: set[tuple[str, str]] = set()
        for instance in instances:
            key = (instance.resource_type, instance.identity)
            if key in seen:
                raise DuplicateIdentityError(instance.resource_type, instance.identity)
            seen.add(key)

        result = SyncRunResult()
        for instance in instances:
            try:
                result.changes[instance.ref] = self.sync(instance, provider)
            except ResourceError as e:
                result.failures[instance.ref] = e

        self.logger.info(
            f"Sync run finished: {len(result.changes)} synced, "
            f"{len(result.failures)} failed",
            operation="sync_all",
            change_count=len(result.all_changes()),
        )
        return result

    @traced("query")
    def query(
        self, schema: ResourceTypeSchema, provider: Provider
    ) -> list[ObservedResource]:
        """
        Report the actual state of every existing entity of a type.

        Secret properties are never read and never included.

        Args:
            schema: Resource type to query
            provider: Provider able to enumerate the managed system

        Raises:
            ProviderError: If enumeration or a read fails
        """
        identities = self._call("list", None, provider.list_identities)

        observed: list[ObservedResource] = []
        for identity in identities:
            values: dict[str, Any] = {}
            for declaration in schema.properties():
                if not declaration.reads_actual:
                    continue
                values[declaration.name] = self._call(
                    "read",
                    identity,
                    lambda d=declaration, i=identity: provider.read(i, d.name),
                    property_name=declaration.name,
                )
            observed.append(
                ObservedResource(
                    resource_type=schema.name, identity=identity, values=values
                )
            )
        return observed
