"""Reconciler - orchestrates the discover, match, stage, commit cycle.

Provides a single entry point per resource kind for:
1. Discovering existing instances on the device
2. Binding desired resources to them (prefetch)
3. Staging the property changes that differ
4. Committing them with the fewest device calls
"""
import logging
from typing import TYPE_CHECKING, Optional, Union

from ..devices.base import DeviceGateway, GatewayError
from ..utils.audit_log import ChangeTracker
from .accumulator import ChangeAccumulator
from .commit import CommitEngine
from .discovery import InstanceDiscoverer
from .errors import ReconcileError, ValidationError
from .matcher import Matcher
from .schema import (
    Binding,
    ChangeType,
    DesiredResource,
    Ensure,
    ReconcileReport,
    ResourceRecord,
    ResourceResult,
)

if TYPE_CHECKING:
    from ..config.manifest import Manifest
    from ..kinds.base import ResourceKind

logger = logging.getLogger(__name__)


class Reconciler:
    """
    Reconcile desired resources of one kind against a device.

    Bindings are kept between cycles, so a record returned by a commit is
    what the next cycle starts from until discovery reports otherwise.

    Usage:
        reconciler = Reconciler(gateway, "snmp_notification_receiver")
        report = reconciler.reconcile(desired, dry_run=True)
    """

    def __init__(self, gateway: DeviceGateway, kind: Union[str, "ResourceKind"]):
        if isinstance(kind, str):
            from ..kinds import get_kind
            kind = get_kind(kind)

        self.gateway = gateway
        self.kind = kind
        self.discoverer = InstanceDiscoverer(gateway, kind)
        self.matcher = Matcher(self.discoverer)
        self.commit_engine = CommitEngine(gateway, kind)
        self.accumulator = ChangeAccumulator()
        self.tracker = ChangeTracker(gateway.device_id)
        self.bindings: dict[str, Binding] = {}

    def discover(self) -> list[ResourceRecord]:
        """All instances of the kind currently on the device."""
        return self.discoverer.discover()

    def prefetch(self, desired: dict[str, DesiredResource]) -> dict[str, Binding]:
        """Bind desired resources, keeping bindings from earlier cycles."""
        self.bindings.update(self.matcher.match(desired, self.bindings))
        return {name: self.bindings[name] for name in desired}

    def stage(self, resource: DesiredResource, binding: Binding) -> dict:
        """
        Stage the properties a resource needs changed.

        A resource that is not bound stages every desired property. A bound
        resource stages only values that differ from its record.

        Raises:
            ValidationError: The name or a desired value is not acceptable
        """
        self.accumulator.discard(resource.name)
        self.kind.key_for(resource)

        if resource.ensure == Ensure.ABSENT:
            if not self.kind.ensurable:
                raise ValidationError(
                    self.kind.name, "ensure", resource.ensure.value,
                    "kind cannot be removed", resource.name,
                )
            return {}

        record = binding.record if binding.bound else None
        wanted = self.kind.validate(resource.properties, resource.name, record)
        current = record.attributes if record is not None else None

        for prop, value in wanted.items():
            if current is not None and current.get(prop) == value:
                continue
            self.accumulator.stage(resource.name, prop, value)

        return self.accumulator.staged(resource.name)

    def plan(self, resource: DesiredResource, binding: Binding) -> ChangeType:
        """Action a reconcile of this resource would take."""
        staged = self.stage(resource, binding)
        self.accumulator.discard(resource.name)
        return self.commit_engine.action(binding, staged, resource.ensure)

    def reconcile(
        self,
        desired: dict[str, DesiredResource],
        dry_run: bool = False,
    ) -> ReconcileReport:
        """
        Run one full cycle for the desired resources.

        Discovery failures propagate. A failure of one resource is
        recorded in its result and the remaining resources still run.

        Args:
            desired: Resources by name
            dry_run: If True, stage and plan but send nothing

        Returns:
            ReconcileReport with one result per resource
        """
        bindings = self.prefetch(desired)
        report = ReconcileReport(kind=self.kind.name, dry_run=dry_run)

        for name, resource in desired.items():
            report.results.append(self._reconcile_one(resource, bindings[name], dry_run))

        logger.info(
            f"{'DRY RUN: ' if dry_run else ''}{self.kind.name}: "
            f"{len(report.changed)} changed, {len(report.failed)} failed, "
            f"{len(report.results)} total"
        )
        return report

    def _reconcile_one(
        self,
        resource: DesiredResource,
        binding: Binding,
        dry_run: bool,
    ) -> ResourceResult:
        result = ResourceResult(name=resource.name, record=binding.record)

        try:
            result.staged = self.stage(resource, binding)
            result.action = self.commit_engine.action(binding, result.staged, resource.ensure)

            if not dry_run and result.action != ChangeType.NO_CHANGE:
                record = self.commit_engine.commit(
                    resource.name, binding, result.staged, resource.ensure
                )
                self.bindings[resource.name] = Binding(name=resource.name, record=record)
                result.record = record
            result.success = True

        except (ReconcileError, GatewayError) as e:
            logger.warning(f"Reconciling {self.kind.name} {resource.name} failed: {e}")
            result.error = str(e)

        finally:
            self.accumulator.discard(resource.name)

        if result.action != ChangeType.NO_CHANGE:
            self._audit(result, binding, dry_run)

        return result

    def _audit(self, result: ResourceResult, binding: Binding, dry_run: bool) -> None:
        self.tracker.log_change(
            kind=self.kind.name,
            resource=result.name,
            operation=result.action.value,
            parameters=result.staged,
            success=result.success,
            error=result.error,
            dry_run=dry_run,
            before_state=binding.record.to_dict() if binding.record else None,
            after_state=result.record.to_dict() if result.record and not dry_run else None,
        )


def reconcile_manifest(
    gateway: DeviceGateway,
    manifest: "Manifest",
    dry_run: bool = False,
) -> dict[str, ReconcileReport]:
    """Reconcile every resource kind of a manifest, in manifest order."""
    reports = {}
    for kind, desired in manifest.resources.items():
        reports[kind] = Reconciler(gateway, kind).reconcile(desired, dry_run=dry_run)
    return reports


def summarize_report(report: ReconcileReport) -> str:
    """
    Create a human-readable summary of a report.

    Useful for dry-run output and logging.
    """
    markers = {
        ChangeType.CREATE: "[+]",
        ChangeType.DESTROY: "[-]",
        ChangeType.UPDATE: "[~]",
        ChangeType.NO_CHANGE: "[=]",
    }

    if not report.changed and not report.failed and not report.dry_run:
        return f"{report.kind}: no changes needed - current state matches desired state"

    lines = [f"{'[DRY-RUN] ' if report.dry_run else ''}{report.kind}:"]
    for result in report.results:
        if result.action == ChangeType.NO_CHANGE and result.success:
            continue
        line = f"  {markers[result.action]} {result.action.value} {result.name}"
        if not result.success:
            line += f" FAILED: {result.error}"
        lines.append(line)
        for prop, value in result.staged.items():
            lines.append(f"      {prop}: {value}")

    return "\n".join(lines)
