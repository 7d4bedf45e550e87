"""Reconciliation engine - declarative management of device resources.

Given the desired state of named resources and what the device reports,
the engine computes and applies the fewest device calls that make them
match:

- Discovery normalizes device entries into records and drops duplicates
- Prefetch binds each desired resource to its record
- Staging records the property changes that differ
- Commit turns staged changes into create, update or destroy calls

Usage:
    from netdev_reconcile.reconcile import Reconciler, DesiredResource

    reconciler = Reconciler(gateway, "radius_server")
    report = reconciler.reconcile({
        "10.0.0.1/1812/1813": DesiredResource(
            name="10.0.0.1/1812/1813",
            properties={"timeout": 10, "retransmit_count": 3},
        ),
    }, dry_run=True)
"""

from .engine import Reconciler, reconcile_manifest, summarize_report
from .schema import (
    Ensure,
    ChangeType,
    ResourceRecord,
    DesiredResource,
    Binding,
    ResourceResult,
    ReconcileReport,
)
from .errors import ReconcileError, DiscoveryError, ValidationError, CommitError
from .identity import RadiusServerId, SnmpReceiverId
from .accumulator import ChangeAccumulator, NOT_STAGED
from .discovery import InstanceDiscoverer
from .matcher import Matcher
from .commit import CommitEngine

__all__ = [
    # Main engine
    "Reconciler",
    "reconcile_manifest",
    "summarize_report",
    # Schema classes
    "Ensure",
    "ChangeType",
    "ResourceRecord",
    "DesiredResource",
    "Binding",
    "ResourceResult",
    "ReconcileReport",
    # Errors
    "ReconcileError",
    "DiscoveryError",
    "ValidationError",
    "CommitError",
    # Identity keys
    "RadiusServerId",
    "SnmpReceiverId",
    # Components (for advanced use)
    "ChangeAccumulator",
    "NOT_STAGED",
    "InstanceDiscoverer",
    "Matcher",
    "CommitEngine",
]
