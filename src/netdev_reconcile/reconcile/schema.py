"""Schema definitions for the reconciliation engine.

Defines desired resources, discovered records, bindings and results.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional


class Ensure(str, Enum):
    """Whether a resource should exist."""
    PRESENT = "present"
    ABSENT = "absent"


class ChangeType(str, Enum):
    """Action a commit takes for one resource."""
    CREATE = "create"
    UPDATE = "update"
    DESTROY = "destroy"
    NO_CHANGE = "no_change"


@dataclass(frozen=True)
class ResourceRecord:
    """Device-reported state of one entity, normalized.

    Records are replaced wholesale after a commit, never patched.
    """
    kind: str
    key: str
    ensure: Ensure = Ensure.PRESENT
    attributes: dict[str, Any] = field(default_factory=dict)

    @property
    def present(self) -> bool:
        return self.ensure == Ensure.PRESENT

    def with_ensure(self, ensure: Ensure) -> "ResourceRecord":
        """Copy of this record with a different ensure state."""
        return replace(self, ensure=ensure, attributes=dict(self.attributes))

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "key": self.key,
            "ensure": self.ensure.value,
            "attributes": dict(self.attributes),
        }


@dataclass(frozen=True)
class DesiredResource:
    """Declared target state for a named resource."""
    name: str
    ensure: Ensure = Ensure.PRESENT
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass
class Binding:
    """Association between a desired resource and its discovered record."""
    name: str
    record: Optional[ResourceRecord] = None

    @property
    def bound(self) -> bool:
        """True when a record exists and is present on the device."""
        return self.record is not None and self.record.present


# --- Results ---

@dataclass
class ResourceResult:
    """Outcome of reconciling one resource."""
    name: str
    action: ChangeType = ChangeType.NO_CHANGE
    success: bool = False
    staged: dict[str, Any] = field(default_factory=dict)
    record: Optional[ResourceRecord] = None
    error: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.action != ChangeType.NO_CHANGE

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "action": self.action.value,
            "success": self.success,
            "staged": dict(self.staged),
            "record": self.record.to_dict() if self.record else None,
            "error": self.error,
        }


@dataclass
class ReconcileReport:
    """Outcome of one reconciliation cycle for a resource kind."""
    kind: str
    dry_run: bool = False
    results: list[ResourceResult] = field(default_factory=list)

    @property
    def changed(self) -> list[ResourceResult]:
        return [r for r in self.results if r.changed and r.success]

    @property
    def failed(self) -> list[ResourceResult]:
        return [r for r in self.results if not r.success]

    @property
    def success(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.kind,
            "dry_run": self.dry_run,
            "success": self.success,
            "results": [r.to_dict() for r in self.results],
        }
