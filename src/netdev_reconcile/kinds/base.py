"""Base classes for resource kind adapters.

An adapter knows how one kind of device entity is read (``parse``), how a
desired resource maps onto a discovered record (``key_for``), which
property values are acceptable (``normalize``) and how staged changes are
written back (``create`` / ``update`` / ``destroy``).

Two write conventions exist:

- ``AttributeKind``: one gateway ``set_attribute`` call per attribute
  group. Properties that share one device command (speed and duplex) form
  a single group and are always sent together.
- ``CompositeKind``: one gateway ``update_entity`` call carrying the full
  attribute bundle.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..devices.base import DeviceGateway
from ..reconcile.errors import CommitError, ValidationError
from ..reconcile.schema import DesiredResource, Ensure, ResourceRecord

logger = logging.getLogger(__name__)


# --- Value normalizers ---

def to_bool(value: Any) -> bool:
    """Accept True/False or the strings "true"/"false"."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValueError("expected true or false")


def to_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("expected an integer")
    return int(value)


def to_str(value: Any) -> str:
    return "" if value is None else str(value)


def one_of(*choices: str) -> Callable[[Any], str]:
    """Normalizer accepting a fixed set of (case-insensitive) strings."""
    def normalize(value: Any) -> str:
        text = str(value).strip().lower()
        if text not in choices:
            raise ValueError(f"expected one of {', '.join(choices)}")
        return text
    return normalize


class ResourceKind(ABC):
    """Adapter for one kind of device entity."""

    name: str = ""
    properties: tuple[str, ...] = ()
    defaults: dict[str, Any] = {}
    normalizers: dict[str, Callable[[Any], Any]] = {}

    # Kinds without create/destroy on the device (physical interfaces)
    ensurable: bool = True
    # Keep a prior binding when discovery finds no matching record
    preserve_unmatched: bool = True

    @abstractmethod
    def parse(self, device_id: str, raw: Any) -> Optional[ResourceRecord]:
        """Normalize one raw device entry, or None if it is not of this kind.

        Raises:
            KeyError, ValueError, TypeError: Raw data cannot be parsed
        """
        pass

    def key_for(self, desired: DesiredResource) -> str:
        """Record key a desired resource binds to.

        Raises:
            ValidationError: The name or an identity property is malformed
        """
        return desired.name

    def normalize(self, prop: str, value: Any) -> Any:
        """Canonical form of a property value.

        Raises:
            ValueError: Value outside the recognized set
        """
        normalizer = self.normalizers.get(prop)
        if normalizer is None:
            return value
        return normalizer(value)

    def validate(
        self,
        staged: dict[str, Any],
        resource: Optional[str] = None,
        record: Optional[ResourceRecord] = None,
    ) -> dict[str, Any]:
        """Normalize all staged values, failing on the first bad one.

        ``record`` is the bound record, if any, for checks that depend on
        the current state.
        """
        normalized = {}
        for prop, value in staged.items():
            if prop not in self.properties:
                raise ValidationError(self.name, prop, value, "unknown property", resource)
            try:
                normalized[prop] = self.normalize(prop, value)
            except (TypeError, ValueError) as e:
                raise ValidationError(self.name, prop, value, str(e), resource) from e
        return normalized

    def absent_record(self, key: str) -> ResourceRecord:
        return ResourceRecord(kind=self.name, key=key, ensure=Ensure.ABSENT)

    def _check(self, result: tuple[bool, str], resource: str, operation: str) -> str:
        """Raise CommitError for a failed gateway write."""
        success, output = result
        if not success:
            raise CommitError(self.name, resource, operation, output)
        return output

    @abstractmethod
    def create(self, gateway: DeviceGateway, name: str, staged: dict[str, Any]) -> ResourceRecord:
        pass

    @abstractmethod
    def update(self, gateway: DeviceGateway, record: ResourceRecord, staged: dict[str, Any]) -> ResourceRecord:
        pass

    @abstractmethod
    def destroy(self, gateway: DeviceGateway, record: ResourceRecord) -> ResourceRecord:
        pass


@dataclass(frozen=True)
class AttributeGroup:
    """Properties written by one device command.

    ``resolve`` turns the merged values into the effective values sent
    (filling partners and combined defaults). ``render`` turns those into
    the gateway value.
    """
    attribute: str
    properties: tuple[str, ...]
    render: Callable[[dict[str, Any]], Any]
    resolve: Optional[Callable[[dict[str, Any]], dict[str, Any]]] = None

    def effective(self, values: dict[str, Any]) -> dict[str, Any]:
        if self.resolve:
            return self.resolve(values)
        return {prop: values.get(prop) for prop in self.properties}


class AttributeKind(ResourceKind):
    """Kind written attribute by attribute, in group order."""

    groups: tuple[AttributeGroup, ...] = ()

    def create_args(self, name: str, staged: dict[str, Any]) -> tuple:
        """Extra arguments for the gateway create call."""
        return ()

    def create(self, gateway: DeviceGateway, name: str, staged: dict[str, Any]) -> ResourceRecord:
        if not self.ensurable:
            raise CommitError(self.name, name, "create", "entity not found on device")

        self._check(
            gateway.create_entity(self.name, name, *self.create_args(name, staged)),
            name, "create",
        )
        logger.info(f"Created {self.name} {name}")
        record = ResourceRecord(kind=self.name, key=name)
        return self.flush(gateway, record, staged, operation="create")

    def update(self, gateway: DeviceGateway, record: ResourceRecord, staged: dict[str, Any]) -> ResourceRecord:
        return self.flush(gateway, record, staged)

    def flush(
        self,
        gateway: DeviceGateway,
        record: ResourceRecord,
        staged: dict[str, Any],
        operation: str = "update",
    ) -> ResourceRecord:
        """Send one call per group with a staged property, in group order.

        Groups whose resolved values already match the record are skipped.
        """
        values = {**self.defaults, **record.attributes, **staged}
        applied = dict(record.attributes)

        for group in self.groups:
            if not any(prop in staged for prop in group.properties):
                continue

            effective = group.effective(values)
            if all(effective.get(prop) == record.attributes.get(prop) for prop in group.properties):
                logger.debug(f"{self.name} {record.key}: {group.attribute} already set")
                continue

            value = group.render(effective)
            logger.debug(f"{self.name} {record.key}: {group.attribute}={value!r}")
            self._check(
                gateway.set_attribute(self.name, record.key, group.attribute, value),
                record.key, f"{operation} {group.attribute}",
            )
            applied.update(effective)

        return ResourceRecord(kind=self.name, key=record.key, attributes=applied)

    def destroy(self, gateway: DeviceGateway, record: ResourceRecord) -> ResourceRecord:
        self._check(gateway.delete_entity(self.name, record.key), record.key, "destroy")
        logger.info(f"Destroyed {self.name} {record.key}")
        return record.with_ensure(Ensure.ABSENT)


class CompositeKind(ResourceKind):
    """Kind written with the whole attribute bundle in one call."""

    @abstractmethod
    def identity_fields(self, name: str) -> dict[str, Any]:
        """Attributes implied by the resource name."""
        pass

    @abstractmethod
    def key_of(self, attributes: dict[str, Any]) -> str:
        """Record key for an attribute bundle."""
        pass

    def create(self, gateway: DeviceGateway, name: str, staged: dict[str, Any]) -> ResourceRecord:
        bundle = {**self.defaults, **self.identity_fields(name), **staged}
        return self._send(gateway, name, bundle, "create")

    def update(self, gateway: DeviceGateway, record: ResourceRecord, staged: dict[str, Any]) -> ResourceRecord:
        bundle = {**self.defaults, **record.attributes, **staged}
        return self._send(gateway, record.key, bundle, "update")

    def _send(
        self,
        gateway: DeviceGateway,
        identity: str,
        bundle: dict[str, Any],
        operation: str,
    ) -> ResourceRecord:
        bundle = {k: v for k, v in bundle.items() if v is not None}
        self._check(gateway.update_entity(self.name, identity, bundle), identity, operation)
        key = self.key_of(bundle)
        logger.info(f"{operation.capitalize()}d {self.name} {key}")
        return ResourceRecord(kind=self.name, key=key, attributes=bundle)

    def destroy(self, gateway: DeviceGateway, record: ResourceRecord) -> ResourceRecord:
        self._check(
            gateway.delete_entity(self.name, record.key, dict(record.attributes)),
            record.key, "destroy",
        )
        logger.info(f"Destroyed {self.name} {record.key}")
        return record.with_ensure(Ensure.ABSENT)
