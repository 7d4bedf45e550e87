"""Parser for desired state manifests.

Converts dict/YAML input to typed DesiredResource objects, grouped by
resource kind:

    device: leaf1
    resources:
      network_interface:
        Ethernet1: {enable: true, speed: 1g, duplex: full}
      snmp_notification_receiver:
        127.0.0.1: {username: snmpuser, version: v3, security: noauth}
"""
import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from ..kinds import RESOURCE_KINDS
from ..reconcile.schema import DesiredResource, Ensure


class ParseError(Exception):
    """Error parsing a desired state manifest."""
    pass


@dataclass
class Manifest:
    """Desired resources for one device, by kind and name."""
    device_id: str
    checksum: Optional[str] = None
    resources: dict[str, dict[str, DesiredResource]] = field(default_factory=dict)

    @property
    def total_resources(self) -> int:
        return sum(len(desired) for desired in self.resources.values())


class ManifestParser:
    """Parse desired state from dict/YAML format."""

    def parse(self, config: dict[str, Any]) -> Manifest:
        """
        Parse a manifest dict into a Manifest object.

        Args:
            config: Dict with device and resources

        Returns:
            Manifest object

        Raises:
            ParseError: If the manifest is invalid
        """
        if not isinstance(config, dict):
            raise ParseError("Manifest must be a mapping")

        device_id = config.get("device_id") or config.get("device")
        if not device_id:
            raise ParseError("Missing required field: device_id or device")

        checksum = config.get("checksum")
        if checksum and checksum != compute_checksum(config):
            raise ParseError(f"Checksum mismatch for manifest of {device_id}")

        resources = {}
        for kind, entries in (config.get("resources") or {}).items():
            if kind not in RESOURCE_KINDS:
                raise ParseError(f"Unknown resource kind: {kind}")
            resources[kind] = self._parse_kind(kind, entries or {})

        return Manifest(device_id=str(device_id), checksum=checksum, resources=resources)

    def _parse_kind(self, kind: str, entries: dict[Any, Any]) -> dict[str, DesiredResource]:
        if not isinstance(entries, dict):
            raise ParseError(f"Resources of {kind} must be a mapping of name to properties")

        allowed = RESOURCE_KINDS[kind].properties
        desired = {}

        for name, properties in entries.items():
            name = str(name)
            properties = dict(properties or {})

            ensure_str = str(properties.pop("ensure", Ensure.PRESENT.value))
            try:
                ensure = Ensure(ensure_str)
            except ValueError:
                raise ParseError(
                    f"Invalid ensure for {kind} {name}: {ensure_str}. "
                    f"Must be 'present' or 'absent'"
                )

            unknown = sorted(set(properties) - set(allowed))
            if unknown:
                raise ParseError(
                    f"Unknown properties for {kind} {name}: {', '.join(unknown)}"
                )

            desired[name] = DesiredResource(name=name, ensure=ensure, properties=properties)

        return desired


def load_manifest(path: str) -> Manifest:
    """Load and parse a YAML manifest file."""
    with open(Path(path)) as f:
        config = yaml.safe_load(f)
    return ManifestParser().parse(config or {})


def compute_checksum(config: dict[str, Any]) -> str:
    """
    Compute SHA256 checksum of a manifest dict.

    The ``checksum`` field itself is excluded.
    """
    config_copy = {k: v for k, v in config.items() if k != "checksum"}
    config_str = json.dumps(config_copy, sort_keys=True, separators=(",", ":"), default=str)
    hash_bytes = hashlib.sha256(config_str.encode()).hexdigest()
    return f"sha256:{hash_bytes[:16]}"
