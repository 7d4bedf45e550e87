"""SNMP notification receivers (``snmp-server host`` entries).

Resources are named by host only, while the device may hold several
receivers for one host. Records are therefore keyed by
``<host>:<username-or-community>:<port>`` and a desired resource binds to
the record its user and port select.
"""
from typing import Any, Optional

from ..reconcile.identity import DEFAULT_SNMP_PORT, SnmpReceiverId
from ..reconcile.errors import ValidationError
from ..reconcile.schema import DesiredResource, ResourceRecord
from .base import CompositeKind, one_of, to_int, to_str

# Device version token -> canonical version
DEVICE_VERSIONS = {"1": "v1", "2c": "v2", "3": "v3"}


def normalize_version(value: Any) -> str:
    text = str(value).strip().lower()
    aliases = {"v1": "v1", "1": "v1", "v2": "v2", "v2c": "v2", "2c": "v2", "v3": "v3", "3": "v3"}
    if text not in aliases:
        raise ValueError("expected one of v1, v2, v3")
    return aliases[text]


def parse_host_line(line: str) -> dict[str, Any]:
    """Parse one ``snmp-server host`` line.

    Format:
        snmp-server host <host> [vrf <vrf>] [traps|informs]
            [version 1|2c|3 [noauth|auth|priv]] <community-or-user> [udp-port <port>]
    """
    tokens = line.split()
    if tokens[:2] != ["snmp-server", "host"] or len(tokens) < 4:
        raise ValueError(f"Unrecognized snmp-server line: {line!r}")

    attrs: dict[str, Any] = {"host": tokens[2], "type": "traps", "version": "v1"}
    rest = tokens[3:]

    if rest[0] == "vrf":
        attrs["vrf"] = rest[1]
        rest = rest[2:]
    if rest and rest[0] in ("traps", "informs"):
        attrs["type"] = rest[0]
        rest = rest[1:]
    if rest and rest[0] == "version":
        attrs["version"] = DEVICE_VERSIONS[rest[1]]
        rest = rest[2:]
        if attrs["version"] == "v3":
            attrs["security"] = rest[0]
            rest = rest[1:]

    if not rest:
        raise ValueError(f"Missing community or user in {line!r}")
    user_field = "username" if attrs["version"] == "v3" else "community"
    attrs[user_field] = rest[0]
    rest = rest[1:]

    attrs["port"] = DEFAULT_SNMP_PORT
    if rest[:1] == ["udp-port"]:
        attrs["port"] = int(rest[1])

    return attrs


class SnmpNotificationReceiverKind(CompositeKind):
    """Trap/inform receivers, written as one command each."""

    name = "snmp_notification_receiver"
    properties = ("type", "version", "username", "community", "security", "port", "vrf")
    defaults = {"port": DEFAULT_SNMP_PORT}
    normalizers = {
        "type": one_of("traps", "informs"),
        "version": normalize_version,
        "username": to_str,
        "community": to_str,
        "security": one_of("noauth", "auth", "priv"),
        "port": to_int,
        "vrf": to_str,
    }

    def parse(self, device_id: str, raw: Any) -> Optional[ResourceRecord]:
        attributes = parse_host_line(raw)
        return ResourceRecord(kind=self.name, key=self.key_of(attributes), attributes=attributes)

    def key_for(self, desired: DesiredResource) -> str:
        props = desired.properties
        port = props.get("port") or DEFAULT_SNMP_PORT
        try:
            port = to_int(port)
        except (TypeError, ValueError) as e:
            raise ValidationError(self.name, "port", port, str(e), desired.name) from e
        return str(SnmpReceiverId(
            host=desired.name,
            user=str(props.get("username") or props.get("community") or ""),
            port=port,
        ))

    def identity_fields(self, name: str) -> dict[str, Any]:
        return {"host": name}

    def key_of(self, attributes: dict[str, Any]) -> str:
        return str(SnmpReceiverId(
            host=attributes["host"],
            user=attributes.get("username") or attributes.get("community") or "",
            port=int(attributes.get("port", DEFAULT_SNMP_PORT)),
        ))
