"""RADIUS AAA server groups and their ordered member servers."""
import re
from typing import Any, Optional

from ..reconcile.identity import (
    DEFAULT_RADIUS_ACCT_PORT,
    DEFAULT_RADIUS_AUTH_PORT,
    RadiusServerId,
)
from ..reconcile.schema import ResourceRecord
from .base import AttributeGroup, AttributeKind

# server <host> [vrf <vrf>] [auth-port <n>] [acct-port <n>]
_MEMBER = re.compile(
    r"^server\s+(?P<hostname>\S+)"
    r"(?:\s+vrf\s+(?P<vrf>\S+))?"
    r"(?:\s+auth-port\s+(?P<auth_port>\d+))?"
    r"(?:\s+acct-port\s+(?P<acct_port>\d+))?"
)


def parse_member(line: str) -> tuple[RadiusServerId, Optional[str]]:
    """Identity and VRF of a ``server ...`` line inside a group block."""
    match = _MEMBER.match(line.strip())
    if not match:
        raise ValueError(f"Unrecognized server group member: {line!r}")
    server = RadiusServerId(
        hostname=match.group("hostname"),
        auth_port=int(match.group("auth_port") or DEFAULT_RADIUS_AUTH_PORT),
        acct_port=int(match.group("acct_port") or DEFAULT_RADIUS_ACCT_PORT),
    )
    return server, match.group("vrf")


def normalize_servers(value: Any) -> list[str]:
    """Canonical ``name/auth_port/acct_port`` tokens, defaults filled."""
    if isinstance(value, str):
        value = [value]
    return [str(RadiusServerId.parse(token)) for token in value]


def resolve_servers(values: dict[str, Any]) -> dict[str, Any]:
    """Members plus the VRFs the device reported for those still listed.

    Member tokens carry no VRF, so a group rewrite keeps the VRF of
    members that were already configured with one.
    """
    servers = values["servers"]
    vrfs = values.get("server_vrfs") or {}
    return {
        "servers": servers,
        "server_vrfs": {token: vrf for token, vrf in vrfs.items() if token in servers},
    }


def render_servers(values: dict[str, Any]) -> list[dict]:
    members = []
    for token in values["servers"]:
        member = RadiusServerId.parse(token).to_dict()
        if token in values["server_vrfs"]:
            member["vrf"] = values["server_vrfs"][token]
        members.append(member)
    return members


class RadiusServerGroupKind(AttributeKind):
    """``aaa group server radius <name>`` blocks."""

    name = "radius_server_group"
    properties = ("servers",)
    defaults = {"servers": []}
    normalizers = {"servers": normalize_servers}

    groups = (
        AttributeGroup("servers", ("servers",), render_servers, resolve=resolve_servers),
    )

    def parse(self, device_id: str, raw: Any) -> Optional[ResourceRecord]:
        if raw.get("type") != "radius":
            return None

        attributes: dict[str, Any] = {"servers": []}
        for line in raw.get("servers", []):
            server, vrf = parse_member(line)
            attributes["servers"].append(str(server))
            if vrf:
                attributes.setdefault("server_vrfs", {})[str(server)] = vrf
        return ResourceRecord(kind=self.name, key=device_id, attributes=attributes)

    def create_args(self, name: str, staged: dict[str, Any]) -> tuple:
        return ("radius",)
