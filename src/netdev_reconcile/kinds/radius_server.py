"""RADIUS server hosts, keyed by ``<hostname>/<auth_port>/<acct_port>``."""
import re
from typing import Any, Optional

from ..reconcile.identity import (
    DEFAULT_RADIUS_ACCT_PORT,
    DEFAULT_RADIUS_AUTH_PORT,
    RadiusServerId,
)
from ..reconcile.errors import ValidationError
from ..reconcile.schema import DesiredResource, ResourceRecord
from .base import CompositeKind, to_int, to_str

_HOST_LINE = re.compile(
    r"^radius-server host (?P<hostname>\S+)"
    r"(?: vrf (?P<vrf>\S+))?"
    r"(?: auth-port (?P<auth_port>\d+))?"
    r"(?: acct-port (?P<acct_port>\d+))?"
    r"(?: timeout (?P<timeout>\d+))?"
    r"(?: retransmit (?P<retransmit_count>\d+))?"
    r"(?: key (?:(?P<key_format>[057]) )?(?P<key>\S+))?\s*$"
)


class RadiusServerKind(CompositeKind):
    """``radius-server host`` entries, written as one command each."""

    name = "radius_server"
    properties = (
        "hostname",
        "auth_port",
        "acct_port",
        "vrf",
        "timeout",
        "retransmit_count",
        "key",
        "key_format",
    )
    defaults = {
        "auth_port": DEFAULT_RADIUS_AUTH_PORT,
        "acct_port": DEFAULT_RADIUS_ACCT_PORT,
    }
    normalizers = {
        "hostname": to_str,
        "auth_port": to_int,
        "acct_port": to_int,
        "vrf": to_str,
        "timeout": to_int,
        "retransmit_count": to_int,
        "key": to_str,
        "key_format": to_int,
    }

    def parse(self, device_id: str, raw: Any) -> Optional[ResourceRecord]:
        match = _HOST_LINE.match(raw)
        if not match:
            raise ValueError(f"Unrecognized radius-server line: {raw!r}")

        attributes = {
            "hostname": match.group("hostname"),
            "auth_port": int(match.group("auth_port") or DEFAULT_RADIUS_AUTH_PORT),
            "acct_port": int(match.group("acct_port") or DEFAULT_RADIUS_ACCT_PORT),
        }
        for field in ("timeout", "retransmit_count", "key_format"):
            if match.group(field) is not None:
                attributes[field] = int(match.group(field))
        for field in ("vrf", "key"):
            if match.group(field) is not None:
                attributes[field] = match.group(field)

        return ResourceRecord(kind=self.name, key=self.key_of(attributes), attributes=attributes)

    def key_for(self, desired: DesiredResource) -> str:
        try:
            return str(RadiusServerId.parse(desired.name))
        except ValueError as e:
            raise ValidationError(self.name, "name", desired.name, str(e), desired.name) from e

    def identity_fields(self, name: str) -> dict[str, Any]:
        return RadiusServerId.parse(name).to_dict()

    def key_of(self, attributes: dict[str, Any]) -> str:
        return str(RadiusServerId(
            hostname=attributes["hostname"],
            auth_port=int(attributes.get("auth_port", DEFAULT_RADIUS_AUTH_PORT)),
            acct_port=int(attributes.get("acct_port", DEFAULT_RADIUS_ACCT_PORT)),
        ))
