"""Ethernet interface settings: admin state, speed/duplex, MTU, description.

Speed and duplex are one EOS command, so they are flushed together:

    interface Ethernet1
       speed forced 1000full
"""
from typing import Any, Optional

from ..reconcile.errors import ValidationError
from ..reconcile.schema import ResourceRecord
from .base import AttributeGroup, AttributeKind, one_of, to_bool, to_int, to_str

SPEEDS = ("auto", "10m", "100m", "1g", "10g", "25g", "40g", "50g", "100g")
DUPLEXES = ("auto", "full", "half")

# Speed -> rate token of "speed forced <rate><duplex>"
FORCED_RATES = {
    "10m": "10",
    "100m": "100",
    "1g": "1000",
    "10g": "10000",
    "25g": "25g",
    "40g": "40g",
    "50g": "50g",
    "100g": "100g",
}

# Reported bandwidth (bits/s) -> speed
BANDWIDTH_SPEEDS = {
    10_000_000: "10m",
    100_000_000: "100m",
    1_000_000_000: "1g",
    10_000_000_000: "10g",
    25_000_000_000: "25g",
    40_000_000_000: "40g",
    50_000_000_000: "50g",
    100_000_000_000: "100g",
}

REPORTED_DUPLEX = {"duplexFull": "full", "duplexHalf": "half"}


def render_enable(values: dict[str, Any]) -> str:
    return "no shutdown" if values["enable"] else "shutdown"


def resolve_speed_duplex(values: dict[str, Any]) -> dict[str, Any]:
    """Speed and duplex as they will be configured.

    Auto speed implies auto duplex. A forced speed needs a concrete duplex
    and falls back to full.
    """
    speed = values.get("speed") or "auto"
    if speed == "auto":
        return {"speed": "auto", "duplex": "auto"}
    duplex = values.get("duplex")
    if duplex not in ("full", "half"):
        duplex = "full"
    return {"speed": speed, "duplex": duplex}


def render_speed_duplex(values: dict[str, Any]) -> str:
    if values["speed"] == "auto":
        return "auto"
    return f"forced {FORCED_RATES[values['speed']]}{values['duplex']}"


class NetworkInterfaceKind(AttributeKind):
    """Physical ethernet interfaces; they can be configured, never created."""

    name = "network_interface"
    properties = ("enable", "speed", "duplex", "mtu", "description")
    defaults = {"speed": "auto", "duplex": "auto"}
    ensurable = False
    normalizers = {
        "enable": to_bool,
        "speed": one_of(*SPEEDS),
        "duplex": one_of(*DUPLEXES),
        "mtu": to_int,
        "description": to_str,
    }

    groups = (
        AttributeGroup("enable", ("enable",), render_enable),
        AttributeGroup(
            "speed", ("speed", "duplex"), render_speed_duplex,
            resolve=resolve_speed_duplex,
        ),
        AttributeGroup("mtu", ("mtu",), lambda values: values["mtu"]),
        AttributeGroup("description", ("description",), lambda values: values["description"]),
    )

    def validate(
        self,
        staged: dict[str, Any],
        resource: Optional[str] = None,
        record: Optional[ResourceRecord] = None,
    ) -> dict[str, Any]:
        """Also reject a staged duplex the resulting speed cannot carry.

        Auto speed only takes auto duplex; a forced speed needs full or half.
        """
        normalized = super().validate(staged, resource, record)
        if "duplex" not in normalized:
            return normalized

        current = record.attributes if record is not None else {}
        speed = normalized.get("speed", current.get("speed", self.defaults["speed"]))
        duplex = normalized["duplex"]
        if speed == "auto" and duplex != "auto":
            raise ValidationError(
                self.name, "duplex", duplex, "requires a forced speed", resource
            )
        if speed != "auto" and duplex == "auto":
            raise ValidationError(
                self.name, "duplex", duplex, f"speed {speed} needs full or half", resource
            )
        return normalized

    def parse(self, device_id: str, raw: Any) -> Optional[ResourceRecord]:
        if raw.get("hardware") != "ethernet":
            return None

        if raw.get("autoNegotiate", "off") not in ("off", "unknown"):
            speed, duplex = "auto", "auto"
        else:
            bandwidth = int(raw.get("bandwidth", 0))
            speed = BANDWIDTH_SPEEDS.get(bandwidth, "auto")
            duplex = REPORTED_DUPLEX.get(raw.get("duplex", ""), "auto")
            if speed == "auto":
                duplex = "auto"

        attributes = {
            "enable": raw.get("interfaceStatus") != "disabled",
            "speed": speed,
            "duplex": duplex,
            "mtu": int(raw["mtu"]),
            "description": raw.get("description", ""),
        }
        return ResourceRecord(kind=self.name, key=device_id, attributes=attributes)
