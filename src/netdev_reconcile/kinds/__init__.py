"""Resource kind adapters."""
from .base import (
    ResourceKind,
    AttributeKind,
    CompositeKind,
    AttributeGroup,
)
from .network_interface import NetworkInterfaceKind
from .radius_server import RadiusServerKind
from .radius_server_group import RadiusServerGroupKind
from .snmp_notification_receiver import SnmpNotificationReceiverKind

__all__ = [
    "ResourceKind",
    "AttributeKind",
    "CompositeKind",
    "AttributeGroup",
    "NetworkInterfaceKind",
    "RadiusServerKind",
    "RadiusServerGroupKind",
    "SnmpNotificationReceiverKind",
    "RESOURCE_KINDS",
    "get_kind",
]

# Resource kind registry
RESOURCE_KINDS = {
    NetworkInterfaceKind.name: NetworkInterfaceKind,
    RadiusServerKind.name: RadiusServerKind,
    RadiusServerGroupKind.name: RadiusServerGroupKind,
    SnmpNotificationReceiverKind.name: SnmpNotificationReceiverKind,
}


def get_kind(name: str) -> ResourceKind:
    """Create the adapter for a resource kind name."""
    if name not in RESOURCE_KINDS:
        raise ValueError(f"Unknown resource kind: {name}")
    return RESOURCE_KINDS[name]()
