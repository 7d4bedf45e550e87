"""Device gateways for different platforms."""
from .base import (
    DeviceGateway,
    DeviceConfig,
    GatewayError,
    GatewayConnectionError,
    GatewayAuthError,
    GatewayProtocolError,
)
from .eapi import EapiGateway

__all__ = [
    "DeviceGateway",
    "DeviceConfig",
    "GatewayError",
    "GatewayConnectionError",
    "GatewayAuthError",
    "GatewayProtocolError",
    "EapiGateway",
]

# Gateway type registry
GATEWAY_TYPES = {
    "eos": EapiGateway,
}


def create_gateway(device_id: str, config: dict) -> DeviceGateway:
    """Factory function to create gateway instances."""
    device_type = config.get("type", "").lower()
    if device_type not in GATEWAY_TYPES:
        raise ValueError(f"Unknown device type: {device_type}")

    gateway_class = GATEWAY_TYPES[device_type]
    return gateway_class(device_id, DeviceConfig(**config))
