"""Device inventory management from YAML configuration."""
import logging
from pathlib import Path
from typing import Optional

import yaml

from ..devices import create_gateway, DeviceGateway

logger = logging.getLogger(__name__)


class DeviceInventory:
    """Manages the device inventory loaded from YAML config.

    ```yaml
    defaults:
      type: eos
      protocol: https
      port: 443
      password_env: EOS_PASSWORD

    devices:
      leaf1:
        name: "Leaf 1"
        host: 192.0.2.11
        username: admin
    ```
    """

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or self._find_config()
        self._config: dict = {}
        self._gateways: dict[str, DeviceGateway] = {}
        self._load_config()

    def _find_config(self) -> str:
        """Find the devices.yaml config file."""
        search_paths = [
            Path.cwd() / "configs" / "devices.yaml",
            Path.cwd() / "devices.yaml",
            Path.home() / ".config" / "netdev-reconcile" / "devices.yaml",
            Path("/etc/netdev-reconcile/devices.yaml"),
        ]

        for path in search_paths:
            if path.exists():
                return str(path)

        raise FileNotFoundError(
            "Could not find devices.yaml. Create one in ./configs/devices.yaml"
        )

    def _load_config(self) -> None:
        """Load the YAML configuration."""
        with open(self.config_path) as f:
            self._config = yaml.safe_load(f) or {}

        # Apply defaults
        defaults = self._config.get("defaults", {})
        for device_id, device_config in self._config.get("devices", {}).items():
            for key, value in defaults.items():
                if key not in device_config:
                    device_config[key] = value

        logger.debug(
            f"Loaded {len(self.get_device_ids())} devices from {self.config_path}"
        )

    def get_device_ids(self) -> list[str]:
        """Get all device IDs."""
        return list(self._config.get("devices", {}).keys())

    def get_device_config(self, device_id: str) -> dict:
        """Get raw config for a device."""
        devices = self._config.get("devices", {})
        if device_id not in devices:
            raise KeyError(f"Unknown device: {device_id}")
        return devices[device_id]

    def get_gateway(self, device_id: str) -> DeviceGateway:
        """Get or create the gateway for a device."""
        if device_id not in self._gateways:
            config = self.get_device_config(device_id)
            self._gateways[device_id] = create_gateway(device_id, config)
        return self._gateways[device_id]

    def get_gateways_by_type(self, device_type: str) -> list[DeviceGateway]:
        """Get gateways filtered by device type."""
        result = []
        for device_id, config in self._config.get("devices", {}).items():
            if config.get("type") == device_type:
                result.append(self.get_gateway(device_id))
        return result

    def close_all(self) -> None:
        """Close all gateway connections."""
        for gateway in self._gateways.values():
            if gateway.is_connected:
                gateway.disconnect()
        self._gateways.clear()
