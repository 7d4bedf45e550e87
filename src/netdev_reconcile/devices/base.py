"""Base device gateway abstraction for managed network devices."""
import os
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Error raised by a device gateway read."""
    pass


class GatewayConnectionError(GatewayError):
    """Device could not be reached."""
    pass


class GatewayAuthError(GatewayError):
    """Device rejected the credentials."""
    pass


class GatewayProtocolError(GatewayError):
    """Device answered with an error or a malformed response."""
    pass


@dataclass
class DeviceConfig:
    """Configuration for a managed device."""
    type: str
    name: str
    host: str
    protocol: str = "https"
    port: int = 443
    username: str = "admin"
    password: Optional[str] = None
    password_env: str = "NETWORK_PASSWORD"
    timeout: int = 30
    verify_ssl: bool = True
    enable_password: Optional[str] = None

    def get_password(self) -> str:
        """Get password from config or environment variable."""
        if self.password:
            return self.password
        return os.environ.get(self.password_env, "")


class DeviceGateway(ABC):
    """Verb-style access to the entities a device manages.

    Reads return raw, device-native data keyed by a device identifier.
    Writes return ``(success, output)`` tuples and never raise for a
    rejected command.
    """

    def __init__(self, device_id: str, config: DeviceConfig):
        self.device_id = device_id
        self.config = config
        self._connected = False

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def host(self) -> str:
        return self.config.host

    @property
    def is_connected(self) -> bool:
        return self._connected

    # Connection management
    @abstractmethod
    def connect(self) -> bool:
        """Establish connection to the device."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Close connection to the device."""
        pass

    # Reads
    @abstractmethod
    def list_entities(self, kind: str) -> dict[str, Any]:
        """List all entities of a resource kind.

        Returns:
            Mapping of device identifier to raw attributes

        Raises:
            GatewayConnectionError, GatewayAuthError, GatewayProtocolError
        """
        pass

    # Writes
    @abstractmethod
    def set_attribute(
        self,
        kind: str,
        identity: str,
        attribute: str,
        value: Any
    ) -> tuple[bool, str]:
        """Apply a single attribute to an entity."""
        pass

    @abstractmethod
    def create_entity(self, kind: str, identity: str, *args: Any) -> tuple[bool, str]:
        """Create an entity."""
        pass

    @abstractmethod
    def delete_entity(
        self,
        kind: str,
        identity: str,
        attributes: Optional[dict[str, Any]] = None
    ) -> tuple[bool, str]:
        """Remove an entity.

        ``attributes`` carries the last-known bundle for kinds whose
        removal command repeats the entity's parameters.
        """
        pass

    @abstractmethod
    def update_entity(
        self,
        kind: str,
        identity: str,
        attributes: dict[str, Any]
    ) -> tuple[bool, str]:
        """Apply the full attribute bundle of an entity in one call."""
        pass

    # Context manager support
    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
        return False
