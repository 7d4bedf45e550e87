"""Instance discovery: enumerate live entities of a kind from the device."""
import logging
from typing import TYPE_CHECKING

from ..devices.base import DeviceGateway
from .errors import DiscoveryError
from .schema import ResourceRecord

if TYPE_CHECKING:
    from ..kinds.base import ResourceKind

logger = logging.getLogger(__name__)


class InstanceDiscoverer:
    """Read and normalize all entities of one resource kind."""

    def __init__(self, gateway: DeviceGateway, kind: "ResourceKind"):
        self.gateway = gateway
        self.kind = kind

    def discover(self) -> list[ResourceRecord]:
        """
        Read the device and return one record per distinct key.

        Entries the adapter does not model are skipped. When several
        entries normalize to the same key the first one wins.

        Raises:
            GatewayError: Device read failed (propagated unchanged)
            DiscoveryError: Device data could not be parsed
        """
        raw_entities = self.gateway.list_entities(self.kind.name)

        records: list[ResourceRecord] = []
        seen: set[str] = set()

        for device_id, raw in raw_entities.items():
            try:
                record = self.kind.parse(device_id, raw)
            except (LookupError, ValueError, TypeError, AttributeError) as e:
                raise DiscoveryError(
                    self.kind.name, f"cannot parse {device_id!r}: {e}"
                ) from e

            if record is None:
                continue
            if record.key in seen:
                logger.debug(f"{self.kind.name}: dropping duplicate {record.key} ({device_id})")
                continue

            seen.add(record.key)
            records.append(record)

        logger.info(
            f"Discovered {len(records)} {self.kind.name} instances "
            f"from {len(raw_entities)} device entries"
        )
        return records
