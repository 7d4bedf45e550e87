"""Prefetch: bind desired resources to discovered records."""
import logging
from typing import Optional

from .discovery import InstanceDiscoverer
from .errors import ReconcileError
from .schema import Binding, DesiredResource

logger = logging.getLogger(__name__)


class Matcher:
    """Associate each desired resource with its discovered record, if any."""

    def __init__(self, discoverer: InstanceDiscoverer):
        self.discoverer = discoverer
        self.kind = discoverer.kind

    def match(
        self,
        desired: dict[str, DesiredResource],
        previous: Optional[dict[str, Binding]] = None,
    ) -> dict[str, Binding]:
        """
        Run discovery once and bind desired resources by record key.

        A new match always replaces a prior binding. Without a match the
        prior binding is kept when the kind's ``preserve_unmatched`` policy
        is set, otherwise the resource is left unbound. A resource whose
        name cannot be turned into a key is left unbound.

        Returns:
            Mapping of resource name to Binding
        """
        previous = previous or {}
        records = {record.key: record for record in self.discoverer.discover()}

        bindings: dict[str, Binding] = {}
        for name, resource in desired.items():
            try:
                key = self.kind.key_for(resource)
            except ReconcileError as e:
                # Left unbound; staging reports the error for this resource
                logger.warning(f"Cannot bind {self.kind.name} {name}: {e}")
                bindings[name] = Binding(name=name)
                continue

            record = records.get(key)
            if record is not None:
                bindings[name] = Binding(name=name, record=record)
            elif self.kind.preserve_unmatched and name in previous:
                logger.debug(f"{self.kind.name}: keeping prior binding for {name}")
                bindings[name] = previous[name]
            else:
                bindings[name] = Binding(name=name)

        return bindings
