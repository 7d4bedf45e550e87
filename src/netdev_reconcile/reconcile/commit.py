"""Commit engine: turn staged changes into device calls.

Per resource the action is decided from the binding and the desired
ensure state:

    unbound, absent           -> nothing to do
    unbound, present          -> create
    bound,   absent           -> destroy
    bound,   present, staged  -> update
    bound,   present, nothing -> nothing to do

The adapter of the resource kind issues the calls and returns the new
record. A failed call raises CommitError and no record is returned, so
the caller keeps its last known state.
"""
import logging
from typing import TYPE_CHECKING, Any, Union

from ..devices.base import DeviceGateway
from ..utils.logging_config import timed_section
from .errors import ValidationError
from .schema import Binding, ChangeType, Ensure, ResourceRecord

if TYPE_CHECKING:
    from ..kinds.base import ResourceKind

logger = logging.getLogger(__name__)


class CommitEngine:
    """Flush staged changes for resources of one kind."""

    def __init__(self, gateway: DeviceGateway, kind: "ResourceKind"):
        self.gateway = gateway
        self.kind = kind

    def action(self, binding: Binding, staged: dict[str, Any], ensure: Ensure) -> ChangeType:
        """Which action a commit would take."""
        if ensure == Ensure.ABSENT:
            return ChangeType.DESTROY if binding.bound else ChangeType.NO_CHANGE
        if not binding.bound:
            return ChangeType.CREATE
        return ChangeType.UPDATE if staged else ChangeType.NO_CHANGE

    def commit(
        self,
        name: str,
        binding: Binding,
        staged: dict[str, Any],
        ensure: Union[Ensure, str],
    ) -> ResourceRecord:
        """
        Apply staged changes for one resource.

        Args:
            name: Resource name
            binding: Current binding of the resource
            staged: Pending property changes
            ensure: Desired ensure state

        Returns:
            The record describing what was sent to the device

        Raises:
            ValidationError: Invalid staged value (before any device call)
            CommitError: A device call failed
        """
        ensure = Ensure(ensure)
        if ensure == Ensure.ABSENT and not self.kind.ensurable:
            raise ValidationError(
                self.kind.name, "ensure", ensure.value, "kind cannot be removed", name
            )

        staged = self.kind.validate(
            staged, name, binding.record if binding.bound else None
        )
        action = self.action(binding, staged, ensure)

        if action == ChangeType.NO_CHANGE:
            if binding.record is not None:
                return binding.record
            return self.kind.absent_record(name)

        logger.info(f"Committing {action.value} of {self.kind.name} {name}")
        with timed_section(
            "commit",
            device_id=self.gateway.device_id,
            kind=self.kind.name,
            resource=name,
            action=action.value,
        ):
            if action == ChangeType.CREATE:
                return self.kind.create(self.gateway, name, staged)
            if action == ChangeType.DESTROY:
                return self.kind.destroy(self.gateway, binding.record)
            return self.kind.update(self.gateway, binding.record, staged)
