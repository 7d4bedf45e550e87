"""Errors raised by the reconciliation engine."""
from typing import Any, Optional


class ReconcileError(Exception):
    """Base error for a failed reconciliation step."""

    def __init__(self, kind: str, message: str, resource: Optional[str] = None):
        self.kind = kind
        self.resource = resource
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.resource:
            return f"{self.kind}[{self.resource}]: {self.message}"
        return f"{self.kind}: {self.message}"


class DiscoveryError(ReconcileError):
    """Device state could not be read or parsed."""
    pass


class ValidationError(ReconcileError):
    """A property value is outside the recognized set."""

    def __init__(
        self,
        kind: str,
        prop: str,
        value: Any,
        message: str,
        resource: Optional[str] = None,
    ):
        self.prop = prop
        self.value = value
        super().__init__(kind, f"invalid {prop}={value!r}: {message}", resource)


class CommitError(ReconcileError):
    """A create, update or destroy device call failed."""

    def __init__(self, kind: str, resource: str, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        message = f"{operation} failed"
        if detail:
            message += f": {detail}"
        super().__init__(kind, message, resource)
