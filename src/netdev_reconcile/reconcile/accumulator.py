"""Pending property changes, staged before anything is sent to a device."""
from typing import Any


class _NotStaged:
    """Marker for a property with no requested change."""

    def __repr__(self) -> str:
        return "NOT_STAGED"

    def __bool__(self) -> bool:
        return False


NOT_STAGED = _NotStaged()


class ChangeAccumulator:
    """Collect property assignments per resource name.

    Writing the same property twice keeps the last value. Nothing here
    talks to the device.
    """

    def __init__(self):
        self._changes: dict[str, dict[str, Any]] = {}

    def stage(self, name: str, prop: str, value: Any) -> None:
        """Request ``prop = value`` for resource ``name``."""
        self._changes.setdefault(name, {})[prop] = value

    def staged(self, name: str) -> dict[str, Any]:
        """Copy of the changes staged for ``name``."""
        return dict(self._changes.get(name, {}))

    def requested(self, name: str, prop: str) -> Any:
        """Staged value for a property, or ``NOT_STAGED``."""
        return self._changes.get(name, {}).get(prop, NOT_STAGED)

    def has_changes(self, name: str) -> bool:
        return bool(self._changes.get(name))

    def discard(self, name: str) -> None:
        """Drop everything staged for ``name``."""
        self._changes.pop(name, None)

    def __contains__(self, name: str) -> bool:
        return name in self._changes
