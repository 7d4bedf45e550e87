"""Audit logging for committed resource changes.

Every commit (create, update, destroy) is written as one JSON line with the
staged parameters and the record before and after the change.
"""
import json
import logging
import os
from datetime import datetime, timezone
from dataclasses import dataclass, asdict
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

# Dedicated audit logger
audit_logger = logging.getLogger("netdev_reconcile.audit")

DEFAULT_AUDIT_DIR = "~/.netdev-reconcile"


def setup_audit_logging(log_dir: Optional[str] = None) -> str:
    """Configure audit logging to file.

    Args:
        log_dir: Directory for audit logs. Defaults to ~/.netdev-reconcile/

    Returns:
        Path of the audit log file
    """
    if log_dir is None:
        log_dir = os.path.expanduser(DEFAULT_AUDIT_DIR)

    Path(log_dir).mkdir(parents=True, exist_ok=True)
    audit_file = os.path.join(log_dir, "audit.log")

    audit_logger.setLevel(logging.INFO)
    for handler in list(audit_logger.handlers):
        audit_logger.removeHandler(handler)
        handler.close()

    handler = RotatingFileHandler(
        audit_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=10,
        encoding="utf-8",
    )
    # One JSON document per line
    handler.setFormatter(logging.Formatter("%(message)s"))
    audit_logger.addHandler(handler)
    audit_logger.propagate = False

    return audit_file


@dataclass
class ChangeRecord:
    """Record of a committed change."""
    timestamp: str
    device_id: str
    kind: str
    resource: str
    operation: str  # create, update, destroy
    dry_run: bool
    success: bool
    parameters: dict
    before_state: Optional[dict] = None
    after_state: Optional[dict] = None
    error: Optional[str] = None

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(asdict(self), default=str)

    @classmethod
    def from_json(cls, json_str: str) -> "ChangeRecord":
        """Parse from JSON string."""
        return cls(**json.loads(json_str))


class ChangeTracker:
    """Write change records for one device."""

    def __init__(self, device_id: str):
        self.device_id = device_id

    def log_change(
        self,
        kind: str,
        resource: str,
        operation: str,
        parameters: dict,
        success: bool,
        error: Optional[str] = None,
        dry_run: bool = False,
        before_state: Optional[dict] = None,
        after_state: Optional[dict] = None,
    ) -> ChangeRecord:
        """Log a committed change and return the record written."""
        record = ChangeRecord(
            timestamp=datetime.now(timezone.utc).isoformat(),
            device_id=self.device_id,
            kind=kind,
            resource=resource,
            operation=operation,
            dry_run=dry_run,
            success=success,
            parameters=parameters,
            before_state=before_state,
            after_state=after_state,
            error=error,
        )
        audit_logger.info(record.to_json())
        return record


def get_recent_changes(
    log_file: Optional[str] = None,
    device_id: Optional[str] = None,
    kind: Optional[str] = None,
    operation: Optional[str] = None,
    limit: int = 100,
) -> list[ChangeRecord]:
    """Read recent changes from the audit log, most recent first."""
    if log_file is None:
        log_file = os.path.join(os.path.expanduser(DEFAULT_AUDIT_DIR), "audit.log")

    if not os.path.exists(log_file):
        return []

    records = []
    with open(log_file, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                record = ChangeRecord.from_json(line)
            except (json.JSONDecodeError, TypeError):
                continue  # Skip malformed lines

            if device_id and record.device_id != device_id:
                continue
            if kind and record.kind != kind:
                continue
            if operation and record.operation != operation:
                continue
            records.append(record)

    return list(reversed(records[-limit:]))
