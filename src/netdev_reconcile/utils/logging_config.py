"""Logging configuration for netdev-reconcile.

Provides configurable logging with:
- File-based logging with rotation
- Console output for real-time debugging
- Performance timing of gateway calls

Environment Variables:
    NETDEV_RECONCILE_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    NETDEV_RECONCILE_LOG_FILE: Path to log file
        (default: ~/.netdev-reconcile/netdev-reconcile.log)
    NETDEV_RECONCILE_LOG_MAX_SIZE: Max log file size in MB (default: 10)
    NETDEV_RECONCILE_LOG_BACKUPS: Number of backup files to keep (default: 5)

Usage:
    from netdev_reconcile.utils.logging_config import setup_logging, timed

    setup_logging()  # Call once at startup

    @timed("list_entities")
    def list_entities(self, kind):
        ...

    with timed_section("commit", device_id="leaf1", resource="Ethernet1"):
        ...
"""
import functools
import logging
import os
import time
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Callable, Any

# Performance logger - separate from main logger for easy filtering
perf_logger = logging.getLogger("netdev_reconcile.perf")


def get_log_level() -> int:
    """Get log level from environment."""
    level_str = os.environ.get("NETDEV_RECONCILE_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_str, logging.INFO)


def get_log_file() -> Path:
    """Get log file path from environment."""
    default_path = Path.home() / ".netdev-reconcile" / "netdev-reconcile.log"
    path_str = os.environ.get("NETDEV_RECONCILE_LOG_FILE", str(default_path))
    return Path(path_str)


def setup_logging() -> None:
    """Configure logging for the application.

    Sets up:
    - Console handler (INFO+ by default, respects NETDEV_RECONCILE_LOG_LEVEL)
    - File handler with rotation (DEBUG level - captures everything)
    - Performance log file for gateway timings
    """
    log_level = get_log_level()
    log_file = get_log_file()
    max_size_mb = int(os.environ.get("NETDEV_RECONCILE_LOG_MAX_SIZE", "10"))
    backup_count = int(os.environ.get("NETDEV_RECONCILE_LOG_BACKUPS", "5"))

    log_file.parent.mkdir(parents=True, exist_ok=True)

    main_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | %(name)-32s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    perf_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | PERF | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(main_format)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(main_format)

    perf_log_file = log_file.parent / "netdev-reconcile-perf.log"
    perf_handler = RotatingFileHandler(
        perf_log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8"
    )
    perf_handler.setLevel(logging.DEBUG)
    perf_handler.setFormatter(perf_format)

    root_logger = logging.getLogger("netdev_reconcile")
    root_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    # Perf records go to their own file only
    perf_logger.setLevel(logging.DEBUG)
    perf_logger.addHandler(perf_handler)
    perf_logger.propagate = False

    root_logger.info(f"Logging initialized: level={logging.getLevelName(log_level)}, file={log_file}")
    perf_logger.info(f"Performance logging to: {perf_log_file}")


def _format_timing(operation: str, device_id: Optional[str], elapsed: float, status: str) -> str:
    return f"{operation:20s} | {device_id or 'N/A':15s} | {elapsed:8.2f}ms | {status}"


def timed(operation: str, device_id: Optional[str] = None):
    """Decorator to log execution time of a function.

    Args:
        operation: Name of the operation (e.g., "list_entities", "configure")
        device_id: Optional device identifier (can also be inferred from self.device_id)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            dev_id = device_id
            if dev_id is None and args and hasattr(args[0], 'device_id'):
                dev_id = args[0].device_id

            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.warning(_format_timing(operation, dev_id, elapsed, f"FAIL: {e}"))
                raise
            elapsed = (time.perf_counter() - start) * 1000
            perf_logger.info(_format_timing(operation, dev_id, elapsed, "OK"))
            return result

        return wrapper

    return decorator


@contextmanager
def timed_section(operation: str, device_id: Optional[str] = None, **extra):
    """Context manager for timing code sections.

    Usage:
        with timed_section("commit", device_id="leaf1", resource="Ethernet1"):
            engine.commit(...)
    """
    start = time.perf_counter()
    extra_str = " | ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""

    try:
        yield
    except Exception as e:
        elapsed = (time.perf_counter() - start) * 1000
        msg = _format_timing(operation, device_id, elapsed, f"FAIL: {e}")
        if extra_str:
            msg += f" | {extra_str}"
        perf_logger.warning(msg)
        raise

    elapsed = (time.perf_counter() - start) * 1000
    msg = _format_timing(operation, device_id, elapsed, "OK")
    if extra_str:
        msg += f" | {extra_str}"
    perf_logger.info(msg)
