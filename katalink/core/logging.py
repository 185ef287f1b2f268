"""
katalink Logging Framework

Centralized logging configuration using loguru.
Engine traffic goes to a dedicated task log so it can be kept out of the console.
"""

import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Optional

from loguru import logger


TRAFFIC_LOG = "engine"

_CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"

# Log directory for the current run
_current_log_dir: Optional[Path] = None


def _global_exception_handler(exc_type, exc_value, exc_tb):
    """Handle uncaught exceptions globally."""
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_tb)
        return

    error_msg = "".join(traceback.format_exception(exc_type, exc_value, exc_tb))
    logger.error(f"Uncaught exception:\n{error_msg}")


def _not_traffic(record) -> bool:
    return record["extra"].get("task_log") != TRAFFIC_LOG


def get_log_dir() -> Optional[Path]:
    """Get current run's log directory"""
    return _current_log_dir


def setup_logging(
    log_dir: Optional[Path] = None,
    console_level: str = "INFO",
    file_level: str = "DEBUG",
) -> Path:
    """
    Setup logging for a session run.

    Creates a log directory: {log_dir}/katalink_{timestamp}/

    Args:
        log_dir: Base directory for logs (default: ./logs)
        console_level: Log level for console output
        file_level: Log level for file output

    Returns:
        Path to the run's log directory
    """
    global _current_log_dir

    logger.remove()
    sys.excepthook = _global_exception_handler

    base_dir = Path(log_dir) if log_dir else Path.cwd() / "logs"
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_dir = base_dir / f"katalink_{timestamp}"
    run_dir.mkdir(parents=True, exist_ok=True)

    _current_log_dir = run_dir

    # Console handler - colored, concise, no raw traffic
    logger.add(
        sys.stderr,
        level=console_level,
        format=_CONSOLE_FORMAT,
        colorize=True,
        filter=_not_traffic,
    )

    logger.add(
        run_dir / "katalink.log",
        level=file_level,
        format=_FILE_FORMAT,
        rotation="50 MB",
        retention="7 days",
        encoding="utf-8",
        filter=_not_traffic,
    )

    # Error log file - only errors and above
    logger.add(
        run_dir / "error.log",
        level="ERROR",
        format=_FILE_FORMAT,
        rotation="10 MB",
        encoding="utf-8",
    )

    logger.info(f"Logging initialized: {run_dir}")

    return run_dir


def setup_console_only(level: str = "INFO"):
    """
    Setup console-only logging (no log directory).

    Args:
        level: Log level
    """
    logger.remove()

    logger.add(
        sys.stderr,
        level=level,
        format=_CONSOLE_FORMAT,
        colorize=True,
        filter=_not_traffic,
    )


def add_traffic_log(name: str = TRAFFIC_LOG, level: str = "DEBUG") -> Path:
    """
    Add a separate log file for engine traffic.

    Args:
        name: Log file name (without extension)
        level: Log level

    Returns:
        Path to the log file
    """
    if _current_log_dir is None:
        raise RuntimeError("Logging not initialized. Call setup_logging() first.")

    log_file = _current_log_dir / f"{name}.log"

    logger.add(
        log_file,
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {message}",
        filter=lambda record: record["extra"].get("task_log") == name,
        encoding="utf-8",
    )

    return log_file


def get_traffic_logger(name: str = TRAFFIC_LOG):
    """
    Get a logger bound to the traffic log.

    Args:
        name: Task log name

    Returns:
        Bound logger instance
    """
    return logger.bind(task_log=name)


__all__ = [
    "logger",
    "TRAFFIC_LOG",
    "setup_logging",
    "setup_console_only",
    "get_log_dir",
    "add_traffic_log",
    "get_traffic_logger",
]
