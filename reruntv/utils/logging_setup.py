"""Logging setup for RerunTV with file and console output"""

import logging
import logging.handlers
import sys
from pathlib import Path


def parse_size(size: str, default: int = 10 * 1024 * 1024) -> int:
    """
    Parse a human size string ("10MB", "512KB", "1GB") into bytes.

    Args:
        size: Size string from configuration
        default: Value returned when the string cannot be parsed

    Returns:
        Size in bytes
    """
    size = size.strip().upper()
    multipliers = {"KB": 1024, "MB": 1024 * 1024, "GB": 1024 * 1024 * 1024}
    for suffix, multiplier in multipliers.items():
        if size.endswith(suffix):
            try:
                return int(size[: -len(suffix)]) * multiplier
            except ValueError:
                return default
    try:
        return int(size)
    except ValueError:
        return default


def setup_logging(
    log_level: str = "INFO",
    log_file_name: str | None = None,
    log_to_console: bool = True,
    log_to_file: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    log_format: str | None = None,
) -> logging.Logger:
    """
    Set up logging for the RerunTV application.

    This configures logging to write to:
    - Console (stdout)
    - File with rotation

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file_name: Path to log file (can be absolute or relative)
        log_to_console: Whether to log to console
        log_to_file: Whether to log to file
        max_bytes: Maximum size of log file before rotation (default 10MB)
        backup_count: Number of backup files to keep
        log_format: Custom log format string

    Returns:
        Configured root logger
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    log_file_path = Path(log_file_name or "logs/reruntv.log")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Clear any existing handlers to avoid duplicates
    root_logger.handlers.clear()

    detailed_formatter = logging.Formatter(
        log_format or "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_formatter = logging.Formatter(
        "%(asctime)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
    )

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)

    if log_to_file:
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(detailed_formatter)
        root_logger.addHandler(file_handler)

    root_logger.info("=" * 60)
    root_logger.info(f"RerunTV logging initialized - Level: {log_level}")
    if log_to_file:
        root_logger.info(f"Log file: {log_file_path}")
    root_logger.info(f"Max file size: {max_bytes / (1024 * 1024):.1f} MB, Backups: {backup_count}")
    root_logger.info("=" * 60)

    return root_logger
