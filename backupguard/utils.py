"""Shared utilities for the backup protection pipeline."""

from __future__ import annotations

import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path


class BackupGuardError(Exception):
    """Base exception for backup pipeline errors."""


class ConfigError(BackupGuardError):
    """Raised when configuration is invalid or missing."""


class EncryptionError(BackupGuardError):
    """Raised when encryption or decryption fails."""


class CompressionError(BackupGuardError):
    """Raised when compression or decompression fails."""


class IntegrityError(BackupGuardError):
    """Raised when data cannot be checksummed or fails verification."""


class SplitError(BackupGuardError):
    """Raised when a payload cannot be split into chunks."""


DEFAULT_IO_BUFFER_SIZE = 8 * 1024 * 1024


def setup_logging(log_level: int = logging.INFO) -> None:
    """
    Configure global logging.

    Args:
        log_level: Logging verbosity level.
    """
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )


def format_bytes(size: int) -> str:
    """
    Convert bytes to a human-readable string.

    Args:
        size: Size in bytes.

    Returns:
        Human-readable size string.
    """
    if size < 0:
        raise ValueError("Size must be non-negative.")

    units = ["B", "KB", "MB", "GB", "TB", "PB"]
    value = float(size)
    for unit in units:
        if value < 1024 or unit == units[-1]:
            return f"{value:.2f} {unit}"
        value /= 1024
    return f"{value:.2f} PB"


def utc_timestamp() -> str:
    """Return the current UTC time as ISO-8601 with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def sanitize_filename(name: str) -> str:
    """
    Sanitize filename to remove unsafe characters.

    Args:
        name: Original filename.

    Returns:
        Sanitized filename.
    """
    name = name.strip().replace(os.sep, "_").replace("/", "_")
    return re.sub(r"[^A-Za-z0-9._-]+", "_", name) or "backup"


def get_io_buffer_size() -> int:
    """
    Read the IO buffer size from the environment.

    Returns:
        Buffer size in bytes.
    """
    value = os.getenv("IO_BUFFER_SIZE", "").strip()
    if not value:
        return DEFAULT_IO_BUFFER_SIZE
    try:
        parsed = int(value)
    except ValueError:
        return DEFAULT_IO_BUFFER_SIZE
    if parsed <= 0:
        return DEFAULT_IO_BUFFER_SIZE
    return parsed


def atomic_write(path: Path, data: str, mode: str = "w") -> None:
    """
    Write data atomically to a file.

    Args:
        path: Destination path.
        data: Data to write.
        mode: File mode.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(path.suffix + ".tmp")
    with open(temp_path, mode, encoding="utf-8") as file_handle:
        file_handle.write(data)
        file_handle.flush()
        os.fsync(file_handle.fileno())
    temp_path.replace(path)
