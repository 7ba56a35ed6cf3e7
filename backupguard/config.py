"""Configuration management for the backup pipeline."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Optional

from dotenv import load_dotenv

from .common.constants import (
    DEFAULT_COMPRESSION_BACKEND,
    DEFAULT_COMPRESSION_LEVEL,
    DEFAULT_MAX_CHUNK_SIZE,
)
from .utils import ConfigError, atomic_write

ENV_PASSWORD = "BACKUP_PASSWORD"
ENV_LEVEL = "BACKUP_COMPRESSION_LEVEL"
ENV_BACKEND = "BACKUP_COMPRESSION_BACKEND"
ENV_CHUNK_SIZE = "BACKUP_MAX_CHUNK_SIZE"
ENV_OUTPUT_DIR = "BACKUP_OUTPUT_DIR"
ENV_LOG_LEVEL = "BACKUP_LOG_LEVEL"

VALID_LEVELS = ("fast", "balanced", "maximum")
VALID_BACKENDS = ("auto", "stream", "simple")


def _base_dir() -> Path:
    return Path(__file__).resolve().parents[1]


def _env_path() -> Path:
    return _base_dir() / ".env"


@dataclass(frozen=True)
class Config:
    """Singleton configuration object."""

    backup_password: Optional[str]
    compression_level: str
    compression_backend: str
    max_chunk_size: int
    output_dir: Path
    log_level: int

    _instance: ClassVar[Optional["Config"]] = None

    @property
    def encryption_enabled(self) -> bool:
        return bool(self.backup_password)

    @classmethod
    def get_instance(cls) -> "Config":
        """
        Retrieve a singleton instance of Config.

        Returns:
            Config singleton instance.
        """
        if cls._instance is None:
            cls._instance = load_config()
        return cls._instance


def save_config(config: Config, env_file: Optional[Path] = None) -> Path:
    """
    Persist configuration to the .env file.

    Args:
        config: Config instance to save.
        env_file: Destination (defaults to the project .env).

    Returns:
        Path of the written file.
    """
    lines = [
        f"{ENV_PASSWORD}='{config.backup_password or ''}'",
        f"{ENV_LEVEL}={config.compression_level}",
        f"{ENV_BACKEND}={config.compression_backend}",
        f"{ENV_CHUNK_SIZE}={config.max_chunk_size}",
        f"{ENV_OUTPUT_DIR}={config.output_dir}",
        f"{ENV_LOG_LEVEL}={logging.getLevelName(config.log_level)}",
    ]
    data = "\n".join(lines) + "\n"
    env_file = env_file or _env_path()
    atomic_write(env_file, data)
    os.chmod(env_file, 0o600)
    return env_file


def _parse_int(value: str, name: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ConfigError(f"Invalid integer for {name}.") from exc
    if parsed <= 0:
        raise ConfigError(f"{name} must be greater than 0.")
    return parsed


def _parse_choice(value: str, name: str, choices: tuple) -> str:
    value = value.lower()
    if value not in choices:
        raise ConfigError(f"{name} must be one of: {', '.join(choices)}.")
    return value


def _parse_log_level(value: str) -> int:
    level = logging.getLevelName(value.upper())
    if not isinstance(level, int):
        raise ConfigError(f"Invalid log level for {ENV_LOG_LEVEL}: {value}.")
    return level


def load_config(env_file: Optional[Path] = None) -> Config:
    """
    Load and validate configuration from the environment and .env file.

    Args:
        env_file: Optional .env path (defaults to the project .env).

    Returns:
        Config instance.
    """
    env_file = env_file or _env_path()
    if env_file.exists():
        load_dotenv(env_file)

    password = os.getenv(ENV_PASSWORD, "").strip()
    level = os.getenv(ENV_LEVEL, DEFAULT_COMPRESSION_LEVEL).strip()
    backend = os.getenv(ENV_BACKEND, DEFAULT_COMPRESSION_BACKEND).strip()
    max_chunk = os.getenv(ENV_CHUNK_SIZE, str(DEFAULT_MAX_CHUNK_SIZE)).strip()
    output_dir = os.getenv(ENV_OUTPUT_DIR, "backups").strip() or "backups"
    log_level = os.getenv(ENV_LOG_LEVEL, "INFO").strip()

    return Config(
        backup_password=password or None,
        compression_level=_parse_choice(level, ENV_LEVEL, VALID_LEVELS),
        compression_backend=_parse_choice(backend, ENV_BACKEND, VALID_BACKENDS),
        max_chunk_size=_parse_int(max_chunk, ENV_CHUNK_SIZE),
        output_dir=Path(output_dir).expanduser(),
        log_level=_parse_log_level(log_level),
    )
