"""Tests for configuration loading and saving."""

from __future__ import annotations

import logging
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from backupguard.common.constants import DEFAULT_MAX_CHUNK_SIZE
from backupguard.config import Config, load_config, save_config
from backupguard.utils import ConfigError


class TestConfig(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.env_file = Path(self.temp_dir.name) / ".env"
        self.environ = mock.patch.dict(os.environ, {}, clear=True)
        self.environ.start()

    def tearDown(self) -> None:
        self.environ.stop()
        self.temp_dir.cleanup()

    def test_defaults(self) -> None:
        config = load_config(self.env_file)
        self.assertIsNone(config.backup_password)
        self.assertFalse(config.encryption_enabled)
        self.assertEqual("balanced", config.compression_level)
        self.assertEqual("auto", config.compression_backend)
        self.assertEqual(DEFAULT_MAX_CHUNK_SIZE, config.max_chunk_size)
        self.assertEqual(Path("backups"), config.output_dir)
        self.assertEqual(logging.INFO, config.log_level)

    def test_environment_overrides(self) -> None:
        os.environ.update(
            {
                "BACKUP_PASSWORD": "s3cret",
                "BACKUP_COMPRESSION_LEVEL": "MAXIMUM",
                "BACKUP_COMPRESSION_BACKEND": "simple",
                "BACKUP_MAX_CHUNK_SIZE": "1024",
                "BACKUP_LOG_LEVEL": "debug",
            }
        )
        config = load_config(self.env_file)
        self.assertTrue(config.encryption_enabled)
        self.assertEqual("maximum", config.compression_level)
        self.assertEqual("simple", config.compression_backend)
        self.assertEqual(1024, config.max_chunk_size)
        self.assertEqual(logging.DEBUG, config.log_level)

    def test_invalid_values(self) -> None:
        cases = {
            "BACKUP_COMPRESSION_LEVEL": "ultra",
            "BACKUP_COMPRESSION_BACKEND": "lz4",
            "BACKUP_MAX_CHUNK_SIZE": "big",
            "BACKUP_LOG_LEVEL": "chatty",
        }
        for key, value in cases.items():
            with self.subTest(key=key):
                with mock.patch.dict(os.environ, {key: value}):
                    with self.assertRaises(ConfigError):
                        load_config(self.env_file)

    def test_non_positive_chunk_size(self) -> None:
        os.environ["BACKUP_MAX_CHUNK_SIZE"] = "0"
        with self.assertRaises(ConfigError):
            load_config(self.env_file)

    def test_save_and_load(self) -> None:
        config = Config(
            backup_password="ab#c!&*9",
            compression_level="fast",
            compression_backend="stream",
            max_chunk_size=2048,
            output_dir=Path(self.temp_dir.name) / "out",
            log_level=logging.WARNING,
        )
        written = save_config(config, self.env_file)
        self.assertEqual(self.env_file, written)
        self.assertEqual(0o600, self.env_file.stat().st_mode & 0o777)

        self.assertEqual(config, load_config(self.env_file))

    def test_get_instance_is_cached(self) -> None:
        with mock.patch.object(Config, "_instance", None):
            with mock.patch("backupguard.config.load_config", wraps=load_config) as loader:
                first = Config.get_instance()
                second = Config.get_instance()
        self.assertIs(first, second)
        self.assertEqual(1, loader.call_count)


if __name__ == "__main__":
    unittest.main()
