"""Tests for the command-line interface."""

from __future__ import annotations

import io
import json
import logging
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest import mock

from backupguard import cli
from backupguard.config import Config
from backupguard.core.manifest import find_manifest_file


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)
        self.config = Config(
            backup_password=None,
            compression_level="balanced",
            compression_backend="auto",
            max_chunk_size=1024,
            output_dir=self.root / "default-out",
            log_level=logging.WARNING,
        )
        self.patcher = mock.patch.object(Config, "_instance", self.config)
        self.patcher.start()
        self.data = {"orders": [{"id": index, "qty": index % 7} for index in range(120)]}
        self.input_path = self.root / "orders.json"
        self.input_path.write_text(json.dumps(self.data), encoding="utf-8")

    def tearDown(self) -> None:
        self.patcher.stop()
        self.temp_dir.cleanup()

    def _run(self, *argv: str) -> int:
        with redirect_stdout(io.StringIO()):
            return cli.main(list(argv))

    def test_protect_restore_verify(self) -> None:
        out_dir = self.root / "out"
        self.assertEqual(
            0,
            self._run(
                "protect", str(self.input_path), str(out_dir),
                "--password", "pw", "--chunk-size", "100",
            ),
        )
        manifest_path, count = find_manifest_file(out_dir)
        self.assertEqual(1, count)
        self.assertTrue(manifest_path.name.startswith("orders-"))

        self.assertEqual(0, self._run("verify", str(manifest_path)))
        self.assertEqual(0, self._run("verify", str(manifest_path), "--password", "pw"))
        self.assertEqual(1, self._run("verify", str(manifest_path), "--password", "bad"))

        restored = self.root / "restored.json"
        self.assertEqual(
            0, self._run("restore", str(manifest_path), str(restored), "--password", "pw")
        )
        self.assertEqual(self.data, json.loads(restored.read_text(encoding="utf-8")))

    def test_protect_uses_configured_output_dir(self) -> None:
        self.assertEqual(0, self._run("protect", str(self.input_path), "--name", "nightly"))
        manifest_path, _ = find_manifest_file(self.config.output_dir)
        self.assertIsNotNone(manifest_path)
        self.assertTrue(manifest_path.name.startswith("nightly-"))

    def test_restore_wrong_password_fails(self) -> None:
        out_dir = self.root / "out"
        self._run("protect", str(self.input_path), str(out_dir), "--password", "pw")
        manifest_path, _ = find_manifest_file(out_dir)
        self.assertEqual(
            1, self._run("restore", str(manifest_path), str(self.root / "x.json"), "--password", "no")
        )
        self.assertFalse((self.root / "x.json").exists())

    def test_missing_input(self) -> None:
        self.assertEqual(1, self._run("protect", str(self.root / "missing.json")))

    def test_zero_chunk_size_rejected(self) -> None:
        out_dir = self.root / "out"
        self.assertEqual(
            1, self._run("protect", str(self.input_path), str(out_dir), "--chunk-size", "0")
        )
        self.assertFalse(out_dir.exists())

    def test_password_command(self) -> None:
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            self.assertEqual(0, cli.main(["password", "--length", "12"]))
        self.assertEqual(12, len(buffer.getvalue().strip()))

    def test_password_save(self) -> None:
        with mock.patch("backupguard.cli.save_config", return_value=self.root / ".env") as saver:
            self.assertEqual(0, self._run("password", "--save"))
        saved = saver.call_args[0][0]
        self.assertEqual(32, len(saved.backup_password))

    def test_help(self) -> None:
        self.assertEqual(0, self._run("help"))
        self.assertEqual(0, self._run())


if __name__ == "__main__":
    unittest.main()
