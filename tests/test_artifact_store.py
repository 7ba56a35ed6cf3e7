"""Tests for manifest handling and on-disk backup storage."""

from __future__ import annotations

import asyncio
import datetime
import json
import os
import tempfile
import unittest
from pathlib import Path

from backupguard.artifact_store import load_artifact, save_artifact
from backupguard.core.manifest import (
    available_manifest_path,
    build_manifest_name,
    create_manifest,
    find_manifest_file,
    parse_manifest,
)
from backupguard.pipeline import protect_backup, restore_backup
from backupguard.utils import BackupGuardError


class TestManifest(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.folder = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_build_manifest_name(self) -> None:
        timestamp = datetime.datetime(2026, 1, 18, 9, 5, 7)
        self.assertEqual(
            "daily-3-manifest_090507_180126.json",
            build_manifest_name("daily", 3, timestamp),
        )

    def test_create_manifest_fields(self) -> None:
        artifact = asyncio.run(protect_backup({"k": "v" * 500}, password="pw"))
        manifest = create_manifest(artifact, ["a.payload"])
        self.assertEqual("gzip", manifest["compression"])
        self.assertEqual("AES-256-GCM", manifest["encryption_algorithm"])
        self.assertEqual("PBKDF2-SHA256-100000", manifest["kdf"])
        self.assertFalse(manifest["split"])
        self.assertEqual(["a.payload"], manifest["parts"])
        self.assertNotIn("payload", manifest)
        self.assertGreater(manifest["space_saved_percent"], 0)

    def test_create_manifest_unencrypted(self) -> None:
        artifact = asyncio.run(protect_backup("tiny", level="fast"))
        manifest = create_manifest(artifact, ["a.payload"])
        self.assertEqual("deflate", manifest["compression"])
        self.assertIsNone(manifest["encryption_algorithm"])
        self.assertIsNone(manifest["kdf"])
        self.assertLess(manifest["space_saved_percent"], 0)

    def test_parse_manifest_rejects_invalid(self) -> None:
        broken = self.folder / "broken-1-manifest_000000_010126.json"
        broken.write_text("{not json", encoding="utf-8")
        with self.assertRaises(ValueError):
            parse_manifest(broken)

        unrelated = self.folder / "other-1-manifest_000000_010126.json"
        unrelated.write_text(json.dumps({"name": "x"}), encoding="utf-8")
        with self.assertRaises(ValueError):
            parse_manifest(unrelated)

    def test_available_manifest_path(self) -> None:
        name = "daily-1-manifest_090507_180126.json"
        self.assertEqual(self.folder / name, available_manifest_path(self.folder, name))
        (self.folder / name).write_text("{}", encoding="utf-8")
        self.assertEqual(
            self.folder / "daily-1-manifest_090507_180126_1.json",
            available_manifest_path(self.folder, name),
        )

    def test_find_manifest_file(self) -> None:
        self.assertEqual((None, 0), find_manifest_file(self.folder))
        older = self.folder / "a-1-manifest_000000_010126.json"
        newer = self.folder / "b-1-manifest_000000_020126.json"
        older.write_text("{}", encoding="utf-8")
        newer.write_text("{}", encoding="utf-8")
        (self.folder / "notes.json").write_text("{}", encoding="utf-8")
        os.utime(older, (1_000_000, 1_000_000))
        os.utime(newer, (2_000_000, 2_000_000))
        self.assertEqual((newer, 2), find_manifest_file(self.folder))


class TestArtifactStore(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.folder = Path(self.temp_dir.name) / "backups"
        self.data = {"rows": [{"n": index, "label": f"row {index}"} for index in range(80)]}

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_unsplit_roundtrip(self) -> None:
        artifact = asyncio.run(protect_backup(self.data, name="nightly/main", password="pw"))
        manifest_path = asyncio.run(save_artifact(artifact, self.folder))

        self.assertTrue(manifest_path.name.startswith("nightly_main-1-manifest_"))
        manifest = parse_manifest(manifest_path)
        self.assertEqual([f"{manifest_path.stem}.payload"], manifest["parts"])

        loaded = asyncio.run(load_artifact(manifest_path))
        self.assertEqual(artifact, loaded)
        self.assertEqual(self.data, asyncio.run(restore_backup(loaded, "pw")))

    def test_split_roundtrip(self) -> None:
        artifact = asyncio.run(protect_backup(self.data, max_chunk_size=100))
        manifest_path = asyncio.run(save_artifact(artifact, self.folder))

        manifest = parse_manifest(manifest_path)
        self.assertTrue(manifest["split"])
        self.assertEqual(artifact.part_count, len(manifest["parts"]))
        self.assertTrue(manifest["parts"][0].endswith(".part0"))

        loaded = asyncio.run(load_artifact(manifest_path))
        self.assertEqual(artifact.chunk_set, loaded.chunk_set)
        self.assertEqual(self.data, asyncio.run(restore_backup(loaded)))

    def test_same_name_does_not_overwrite(self) -> None:
        first = asyncio.run(protect_backup({"v": 1}, name="same"))
        second = asyncio.run(protect_backup({"v": 2}, name="same"))
        first_path = asyncio.run(save_artifact(first, self.folder))
        second_path = asyncio.run(save_artifact(second, self.folder))
        self.assertNotEqual(first_path, second_path)
        self.assertEqual(
            {"v": 1}, asyncio.run(restore_backup(asyncio.run(load_artifact(first_path))))
        )
        self.assertEqual(
            {"v": 2}, asyncio.run(restore_backup(asyncio.run(load_artifact(second_path))))
        )

    def test_missing_part(self) -> None:
        artifact = asyncio.run(protect_backup(self.data, max_chunk_size=100))
        manifest_path = asyncio.run(save_artifact(artifact, self.folder))
        (self.folder / f"{manifest_path.stem}.part1").unlink()
        with self.assertRaises(BackupGuardError):
            asyncio.run(load_artifact(manifest_path))

    def test_part_outside_backup_folder_rejected(self) -> None:
        artifact = asyncio.run(protect_backup(self.data))
        manifest_path = asyncio.run(save_artifact(artifact, self.folder))
        secret = Path(self.temp_dir.name) / "secret.txt"
        secret.write_text("TOPSECRET", encoding="ascii")

        manifest = parse_manifest(manifest_path)
        for part_name in ("../secret.txt", str(secret), "..", "nested/part0"):
            with self.subTest(part_name=part_name):
                manifest["parts"] = [part_name]
                manifest_path.write_text(json.dumps(manifest), encoding="utf-8")
                with self.assertRaises(BackupGuardError):
                    asyncio.run(load_artifact(manifest_path))

    def test_symlinked_part_outside_folder_rejected(self) -> None:
        artifact = asyncio.run(protect_backup(self.data))
        manifest_path = asyncio.run(save_artifact(artifact, self.folder))
        secret = Path(self.temp_dir.name) / "secret.txt"
        secret.write_text("TOPSECRET", encoding="ascii")
        part_path = self.folder / f"{manifest_path.stem}.payload"
        part_path.unlink()
        try:
            part_path.symlink_to(secret)
        except OSError:
            self.skipTest("Symlinks are not supported here.")
        with self.assertRaises(BackupGuardError):
            asyncio.run(load_artifact(manifest_path))

    def test_unreadable_manifest(self) -> None:
        self.folder.mkdir(parents=True)
        manifest_path = self.folder / "x-1-manifest_000000_010126.json"
        manifest_path.write_text("[]", encoding="utf-8")
        with self.assertRaises(BackupGuardError):
            asyncio.run(load_artifact(manifest_path))


if __name__ == "__main__":
    unittest.main()
