"""JSON manifest creation and parsing logic."""

import datetime
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..common.constants import ENCRYPTION_ALGORITHM, KDF_DESCRIPTOR
from ..common.types import BackupArtifact
from .compression import FORMAT_NAMES, CompressionLevel


def build_manifest_name(
    name: str, total_parts: int, timestamp: Optional[datetime.datetime] = None
) -> str:
    """
    Build a manifest name like daily-3-manifest_HHMMSS_DDMMYY.json.

    Args:
        name: Sanitized backup name
        total_parts: Number of stored part files
        timestamp: Optional timestamp (defaults to now)

    Returns:
        Manifest filename
    """
    now = timestamp or datetime.datetime.now()
    time_part = now.strftime("%H%M%S")
    date_part = now.strftime("%d%m%y")
    return f"{name}-{total_parts}-manifest_{time_part}_{date_part}.json"


def create_manifest(artifact: BackupArtifact, part_files: List[str]) -> Dict[str, Any]:
    """
    Create a manifest dictionary.

    Args:
        artifact: Protected backup artifact
        part_files: Part file names, in merge order

    Returns:
        Manifest dictionary
    """
    manifest = artifact.to_dict(include_parts=False)
    manifest.update(
        {
            "compression": FORMAT_NAMES[CompressionLevel(artifact.level)],
            "encryption_algorithm": ENCRYPTION_ALGORITHM if artifact.encrypted else None,
            "kdf": KDF_DESCRIPTOR if artifact.encrypted else None,
            "split": artifact.is_split,
            "parts": list(part_files),
        }
    )

    if artifact.original_size > 0:
        manifest["space_saved_percent"] = round(
            (1 - artifact.compressed_size / artifact.original_size) * 100, 2
        )
    else:
        manifest["space_saved_percent"] = 0.0

    return manifest


def parse_manifest(manifest_path: Path) -> Dict[str, Any]:
    """
    Parse a manifest JSON file.

    Args:
        manifest_path: Path to manifest file

    Returns:
        Manifest dictionary

    Raises:
        ValueError: If manifest cannot be parsed
    """
    try:
        with open(manifest_path, "r", encoding="utf-8") as f:
            manifest = json.load(f)
    except Exception as exc:
        raise ValueError(f"Failed to parse manifest {manifest_path.name}: {exc}") from exc
    if not isinstance(manifest, dict) or "checksum" not in manifest:
        raise ValueError(f"Manifest {manifest_path.name} is missing backup metadata.")
    return manifest


def available_manifest_path(output_dir: Path, base_manifest_name: str) -> Path:
    """
    Pick a manifest path that does not exist yet.

    Args:
        output_dir: Output directory
        base_manifest_name: Name from build_manifest_name

    Returns:
        The base path, or the first free path with a _N suffix
    """
    manifest_path = output_dir / base_manifest_name
    stem = base_manifest_name[:-5]

    counter = 1
    while manifest_path.exists():
        manifest_path = output_dir / f"{stem}_{counter}.json"
        counter += 1
    return manifest_path


def save_manifest(manifest: Dict[str, Any], manifest_path: Path) -> Path:
    """
    Save manifest to a file.

    Args:
        manifest: Manifest dictionary
        manifest_path: Destination from available_manifest_path

    Returns:
        Path to saved manifest file
    """
    with open(manifest_path, "w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=4, ensure_ascii=False)

    return manifest_path


def list_manifest_files(folder: Path) -> List[Path]:
    """
    Find all manifest files in a folder.

    Args:
        folder: Folder to search

    Returns:
        List of manifest file paths
    """
    candidates = []
    try:
        for path in folder.iterdir():
            if not path.is_file():
                continue
            name = path.name.lower()
            if not name.endswith(".json"):
                continue
            if "-manifest_" not in name:
                continue
            candidates.append(path)
    except OSError:
        return []
    return candidates


def find_manifest_file(folder: Path) -> Tuple[Optional[Path], int]:
    """
    Find the most recent manifest file in the folder.

    Args:
        folder: Folder to search

    Returns:
        Tuple of (manifest path, total manifest count)
    """
    candidates = list_manifest_files(folder)
    if not candidates:
        return None, 0

    manifest_files = sorted(
        candidates,
        key=lambda path: path.stat().st_mtime,
        reverse=True,
    )

    return manifest_files[0], len(manifest_files)
