"""Persist protected backups as part files plus a JSON manifest."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import List

import aiofiles
from tqdm import tqdm

from .common.constants import PAYLOAD_SUFFIX
from .common.types import BackupArtifact, ChunkSet
from .core.manifest import (
    available_manifest_path,
    build_manifest_name,
    create_manifest,
    parse_manifest,
    save_manifest,
)
from .utils import BackupGuardError, sanitize_filename

logger = logging.getLogger(__name__)


def _part_names(stem: str, artifact: BackupArtifact) -> List[str]:
    if artifact.chunk_set is None:
        return [f"{stem}{PAYLOAD_SUFFIX}"]
    return [f"{stem}.part{index}" for index in range(artifact.chunk_set.metadata.total_chunks)]


def _is_within_directory(base: Path, target: Path) -> bool:
    try:
        target.relative_to(base)
        return True
    except ValueError:
        return False


def _part_path(folder: Path, part_name: object) -> Path:
    if (
        not isinstance(part_name, str)
        or part_name in ("", ".", "..")
        or Path(part_name).name != part_name
    ):
        raise BackupGuardError(f"Blocked unsafe part name in manifest: {part_name!r}")
    part_path = folder / part_name
    if not _is_within_directory(folder.resolve(), part_path.resolve()):
        raise BackupGuardError(f"Blocked path traversal in manifest: {part_name}")
    return part_path


async def save_artifact(
    artifact: BackupArtifact, output_dir: Path, show_progress: bool = False
) -> Path:
    """
    Write an artifact's parts and manifest into a directory.

    Parts are named after the manifest, so several backups can share one
    directory.

    Args:
        artifact: Protected backup artifact.
        output_dir: Destination directory (created if missing).
        show_progress: Display a progress bar while writing parts.

    Returns:
        Path to the written manifest.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    base_name = build_manifest_name(sanitize_filename(artifact.name), artifact.part_count)
    manifest_path = available_manifest_path(output_dir, base_name)
    part_names = _part_names(manifest_path.stem, artifact)
    if artifact.chunk_set is not None:
        bodies = artifact.chunk_set.chunks
    else:
        bodies = [artifact.payload or ""]

    progress = tqdm(
        total=len(part_names), desc="Writing", unit="part", disable=not show_progress
    )
    for part_name, body in zip(part_names, bodies):
        async with aiofiles.open(output_dir / part_name, "w", encoding="ascii") as outfile:
            await outfile.write(body)
        progress.update(1)
    progress.close()

    save_manifest(create_manifest(artifact, part_names), manifest_path)
    logger.info("Saved backup %r to %s (%d part(s)).", artifact.name, manifest_path, len(part_names))
    return manifest_path


async def load_artifact(manifest_path: Path, show_progress: bool = False) -> BackupArtifact:
    """
    Read an artifact back from its manifest and part files.

    Args:
        manifest_path: Path to the manifest JSON.
        show_progress: Display a progress bar while reading parts.

    Returns:
        The reconstructed artifact.

    Raises:
        BackupGuardError: If the manifest is unreadable or a part is missing.
    """
    try:
        manifest = parse_manifest(manifest_path)
    except ValueError as exc:
        raise BackupGuardError(str(exc)) from exc

    part_names = manifest.get("parts") or []
    bodies: List[str] = []
    progress = tqdm(
        total=len(part_names), desc="Reading", unit="part", disable=not show_progress
    )
    try:
        for part_name in part_names:
            part_path = _part_path(manifest_path.parent, part_name)
            if not part_path.is_file():
                raise BackupGuardError(f"Missing backup part: {part_name}")
            async with aiofiles.open(part_path, "r", encoding="ascii") as infile:
                bodies.append((await infile.read()).strip())
            progress.update(1)
    finally:
        progress.close()

    artifact = BackupArtifact.from_dict(manifest)
    if artifact.chunk_set is not None:
        # A short list is left for merge_split_file to report.
        chunk_set = ChunkSet(chunks=bodies, metadata=artifact.chunk_set.metadata)
        return dataclasses.replace(artifact, chunk_set=chunk_set)
    if len(bodies) != 1:
        raise BackupGuardError("Unsplit backup must have exactly one payload part.")
    return dataclasses.replace(artifact, payload=bodies[0])
