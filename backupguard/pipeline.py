"""Compose the core primitives into protect / restore / verify steps."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

from .common.constants import (
    DEFAULT_COMPRESSION_BACKEND,
    DEFAULT_COMPRESSION_LEVEL,
    DEFAULT_MAX_CHUNK_SIZE,
)
from .common.types import BackupArtifact, IntegrityReport
from .core.chunking import merge_split_file, split_large_file
from .core.compression import compress_data, decompress_data
from .core.crypto import decrypt_data, encrypt_data
from .core.integrity import (
    calculate_advanced_checksum,
    canonical_json,
    verify_data_integrity,
)
from .utils import BackupGuardError, EncryptionError, IntegrityError, utc_timestamp

logger = logging.getLogger(__name__)


async def protect_backup(
    data: Any,
    *,
    name: str = "backup",
    password: Optional[str] = None,
    level: str = DEFAULT_COMPRESSION_LEVEL,
    max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE,
    backend: str = DEFAULT_COMPRESSION_BACKEND,
) -> BackupArtifact:
    """
    Checksum, compress, optionally encrypt and split a backup payload.

    Args:
        data: JSON-compatible backup contents.
        name: Human-readable backup name.
        password: Encrypt with this password when given.
        level: Compression level.
        max_chunk_size: Split the stored payload above this many characters.
        backend: Compression backend (``auto``, ``stream`` or ``simple``).

    Returns:
        Artifact holding everything needed for ``restore_backup``.
    """
    checksum = await calculate_advanced_checksum(data)
    serialized = canonical_json(data)
    compressed = await compress_data(serialized, level, backend)

    payload = compressed.compressed
    salt = iv = None
    if password:
        blob = await encrypt_data(payload, password)
        payload, salt, iv = blob.ciphertext, blob.salt, blob.iv

    chunk_set = None
    if len(payload) > max_chunk_size:
        chunk_set = await asyncio.to_thread(split_large_file, payload, max_chunk_size)
        payload = None

    artifact = BackupArtifact(
        name=name,
        created_at=utc_timestamp(),
        level=compressed.level,
        encrypted=bool(password),
        checksum=checksum,
        original_size=compressed.original_size,
        compressed_size=compressed.compressed_size,
        ratio=compressed.ratio,
        payload=payload,
        chunk_set=chunk_set,
        salt=salt,
        iv=iv,
    )
    logger.info(
        "Protected backup %r: %d bytes -> %d bytes, %d part(s), encrypted=%s.",
        name,
        artifact.original_size,
        artifact.compressed_size,
        artifact.part_count,
        artifact.encrypted,
    )
    return artifact


async def _reassemble(artifact: BackupArtifact) -> str:
    if artifact.chunk_set is None:
        if artifact.payload is None:
            raise IntegrityError("Backup artifact has no payload.")
        return artifact.payload
    result = await asyncio.to_thread(
        merge_split_file, artifact.chunk_set.chunks, artifact.chunk_set.metadata
    )
    if not result.success:
        raise IntegrityError(f"Cannot reassemble backup: {result.error}")
    return result.data


async def _unpack(artifact: BackupArtifact, password: Optional[str]) -> Any:
    payload = await _reassemble(artifact)
    if artifact.encrypted:
        if not password:
            raise EncryptionError("Backup is encrypted; a password is required.")
        if not artifact.salt or not artifact.iv:
            raise EncryptionError("Backup is missing its salt or IV.")
        payload = await decrypt_data(payload, password, artifact.salt, artifact.iv)
    serialized = await decompress_data(payload, artifact.level)
    try:
        return json.loads(serialized)
    except ValueError as exc:
        raise IntegrityError(f"Restored payload is not valid JSON: {exc}") from exc


async def restore_backup(artifact: BackupArtifact, password: Optional[str] = None) -> Any:
    """
    Reverse ``protect_backup`` and verify the result.

    Args:
        artifact: Protected backup artifact.
        password: Password used at protection time, if any.

    Returns:
        The original backup contents.

    Raises:
        IntegrityError: If chunks cannot be merged or the restored data does
            not match the stored checksum.
        EncryptionError: If decryption fails.
        CompressionError: If decompression fails.
    """
    data = await _unpack(artifact, password)
    report = await verify_data_integrity(data, artifact.checksum)
    if not report.is_valid:
        raise IntegrityError("Restored data failed verification: " + "; ".join(report.errors))
    logger.info("Restored backup %r.", artifact.name)
    return data


async def verify_backup(
    artifact: BackupArtifact, password: Optional[str] = None
) -> IntegrityReport:
    """
    Check a backup without raising for corruption.

    Encrypted backups checked without a password are verified only up to
    chunk reassembly.

    Args:
        artifact: Protected backup artifact.
        password: Password used at protection time, if any.

    Returns:
        Integrity report listing every problem found.
    """
    if artifact.encrypted and not password:
        try:
            await _reassemble(artifact)
        except IntegrityError as exc:
            return IntegrityReport(is_valid=False, errors=[str(exc)])
        logger.info("Backup %r reassembles; contents not checked without a password.", artifact.name)
        return IntegrityReport(is_valid=True)

    try:
        data = await _unpack(artifact, password)
    except BackupGuardError as exc:
        logger.warning("Backup %r could not be unpacked: %s", artifact.name, exc)
        return IntegrityReport(is_valid=False, errors=[str(exc)])
    return await verify_data_integrity(data, artifact.checksum)
