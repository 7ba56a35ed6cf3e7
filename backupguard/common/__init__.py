"""Common types and shared constants."""

from .constants import DEFAULT_MAX_CHUNK_SIZE, KDF_ITERATIONS, PASSWORD_ALPHABET
from .types import (
    BackupArtifact,
    ChecksumRecord,
    ChunkMetadata,
    ChunkSet,
    CompressedPayload,
    EncryptedBlob,
    IntegrityReport,
    MergeResult,
)

__all__ = [
    "DEFAULT_MAX_CHUNK_SIZE",
    "KDF_ITERATIONS",
    "PASSWORD_ALPHABET",
    "BackupArtifact",
    "ChecksumRecord",
    "ChunkMetadata",
    "ChunkSet",
    "CompressedPayload",
    "EncryptedBlob",
    "IntegrityReport",
    "MergeResult",
]
