"""Backup data-protection pipeline: compression, encryption, integrity and chunking."""

from .common.types import (
    BackupArtifact,
    ChecksumRecord,
    ChunkMetadata,
    ChunkSet,
    CompressedPayload,
    EncryptedBlob,
    IntegrityReport,
    MergeResult,
)
from .core import (
    calculate_advanced_checksum,
    compress_data,
    decompress_data,
    decrypt_data,
    encrypt_data,
    generate_secure_password,
    merge_split_file,
    split_large_file,
    verify_data_integrity,
)
from .pipeline import protect_backup, restore_backup, verify_backup
from .utils import (
    BackupGuardError,
    CompressionError,
    ConfigError,
    EncryptionError,
    IntegrityError,
    SplitError,
)

__version__ = "1.0.0"

__all__ = [
    "BackupArtifact",
    "ChecksumRecord",
    "ChunkMetadata",
    "ChunkSet",
    "CompressedPayload",
    "EncryptedBlob",
    "IntegrityReport",
    "MergeResult",
    "encrypt_data",
    "decrypt_data",
    "generate_secure_password",
    "compress_data",
    "decompress_data",
    "calculate_advanced_checksum",
    "verify_data_integrity",
    "split_large_file",
    "merge_split_file",
    "protect_backup",
    "restore_backup",
    "verify_backup",
    "BackupGuardError",
    "CompressionError",
    "ConfigError",
    "EncryptionError",
    "IntegrityError",
    "SplitError",
]
