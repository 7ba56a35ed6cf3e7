"""Core data-protection primitives and manifest helpers."""

from .crypto import (
    decrypt_blob,
    decrypt_data,
    derive_encryption_key,
    encrypt_data,
    generate_secure_password,
)
from .compression import CompressionBackend, CompressionLevel, compress_data, decompress_data
from .integrity import calculate_advanced_checksum, canonical_json, verify_data_integrity
from .chunking import merge_split_file, simple_checksum, split_large_file
from .manifest import build_manifest_name, create_manifest, parse_manifest

__all__ = [
    "derive_encryption_key",
    "encrypt_data",
    "decrypt_data",
    "decrypt_blob",
    "generate_secure_password",
    "CompressionBackend",
    "CompressionLevel",
    "compress_data",
    "decompress_data",
    "calculate_advanced_checksum",
    "canonical_json",
    "verify_data_integrity",
    "split_large_file",
    "merge_split_file",
    "simple_checksum",
    "build_manifest_name",
    "create_manifest",
    "parse_manifest",
]
