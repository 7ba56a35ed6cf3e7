"""Type definitions and data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .constants import ARTIFACT_FORMAT_VERSION


@dataclass(frozen=True)
class EncryptedBlob:
    """AES-GCM output; the authentication tag is the tail of the ciphertext."""
    ciphertext: str
    salt: str
    iv: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"ciphertext": self.ciphertext, "salt": self.salt, "iv": self.iv}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EncryptedBlob":
        """Create from dictionary."""
        return cls(
            ciphertext=data.get("ciphertext", data.get("encrypted", "")),
            salt=data.get("salt", ""),
            iv=data.get("iv", ""),
        )


@dataclass(frozen=True)
class CompressedPayload:
    """Compressed data with its size statistics."""
    compressed: str
    original_size: int
    compressed_size: int
    ratio: float
    level: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "compressed": self.compressed,
            "originalSize": self.original_size,
            "compressedSize": self.compressed_size,
            "ratio": self.ratio,
            "level": self.level,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompressedPayload":
        """Create from dictionary."""
        return cls(
            compressed=data.get("compressed", ""),
            original_size=data.get("originalSize", 0),
            compressed_size=data.get("compressedSize", 0),
            ratio=data.get("ratio", 0.0),
            level=data.get("level", "balanced"),
        )


@dataclass(frozen=True)
class ChecksumRecord:
    """Snapshot of the digests of one serialized value."""
    sha256: str
    md5_like: str
    crc32: str
    size: int
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "sha256": self.sha256,
            "md5Like": self.md5_like,
            "crc32": self.crc32,
            "size": self.size,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChecksumRecord":
        """Create from dictionary. Older records store the SHA-1 prefix as ``md5``."""
        return cls(
            sha256=data.get("sha256", ""),
            md5_like=data.get("md5Like", data.get("md5", "")),
            crc32=data.get("crc32", ""),
            size=data.get("size", -1),
            timestamp=data.get("timestamp", ""),
        )


@dataclass(frozen=True)
class ChunkMetadata:
    """Reconstruction metadata for a split payload."""
    total_chunks: int
    total_size: int
    chunk_size: int
    checksum: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "totalChunks": self.total_chunks,
            "totalSize": self.total_size,
            "chunkSize": self.chunk_size,
            "checksum": self.checksum,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChunkMetadata":
        """Create from dictionary."""
        return cls(
            total_chunks=data.get("totalChunks", 0),
            total_size=data.get("totalSize", 0),
            chunk_size=data.get("chunkSize", 0),
            checksum=data.get("checksum", ""),
        )


@dataclass(frozen=True)
class ChunkSet:
    """Ordered base64 chunks plus their metadata."""
    chunks: List[str]
    metadata: ChunkMetadata

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"chunks": list(self.chunks), "metadata": self.metadata.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChunkSet":
        """Create from dictionary."""
        return cls(
            chunks=list(data.get("chunks", [])),
            metadata=ChunkMetadata.from_dict(data.get("metadata", {})),
        )


@dataclass(frozen=True)
class MergeResult:
    """Outcome of reassembling a chunk set."""
    success: bool
    data: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class IntegrityReport:
    """Outcome of comparing data against a checksum record."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"isValid": self.is_valid, "errors": list(self.errors)}


@dataclass(frozen=True)
class BackupArtifact:
    """Everything needed to restore one protected backup."""
    name: str
    created_at: str
    level: str
    encrypted: bool
    checksum: ChecksumRecord
    original_size: int
    compressed_size: int
    ratio: float
    payload: Optional[str] = None
    chunk_set: Optional[ChunkSet] = None
    salt: Optional[str] = None
    iv: Optional[str] = None
    version: str = ARTIFACT_FORMAT_VERSION

    @property
    def is_split(self) -> bool:
        """True when the payload is stored as chunks."""
        return self.chunk_set is not None

    @property
    def part_count(self) -> int:
        """Number of stored parts (chunks, or one for an unsplit payload)."""
        if self.chunk_set is not None:
            return self.chunk_set.metadata.total_chunks
        return 1

    def to_dict(self, include_parts: bool = True) -> Dict[str, Any]:
        """
        Convert to dictionary.

        Args:
            include_parts: Whether to include the payload or chunk bodies.

        Returns:
            Artifact dictionary.
        """
        result: Dict[str, Any] = {
            "version": self.version,
            "name": self.name,
            "createdAt": self.created_at,
            "level": self.level,
            "encrypted": self.encrypted,
            "salt": self.salt,
            "iv": self.iv,
            "checksum": self.checksum.to_dict(),
            "originalSize": self.original_size,
            "compressedSize": self.compressed_size,
            "ratio": self.ratio,
            "chunkMetadata": (
                self.chunk_set.metadata.to_dict() if self.chunk_set else None
            ),
        }
        if include_parts:
            result["payload"] = self.payload
            result["chunks"] = list(self.chunk_set.chunks) if self.chunk_set else None
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BackupArtifact":
        """Create from dictionary."""
        chunk_set = None
        if data.get("chunkMetadata") is not None:
            chunk_set = ChunkSet(
                chunks=list(data.get("chunks") or []),
                metadata=ChunkMetadata.from_dict(data["chunkMetadata"]),
            )
        return cls(
            name=data.get("name", "backup"),
            created_at=data.get("createdAt", ""),
            level=data.get("level", "balanced"),
            encrypted=data.get("encrypted", False),
            checksum=ChecksumRecord.from_dict(data.get("checksum", {})),
            original_size=data.get("originalSize", 0),
            compressed_size=data.get("compressedSize", 0),
            ratio=data.get("ratio", 0.0),
            payload=data.get("payload"),
            chunk_set=chunk_set,
            salt=data.get("salt"),
            iv=data.get("iv"),
            version=data.get("version", ARTIFACT_FORMAT_VERSION),
        )
