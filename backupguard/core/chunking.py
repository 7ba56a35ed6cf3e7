"""Logic for splitting oversized payloads and merging them back."""

from __future__ import annotations

import base64
import logging
import math
from typing import Any, Dict, List, Sequence, Union

from ..common.constants import DEFAULT_MAX_CHUNK_SIZE
from ..common.types import ChunkMetadata, ChunkSet, MergeResult
from ..utils import SplitError
from .integrity import utf16_code_units

logger = logging.getLogger(__name__)

CHUNK_COUNT_MISMATCH = "chunk count mismatch"
CHECKSUM_MISMATCH = "checksum mismatch — file corrupted"


def simple_checksum(data: str) -> str:
    """
    Lightweight rolling checksum used to detect corrupt or reordered chunks.

    ``hash = hash * 31 + code_unit`` in signed 32-bit arithmetic, reported
    as the hex of its absolute value.

    Args:
        data: Text to hash.

    Returns:
        Lowercase hex string without padding.
    """
    value = 0
    for unit in utf16_code_units(data):
        value = (((value << 5) - value) + unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return format(abs(value), "x")


def split_large_file(data: str, max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE) -> ChunkSet:
    """
    Split text into base64 chunks of at most ``max_chunk_size`` characters.

    Args:
        data: Text to split.
        max_chunk_size: Maximum characters per chunk.

    Returns:
        Chunks in order plus reconstruction metadata.

    Raises:
        SplitError: If the chunk size is not positive.
    """
    if max_chunk_size < 1:
        raise SplitError("Chunk size must be greater than 0.")

    total_chunks = math.ceil(len(data) / max_chunk_size)
    chunks: List[str] = []
    for index in range(total_chunks):
        start = index * max_chunk_size
        piece = data[start:start + max_chunk_size]
        chunks.append(base64.b64encode(piece.encode("utf-8")).decode("ascii"))

    metadata = ChunkMetadata(
        total_chunks=total_chunks,
        total_size=len(data.encode("utf-8")),
        chunk_size=max_chunk_size,
        checksum=simple_checksum(data),
    )
    logger.debug("Split %d characters into %d chunk(s).", len(data), total_chunks)
    return ChunkSet(chunks=chunks, metadata=metadata)


def merge_split_file(
    chunks: Sequence[str], metadata: Union[ChunkMetadata, Dict[str, Any]]
) -> MergeResult:
    """
    Reassemble chunks produced by ``split_large_file``.

    Args:
        chunks: Base64 chunks in their original order.
        metadata: Metadata returned alongside the chunks.

    Returns:
        ``MergeResult`` with the data on success, or the failure reason.
    """
    if isinstance(metadata, dict):
        metadata = ChunkMetadata.from_dict(metadata)
    if len(chunks) != metadata.total_chunks:
        logger.warning(
            "Expected %d chunks, got %d.", metadata.total_chunks, len(chunks)
        )
        return MergeResult(success=False, error=CHUNK_COUNT_MISMATCH)

    try:
        merged = "".join(
            base64.b64decode(chunk.encode("ascii"), validate=True).decode("utf-8")
            for chunk in chunks
        )
    except (ValueError, TypeError, AttributeError) as exc:
        return MergeResult(success=False, error=f"failed to merge chunks: {exc}")

    if simple_checksum(merged) != metadata.checksum:
        logger.warning("Merged data does not match its checksum.")
        return MergeResult(success=False, error=CHECKSUM_MISMATCH)
    return MergeResult(success=True, data=merged)
