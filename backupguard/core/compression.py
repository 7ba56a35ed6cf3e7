"""Stream compression with a deterministic run-length fallback.

Compressed output is framed as ``MAGIC + tag + body`` and base64 encoded.
The tag records the backend and level, so tagged data decompresses without
the caller remembering the level. Data without the frame is the older
untagged format and is decoded with the level the caller supplies.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import zlib
from enum import Enum
from typing import List, Optional, Tuple, Union

from ..common.types import CompressedPayload
from ..utils import CompressionError, get_io_buffer_size

logger = logging.getLogger(__name__)


class CompressionLevel(str, Enum):
    FAST = "fast"
    BALANCED = "balanced"
    MAXIMUM = "maximum"


class CompressionBackend(str, Enum):
    STREAM = "stream"
    SIMPLE = "simple"


# A raw deflate stream opening with these bytes is a stored block of length
# 0x4742, so the next byte must be 0xBD; no frame tag uses that value.
FRAME_MAGIC = b"\x00BG"
FRAME_HEADER_SIZE = len(FRAME_MAGIC) + 1

# fast -> deflate (zlib container), balanced -> gzip, maximum -> raw deflate
_FORMAT_WBITS = {
    CompressionLevel.FAST: zlib.MAX_WBITS,
    CompressionLevel.BALANCED: 16 + zlib.MAX_WBITS,
    CompressionLevel.MAXIMUM: -zlib.MAX_WBITS,
}
FORMAT_NAMES = {
    CompressionLevel.FAST: "deflate",
    CompressionLevel.BALANCED: "gzip",
    CompressionLevel.MAXIMUM: "deflate-raw",
}
_ZLIB_EFFORT = {
    CompressionLevel.FAST: 1,
    CompressionLevel.BALANCED: 6,
    CompressionLevel.MAXIMUM: 9,
}

_BACKEND_CODES = {CompressionBackend.STREAM: 0x1, CompressionBackend.SIMPLE: 0x2}
_LEVEL_CODES = {
    CompressionLevel.FAST: 0x1,
    CompressionLevel.BALANCED: 0x2,
    CompressionLevel.MAXIMUM: 0x3,
}

SIMPLE_MAX_RUN = 9
_DIGITS = "0123456789"


def _parse_level(level: Union[str, CompressionLevel]) -> CompressionLevel:
    try:
        return CompressionLevel(level)
    except ValueError as exc:
        raise CompressionError(f"Unknown compression level: {level!r}") from exc


def stream_available() -> bool:
    """Return True when the host provides streaming zlib objects."""
    return hasattr(zlib, "compressobj") and hasattr(zlib, "decompressobj")


def resolve_backend(preferred: str = "auto") -> CompressionBackend:
    """
    Pick the compression backend for one call.

    Args:
        preferred: ``auto``, ``stream`` or ``simple``.

    Returns:
        The backend to use.

    Raises:
        CompressionError: If ``stream`` is requested but unavailable, or the
            name is unknown.
    """
    if preferred == "auto":
        if stream_available():
            return CompressionBackend.STREAM
        logger.info("Streaming compressor unavailable, using run-length fallback.")
        return CompressionBackend.SIMPLE
    try:
        backend = CompressionBackend(preferred)
    except ValueError as exc:
        raise CompressionError(f"Unknown compression backend: {preferred!r}") from exc
    if backend is CompressionBackend.STREAM and not stream_available():
        raise CompressionError("Streaming compressor is not available.")
    return backend


def encode_tag(backend: CompressionBackend, level: CompressionLevel) -> int:
    return (_BACKEND_CODES[backend] << 4) | _LEVEL_CODES[level]


def decode_tag(tag: int) -> Tuple[CompressionBackend, CompressionLevel]:
    """Split a frame tag into backend and level."""
    backends = {code: backend for backend, code in _BACKEND_CODES.items()}
    levels = {code: level for level, code in _LEVEL_CODES.items()}
    backend = backends.get(tag >> 4)
    level = levels.get(tag & 0x0F)
    if backend is None or level is None:
        raise CompressionError(f"Unknown compression tag: 0x{tag:02x}")
    return backend, level


def read_frame(framed: bytes) -> Optional[Tuple[CompressionBackend, CompressionLevel]]:
    """Return the backend and level of tagged data, or None for untagged data."""
    if len(framed) < FRAME_HEADER_SIZE or not framed.startswith(FRAME_MAGIC):
        return None
    try:
        return decode_tag(framed[len(FRAME_MAGIC)])
    except CompressionError:
        return None


def simple_compress(data: str, level: Union[str, CompressionLevel]) -> str:
    """
    Run-length encode text.

    Runs longer than three characters (two at ``maximum``) become a
    ``<count><char>`` token with count at most 9; a longer run simply
    continues as another token. Digits are always tokenized so the decoder
    never mistakes a literal digit for a count.

    Args:
        data: Text to encode.
        level: Compression level.

    Returns:
        Encoded text.
    """
    threshold = 2 if _parse_level(level) is CompressionLevel.MAXIMUM else 3
    parts: List[str] = []
    index = 0
    length = len(data)
    while index < length:
        char = data[index]
        count = 1
        while (
            index + count < length
            and data[index + count] == char
            and count < SIMPLE_MAX_RUN
        ):
            count += 1
        if count > threshold or char in _DIGITS:
            parts.append(f"{count}{char}")
        else:
            parts.append(char * count)
        index += count
    return "".join(parts)


def simple_decompress(data: str) -> str:
    """
    Reverse ``simple_compress``.

    Any digit followed by a character is a run token; a digit in last
    position is kept as a literal.
    """
    parts: List[str] = []
    index = 0
    length = len(data)
    while index < length:
        char = data[index]
        if char in _DIGITS and index + 1 < length:
            parts.append(data[index + 1] * int(char))
            index += 2
        else:
            parts.append(char)
            index += 1
    return "".join(parts)


def _stream_compress(raw: bytes, level: CompressionLevel) -> bytes:
    compressor = zlib.compressobj(_ZLIB_EFFORT[level], zlib.DEFLATED, _FORMAT_WBITS[level])
    buffer_size = get_io_buffer_size()
    view = memoryview(raw)
    parts = [
        compressor.compress(view[offset:offset + buffer_size])
        for offset in range(0, len(raw), buffer_size)
    ]
    parts.append(compressor.flush())
    return b"".join(parts)


def _stream_decompress(body: bytes, level: CompressionLevel) -> bytes:
    decompressor = zlib.decompressobj(_FORMAT_WBITS[level])
    output = decompressor.decompress(body) + decompressor.flush()
    if not decompressor.eof:
        raise CompressionError("Compressed stream is truncated.")
    if decompressor.unused_data:
        raise CompressionError("Trailing data after compressed stream.")
    return output


def _compress(data: str, level: CompressionLevel, backend: CompressionBackend) -> CompressedPayload:
    raw = data.encode("utf-8")
    if backend is CompressionBackend.STREAM:
        body = _stream_compress(raw, level)
    else:
        body = simple_compress(data, level).encode("utf-8")
    framed = FRAME_MAGIC + bytes([encode_tag(backend, level)]) + body

    original_size = len(raw)
    compressed_size = len(framed)
    if original_size > 0:
        ratio = (original_size - compressed_size) / original_size * 100
    else:
        ratio = 0.0
    return CompressedPayload(
        compressed=base64.b64encode(framed).decode("ascii"),
        original_size=original_size,
        compressed_size=compressed_size,
        ratio=ratio,
        level=level.value,
    )


def _decompress(compressed: str, level: CompressionLevel, backend_name: str) -> str:
    framed = base64.b64decode(compressed.encode("ascii"), validate=True)
    frame = read_frame(framed)
    if frame is not None:
        backend, tagged_level = frame
        if tagged_level is not level:
            logger.debug(
                "Using tagged level %s instead of requested %s.",
                tagged_level.value,
                level.value,
            )
        body = framed[FRAME_HEADER_SIZE:]
        if backend is CompressionBackend.STREAM:
            return _stream_decompress(body, tagged_level).decode("utf-8")
        return simple_decompress(body.decode("utf-8"))

    # Untagged data: the caller's level decides the format.
    backend = resolve_backend(backend_name)
    if backend is CompressionBackend.STREAM:
        return _stream_decompress(framed, level).decode("utf-8")
    return simple_decompress(framed.decode("latin-1"))


async def compress_data(
    data: str,
    level: Union[str, CompressionLevel] = CompressionLevel.BALANCED,
    backend: str = "auto",
) -> CompressedPayload:
    """
    Compress text and report the size reduction.

    Args:
        data: Text to compress
        level: ``fast``, ``balanced`` or ``maximum``
        backend: ``auto``, ``stream`` or ``simple``

    Returns:
        Compressed payload with sizes and ratio

    Raises:
        CompressionError: If compression fails
    """
    parsed_level = _parse_level(level)
    resolved = resolve_backend(backend)
    try:
        payload = await asyncio.to_thread(_compress, data, parsed_level, resolved)
    except Exception as exc:
        raise CompressionError(f"Compression failed: {exc}") from exc
    logger.debug(
        "Compressed %d -> %d bytes (%s, %s, %.2f%%).",
        payload.original_size,
        payload.compressed_size,
        resolved.value,
        FORMAT_NAMES[parsed_level],
        payload.ratio,
    )
    return payload


async def decompress_data(
    compressed: str,
    level: Union[str, CompressionLevel] = CompressionLevel.BALANCED,
    backend: str = "auto",
) -> str:
    """
    Decompress text produced by ``compress_data``.

    Args:
        compressed: Base64 compressed data
        level: Level used at compression time; required for untagged data
        backend: Backend for untagged data

    Returns:
        Original text

    Raises:
        CompressionError: If decompression fails. No partial output is
            returned.
    """
    parsed_level = _parse_level(level)
    try:
        return await asyncio.to_thread(_decompress, compressed, parsed_level, backend)
    except CompressionError:
        raise
    except Exception as exc:
        raise CompressionError(
            "Decompression failed. Data may be corrupted."
        ) from exc
