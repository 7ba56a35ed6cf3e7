"""Multi-digest checksums over serialized data."""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import sys
import zlib
from typing import Any, Dict, List, Union

from ..common.types import ChecksumRecord, IntegrityReport
from ..utils import IntegrityError, utc_timestamp

logger = logging.getLogger(__name__)

CRC32_POLYNOMIAL = 0xEDB88320
MD5_LIKE_LENGTH = 32


def canonical_json(data: Any) -> str:
    """
    Serialize data the way it is hashed and stored.

    Keys keep their insertion order and no whitespace is emitted, which
    matches ``JSON.stringify`` for JSON-native values other than floats
    printed in exponent form (``1e-07`` here, ``1e-7`` there).

    Args:
        data: Any JSON-compatible value.

    Returns:
        Serialized text.

    Raises:
        TypeError: If data contains values JSON cannot represent.
        ValueError: If data contains NaN or infinity.
        RecursionError: If data is nested too deeply.
    """
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"), allow_nan=False)


_UTF16_NATIVE = "utf-16-le" if sys.byteorder == "little" else "utf-16-be"


def _build_crc_table() -> List[int]:
    table = []
    for index in range(256):
        crc = index
        for _ in range(8):
            crc = (crc >> 1) ^ (CRC32_POLYNOMIAL if crc & 1 else 0)
        table.append(crc)
    return table


_CRC_TABLE = _build_crc_table()


def utf16_code_units(text: str) -> memoryview:
    """Return the UTF-16 code units of text (astral characters become pairs)."""
    return memoryview(text.encode(_UTF16_NATIVE, "surrogatepass")).cast("H")


def crc32_text(text: str) -> str:
    """
    CRC-32 over the UTF-16 code units of text, as 8 hex characters.

    Every code unit is folded into the register whole, so the result equals
    the standard CRC-32 only when all code units fit in a byte.
    """
    try:
        narrow = text.encode("latin-1")
    except UnicodeEncodeError:
        narrow = None
    if narrow is not None:
        return f"{zlib.crc32(narrow) & 0xFFFFFFFF:08x}"
    crc = 0xFFFFFFFF
    table = _CRC_TABLE
    for unit in utf16_code_units(text):
        crc ^= unit
        crc = (crc >> 8) ^ table[crc & 0xFF]
    return f"{crc ^ 0xFFFFFFFF:08x}"


def md5_like_digest(data: bytes) -> str:
    """SHA-1 hex digest cut to 32 characters. Not MD5 and not compatible with it."""
    return hashlib.sha1(data).hexdigest()[:MD5_LIKE_LENGTH]


def _checksum(data: Any) -> ChecksumRecord:
    text = canonical_json(data)
    raw = text.encode("utf-8")
    return ChecksumRecord(
        sha256=hashlib.sha256(raw).hexdigest(),
        md5_like=md5_like_digest(raw),
        crc32=crc32_text(text),
        size=len(raw),
        timestamp=utc_timestamp(),
    )


async def calculate_advanced_checksum(data: Any) -> ChecksumRecord:
    """
    Compute SHA-256, MD5-like and CRC32 digests of the serialized data.

    Args:
        data: Any JSON-compatible value.

    Returns:
        Checksum record stamped with the computation time.

    Raises:
        IntegrityError: If the data cannot be serialized.
    """
    try:
        return await asyncio.to_thread(_checksum, data)
    except (TypeError, ValueError, RecursionError) as exc:
        raise IntegrityError(f"Cannot checksum data: {exc}") from exc


async def verify_data_integrity(
    data: Any, expected: Union[ChecksumRecord, Dict[str, Any]]
) -> IntegrityReport:
    """
    Compare data against a previously computed checksum record.

    Each field is checked on its own and every mismatch is reported, so a
    size change can be told apart from a content change.

    Args:
        data: Value to verify.
        expected: Checksum record or its dictionary form.

    Returns:
        Report with ``is_valid`` and the list of mismatches.
    """
    if isinstance(expected, dict):
        expected = ChecksumRecord.from_dict(expected)
    try:
        actual = await calculate_advanced_checksum(data)
    except IntegrityError as exc:
        return IntegrityReport(is_valid=False, errors=[f"Verification failed: {exc}"])

    errors: List[str] = []
    if actual.sha256 != expected.sha256:
        errors.append("SHA-256 checksum mismatch")
    if actual.md5_like != expected.md5_like:
        errors.append("MD5-like checksum mismatch")
    if actual.crc32 != expected.crc32:
        errors.append("CRC32 checksum mismatch")
    if actual.size != expected.size:
        errors.append("Size mismatch")

    if errors:
        logger.warning("Integrity check failed: %s", ", ".join(errors))
    return IntegrityReport(is_valid=not errors, errors=errors)
