"""Fingerprints of a quiz definition, used to detect edits between attempts."""

import hashlib
import logging

logger = logging.getLogger(__name__)

EMPTY_DEFINITION = "{}"


def sha256_hex(text: str) -> str:
    """Lowercase hex SHA-256 of the UTF-8 encoded text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def rolling_checksum(text: str) -> str:
    """
    32-bit multiply-by-31 checksum over UTF-16 code units.

    Matches fingerprints written by clients that had no SHA-256 available:
    absolute value of the signed 32-bit result, hex, zero-padded to 8 digits.
    """
    h = 0
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return format(abs(h), "08x")


def content_hash(content_text: str | None, use_fallback: bool = False) -> str:
    """
    Fingerprint the serialized definition stored on a step.

    Args:
        content_text: Definition JSON exactly as stored; empty means ``{}``
        use_fallback: Use the rolling checksum instead of SHA-256

    Returns:
        Hex digest, stable across runs for the same input
    """
    text = content_text or EMPTY_DEFINITION
    if use_fallback:
        return rolling_checksum(text)
    return sha256_hex(text)


def hashes_match(stored: str | None, content_text: str | None) -> bool:
    """
    Whether an attempt was made against the current definition.

    Attempts saved before fingerprints existed carry no hash and are treated
    as matching. Short stored values are compared with the rolling checksum.
    """
    if not stored:
        return True
    if len(stored) == 8:
        return stored == content_hash(content_text, use_fallback=True)
    return stored == content_hash(content_text)
