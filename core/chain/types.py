"""
Field helpers shared by the chain record models.

Hex-encoded fields are normalized to lowercase 0x-prefixed strings on
validation; RLP integer fields must be canonical (no leading zero bytes,
zero encoded as the empty string).
"""
from __future__ import annotations

import re
from typing import Optional

from core.crypto.hashing import from_hex

# 0x followed by 64 hex chars = 32 bytes
HEX_HASH_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")
HEX_DATA_PATTERN = re.compile(r"^0x([0-9a-fA-F]{2})*$")

MAX_UINT64 = 2**64 - 1
MAX_UINT256 = 2**256 - 1


def validate_hex_hash(value: str, field_name: str) -> str:
    """Validate that a value is a 32-byte hex hash with 0x prefix."""
    if not isinstance(value, str) or not HEX_HASH_PATTERN.match(value):
        shown = value[:20] + "..." if isinstance(value, str) and len(value) > 20 else value
        raise ValueError(
            f"{field_name} must be a valid 32-byte hex string with 0x prefix, got: {shown}"
        )
    return value.lower()


def validate_hex_data(value: str, field_name: str, length: Optional[int] = None) -> str:
    """Validate 0x-prefixed hex bytes, optionally of an exact byte length."""
    if not isinstance(value, str) or not HEX_DATA_PATTERN.match(value):
        raise ValueError(f"{field_name} must be 0x-prefixed hex bytes")
    if length is not None and len(value) != 2 + 2 * length:
        raise ValueError(
            f"{field_name} must be {length} bytes, got {(len(value) - 2) // 2}"
        )
    return value.lower()


def hex_bytes(value: str) -> bytes:
    return from_hex(value)


def decode_uint(data: bytes, field_name: str, max_value: int = MAX_UINT256) -> int:
    """
    Decode a canonical RLP integer payload.

    Raises:
        ValueError: On a leading zero byte or a value above max_value.
    """
    if not isinstance(data, bytes):
        raise ValueError(f"{field_name} must be a byte string")
    if data[:1] == b"\x00":
        raise ValueError(f"{field_name} has a non-canonical leading zero byte")
    value = int.from_bytes(data, "big")
    if value > max_value:
        raise ValueError(f"{field_name} exceeds its maximum value")
    return value


def decode_fixed(data: bytes, field_name: str, length: int) -> str:
    """Decode an RLP byte string of exact length into 0x hex."""
    if not isinstance(data, bytes) or len(data) != length:
        raise ValueError(f"{field_name} must be exactly {length} bytes")
    return "0x" + data.hex()
