"""
Hashing Utilities
Keccak-256 hashing and hex helpers shared by the host and the verification
program.

This module provides:
- Keccak-256 hashing for raw bytes (the chain's hash primitive)
- Canonical hashing for structured objects (via dumps_canonical)
- Hex encoding/decoding with 0x prefix

Security/Determinism Notes:
- Always hash raw bytes exactly as specified
- All operations are deterministic
"""
from __future__ import annotations

from typing import Any

from eth_utils import keccak

from core.schemas.canonical import dumps_canonical


def keccak256(data: bytes) -> bytes:
    """
    Compute the Keccak-256 hash of raw bytes.

    This is the original Keccak padding used by Ethereum, not NIST SHA3-256.

    Example:
        >>> keccak256(b"").hex()
        'c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470'
    """
    return keccak(primitive=data)


def hash_canonical(obj: Any) -> bytes:
    """
    Hash an object using canonical JSON serialization.

    Rule: digest = keccak256(dumps_canonical(obj).encode("utf-8"))

    Raises:
        CanonicalizationException: If object cannot be canonically serialized
    """
    canonical_json = dumps_canonical(obj)
    return keccak256(canonical_json.encode("utf-8"))


def to_hex(data: bytes) -> str:
    """
    Convert bytes to hexadecimal string with 0x prefix.

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return "0x" + data.hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert hexadecimal string (with 0x prefix) to bytes.

    Raises:
        ValueError: If string doesn't start with 0x, has odd length,
                   or contains invalid hex characters
    """
    if not hex_string.startswith(("0x", "0X")):
        raise ValueError(
            f"Hex string must start with '0x' prefix, got: {hex_string[:10]}..."
        )

    hex_content = hex_string[2:]

    if len(hex_content) % 2 != 0:
        raise ValueError(
            f"Hex string must have even length after 0x prefix, "
            f"got length {len(hex_content)}"
        )

    try:
        return bytes.fromhex(hex_content)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in string: {e}") from e


def hex_to_int(quantity: str) -> int:
    """
    Parse a JSON-RPC hex quantity ("0x0", "0x1a") into an int.

    Unlike from_hex, quantities may have odd length and carry no padding.
    """
    if not isinstance(quantity, str) or not quantity.startswith(("0x", "0X")):
        raise ValueError(f"Hex quantity must be a 0x-prefixed string, got: {quantity!r}")
    digits = quantity[2:]
    if not digits:
        raise ValueError("Hex quantity has no digits")
    return int(digits, 16)


__all__ = [
    "keccak256",
    "hash_canonical",
    "to_hex",
    "from_hex",
    "hex_to_int",
]
