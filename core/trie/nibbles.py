"""
Nibble paths and hex-prefix encoding.

Trie paths are tuples of 4-bit integers. Leaf and extension nodes store
their partial path in hex-prefix (compact) form: a flag nibble carrying the
node kind and path parity, an optional zero pad nibble, then the path.

    flag 0: extension, even length    flag 1: extension, odd length
    flag 2: leaf, even length         flag 3: leaf, odd length
"""
from __future__ import annotations

from typing import Sequence

Nibbles = tuple[int, ...]


def bytes_to_nibbles(data: bytes) -> Nibbles:
    """Split bytes into high/low nibbles, most significant first."""
    out: list[int] = []
    for byte in data:
        out.append(byte >> 4)
        out.append(byte & 0x0F)
    return tuple(out)


def nibbles_to_bytes(nibbles: Sequence[int]) -> bytes:
    """Pack an even-length nibble sequence back into bytes."""
    if len(nibbles) % 2 != 0:
        raise ValueError(f"Cannot pack odd-length nibble path ({len(nibbles)} nibbles)")
    return bytes(
        (nibbles[i] << 4) | nibbles[i + 1] for i in range(0, len(nibbles), 2)
    )


def common_prefix_length(a: Sequence[int], b: Sequence[int]) -> int:
    """Number of leading nibbles shared by two paths."""
    limit = min(len(a), len(b))
    i = 0
    while i < limit and a[i] == b[i]:
        i += 1
    return i


def is_prefix(prefix: Sequence[int], path: Sequence[int]) -> bool:
    return len(prefix) <= len(path) and tuple(path[: len(prefix)]) == tuple(prefix)


def hex_prefix_encode(path: Sequence[int], is_leaf: bool) -> bytes:
    """Compact-encode a partial path with its leaf flag."""
    flag = 2 if is_leaf else 0
    if len(path) % 2 == 1:
        return nibbles_to_bytes((flag | 1,) + tuple(path))
    return nibbles_to_bytes((flag, 0) + tuple(path))


def hex_prefix_decode(encoded: bytes) -> tuple[Nibbles, bool]:
    """
    Decode a compact path into (path, is_leaf).

    Raises:
        ValueError: On an empty input, an unknown flag nibble or a non-zero
            pad nibble.
    """
    if not encoded:
        raise ValueError("Hex-prefix path is empty")
    nibbles = bytes_to_nibbles(encoded)
    flag = nibbles[0]
    if flag > 3:
        raise ValueError(f"Invalid hex-prefix flag nibble: {flag}")
    is_leaf = flag >= 2
    if flag % 2 == 1:
        return nibbles[1:], is_leaf
    if nibbles[1] != 0:
        raise ValueError(f"Non-zero pad nibble in even-length path: {nibbles[1]}")
    return nibbles[2:], is_leaf
