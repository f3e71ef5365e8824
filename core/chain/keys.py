"""
Key Deriver

Maps a transaction's zero-based position in its block to its key in the
block's transactions trie.

The index is written as its minimal big-endian byte string (empty for
zero, no leading zero bytes otherwise) and RLP-wrapped, which is how the
chain keys its transaction trie:

    0   -> 0x80
    1   -> 0x01
    127 -> 0x7f
    128 -> 0x8180
    256 -> 0x820100

The host builder and the verification program both call these functions;
the key used to build a proof and the key used to check it must never be
derived in two different ways.
"""
from __future__ import annotations

import rlp

from core.chain.types import MAX_UINT64
from core.trie.nibbles import Nibbles, bytes_to_nibbles


def index_to_minimal_bytes(index: int) -> bytes:
    """Minimal big-endian encoding of a non-negative 64-bit index."""
    if isinstance(index, bool) or not isinstance(index, int):
        raise ValueError(f"Transaction index must be an int, got {type(index).__name__}")
    if index < 0 or index > MAX_UINT64:
        raise ValueError(f"Transaction index must be within [0, 2**64), got {index}")
    return index.to_bytes((index.bit_length() + 7) // 8, "big")


def transaction_key(index: int) -> bytes:
    """Trie key (raw bytes) for the transaction at the given index."""
    return rlp.encode(index_to_minimal_bytes(index))


def transaction_key_nibbles(index: int) -> Nibbles:
    """Trie key for the transaction at the given index, as a nibble path."""
    return bytes_to_nibbles(transaction_key(index))
