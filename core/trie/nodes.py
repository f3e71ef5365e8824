"""
Trie Node Codec

The three node kinds form a closed union of frozen dataclasses with no
shared base class; every function here handles all three explicitly.

Encodings (RLP):
    Leaf:      [hex_prefix(path, leaf=True), value]
    Extension: [hex_prefix(path, leaf=False), child_ref]
    Branch:    [child_ref_0, ..., child_ref_15, value or b""]

A child reference is the child's raw encoding when that encoding is shorter
than 32 bytes (embedded inline in the parent), otherwise the keccak256 of
the encoding. References are carried as bytes: a 32-byte reference is
always a hash, anything shorter is an embedded encoding.

decode_node is the single decoder used by both the builder's self-check
and the verification program. It is total over arbitrary input: every
failure is raised as NodeDecodingError.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

import rlp
from rlp.exceptions import RLPException

from core.crypto.hashing import keccak256
from core.schemas.errors import NodeDecodingError
from core.trie.nibbles import Nibbles, hex_prefix_decode, hex_prefix_encode

HASH_LENGTH = 32
BRANCH_WIDTH = 16

# keccak256(rlp(b"")) - root of a trie with no entries
EMPTY_TRIE_ROOT: bytes = keccak256(rlp.encode(b""))

# Root node, embedded extension, embedded branch, embedded leaf fit in four
# levels; anything past this is rejected before decoding
MAX_LIST_DEPTH = 8


@dataclass(frozen=True)
class Leaf:
    path: Nibbles
    value: bytes


@dataclass(frozen=True)
class Extension:
    path: Nibbles
    child: bytes


@dataclass(frozen=True)
class Branch:
    children: tuple[Optional[bytes], ...]
    value: Optional[bytes] = None

    def __post_init__(self) -> None:
        if len(self.children) != BRANCH_WIDTH:
            raise ValueError(f"Branch needs {BRANCH_WIDTH} child slots, got {len(self.children)}")


TrieNode = Union[Leaf, Extension, Branch]


def is_hash_reference(ref: bytes) -> bool:
    return len(ref) == HASH_LENGTH


def node_reference(encoding: bytes) -> bytes:
    """Reference a parent stores for a child with the given encoding."""
    if len(encoding) < HASH_LENGTH:
        return encoding
    return keccak256(encoding)


def _reference_item(ref: bytes) -> Any:
    # Embedded children are spliced in as RLP structure, not as a byte string
    if is_hash_reference(ref):
        return ref
    return rlp.decode(ref)


def encode_node(node: TrieNode) -> bytes:
    """RLP-encode a trie node."""
    if isinstance(node, Leaf):
        return rlp.encode([hex_prefix_encode(node.path, is_leaf=True), node.value])
    if isinstance(node, Extension):
        return rlp.encode([hex_prefix_encode(node.path, is_leaf=False), _reference_item(node.child)])
    if isinstance(node, Branch):
        items: list[Any] = [
            b"" if child is None else _reference_item(child) for child in node.children
        ]
        items.append(node.value if node.value is not None else b"")
        return rlp.encode(items)
    raise TypeError(f"Not a trie node: {type(node).__name__}")


def _decode_reference(item: Any, allow_empty: bool) -> Optional[bytes]:
    if isinstance(item, (list, tuple)):
        embedded = rlp.encode(item)
        if len(embedded) >= HASH_LENGTH:
            raise NodeDecodingError(
                "Embedded child node must encode to fewer than 32 bytes",
                details={"length": len(embedded)},
            )
        return embedded
    if isinstance(item, bytes):
        if len(item) == 0 and allow_empty:
            return None
        if len(item) == HASH_LENGTH:
            return item
    raise NodeDecodingError("Invalid child reference in trie node")


def node_from_items(items: Any) -> TrieNode:
    """Build a node from an already RLP-decoded item list."""
    if not isinstance(items, (list, tuple)):
        raise NodeDecodingError("Trie node must be an RLP list")

    if len(items) == 2:
        encoded_path, payload = items
        if not isinstance(encoded_path, bytes):
            raise NodeDecodingError("Trie node path must be a byte string")
        try:
            path, is_leaf = hex_prefix_decode(encoded_path)
        except ValueError as e:
            raise NodeDecodingError(f"Invalid hex-prefix path: {e}") from e
        if is_leaf:
            if not isinstance(payload, bytes):
                raise NodeDecodingError("Leaf value must be a byte string")
            return Leaf(path=path, value=payload)
        if not path:
            raise NodeDecodingError("Extension node with empty path")
        return Extension(path=path, child=_decode_reference(payload, allow_empty=False))

    if len(items) == BRANCH_WIDTH + 1:
        children = tuple(
            _decode_reference(item, allow_empty=True) for item in items[:BRANCH_WIDTH]
        )
        value = items[BRANCH_WIDTH]
        if not isinstance(value, bytes):
            raise NodeDecodingError("Branch value must be a byte string")
        return Branch(children=children, value=value or None)

    raise NodeDecodingError(
        f"Trie node must have 2 or 17 items, got {len(items)}",
        details={"item_count": len(items)},
    )


def exceeds_list_depth(encoding: bytes, limit: int = MAX_LIST_DEPTH) -> bool:
    """
    Report whether an RLP encoding nests lists deeper than limit.

    Walks item prefixes iteratively, so adversarially deep input cannot
    exhaust the call stack the way a recursive decode would. Lengths that
    run past the input just end the scan; rejecting them is left to the
    decoder.
    """
    list_ends: list[int] = []
    pos = 0
    while pos < len(encoding):
        while list_ends and pos >= list_ends[-1]:
            list_ends.pop()
        prefix = encoding[pos]
        if prefix < 0x80:
            pos += 1
        elif prefix <= 0xB7:
            pos += 1 + prefix - 0x80
        elif prefix <= 0xBF:
            width = prefix - 0xB7
            length = int.from_bytes(encoding[pos + 1:pos + 1 + width], "big")
            pos += 1 + width + length
        elif prefix <= 0xF7:
            list_ends.append(pos + 1 + prefix - 0xC0)
            pos += 1
        else:
            width = prefix - 0xF7
            length = int.from_bytes(encoding[pos + 1:pos + 1 + width], "big")
            list_ends.append(pos + 1 + width + length)
            pos += 1 + width
        if len(list_ends) > limit:
            return True
    return False


def decode_node(encoding: bytes) -> TrieNode:
    """
    Decode a raw node encoding.

    Raises:
        NodeDecodingError: On any malformed input, including non-canonical
            or trailing RLP.
    """
    if isinstance(encoding, (bytes, bytearray)) and exceeds_list_depth(encoding):
        raise NodeDecodingError(
            f"Trie node nests lists deeper than {MAX_LIST_DEPTH} levels"
        )
    try:
        items = rlp.decode(encoding, strict=True)
    except (RLPException, TypeError, ValueError) as e:
        raise NodeDecodingError(f"Invalid RLP in trie node: {e}") from e
    return node_from_items(items)


def decode_reference(ref: bytes) -> TrieNode:
    """Decode the node behind an embedded reference."""
    if is_hash_reference(ref):
        raise NodeDecodingError("Hash reference cannot be decoded inline")
    return decode_node(ref)
