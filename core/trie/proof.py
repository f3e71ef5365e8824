"""
Proof Verifier

Pure check of a claimed (root, key, value-or-absent, proof) tuple.

Algorithm:
1. The first proof node must hash to the claimed root.
2. Decode the node and consume key nibbles: an Extension must match its
   path, a Branch descends on the next nibble, a Leaf must match the whole
   remaining key.
3. Embedded child references are decoded inline; hash references must be
   satisfied by the next proof node, whose keccak256 must equal the
   reference.
4. The walk ends when the key is exhausted at a value, or when the path
   diverges (the key is absent).
5. Every supplied proof node must have been consumed.

Outcomes:
- value found and equal to the claim          -> ok, included
- divergence and the claim is "absent"        -> ok, not included
- anything else (hash mismatch, malformed or truncated proof, extra nodes,
  value mismatch)                             -> not ok

verify_proof never raises; decode errors become a failed result.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from core.crypto.hashing import keccak256, to_hex
from core.schemas.errors import NodeDecodingError
from core.trie.nodes import (
    BRANCH_WIDTH,
    EMPTY_TRIE_ROOT,
    HASH_LENGTH,
    Branch,
    Extension,
    Leaf,
    TrieNode,
    decode_node,
    decode_reference,
    is_hash_reference,
)


@dataclass(frozen=True)
class ProofVerification:
    """
    Result of verifying a proof.

    Attributes:
        ok: The proof is valid for the claim it was checked against
        included: The key was shown to hold the claimed value
        reason: Human-readable diagnostic
        value: Value found at the key, if the walk reached one
    """
    ok: bool
    included: bool
    reason: str
    value: Optional[bytes] = None

    def __bool__(self) -> bool:
        return self.ok


def _failure(reason: str, value: Optional[bytes] = None) -> ProofVerification:
    return ProofVerification(ok=False, included=False, reason=reason, value=value)


def _conclude(found: Optional[bytes], expected: Optional[bytes]) -> ProofVerification:
    if expected is None:
        if found is None:
            return ProofVerification(ok=True, included=False, reason="Key is absent from the trie")
        return _failure("Key holds a value but was claimed absent", value=found)
    if found is None:
        return _failure("Key is absent from the trie")
    if found != expected:
        return _failure("Value at key does not match the claimed value", value=found)
    return ProofVerification(ok=True, included=True, reason="Value is included at key", value=found)


def _walk(
    root: bytes,
    key: tuple[int, ...],
    expected: Optional[bytes],
    proof: Sequence[bytes],
) -> ProofVerification:
    encoding = proof[0]
    if keccak256(encoding) != root:
        return _failure(f"First proof node does not hash to root {to_hex(root)}")
    node: TrieNode = decode_node(encoding)
    consumed = 1
    position = 0
    found: Optional[bytes] = None

    while True:
        if isinstance(node, Leaf):
            if node.path == key[position:]:
                found = node.value
            break

        if isinstance(node, Extension):
            end = position + len(node.path)
            if key[position:end] != node.path:
                break
            position = end
            ref: Optional[bytes] = node.child
        elif isinstance(node, Branch):
            if position == len(key):
                found = node.value
                break
            ref = node.children[key[position]]
            position += 1
            if ref is None:
                break
        else:
            return _failure(f"Unknown node kind: {type(node).__name__}")

        if is_hash_reference(ref):
            if consumed >= len(proof):
                return _failure(f"Proof truncated after {consumed} nodes")
            encoding = proof[consumed]
            if keccak256(encoding) != ref:
                return _failure(f"Proof node {consumed} does not match its parent's hash reference")
            consumed += 1
            node = decode_node(encoding)
        else:
            node = decode_reference(ref)

    if consumed != len(proof):
        return _failure(f"Proof has {len(proof) - consumed} unused trailing nodes")
    return _conclude(found, expected)


def verify_proof(
    root: bytes,
    key: Sequence[int],
    expected_value: Optional[bytes],
    proof: Sequence[bytes],
) -> ProofVerification:
    """
    Verify an MPT proof.

    Args:
        root: Claimed 32-byte trie root
        key: Nibble path of the key
        expected_value: Claimed value, or None to claim the key is absent
        proof: Raw node encodings, root first

    Returns:
        ProofVerification; never raises on malformed input
    """
    if not isinstance(root, (bytes, bytearray)) or len(root) != HASH_LENGTH:
        return _failure("Root must be a 32-byte hash")
    path = tuple(key)
    if any(not isinstance(n, int) or not 0 <= n < BRANCH_WIDTH for n in path):
        return _failure("Key contains values outside the nibble range")
    if any(not isinstance(node, (bytes, bytearray)) for node in proof):
        return _failure("Proof nodes must be byte strings")
    nodes = [bytes(node) for node in proof]

    if not nodes:
        if bytes(root) == EMPTY_TRIE_ROOT:
            return _conclude(None, expected_value)
        return _failure("Proof is empty")

    try:
        return _walk(bytes(root), path, expected_value, nodes)
    except NodeDecodingError as e:
        return _failure(f"Malformed proof node: {e.message}")
