"""
Merkle-Patricia-Trie construction, proof retention and proof verification.

Commitment Rules:
1. Node identity: keccak256(rlp(node))
2. Children shorter than 32 bytes are embedded inline; the root is always hashed
3. Empty trie: keccak256(rlp(b""))
4. Root depends only on the full key/value set, never on insertion order

Usage:
    from core.trie import ProofRetainer, TrieBuilder, verify_proof

    builder = TrieBuilder(ProofRetainer([key]))
    for k, v in entries:
        builder.add_leaf(k, v)
    root = builder.root()
    proof = builder.take_proof_nodes().for_key(key)
    assert verify_proof(root, key, value, proof).included
"""
from .nibbles import (
    Nibbles,
    bytes_to_nibbles,
    nibbles_to_bytes,
    hex_prefix_encode,
    hex_prefix_decode,
)
from .nodes import (
    EMPTY_TRIE_ROOT,
    Branch,
    Extension,
    Leaf,
    TrieNode,
    decode_node,
    encode_node,
    exceeds_list_depth,
    node_reference,
)
from .builder import (
    ProofNodes,
    ProofRetainer,
    TrieBuilder,
    compute_trie_root,
)
from .proof import (
    ProofVerification,
    verify_proof,
)


__all__ = [
    # Paths
    "Nibbles",
    "bytes_to_nibbles",
    "nibbles_to_bytes",
    "hex_prefix_encode",
    "hex_prefix_decode",
    # Nodes
    "EMPTY_TRIE_ROOT",
    "Leaf",
    "Extension",
    "Branch",
    "TrieNode",
    "encode_node",
    "decode_node",
    "exceeds_list_depth",
    "node_reference",
    # Construction
    "TrieBuilder",
    "ProofRetainer",
    "ProofNodes",
    "compute_trie_root",
    # Verification
    "ProofVerification",
    "verify_proof",
]
