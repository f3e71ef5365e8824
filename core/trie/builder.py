"""
Trie Builder & Proof Retention

Builds a Merkle-Patricia-Trie over a complete key/value set and, while doing
so, records the nodes that lie on the path to one or more target keys.

Construction Rules:
1. Entries are collected first; the trie is built only when the root is
   requested, over the complete set sorted by nibble path. The root is
   therefore independent of insertion order.
2. A single entry below a path becomes a Leaf holding the rest of its key.
3. Entries sharing a non-empty common prefix collapse into an Extension
   whose child is the Branch where they diverge.
4. Otherwise a Branch fans out on the next nibble; an entry whose key ends
   exactly at the branch becomes the branch value.
5. Child encodings shorter than 32 bytes are embedded in their parent;
   longer ones are referenced by keccak256. The root is always hashed.

Proof retention happens in the finalization hook: each node is offered to
the ProofRetainer as soon as its encoding is final. Only the root and
hash-referenced nodes are retained; embedded nodes already travel inside
their parent's encoding.
"""
from __future__ import annotations

from typing import Iterable, Iterator, Optional, Sequence

from core.crypto.hashing import keccak256
from core.trie.nibbles import Nibbles, common_prefix_length, is_prefix
from core.trie.nodes import (
    BRANCH_WIDTH,
    EMPTY_TRIE_ROOT,
    HASH_LENGTH,
    Branch,
    Extension,
    Leaf,
    TrieNode,
    encode_node,
    node_reference,
)


class ProofNodes:
    """
    Retained proof nodes keyed by their nibble path from the root.

    Sorting by path yields root-first order for any single target, since a
    path always sorts before every path it prefixes.
    """

    def __init__(self, nodes: Optional[dict[Nibbles, bytes]] = None) -> None:
        self._nodes: dict[Nibbles, bytes] = dict(nodes or {})

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[tuple[Nibbles, bytes]]:
        return iter(self.sorted_nodes())

    def sorted_nodes(self) -> list[tuple[Nibbles, bytes]]:
        return sorted(self._nodes.items())

    def proof(self) -> tuple[bytes, ...]:
        """All retained encodings, ordered by path."""
        return tuple(encoding for _, encoding in self.sorted_nodes())

    def for_key(self, key: Sequence[int]) -> tuple[bytes, ...]:
        """Root-first proof for one key out of a multi-target retention."""
        return tuple(
            encoding
            for path, encoding in self.sorted_nodes()
            if is_prefix(path, key)
        )


class ProofRetainer:
    """Keeps the finalized nodes whose path is a prefix of any target key."""

    def __init__(self, targets: Iterable[Sequence[int]]) -> None:
        self._targets: tuple[Nibbles, ...] = tuple(sorted({tuple(t) for t in targets}))
        self._nodes: dict[Nibbles, bytes] = {}

    @property
    def targets(self) -> tuple[Nibbles, ...]:
        return self._targets

    def matches(self, path: Sequence[int]) -> bool:
        return any(is_prefix(path, target) for target in self._targets)

    def retain(self, path: Nibbles, encoding: bytes) -> None:
        if self.matches(path):
            self._nodes[path] = encoding

    def into_proof_nodes(self) -> ProofNodes:
        return ProofNodes(self._nodes)


class TrieBuilder:
    """
    Single-use MPT builder.

    Usage:
        builder = TrieBuilder(ProofRetainer([target_path]))
        for path, value in entries:
            builder.add_leaf(path, value)
        root = builder.root()
        proof = builder.take_proof_nodes().for_key(target_path)

    Not thread-safe; one builder owns its trie for its whole lifetime.
    """

    def __init__(self, retainer: Optional[ProofRetainer] = None) -> None:
        self._entries: dict[Nibbles, bytes] = {}
        self._retainer = retainer
        self._root: Optional[bytes] = None

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def finalized(self) -> bool:
        return self._root is not None

    def add_leaf(self, key: Sequence[int], value: bytes) -> None:
        """
        Add one entry.

        Raises:
            RuntimeError: If the root has already been computed
            ValueError: On a duplicate key, an invalid nibble or an empty value
        """
        if self._root is not None:
            raise RuntimeError("Cannot add entries after the trie root has been computed")
        path = tuple(key)
        if any(not 0 <= nibble < BRANCH_WIDTH for nibble in path):
            raise ValueError(f"Key contains values outside the nibble range: {path}")
        if not value:
            raise ValueError("Trie values must be non-empty")
        if path in self._entries:
            raise ValueError(f"Duplicate trie key: {path}")
        self._entries[path] = bytes(value)

    def root(self) -> bytes:
        """Finalize the trie (on first call) and return its 32-byte root hash."""
        if self._root is None:
            if not self._entries:
                self._root = EMPTY_TRIE_ROOT
            else:
                entries = sorted(self._entries.items())
                self._root = keccak256(self._build(entries, 0))
        return self._root

    def take_proof_nodes(self) -> ProofNodes:
        """Proof nodes captured for the retainer's targets (finalizes the trie)."""
        self.root()
        if self._retainer is None:
            return ProofNodes()
        return self._retainer.into_proof_nodes()

    def _build(self, entries: list[tuple[Nibbles, bytes]], depth: int) -> bytes:
        path = entries[0][0][:depth]

        if len(entries) == 1:
            key, value = entries[0]
            return self._finalize(path, Leaf(path=key[depth:], value=value))

        first, last = entries[0][0], entries[-1][0]
        shared = common_prefix_length(first[depth:], last[depth:])
        if shared > 0:
            child = self._build(entries, depth + shared)
            node: TrieNode = Extension(
                path=first[depth:depth + shared],
                child=node_reference(child),
            )
            return self._finalize(path, node)

        value: Optional[bytes] = None
        if len(first) == depth:
            value = entries[0][1]
            entries = entries[1:]

        groups: dict[int, list[tuple[Nibbles, bytes]]] = {}
        for key, item in entries:
            groups.setdefault(key[depth], []).append((key, item))

        children: list[Optional[bytes]] = [None] * BRANCH_WIDTH
        for nibble, group in groups.items():
            children[nibble] = node_reference(self._build(group, depth + 1))

        return self._finalize(path, Branch(children=tuple(children), value=value))

    def _finalize(self, path: Nibbles, node: TrieNode) -> bytes:
        encoding = encode_node(node)
        if self._retainer is not None and (not path or len(encoding) >= HASH_LENGTH):
            self._retainer.retain(path, encoding)
        return encoding


def compute_trie_root(entries: Iterable[tuple[Sequence[int], bytes]]) -> bytes:
    """Root hash of the trie holding the given (nibble path, value) entries."""
    builder = TrieBuilder()
    for key, value in entries:
        builder.add_leaf(key, value)
    return builder.root()
