"""
Proof generation (host side).

Builds the transactions trie of one block, extracts the proof for a target
index and checks it before handing it on:

- the proof must verify against the root it was built with; otherwise the
  builder itself is wrong and ProofSelfCheckError is raised
- the computed root is compared with the header's transactions root; a
  mismatch is logged and generation continues (the verification program
  checks against the header root regardless), unless strict_root_check is
  set, in which case ProofConstructionMismatch is raised

No partial result is returned on any failure.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from core.chain.header import BlockHeader
from core.chain.keys import transaction_key_nibbles
from core.chain.transaction import Transaction, encode_transaction
from core.crypto.hashing import to_hex
from core.inclusion.bundle import InputBundle
from core.schemas.errors import (
    IndexOutOfRange,
    NoTransactions,
    ProofConstructionMismatch,
    ProofSelfCheckError,
)
from core.trie.builder import ProofRetainer, TrieBuilder
from core.trie.proof import verify_proof

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedProof:
    """
    Output of proof generation for one transaction.

    Attributes:
        transaction_index: Position the proof key was derived from
        proof: Node encodings, root first
        encoded_transaction: Canonical encoding of the target transaction
        computed_root: Root of the trie built from the block's transactions
        root_matches_header: computed_root equals header.transactions_root
        transaction_count: Number of transactions in the block
    """
    transaction_index: int
    proof: tuple[bytes, ...]
    encoded_transaction: bytes
    computed_root: bytes
    root_matches_header: bool
    transaction_count: int

    def to_input_bundle(self, header: BlockHeader) -> InputBundle:
        return InputBundle(
            header=header,
            raw_transaction=self.encoded_transaction,
            transaction_index=self.transaction_index,
            proof=self.proof,
        )


def generate_inclusion_proof(
    header: BlockHeader,
    transactions: Sequence[Transaction],
    index: int,
    *,
    strict_root_check: bool = False,
) -> GeneratedProof:
    """
    Build the block's transactions trie and extract the proof for one index.

    Args:
        header: Header of the block the transactions belong to
        transactions: All transactions of the block, in block order
        index: Position of the target transaction
        strict_root_check: Raise instead of logging on a root mismatch

    Raises:
        NoTransactions: The block is empty
        IndexOutOfRange: index is not in [0, len(transactions))
        EncodingError: A transaction cannot be canonically encoded
        ProofSelfCheckError: The extracted proof does not verify
        ProofConstructionMismatch: Root mismatch with strict_root_check set
    """
    count = len(transactions)
    if count == 0:
        raise NoTransactions(block_number=header.number)
    if index < 0 or index >= count:
        raise IndexOutOfRange(index, count)

    encodings = [encode_transaction(tx) for tx in transactions]

    target = transaction_key_nibbles(index)
    builder = TrieBuilder(ProofRetainer([target]))
    for position, encoding in enumerate(encodings):
        builder.add_leaf(transaction_key_nibbles(position), encoding)

    root = builder.root()
    proof = builder.take_proof_nodes().for_key(target)
    logger.debug(
        f"Built trie over {count} transactions, root {to_hex(root)}, "
        f"{len(proof)} proof nodes for index {index}"
    )

    check = verify_proof(root, target, encodings[index], proof)
    if not check.included:
        raise ProofSelfCheckError(
            f"Extracted proof for index {index} does not verify: {check.reason}",
            details={"index": index, "root": to_hex(root)},
        )

    root_matches = root == header.transactions_root_bytes
    if not root_matches:
        mismatch = ProofConstructionMismatch(to_hex(root), header.transactions_root)
        if strict_root_check:
            raise mismatch
        logger.warning(f"{mismatch.message} (block {header.number}); continuing")

    return GeneratedProof(
        transaction_index=index,
        proof=proof,
        encoded_transaction=encodings[index],
        computed_root=root,
        root_matches_header=root_matches,
        transaction_count=count,
    )
