"""
Inclusion Assertion Engine

The verification program. It runs in the deterministic, re-executable
context, so it performs no I/O, reads no clock or randomness and does not
log. Its only trusted input is the header; everything else in the bundle
is re-derived or checked:

1. block hash       = keccak256(header RLP)
2. transaction hash = keccak256(raw transaction)
3. key              = transaction_key_nibbles(transaction_index)
4. inclusion        = verify_proof(header.transactions_root, key, raw tx, proof)

A proof that does not verify yields is_included=False, which is committed
like any other result. Only an undecodable bundle aborts the run.
"""
from __future__ import annotations

from core.chain.keys import transaction_key_nibbles
from core.crypto.hashing import keccak256, to_hex
from core.inclusion.bundle import InputBundle, decode_input_bundle
from core.inclusion.record import ProofRecord, encode_public_output
from core.trie.proof import verify_proof


def assert_inclusion(bundle: InputBundle) -> ProofRecord:
    """Check a bundle and assemble its proof record."""
    header = bundle.header
    root = header.transactions_root_bytes
    key = transaction_key_nibbles(bundle.transaction_index)

    result = verify_proof(root, key, bundle.raw_transaction, bundle.proof)

    return ProofRecord(
        block_hash=to_hex(header.hash()),
        block_number=header.number,
        transaction_hash=to_hex(keccak256(bundle.raw_transaction)),
        transaction_index=bundle.transaction_index,
        is_included=result.ok and result.included,
        verified_against_root=to_hex(root),
    )


def run_inclusion_program(input_bytes: bytes) -> bytes:
    """
    Program entry point: serialized bundle in, public output out.

    Raises:
        InputDeserializationError: If the bundle cannot be decoded
    """
    bundle = decode_input_bundle(input_bytes)
    return encode_public_output(assert_inclusion(bundle))
