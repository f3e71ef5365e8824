"""
Proof Record and Public Output Encoder.

The proof record is the sole output of the verification program. It is
committed as the ABI encoding of the static tuple

    (bytes32 blockHash, uint64 blockNumber, bytes32 transactionHash,
     uint64 transactionIndex, bool isIncluded, bytes32 verifiedAgainstRoot)

which is six 32-byte words: integers and the boolean are left-padded with
zeros to a full word, as an on-chain `abi.decode` expects.
"""
from __future__ import annotations

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError
from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.chain.types import MAX_UINT64, hex_bytes, validate_hex_hash
from core.crypto.hashing import to_hex

PUBLIC_OUTPUT_TYPES: tuple[str, ...] = (
    "bytes32",
    "uint64",
    "bytes32",
    "uint64",
    "bool",
    "bytes32",
)
PUBLIC_OUTPUT_SIZE = 32 * len(PUBLIC_OUTPUT_TYPES)


class ProofRecord(BaseModel):
    """Result of one verification program run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    block_hash: str = Field(..., description="keccak256 of the header RLP")
    block_number: int = Field(..., ge=0, le=MAX_UINT64)
    transaction_hash: str = Field(..., description="keccak256 of the raw transaction")
    transaction_index: int = Field(..., ge=0, le=MAX_UINT64)
    is_included: bool
    verified_against_root: str = Field(
        ..., description="Header transactions root the proof was checked against"
    )

    @field_validator("block_hash", "transaction_hash", "verified_against_root")
    @classmethod
    def validate_hashes(cls, v: str, info) -> str:
        return validate_hex_hash(v, info.field_name)


def encode_public_output(record: ProofRecord) -> bytes:
    """ABI-encode a proof record into its 192-byte public output."""
    return abi_encode(
        list(PUBLIC_OUTPUT_TYPES),
        [
            hex_bytes(record.block_hash),
            record.block_number,
            hex_bytes(record.transaction_hash),
            record.transaction_index,
            record.is_included,
            hex_bytes(record.verified_against_root),
        ],
    )


def decode_public_output(data: bytes) -> ProofRecord:
    """
    Decode a public output back into a proof record.

    Raises:
        ValueError: If data is not exactly one well-formed encoded record
    """
    if len(data) != PUBLIC_OUTPUT_SIZE:
        raise ValueError(
            f"Public output must be {PUBLIC_OUTPUT_SIZE} bytes, got {len(data)}"
        )
    try:
        values = abi_decode(list(PUBLIC_OUTPUT_TYPES), bytes(data))
    except DecodingError as e:
        raise ValueError(f"Malformed public output: {e}") from e
    block_hash, block_number, tx_hash, tx_index, included, root = values
    return ProofRecord(
        block_hash=to_hex(block_hash),
        block_number=block_number,
        transaction_hash=to_hex(tx_hash),
        transaction_index=tx_index,
        is_included=included,
        verified_against_root=to_hex(root),
    )
