"""
Block Header

Ethereum block header with its canonical RLP encoding and hash.

The header hash is keccak256(rlp([fields...])) over every field present, in
the fixed order below. Fields added by later forks are optional and appear
only at the end of the list; they must be contiguous (a field may only be
present if every earlier optional field is present too).

    parentHash, ommersHash, beneficiary, stateRoot, transactionsRoot,
    receiptsRoot, logsBloom, difficulty, number, gasLimit, gasUsed,
    timestamp, extraData, mixHash, nonce,
    [baseFeePerGas, withdrawalsRoot, blobGasUsed, excessBlobGas,
     parentBeaconBlockRoot, requestsHash]
"""
from __future__ import annotations

from typing import Any, Optional

import rlp
from rlp.exceptions import RLPException
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from core.chain.types import (
    MAX_UINT64,
    decode_fixed,
    decode_uint,
    hex_bytes,
    validate_hex_data,
    validate_hex_hash,
)
from core.crypto.hashing import hex_to_int, keccak256
from core.trie.nodes import exceeds_list_depth


# (attribute, JSON-RPC key, kind) in canonical RLP order
REQUIRED_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("parent_hash", "parentHash", "hash"),
    ("ommers_hash", "sha3Uncles", "hash"),
    ("beneficiary", "miner", "address"),
    ("state_root", "stateRoot", "hash"),
    ("transactions_root", "transactionsRoot", "hash"),
    ("receipts_root", "receiptsRoot", "hash"),
    ("logs_bloom", "logsBloom", "bloom"),
    ("difficulty", "difficulty", "uint"),
    ("number", "number", "uint64"),
    ("gas_limit", "gasLimit", "uint64"),
    ("gas_used", "gasUsed", "uint64"),
    ("timestamp", "timestamp", "uint64"),
    ("extra_data", "extraData", "data"),
    ("mix_hash", "mixHash", "hash"),
    ("nonce", "nonce", "nonce"),
)

OPTIONAL_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("base_fee_per_gas", "baseFeePerGas", "uint"),
    ("withdrawals_root", "withdrawalsRoot", "hash"),
    ("blob_gas_used", "blobGasUsed", "uint64"),
    ("excess_blob_gas", "excessBlobGas", "uint64"),
    ("parent_beacon_block_root", "parentBeaconBlockRoot", "hash"),
    ("requests_hash", "requestsHash", "hash"),
)

_FIXED_LENGTHS = {"hash": 32, "address": 20, "bloom": 256, "nonce": 8}


def _field_to_rlp(kind: str, value: Any) -> Any:
    if kind in ("uint", "uint64"):
        return value
    return hex_bytes(value)


def _field_from_rlp(kind: str, item: Any, name: str) -> Any:
    if not isinstance(item, bytes):
        raise ValueError(f"Header field {name} must be a byte string")
    if kind == "uint":
        return decode_uint(item, name)
    if kind == "uint64":
        return decode_uint(item, name, MAX_UINT64)
    if kind == "data":
        return "0x" + item.hex()
    return decode_fixed(item, name, _FIXED_LENGTHS[kind])


def _field_from_rpc(kind: str, value: Any) -> Any:
    if kind in ("uint", "uint64"):
        return hex_to_int(value)
    return value


class BlockHeader(BaseModel):
    """
    Immutable block header.

    Hex fields are stored as lowercase 0x-prefixed strings; numeric fields
    as ints. transactions_root is the root every inclusion proof is checked
    against inside the verification program.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    parent_hash: str
    ommers_hash: str
    beneficiary: str
    state_root: str
    transactions_root: str
    receipts_root: str
    logs_bloom: str
    difficulty: int = Field(..., ge=0)
    number: int = Field(..., ge=0, le=MAX_UINT64)
    gas_limit: int = Field(..., ge=0, le=MAX_UINT64)
    gas_used: int = Field(..., ge=0, le=MAX_UINT64)
    timestamp: int = Field(..., ge=0, le=MAX_UINT64)
    extra_data: str = "0x"
    mix_hash: str
    nonce: str

    base_fee_per_gas: Optional[int] = Field(default=None, ge=0)
    withdrawals_root: Optional[str] = None
    blob_gas_used: Optional[int] = Field(default=None, ge=0, le=MAX_UINT64)
    excess_blob_gas: Optional[int] = Field(default=None, ge=0, le=MAX_UINT64)
    parent_beacon_block_root: Optional[str] = None
    requests_hash: Optional[str] = None

    @field_validator(
        "parent_hash", "ommers_hash", "state_root", "transactions_root",
        "receipts_root", "mix_hash", "withdrawals_root",
        "parent_beacon_block_root", "requests_hash",
    )
    @classmethod
    def validate_hashes(cls, v: Optional[str], info) -> Optional[str]:
        if v is None:
            return v
        return validate_hex_hash(v, info.field_name)

    @field_validator("beneficiary")
    @classmethod
    def validate_beneficiary(cls, v: str) -> str:
        return validate_hex_data(v, "beneficiary", 20)

    @field_validator("logs_bloom")
    @classmethod
    def validate_logs_bloom(cls, v: str) -> str:
        return validate_hex_data(v, "logs_bloom", 256)

    @field_validator("nonce")
    @classmethod
    def validate_nonce(cls, v: str) -> str:
        return validate_hex_data(v, "nonce", 8)

    @field_validator("extra_data")
    @classmethod
    def validate_extra_data(cls, v: str) -> str:
        return validate_hex_data(v, "extra_data")

    @model_validator(mode="after")
    def validate_optional_fields_contiguous(self) -> "BlockHeader":
        """Fork fields must be a prefix of OPTIONAL_FIELDS."""
        seen_missing: Optional[str] = None
        for name, _, _ in OPTIONAL_FIELDS:
            if getattr(self, name) is None:
                seen_missing = seen_missing or name
            elif seen_missing is not None:
                raise ValueError(
                    f"Header field '{name}' is set but earlier fork field "
                    f"'{seen_missing}' is missing"
                )
        return self

    def rlp_fields(self) -> list[Any]:
        """Field values in canonical order, ready for RLP encoding."""
        items = [_field_to_rlp(kind, getattr(self, name)) for name, _, kind in REQUIRED_FIELDS]
        for name, _, kind in OPTIONAL_FIELDS:
            value = getattr(self, name)
            if value is None:
                break
            items.append(_field_to_rlp(kind, value))
        return items

    def encode(self) -> bytes:
        """Canonical RLP encoding of the header."""
        return rlp.encode(self.rlp_fields())

    def hash(self) -> bytes:
        """Block hash: keccak256 of the canonical encoding."""
        return keccak256(self.encode())

    @property
    def transactions_root_bytes(self) -> bytes:
        return hex_bytes(self.transactions_root)

    @classmethod
    def decode(cls, data: bytes) -> "BlockHeader":
        """
        Parse a canonical RLP header encoding.

        Raises:
            ValueError: On malformed RLP, a wrong field count or an invalid
                field value.
        """
        if isinstance(data, (bytes, bytearray)) and exceeds_list_depth(data, limit=1):
            raise ValueError("Header encoding must be a flat RLP list")
        try:
            items = rlp.decode(data, strict=True)
        except RLPException as e:
            raise ValueError(f"Invalid header RLP: {e}") from e
        if not isinstance(items, (list, tuple)):
            raise ValueError("Header encoding must be an RLP list")
        max_fields = len(REQUIRED_FIELDS) + len(OPTIONAL_FIELDS)
        if not len(REQUIRED_FIELDS) <= len(items) <= max_fields:
            raise ValueError(
                f"Header must have between {len(REQUIRED_FIELDS)} and {max_fields} "
                f"fields, got {len(items)}"
            )
        layout = REQUIRED_FIELDS + OPTIONAL_FIELDS
        values = {
            name: _field_from_rlp(kind, item, name)
            for (name, _, kind), item in zip(layout, items)
        }
        return cls(**values)

    @classmethod
    def from_rpc(cls, block: dict[str, Any]) -> "BlockHeader":
        """
        Build a header from an eth_getBlockByNumber result object.

        Raises:
            KeyError: If a required field is missing
            ValueError: If a field has an invalid value
        """
        values: dict[str, Any] = {
            name: _field_from_rpc(kind, block[rpc_key])
            for name, rpc_key, kind in REQUIRED_FIELDS
        }
        for name, rpc_key, kind in OPTIONAL_FIELDS:
            if block.get(rpc_key) is not None:
                values[name] = _field_from_rpc(kind, block[rpc_key])
        return cls(**values)
