"""
Canonical Transaction Encoder

Typed transaction record and its EIP-2718 canonical encoding, the exact
bytes whose keccak256 is the transaction hash and which are stored as the
value in the block's transactions trie.

Supported envelopes:
- 0x00 legacy      rlp([nonce, gasPrice, gas, to, value, data, v, r, s])
- 0x01 EIP-2930    0x01 || rlp([chainId, nonce, gasPrice, gas, to, value, data,
                                accessList, yParity, r, s])
- 0x02 EIP-1559    0x02 || rlp([chainId, nonce, maxPriorityFeePerGas,
                                maxFeePerGas, gas, to, value, data,
                                accessList, yParity, r, s])
- 0x03 EIP-4844    0x03 || rlp([..., accessList, maxFeePerBlobGas,
                                blobVersionedHashes, yParity, r, s])
- 0x04 EIP-7702    0x04 || rlp([..., accessList, authorizationList,
                                yParity, r, s])

Distinct transactions always produce distinct encodings; when a record
carries the hash reported by the provider, the encoding is checked against
it so a silently dropped field cannot go unnoticed.
"""
from __future__ import annotations

from typing import Any, Callable, Optional

import rlp
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.chain.types import (
    MAX_UINT64,
    hex_bytes,
    validate_hex_data,
    validate_hex_hash,
)
from core.crypto.hashing import hex_to_int, keccak256, to_hex
from core.schemas.errors import EncodingError


LEGACY_TX_TYPE = 0
ACCESS_LIST_TX_TYPE = 1
DYNAMIC_FEE_TX_TYPE = 2
BLOB_TX_TYPE = 3
SET_CODE_TX_TYPE = 4

# Types that may omit `to` (contract creation)
CONTRACT_CREATION_TYPES = frozenset({LEGACY_TX_TYPE, ACCESS_LIST_TX_TYPE, DYNAMIC_FEE_TX_TYPE})


class AccessListEntry(BaseModel):
    """One EIP-2930 access list entry."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    address: str
    storage_keys: list[str] = Field(default_factory=list)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        return validate_hex_data(v, "address", 20)

    @field_validator("storage_keys")
    @classmethod
    def validate_storage_keys(cls, v: list[str]) -> list[str]:
        return [validate_hex_hash(key, "storage_key") for key in v]

    def rlp_item(self) -> list[Any]:
        return [hex_bytes(self.address), [hex_bytes(key) for key in self.storage_keys]]


class Authorization(BaseModel):
    """One EIP-7702 signed authorization tuple."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    chain_id: int = Field(..., ge=0)
    address: str
    nonce: int = Field(..., ge=0, le=MAX_UINT64)
    y_parity: int = Field(..., ge=0)
    r: int = Field(..., ge=0)
    s: int = Field(..., ge=0)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        return validate_hex_data(v, "address", 20)

    def rlp_item(self) -> list[Any]:
        return [
            self.chain_id,
            hex_bytes(self.address),
            self.nonce,
            self.y_parity,
            self.r,
            self.s,
        ]


class Transaction(BaseModel):
    """
    A signed transaction as reported by the chain.

    Fee fields that do not apply to a type are left as None. y_parity is
    used by typed envelopes and v by legacy ones. tx_hash, block_number and
    transaction_index describe where the provider says the transaction
    lives; they are not part of the encoding.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    tx_type: int = Field(default=LEGACY_TX_TYPE, ge=0, le=0x7F)
    chain_id: Optional[int] = Field(default=None, ge=0)
    nonce: int = Field(..., ge=0, le=MAX_UINT64)
    gas_price: Optional[int] = Field(default=None, ge=0)
    max_priority_fee_per_gas: Optional[int] = Field(default=None, ge=0)
    max_fee_per_gas: Optional[int] = Field(default=None, ge=0)
    gas: int = Field(..., ge=0, le=MAX_UINT64)
    to: Optional[str] = None
    value: int = Field(default=0, ge=0)
    input: str = "0x"
    access_list: list[AccessListEntry] = Field(default_factory=list)
    max_fee_per_blob_gas: Optional[int] = Field(default=None, ge=0)
    blob_versioned_hashes: list[str] = Field(default_factory=list)
    authorization_list: list[Authorization] = Field(default_factory=list)
    v: Optional[int] = Field(default=None, ge=0)
    r: int = Field(..., ge=0)
    s: int = Field(..., ge=0)
    y_parity: Optional[int] = Field(default=None, ge=0)

    tx_hash: Optional[str] = None
    block_number: Optional[int] = Field(default=None, ge=0)
    transaction_index: Optional[int] = Field(default=None, ge=0)

    @field_validator("to")
    @classmethod
    def validate_to(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return validate_hex_data(v, "to", 20)

    @field_validator("input")
    @classmethod
    def validate_input(cls, v: str) -> str:
        return validate_hex_data(v, "input")

    @field_validator("blob_versioned_hashes")
    @classmethod
    def validate_blob_hashes(cls, v: list[str]) -> list[str]:
        return [validate_hex_hash(h, "blob_versioned_hash") for h in v]

    @field_validator("tx_hash")
    @classmethod
    def validate_tx_hash(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return validate_hex_hash(v, "tx_hash")

    def encode(self) -> bytes:
        """Canonical EIP-2718 encoding."""
        return encode_transaction(self)

    def hash(self) -> bytes:
        """keccak256 of the canonical encoding."""
        return keccak256(self.encode())

    @classmethod
    def from_rpc(cls, obj: dict[str, Any]) -> "Transaction":
        """
        Build a transaction from a JSON-RPC transaction object.

        Raises:
            EncodingError: If the object is missing fields or holds values
                that cannot be represented
        """
        try:
            return cls(**_fields_from_rpc(obj))
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise EncodingError(
                f"Cannot parse transaction {obj.get('hash', '<unknown>')}: {e}",
                details={"hash": obj.get("hash")},
            ) from e


def _quantity(obj: dict[str, Any], key: str) -> Optional[int]:
    value = obj.get(key)
    if value is None:
        return None
    return hex_to_int(value)


def _fields_from_rpc(obj: dict[str, Any]) -> dict[str, Any]:
    tx_type = _quantity(obj, "type") or LEGACY_TX_TYPE
    fields: dict[str, Any] = {
        "tx_type": tx_type,
        "chain_id": _quantity(obj, "chainId"),
        "nonce": hex_to_int(obj["nonce"]),
        "gas_price": _quantity(obj, "gasPrice"),
        "max_priority_fee_per_gas": _quantity(obj, "maxPriorityFeePerGas"),
        "max_fee_per_gas": _quantity(obj, "maxFeePerGas"),
        "gas": hex_to_int(obj["gas"]),
        "to": obj.get("to"),
        "value": hex_to_int(obj["value"]),
        "input": obj.get("input", "0x"),
        "max_fee_per_blob_gas": _quantity(obj, "maxFeePerBlobGas"),
        "blob_versioned_hashes": list(obj.get("blobVersionedHashes") or []),
        "v": _quantity(obj, "v"),
        "r": hex_to_int(obj["r"]),
        "s": hex_to_int(obj["s"]),
        "y_parity": _quantity(obj, "yParity"),
        "tx_hash": obj.get("hash"),
        "block_number": _quantity(obj, "blockNumber"),
        "transaction_index": _quantity(obj, "transactionIndex"),
    }
    fields["access_list"] = [
        AccessListEntry(address=entry["address"], storage_keys=list(entry.get("storageKeys") or []))
        for entry in obj.get("accessList") or []
    ]
    fields["authorization_list"] = [
        Authorization(
            chain_id=hex_to_int(auth["chainId"]),
            address=auth["address"],
            nonce=hex_to_int(auth["nonce"]),
            y_parity=hex_to_int(auth["yParity"]),
            r=hex_to_int(auth["r"]),
            s=hex_to_int(auth["s"]),
        )
        for auth in obj.get("authorizationList") or []
    ]
    return fields


# =============================================================================
# Encoding
# =============================================================================

def _require(tx: Transaction, name: str) -> Any:
    value = getattr(tx, name)
    if value is None:
        raise EncodingError(
            f"Type {tx.tx_type} transaction is missing required field '{name}'",
            tx_type=tx.tx_type,
            details={"field": name},
        )
    return value


def _to_item(tx: Transaction) -> bytes:
    if tx.to is None:
        if tx.tx_type not in CONTRACT_CREATION_TYPES:
            raise EncodingError(
                f"Type {tx.tx_type} transaction cannot create a contract (missing 'to')",
                tx_type=tx.tx_type,
                details={"field": "to"},
            )
        return b""
    return hex_bytes(tx.to)


def _typed_parity(tx: Transaction) -> int:
    # Typed envelopes carry the bare parity; nodes report it as v too.
    if tx.y_parity is not None:
        return tx.y_parity
    return _require(tx, "v")


def _access_list(tx: Transaction) -> list[Any]:
    return [entry.rlp_item() for entry in tx.access_list]


def _legacy_fields(tx: Transaction) -> list[Any]:
    return [
        tx.nonce,
        _require(tx, "gas_price"),
        tx.gas,
        _to_item(tx),
        tx.value,
        hex_bytes(tx.input),
        _require(tx, "v"),
        tx.r,
        tx.s,
    ]


def _access_list_fields(tx: Transaction) -> list[Any]:
    return [
        _require(tx, "chain_id"),
        tx.nonce,
        _require(tx, "gas_price"),
        tx.gas,
        _to_item(tx),
        tx.value,
        hex_bytes(tx.input),
        _access_list(tx),
        _typed_parity(tx),
        tx.r,
        tx.s,
    ]


def _fee_market_prefix(tx: Transaction) -> list[Any]:
    return [
        _require(tx, "chain_id"),
        tx.nonce,
        _require(tx, "max_priority_fee_per_gas"),
        _require(tx, "max_fee_per_gas"),
        tx.gas,
        _to_item(tx),
        tx.value,
        hex_bytes(tx.input),
        _access_list(tx),
    ]


def _dynamic_fee_fields(tx: Transaction) -> list[Any]:
    return _fee_market_prefix(tx) + [_typed_parity(tx), tx.r, tx.s]


def _blob_fields(tx: Transaction) -> list[Any]:
    return _fee_market_prefix(tx) + [
        _require(tx, "max_fee_per_blob_gas"),
        [hex_bytes(h) for h in tx.blob_versioned_hashes],
        _typed_parity(tx),
        tx.r,
        tx.s,
    ]


def _set_code_fields(tx: Transaction) -> list[Any]:
    return _fee_market_prefix(tx) + [
        [auth.rlp_item() for auth in tx.authorization_list],
        _typed_parity(tx),
        tx.r,
        tx.s,
    ]


_PAYLOAD_BUILDERS: dict[int, Callable[[Transaction], list[Any]]] = {
    LEGACY_TX_TYPE: _legacy_fields,
    ACCESS_LIST_TX_TYPE: _access_list_fields,
    DYNAMIC_FEE_TX_TYPE: _dynamic_fee_fields,
    BLOB_TX_TYPE: _blob_fields,
    SET_CODE_TX_TYPE: _set_code_fields,
}


def encode_transaction(tx: Transaction, check_hash: bool = True) -> bytes:
    """
    Canonical EIP-2718 encoding of a transaction.

    Args:
        tx: Transaction record
        check_hash: When the record carries tx_hash, require keccak256 of the
            encoding to equal it

    Raises:
        EncodingError: Unsupported type, missing required field, contract
            creation on a type that forbids it, or hash mismatch
    """
    builder = _PAYLOAD_BUILDERS.get(tx.tx_type)
    if builder is None:
        raise EncodingError(
            f"Unsupported transaction type: {tx.tx_type}",
            tx_type=tx.tx_type,
        )

    payload = rlp.encode(builder(tx))
    encoded = payload if tx.tx_type == LEGACY_TX_TYPE else bytes([tx.tx_type]) + payload

    if check_hash and tx.tx_hash is not None:
        computed = to_hex(keccak256(encoded))
        if computed != tx.tx_hash:
            raise EncodingError(
                f"Canonical encoding hashes to {computed}, provider reported {tx.tx_hash}",
                tx_type=tx.tx_type,
                details={"computed_hash": computed, "reported_hash": tx.tx_hash},
            )
    return encoded


__all__ = [
    "LEGACY_TX_TYPE",
    "ACCESS_LIST_TX_TYPE",
    "DYNAMIC_FEE_TX_TYPE",
    "BLOB_TX_TYPE",
    "SET_CODE_TX_TYPE",
    "AccessListEntry",
    "Authorization",
    "Transaction",
    "encode_transaction",
]
