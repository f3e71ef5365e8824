"""
Input Bundle codec.

The bundle is everything the verification program is given. The host
serializes it, and the program deserializes it before checking anything:

    u64 len || header RLP
    u64 len || raw transaction
    u64      transaction index
    u64 count || (u64 len || node encoding) * count

All integers are little-endian. Decoding is strict: truncated input,
lengths running past the end, trailing bytes and a header whose RLP is not
the canonical encoding of a well-formed header are all rejected with
InputDeserializationError.
"""
from __future__ import annotations

import struct
from dataclasses import dataclass

from core.chain.header import BlockHeader
from core.schemas.errors import InputDeserializationError

_U64 = struct.Struct("<Q")


@dataclass(frozen=True)
class InputBundle:
    """
    Program input.

    transaction_index must be the position used to derive the key of the
    proof; the program re-derives the key from it and never receives a key.
    """
    header: BlockHeader
    raw_transaction: bytes
    transaction_index: int
    proof: tuple[bytes, ...]


def _length_prefixed(data: bytes) -> bytes:
    return _U64.pack(len(data)) + data


def encode_input_bundle(bundle: InputBundle) -> bytes:
    """Serialize a bundle for the verification program."""
    parts = [
        _length_prefixed(bundle.header.encode()),
        _length_prefixed(bundle.raw_transaction),
        _U64.pack(bundle.transaction_index),
        _U64.pack(len(bundle.proof)),
    ]
    parts.extend(_length_prefixed(node) for node in bundle.proof)
    return b"".join(parts)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self.offset

    def u64(self, what: str) -> int:
        if self.remaining < _U64.size:
            raise InputDeserializationError(
                f"Input truncated while reading {what}", offset=self.offset
            )
        (value,) = _U64.unpack_from(self._data, self.offset)
        self.offset += _U64.size
        return value

    def chunk(self, what: str) -> bytes:
        length = self.u64(f"{what} length")
        if length > self.remaining:
            raise InputDeserializationError(
                f"{what} length {length} exceeds remaining input ({self.remaining} bytes)",
                offset=self.offset,
            )
        start = self.offset
        self.offset += length
        return self._data[start:self.offset]


def decode_input_bundle(data: bytes) -> InputBundle:
    """
    Deserialize a bundle.

    Raises:
        InputDeserializationError: On any malformed input
    """
    if not isinstance(data, (bytes, bytearray)):
        raise InputDeserializationError("Input must be bytes")
    reader = _Reader(bytes(data))

    header_offset = reader.offset
    header_rlp = reader.chunk("header")
    try:
        header = BlockHeader.decode(header_rlp)
    except ValueError as e:
        raise InputDeserializationError(
            f"Malformed header: {e}", offset=header_offset
        ) from e
    if header.encode() != header_rlp:
        raise InputDeserializationError(
            "Header RLP is not canonical", offset=header_offset
        )

    raw_transaction = reader.chunk("raw transaction")
    transaction_index = reader.u64("transaction index")

    count = reader.u64("proof node count")
    # Each node needs at least its length prefix.
    if count > reader.remaining // _U64.size:
        raise InputDeserializationError(
            f"Proof node count {count} exceeds remaining input", offset=reader.offset
        )
    proof = tuple(reader.chunk(f"proof node {i}") for i in range(count))

    if reader.remaining:
        raise InputDeserializationError(
            f"{reader.remaining} trailing bytes after bundle", offset=reader.offset
        )

    return InputBundle(
        header=header,
        raw_transaction=raw_transaction,
        transaction_index=transaction_index,
        proof=proof,
    )
