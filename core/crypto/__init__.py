"""
Core cryptographic utilities.

Provides Keccak-256 hashing and hex helpers. Attestation types live in
core.crypto.attestation and are imported from there directly.
"""
from .hashing import (
    keccak256,
    hash_canonical,
    to_hex,
    from_hex,
    hex_to_int,
)

__all__ = [
    "keccak256",
    "hash_canonical",
    "to_hex",
    "from_hex",
    "hex_to_int",
]
