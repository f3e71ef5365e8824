"""
Hashing Unit Tests
Tests for core/crypto/hashing.py

Tests:
- keccak256 known values (not NIST SHA3)
- hash_canonical stability for dict key ordering differences
- to_hex/from_hex round trip and rejection rules
- hex_to_int quantity parsing
"""
import hashlib

import pytest

from core.crypto.hashing import from_hex, hash_canonical, hex_to_int, keccak256, to_hex


class TestKeccak256:
    """Tests for keccak256()."""

    def test_empty_input(self):
        assert keccak256(b"").hex() == (
            "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
        )

    def test_empty_rlp_string(self):
        """keccak256(rlp(b"")) is the empty trie root."""
        assert keccak256(b"\x80").hex() == (
            "56e81f171bcc55a6ff8345e692c0f86e5b48e01b996cadc001622fb5e363b421"
        )

    def test_not_sha3_256(self):
        assert keccak256(b"abc") != hashlib.sha3_256(b"abc").digest()

    def test_length_and_determinism(self):
        assert len(keccak256(b"data")) == 32
        assert keccak256(b"data") == keccak256(b"data")
        assert keccak256(b"data1") != keccak256(b"data2")


class TestHashCanonical:
    """Tests for hash_canonical()."""

    def test_stable_for_key_order(self):
        assert hash_canonical({"a": 1, "b": 2}) == hash_canonical({"b": 2, "a": 1})

    def test_different_values_differ(self):
        assert hash_canonical({"a": 1}) != hash_canonical({"a": 2})

    def test_equals_keccak_of_canonical_json(self):
        assert hash_canonical({"b": 2, "a": 1}) == keccak256(b'{"a":1,"b":2}')


class TestHexHelpers:
    """Tests for to_hex / from_hex / hex_to_int."""

    def test_round_trip(self):
        data = bytes(range(32))
        assert from_hex(to_hex(data)) == data

    def test_to_hex_lowercase_prefixed(self):
        assert to_hex(b"\xde\xad\xbe\xef") == "0xdeadbeef"
        assert to_hex(b"") == "0x"

    def test_from_hex_accepts_upper_prefix(self):
        assert from_hex("0XABCD") == b"\xab\xcd"

    @pytest.mark.parametrize("value", ["abcd", "0xabc", "0xzz"])
    def test_from_hex_rejects(self, value):
        with pytest.raises(ValueError):
            from_hex(value)

    @pytest.mark.parametrize(
        "quantity,expected",
        [("0x0", 0), ("0x1a", 26), ("0xff", 255), ("0x1000000", 16_777_216)],
    )
    def test_hex_to_int(self, quantity, expected):
        assert hex_to_int(quantity) == expected

    @pytest.mark.parametrize("quantity", ["0x", "12", 12, None])
    def test_hex_to_int_rejects(self, quantity):
        with pytest.raises(ValueError):
            hex_to_int(quantity)
