"""
Trie node codec and nibble path tests.
Tests for core/trie/nibbles.py and core/trie/nodes.py

Tests:
- nibble split/pack and prefix helpers
- hex-prefix encoding for all four flag values, and its rejection rules
- node encode/decode for every node kind
- embedded vs hashed child references
- decode_node totality on malformed input
"""
import pytest
import rlp

from core.crypto.hashing import keccak256
from core.schemas.errors import NodeDecodingError
from core.trie.nibbles import (
    bytes_to_nibbles,
    common_prefix_length,
    hex_prefix_decode,
    hex_prefix_encode,
    is_prefix,
    nibbles_to_bytes,
)
from core.trie.nodes import (
    BRANCH_WIDTH,
    EMPTY_TRIE_ROOT,
    Branch,
    Extension,
    Leaf,
    decode_node,
    decode_reference,
    encode_node,
    exceeds_list_depth,
    is_hash_reference,
    node_reference,
)

from fixtures.chain_fixtures import nested_rlp_list


class TestNibbles:
    """Tests for nibble path helpers."""

    def test_bytes_to_nibbles(self):
        assert bytes_to_nibbles(b"\x12\xab") == (1, 2, 10, 11)
        assert bytes_to_nibbles(b"") == ()

    def test_nibbles_round_trip(self):
        data = bytes(range(0, 256, 17))
        assert nibbles_to_bytes(bytes_to_nibbles(data)) == data

    def test_odd_nibbles_cannot_be_packed(self):
        with pytest.raises(ValueError, match="odd-length"):
            nibbles_to_bytes((1, 2, 3))

    def test_common_prefix_length(self):
        assert common_prefix_length((1, 2, 3), (1, 2, 4)) == 2
        assert common_prefix_length((1, 2), (1, 2, 3)) == 2
        assert common_prefix_length((5,), (6,)) == 0
        assert common_prefix_length((), (1,)) == 0

    def test_is_prefix(self):
        assert is_prefix((), (1, 2))
        assert is_prefix((1,), (1, 2))
        assert is_prefix((1, 2), (1, 2))
        assert not is_prefix((1, 2, 3), (1, 2))
        assert not is_prefix((2,), (1, 2))


class TestHexPrefix:
    """Tests for compact path encoding."""

    def test_extension_even(self):
        assert hex_prefix_encode((1, 2, 3, 4), is_leaf=False) == bytes.fromhex("001234")

    def test_extension_odd(self):
        assert hex_prefix_encode((1, 2, 3), is_leaf=False) == bytes.fromhex("1123")

    def test_leaf_even(self):
        assert hex_prefix_encode((0, 15, 1, 12, 11, 8), is_leaf=True) == bytes.fromhex("200f1cb8")

    def test_leaf_odd(self):
        assert hex_prefix_encode((15, 1, 12, 11, 8), is_leaf=True) == bytes.fromhex("3f1cb8")

    def test_empty_leaf_path(self):
        assert hex_prefix_encode((), is_leaf=True) == b"\x20"

    @pytest.mark.parametrize("path", [(), (7,), (1, 2), (0, 0, 0), (15, 14, 13, 12)])
    @pytest.mark.parametrize("is_leaf", [True, False])
    def test_decode_inverts_encode(self, path, is_leaf):
        assert hex_prefix_decode(hex_prefix_encode(path, is_leaf)) == (path, is_leaf)

    def test_decode_rejects_empty(self):
        with pytest.raises(ValueError, match="empty"):
            hex_prefix_decode(b"")

    def test_decode_rejects_unknown_flag(self):
        with pytest.raises(ValueError, match="flag"):
            hex_prefix_decode(b"\x41")

    def test_decode_rejects_nonzero_pad(self):
        with pytest.raises(ValueError, match="pad"):
            hex_prefix_decode(b"\x21\x23")


class TestNodeCodec:
    """Tests for encode_node / decode_node."""

    def test_empty_trie_root_constant(self):
        assert EMPTY_TRIE_ROOT.hex() == (
            "56e81f171bcc55a6ff8345e692c0f86e5b48e01b996cadc001622fb5e363b421"
        )

    def test_leaf_encoding(self):
        leaf = Leaf(path=(1, 2, 3), value=b"abc")
        assert encode_node(leaf) == rlp.encode([bytes.fromhex("3123"), b"abc"])

    def test_leaf_round_trip(self):
        leaf = Leaf(path=(4, 5), value=b"v" * 40)
        assert decode_node(encode_node(leaf)) == leaf

    def test_extension_with_hash_child_round_trip(self):
        child = keccak256(b"child")
        ext = Extension(path=(8, 0), child=child)
        assert decode_node(encode_node(ext)) == ext

    def test_extension_with_embedded_child_round_trip(self):
        child_encoding = encode_node(Leaf(path=(1,), value=b"x"))
        assert len(child_encoding) < 32
        ext = Extension(path=(3,), child=child_encoding)

        decoded = decode_node(encode_node(ext))

        assert decoded == ext
        assert decode_reference(decoded.child) == Leaf(path=(1,), value=b"x")

    def test_embedded_child_is_spliced_as_structure(self):
        """An embedded child appears as a nested list, not a byte string."""
        child_encoding = encode_node(Leaf(path=(1,), value=b"x"))
        ext = Extension(path=(3,), child=child_encoding)
        items = rlp.decode(encode_node(ext))
        assert isinstance(items[1], (list, tuple))

    def test_branch_round_trip(self):
        children = [None] * BRANCH_WIDTH
        children[0] = keccak256(b"a")
        children[9] = encode_node(Leaf(path=(), value=b"small"))
        branch = Branch(children=tuple(children), value=b"val")
        assert decode_node(encode_node(branch)) == branch

    def test_branch_without_value(self):
        children = (keccak256(b"a"),) + (None,) * (BRANCH_WIDTH - 1)
        branch = Branch(children=children)
        decoded = decode_node(encode_node(branch))
        assert decoded.value is None

    def test_branch_requires_sixteen_children(self):
        with pytest.raises(ValueError, match="16"):
            Branch(children=(None,) * 15)


class TestReferences:
    """Tests for child reference rules."""

    def test_short_encoding_is_embedded(self):
        encoding = encode_node(Leaf(path=(1,), value=b"x"))
        assert node_reference(encoding) == encoding
        assert not is_hash_reference(node_reference(encoding))

    def test_long_encoding_is_hashed(self):
        encoding = encode_node(Leaf(path=(1,), value=b"x" * 40))
        assert node_reference(encoding) == keccak256(encoding)
        assert is_hash_reference(node_reference(encoding))

    def test_hash_reference_cannot_be_decoded_inline(self):
        with pytest.raises(NodeDecodingError):
            decode_reference(keccak256(b"x"))


class TestDecodeRejectsMalformed:
    """decode_node raises NodeDecodingError, never anything else."""

    @pytest.mark.parametrize(
        "encoding",
        [
            b"",
            b"\xff",
            b"\xc1",
            rlp.encode(b"not a list"),
            rlp.encode([b"a", b"b", b"c"]),
            rlp.encode([b"", b"value"]),
            rlp.encode([b"\x00", keccak256(b"x")]),
            rlp.encode([b"\x11", b"short"]),
            rlp.encode([b"\x20", [b"nested"]]),
            rlp.encode([b"\x40", b"value"]),
            rlp.encode([b"\x00\x12", b"x" * 31]),
            rlp.encode([b"abc"] * 17),
            rlp.encode([b""] * 16 + [[b"x"]]),
            rlp.encode([b"\x20", b"v"]) + b"\x00",
        ],
    )
    def test_malformed(self, encoding):
        with pytest.raises(NodeDecodingError):
            decode_node(encoding)

    def test_oversized_embedded_child_rejected(self):
        big = [b"\x20", b"v" * 40]
        encoding = rlp.encode([b"\x13", big])
        with pytest.raises(NodeDecodingError, match="fewer than 32"):
            decode_node(encoding)

    def test_non_bytes_input(self):
        with pytest.raises(NodeDecodingError):
            decode_node("not bytes")

    def test_deeply_nested_lists(self):
        with pytest.raises(NodeDecodingError, match="deeper"):
            decode_node(nested_rlp_list(5000))


class TestListDepth:
    """exceeds_list_depth scans without decoding."""

    def test_flat_node(self):
        assert not exceeds_list_depth(encode_node(Leaf(path=(1, 2), value=b"v")), limit=1)

    def test_limit_is_inclusive(self):
        encoding = rlp.encode([[[b""]]])
        assert not exceeds_list_depth(encoding, limit=3)
        assert exceeds_list_depth(encoding, limit=2)

    def test_sibling_lists_do_not_accumulate(self):
        encoding = rlp.encode([[b"a"], [b"b"], [b"c"]])
        assert not exceeds_list_depth(encoding, limit=2)

    def test_long_string_payload_is_skipped(self):
        encoding = rlp.encode([b"\xc0" * 100])
        assert not exceeds_list_depth(encoding, limit=1)

    def test_truncated_length_ends_scan(self):
        assert not exceeds_list_depth(b"\xf9")
        assert not exceeds_list_depth(b"\xbb\x01")

    def test_deep_input_does_not_recurse(self):
        assert exceeds_list_depth(nested_rlp_list(5000))
