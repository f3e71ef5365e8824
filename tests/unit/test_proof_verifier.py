"""
Proof Verifier Unit Tests
Tests for core/trie/proof.py

Tests:
1. Completeness - every index of small and large blocks verifies
2. Soundness - tampered nodes, wrong values and wrong keys fail
3. Absence - divergent paths prove a key is absent
4. Structure - truncated and over-long proofs fail
5. Totality - garbage input yields a failed result, never an exception
"""
import random

import pytest
import rlp

from core.chain.keys import transaction_key_nibbles
from core.crypto.hashing import keccak256
from core.trie.builder import ProofRetainer, TrieBuilder
from core.trie.nodes import EMPTY_TRIE_ROOT, Leaf, encode_node
from core.trie.proof import ProofVerification, verify_proof

from fixtures.chain_fixtures import make_transactions, nested_rlp_list


def _build(encodings, targets):
    builder = TrieBuilder(ProofRetainer(targets))
    for position, encoding in enumerate(encodings):
        builder.add_leaf(transaction_key_nibbles(position), encoding)
    root = builder.root()
    return root, builder.take_proof_nodes()


@pytest.fixture
def three_encodings():
    return [tx.encode() for tx in make_transactions(3)]


@pytest.fixture
def three_tx_trie(three_encodings):
    targets = [transaction_key_nibbles(i) for i in range(4)]
    root, nodes = _build(three_encodings, targets)
    return root, nodes, three_encodings


class TestCompleteness:
    """Honest proofs always verify."""

    def test_all_indices_of_three_tx_block(self, three_tx_trie):
        root, nodes, encodings = three_tx_trie
        for index, encoding in enumerate(encodings):
            key = transaction_key_nibbles(index)
            result = verify_proof(root, key, encoding, nodes.for_key(key))
            assert result.ok, result.reason
            assert result.included
            assert result.value == encoding

    def test_all_indices_of_large_block(self):
        encodings = [tx.encode() for tx in make_transactions(300)]
        targets = [transaction_key_nibbles(i) for i in range(300)]
        root, nodes = _build(encodings, targets)

        for index in range(300):
            key = transaction_key_nibbles(index)
            result = verify_proof(root, key, encodings[index], nodes.for_key(key))
            assert result.included, f"index {index}: {result.reason}"

    def test_large_block_proofs_are_multi_level(self):
        encodings = [tx.encode() for tx in make_transactions(300)]
        key = transaction_key_nibbles(200)
        _, nodes = _build(encodings, [key])
        assert len(nodes.for_key(key)) >= 3

    def test_single_transaction_block(self):
        encoding = make_transactions(1)[0].encode()
        key = transaction_key_nibbles(0)
        root, nodes = _build([encoding], [key])

        proof = nodes.for_key(key)

        assert len(proof) == 1
        assert verify_proof(root, key, encoding, proof).included

    def test_result_is_truthy_when_ok(self, three_tx_trie):
        root, nodes, encodings = three_tx_trie
        key = transaction_key_nibbles(0)
        assert verify_proof(root, key, encodings[0], nodes.for_key(key))


class TestSoundness:
    """Modified claims or proofs do not verify."""

    def test_every_byte_flip_fails(self, three_tx_trie):
        root, nodes, encodings = three_tx_trie
        key = transaction_key_nibbles(1)
        proof = nodes.for_key(key)

        for node_index, node in enumerate(proof):
            for offset in range(len(node)):
                tampered_node = bytearray(node)
                tampered_node[offset] ^= 0x01
                tampered = list(proof)
                tampered[node_index] = bytes(tampered_node)

                result = verify_proof(root, key, encodings[1], tampered)

                assert not result.included, f"node {node_index} offset {offset}"
                assert not result.ok

    def test_other_transaction_value_fails(self, three_tx_trie):
        root, nodes, encodings = three_tx_trie
        key = transaction_key_nibbles(1)

        result = verify_proof(root, key, encodings[2], nodes.for_key(key))

        assert not result.ok
        assert result.value == encodings[1]
        assert "does not match" in result.reason

    def test_proof_under_another_key_fails(self, three_tx_trie):
        root, nodes, encodings = three_tx_trie
        proof = nodes.for_key(transaction_key_nibbles(1))

        result = verify_proof(root, transaction_key_nibbles(2), encodings[1], proof)

        assert not result.included

    def test_wrong_root_fails(self, three_tx_trie):
        _, nodes, encodings = three_tx_trie
        key = transaction_key_nibbles(0)

        result = verify_proof(keccak256(b"other"), key, encodings[0], nodes.for_key(key))

        assert not result.ok
        assert "root" in result.reason

    def test_present_key_claimed_absent_fails(self, three_tx_trie):
        root, nodes, _ = three_tx_trie
        key = transaction_key_nibbles(0)
        result = verify_proof(root, key, None, nodes.for_key(key))
        assert not result.ok


class TestAbsence:
    """Proofs of absence."""

    def test_index_past_end_is_absent(self, three_tx_trie):
        root, nodes, _ = three_tx_trie
        key = transaction_key_nibbles(3)

        result = verify_proof(root, key, None, nodes.for_key(key))

        assert result.ok, result.reason
        assert not result.included

    def test_absent_key_with_claimed_value_fails(self, three_tx_trie):
        root, nodes, encodings = three_tx_trie
        key = transaction_key_nibbles(3)

        result = verify_proof(root, key, encodings[0], nodes.for_key(key))

        assert not result.ok
        assert not result.included

    def test_empty_proof_against_empty_root(self):
        key = transaction_key_nibbles(0)
        result = verify_proof(EMPTY_TRIE_ROOT, key, None, [])
        assert result.ok
        assert not result.included

    def test_empty_proof_claiming_value_against_empty_root(self):
        result = verify_proof(EMPTY_TRIE_ROOT, transaction_key_nibbles(0), b"tx", [])
        assert not result.ok

    def test_empty_proof_against_non_empty_root(self, three_tx_trie):
        root, _, encodings = three_tx_trie
        result = verify_proof(root, transaction_key_nibbles(0), encodings[0], [])
        assert not result.ok
        assert "empty" in result.reason


class TestProofStructure:
    """Proofs must contain exactly the nodes on the path."""

    def test_truncated_proof_fails(self, three_tx_trie):
        root, nodes, encodings = three_tx_trie
        key = transaction_key_nibbles(1)
        proof = nodes.for_key(key)
        assert len(proof) > 1

        result = verify_proof(root, key, encodings[1], proof[:-1])

        assert not result.ok
        assert "truncated" in result.reason

    def test_extra_trailing_node_fails(self, three_tx_trie):
        root, nodes, encodings = three_tx_trie
        key = transaction_key_nibbles(1)
        proof = nodes.for_key(key) + (b"\xc0",)

        result = verify_proof(root, key, encodings[1], proof)

        assert not result.ok
        assert "trailing" in result.reason

    def test_reordered_proof_fails(self, three_tx_trie):
        root, nodes, encodings = three_tx_trie
        key = transaction_key_nibbles(1)
        proof = tuple(reversed(nodes.for_key(key)))

        assert not verify_proof(root, key, encodings[1], proof).ok


class TestTotality:
    """verify_proof returns a result for any input."""

    def test_random_garbage_proofs(self, three_tx_trie):
        root, _, encodings = three_tx_trie
        rng = random.Random(1234)
        key = transaction_key_nibbles(1)

        for _ in range(200):
            proof = [
                bytes(rng.getrandbits(8) for _ in range(rng.randint(0, 80)))
                for _ in range(rng.randint(1, 4))
            ]
            result = verify_proof(root, key, encodings[1], proof)
            assert isinstance(result, ProofVerification)
            assert not result.ok

    def test_malformed_node_hashing_to_root(self):
        garbage = b"\xf8\xff\x00\x01"
        result = verify_proof(keccak256(garbage), transaction_key_nibbles(0), b"x", [garbage])
        assert not result.ok
        assert "Malformed" in result.reason

    def test_deeply_nested_node_hashing_to_root(self):
        node = nested_rlp_list(5000)
        result = verify_proof(keccak256(node), transaction_key_nibbles(0), b"x", [node])
        assert not result.ok
        assert "deeper" in result.reason

    def test_undecodable_node_with_valid_hash_link(self):
        """A structurally valid RLP list that is not a trie node."""
        node = rlp.encode([b"a", b"b", b"c"])
        result = verify_proof(keccak256(node), transaction_key_nibbles(0), b"x", [node])
        assert not result.ok

    @pytest.mark.parametrize("root", [b"", b"\x00" * 31, "not bytes", None])
    def test_bad_root(self, root):
        assert not verify_proof(root, (8, 0), b"x", [b"\xc0"]).ok

    def test_key_outside_nibble_range(self):
        assert not verify_proof(EMPTY_TRIE_ROOT, (8, 16), None, []).ok

    def test_non_bytes_proof_node(self):
        assert not verify_proof(EMPTY_TRIE_ROOT, (8, 0), None, ["node"]).ok

    def test_embedded_leaf_root(self):
        """A root leaf shorter than 32 bytes is still referenced by hash."""
        leaf = encode_node(Leaf(path=(8, 0), value=b"t"))
        assert len(leaf) < 32
        result = verify_proof(keccak256(leaf), (8, 0), b"t", [leaf])
        assert result.included
