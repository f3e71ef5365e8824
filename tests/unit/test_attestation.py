"""
Attestation and proving backend tests.
Tests for core/crypto/attestation.py
"""
import pytest

from core.crypto.attestation import (
    DEFAULT_PROGRAM,
    Attestation,
    ProgramDescriptor,
    ProvingBackend,
    ReexecutionBackend,
    attestation_digest,
)
from core.crypto.hashing import from_hex, hash_canonical, keccak256, to_hex
from core.inclusion.bundle import encode_input_bundle
from core.inclusion.generator import generate_inclusion_proof
from core.inclusion.program import run_inclusion_program
from core.schemas.errors import InputDeserializationError


@pytest.fixture
def input_bytes(three_tx_block):
    header, transactions = three_tx_block
    generated = generate_inclusion_proof(header, transactions, 0)
    return encode_input_bundle(generated.to_input_bundle(header))


class TestProgramDescriptor:
    """Program identity."""

    def test_program_id_is_hash_of_descriptor(self):
        descriptor = ProgramDescriptor(name="p", version="v1")
        assert descriptor.program_id == to_hex(hash_canonical({"name": "p", "version": "v1"}))

    def test_version_changes_id(self):
        assert (
            ProgramDescriptor(name="p", version="v1").program_id
            != ProgramDescriptor(name="p", version="v2").program_id
        )

    def test_default_program(self):
        assert DEFAULT_PROGRAM.name == "tx-inclusion-precise-index"
        assert len(from_hex(DEFAULT_PROGRAM.program_id)) == 32

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            ProgramDescriptor(name="", version="v1")


class TestReexecutionBackend:
    """Execute, prove and verify."""

    def test_execute(self, input_bytes):
        report = ReexecutionBackend().execute(input_bytes)
        assert report.public_output == run_inclusion_program(input_bytes)
        assert report.input_size == len(input_bytes)
        assert report.program_id == DEFAULT_PROGRAM.program_id

    def test_prove_digest(self, input_bytes):
        backend = ReexecutionBackend()
        attestation, output = backend.prove(input_bytes)

        assert attestation.backend == "reexecution"
        assert attestation.input_digest == to_hex(keccak256(input_bytes))
        assert attestation.output_digest == to_hex(keccak256(output))
        expected = keccak256(
            from_hex(backend.program_id()) + keccak256(input_bytes) + keccak256(output)
        )
        assert attestation.digest == to_hex(expected)

    def test_prove_is_deterministic(self, input_bytes):
        backend = ReexecutionBackend()
        assert backend.prove(input_bytes) == backend.prove(input_bytes)

    def test_verify_accepts_own_attestation(self, input_bytes):
        backend = ReexecutionBackend()
        attestation, output = backend.prove(input_bytes)
        assert backend.verify(attestation, input_bytes, output)

    def test_verify_rejects_changed_output(self, input_bytes):
        backend = ReexecutionBackend()
        attestation, output = backend.prove(input_bytes)
        tampered = output[:-1] + bytes([output[-1] ^ 1])
        assert not backend.verify(attestation, input_bytes, tampered)

    def test_verify_rejects_other_program(self, input_bytes):
        attestation, output = ReexecutionBackend().prove(input_bytes)
        other = ReexecutionBackend(program=ProgramDescriptor(name="other", version="v1"))
        assert not other.verify(attestation, input_bytes, output)

    def test_verify_rejects_forged_digest_consistent_output(self, input_bytes):
        """Digest recomputed over a fake output still fails re-execution."""
        backend = ReexecutionBackend()
        fake_output = b"\x00" * 192
        program_id = backend.program_id()
        forged = Attestation(
            backend=backend.name,
            program_id=program_id,
            input_digest=to_hex(keccak256(input_bytes)),
            output_digest=to_hex(keccak256(fake_output)),
            digest=attestation_digest(program_id, input_bytes, fake_output),
        )
        assert not backend.verify(forged, input_bytes, fake_output)

    def test_verify_rejects_undecodable_input(self):
        backend = ReexecutionBackend()
        bad_input = b"\x01"
        output = b"\x00" * 192
        program_id = backend.program_id()
        attestation = Attestation(
            backend=backend.name,
            program_id=program_id,
            input_digest=to_hex(keccak256(bad_input)),
            output_digest=to_hex(keccak256(output)),
            digest=attestation_digest(program_id, bad_input, output),
        )
        assert not backend.verify(attestation, bad_input, output)

    def test_prove_propagates_program_errors(self):
        with pytest.raises(InputDeserializationError):
            ReexecutionBackend().prove(b"\x01")

    def test_custom_runner(self):
        backend = ReexecutionBackend(runner=lambda data: data[::-1])
        assert backend.execute(b"abc").public_output == b"cba"


class TestAttestationModel:
    def test_rejects_short_digest(self):
        with pytest.raises(ValueError):
            Attestation(
                backend="x",
                program_id="0x" + "00" * 32,
                input_digest="0x" + "00" * 32,
                output_digest="0x" + "00" * 32,
                digest="0x1234",
            )

    def test_base_backend_is_abstract(self):
        with pytest.raises(NotImplementedError):
            ProvingBackend().execute(b"")
