"""
Transaction inclusion: host-side proof generation and the verification
program that checks it.

Host:
    generated = generate_inclusion_proof(header, transactions, index)
    input_bytes = encode_input_bundle(generated.to_input_bundle(header))

Verification program:
    public_output = run_inclusion_program(input_bytes)
    record = decode_public_output(public_output)
"""
from .bundle import InputBundle, decode_input_bundle, encode_input_bundle
from .generator import GeneratedProof, generate_inclusion_proof
from .program import assert_inclusion, run_inclusion_program
from .record import (
    PUBLIC_OUTPUT_SIZE,
    PUBLIC_OUTPUT_TYPES,
    ProofRecord,
    decode_public_output,
    encode_public_output,
)

__all__ = [
    "InputBundle",
    "encode_input_bundle",
    "decode_input_bundle",
    "GeneratedProof",
    "generate_inclusion_proof",
    "assert_inclusion",
    "run_inclusion_program",
    "PUBLIC_OUTPUT_SIZE",
    "PUBLIC_OUTPUT_TYPES",
    "ProofRecord",
    "encode_public_output",
    "decode_public_output",
]
