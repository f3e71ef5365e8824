"""
Program identity, attestations and the proving backend interface.

An attestation binds three things: the identity of the program that ran,
the exact input bytes, and the exact public output. The backend shipped
here attests by deterministic re-execution:

    program_id = keccak256(canonical JSON of the ProgramDescriptor)
    digest     = keccak256(program_id || keccak256(input) || keccak256(output))

Verification re-runs the program on the input and recomputes the digest.
Succinct proving systems plug in behind the same ProvingBackend interface.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.crypto.hashing import from_hex, hash_canonical, keccak256, to_hex
from core.inclusion.program import run_inclusion_program
from core.schemas.errors import InclusionException
from core.schemas.versioning import PROGRAM_NAME, PROGRAM_VERSION

logger = logging.getLogger(__name__)


class ProgramDescriptor(BaseModel):
    """Identity of a verification program (the analogue of a verifying key)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., min_length=1)
    version: str = Field(..., min_length=1)

    @property
    def program_id(self) -> str:
        return to_hex(hash_canonical(self.model_dump()))


DEFAULT_PROGRAM = ProgramDescriptor(name=PROGRAM_NAME, version=PROGRAM_VERSION)


class Attestation(BaseModel):
    """Statement that a program run on an input produced an output."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: Literal["v1"] = "v1"
    backend: str
    program_id: str
    input_digest: str
    output_digest: str
    digest: str

    @field_validator("program_id", "input_digest", "output_digest", "digest")
    @classmethod
    def validate_digest(cls, v: str, info) -> str:
        if len(from_hex(v)) != 32:
            raise ValueError(f"{info.field_name} must be 32 bytes")
        return v.lower()


@dataclass(frozen=True)
class ExecutionReport:
    """Result of running the program without producing an attestation."""
    program_id: str
    public_output: bytes
    input_size: int


def attestation_digest(program_id: str, input_bytes: bytes, public_output: bytes) -> str:
    return to_hex(
        keccak256(from_hex(program_id) + keccak256(input_bytes) + keccak256(public_output))
    )


class ProvingBackend:
    """Interface for running, attesting and checking the verification program."""

    name = "abstract"

    def program_id(self) -> str:
        raise NotImplementedError

    def execute(self, input_bytes: bytes) -> ExecutionReport:
        raise NotImplementedError

    def prove(self, input_bytes: bytes) -> tuple[Attestation, bytes]:
        raise NotImplementedError

    def verify(self, attestation: Attestation, input_bytes: bytes, public_output: bytes) -> bool:
        raise NotImplementedError


class ReexecutionBackend(ProvingBackend):
    """
    Attests by deterministic local re-execution.

    Same input always yields the same public output and the same digest.
    Program errors (an undecodable bundle) propagate from execute and prove.
    """

    name = "reexecution"

    def __init__(
        self,
        program: ProgramDescriptor = DEFAULT_PROGRAM,
        runner: Callable[[bytes], bytes] = run_inclusion_program,
    ) -> None:
        self.program = program
        self._runner = runner

    def program_id(self) -> str:
        return self.program.program_id

    def execute(self, input_bytes: bytes) -> ExecutionReport:
        public_output = self._runner(input_bytes)
        logger.debug(f"Executed {self.program.name} on {len(input_bytes)} input bytes")
        return ExecutionReport(
            program_id=self.program_id(),
            public_output=public_output,
            input_size=len(input_bytes),
        )

    def prove(self, input_bytes: bytes) -> tuple[Attestation, bytes]:
        public_output = self.execute(input_bytes).public_output
        program_id = self.program_id()
        attestation = Attestation(
            backend=self.name,
            program_id=program_id,
            input_digest=to_hex(keccak256(input_bytes)),
            output_digest=to_hex(keccak256(public_output)),
            digest=attestation_digest(program_id, input_bytes, public_output),
        )
        logger.info(f"Attested {self.program.name} run, digest {attestation.digest}")
        return attestation, public_output

    def verify(self, attestation: Attestation, input_bytes: bytes, public_output: bytes) -> bool:
        if attestation.program_id != self.program_id():
            logger.debug("Attestation is for a different program")
            return False
        if attestation.input_digest != to_hex(keccak256(input_bytes)):
            return False
        if attestation.output_digest != to_hex(keccak256(public_output)):
            return False
        if attestation.digest != attestation_digest(attestation.program_id, input_bytes, public_output):
            return False
        try:
            rerun = self._runner(input_bytes)
        except InclusionException as e:
            logger.debug(f"Re-execution failed: {e.message}")
            return False
        return rerun == public_output


__all__ = [
    "ProgramDescriptor",
    "DEFAULT_PROGRAM",
    "Attestation",
    "ExecutionReport",
    "attestation_digest",
    "ProvingBackend",
    "ReexecutionBackend",
]
