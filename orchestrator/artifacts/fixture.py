"""
On-chain verifier fixtures.

A fixture is the JSON file consumed by the on-chain verifier's tests: the
decoded proof record fields, the program id, the raw public values and the
attestation digest. It also carries the program input so the run can be
re-executed when the fixture is checked.

Keys are camelCase to match the verifier contract's test harness.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.crypto.attestation import Attestation, ProvingBackend, ReexecutionBackend
from core.crypto.hashing import from_hex, keccak256, to_hex
from core.inclusion.record import decode_public_output
from core.schemas.verification import CheckResult, VerificationResult
from core.schemas.versioning import (
    FIXTURE_FORMAT_VERSION,
    FixtureFormatVersion,
    assert_supported_fixture_version,
)

from orchestrator.pipeline import PipelineResult

logger = logging.getLogger(__name__)


class FixtureIOError(Exception):
    """Error reading or writing a fixture file."""
    pass


class InclusionFixture(BaseModel):
    """Serialized result of one proving run."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    format_version: FixtureFormatVersion = Field(
        default=FIXTURE_FORMAT_VERSION, alias="formatVersion"
    )
    block_hash: str = Field(..., alias="blockHash")
    block_number: int = Field(..., alias="blockNumber", ge=0)
    transaction_hash: str = Field(..., alias="transactionHash")
    transaction_index: int = Field(..., alias="transactionIndex", ge=0)
    is_included: bool = Field(..., alias="isIncluded")
    verified_against_root: str = Field(..., alias="verifiedAgainstRoot")
    vkey: str = Field(..., description="Program id the attestation is bound to")
    public_values: str = Field(..., alias="publicValues")
    proof: str = Field(
        default="0x",
        description="Attestation digest; 0x when the run was only executed",
    )
    input: Optional[str] = Field(default=None, description="Serialized input bundle")

    @field_validator("public_values", "proof", "input")
    @classmethod
    def validate_hex(cls, v: Optional[str], info) -> Optional[str]:
        if v is None:
            return v
        from_hex(v)
        return v.lower()


def build_fixture(result: PipelineResult) -> InclusionFixture:
    """Build a fixture from a pipeline run."""
    record = result.record
    return InclusionFixture(
        block_hash=record.block_hash,
        block_number=record.block_number,
        transaction_hash=record.transaction_hash,
        transaction_index=record.transaction_index,
        is_included=record.is_included,
        verified_against_root=record.verified_against_root,
        vkey=result.program_id,
        public_values=to_hex(result.public_output),
        proof=result.attestation.digest if result.attestation else "0x",
        input=to_hex(result.input_bytes),
    )


def save_fixture(fixture: InclusionFixture, path: str | Path) -> Path:
    """Write a fixture as pretty-printed JSON, creating parent directories."""
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    data = fixture.model_dump(mode="json", by_alias=True, exclude_none=True)
    out_path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    logger.info(f"Fixture written to {out_path}")
    return out_path


def load_fixture(path: str | Path) -> InclusionFixture:
    """
    Read a fixture file.

    Raises:
        FixtureIOError: If the file is missing, not JSON, or not a fixture
        UnsupportedFixtureVersionError: If the format version is unknown
    """
    in_path = Path(path)
    if not in_path.exists():
        raise FixtureIOError(f"Fixture file not found: {in_path}")
    try:
        data = json.loads(in_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise FixtureIOError(f"Fixture {in_path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise FixtureIOError(f"Fixture {in_path} must contain a JSON object")

    assert_supported_fixture_version(data.get("formatVersion", FIXTURE_FORMAT_VERSION))
    try:
        return InclusionFixture.model_validate(data)
    except ValidationError as e:
        raise FixtureIOError(f"Fixture {in_path} is malformed: {e}") from e


def validate_fixture(
    fixture: InclusionFixture,
    backend: Optional[ProvingBackend] = None,
) -> VerificationResult:
    """
    Check a fixture for internal consistency.

    The public values must decode to exactly the stated record fields. If
    the fixture carries its input and an attestation digest, the attestation
    is checked with the backend, which re-executes the program.
    """
    checks: list[CheckResult] = []

    try:
        record = decode_public_output(from_hex(fixture.public_values))
    except ValueError as e:
        checks.append(CheckResult.failed("public_values_decode", f"Cannot decode public values: {e}"))
        return VerificationResult.from_checks(checks)
    checks.append(CheckResult.passed("public_values_decode", "Public values decode"))

    stated = {
        "block_hash": fixture.block_hash.lower(),
        "block_number": fixture.block_number,
        "transaction_hash": fixture.transaction_hash.lower(),
        "transaction_index": fixture.transaction_index,
        "is_included": fixture.is_included,
        "verified_against_root": fixture.verified_against_root.lower(),
    }
    mismatched = [name for name, value in stated.items() if getattr(record, name) != value]
    if mismatched:
        checks.append(CheckResult.failed(
            "fields_match_public_values",
            f"Fields differ from public values: {', '.join(mismatched)}",
            details={"fields": mismatched},
        ))
    else:
        checks.append(CheckResult.passed("fields_match_public_values", "Fields match public values"))

    if fixture.proof == "0x":
        checks.append(CheckResult.warning("attestation", "Fixture has no attestation (execute mode)"))
    elif fixture.input is None:
        checks.append(CheckResult.warning("attestation", "Fixture has no input; attestation not re-checked"))
    else:
        backend = backend or ReexecutionBackend()
        input_bytes = from_hex(fixture.input)
        public_output = from_hex(fixture.public_values)
        try:
            attestation = Attestation(
                backend=getattr(backend, "name", "unknown"),
                program_id=fixture.vkey,
                input_digest=to_hex(keccak256(input_bytes)),
                output_digest=to_hex(keccak256(public_output)),
                digest=fixture.proof,
            )
        except ValidationError as e:
            checks.append(CheckResult.failed("attestation", f"Malformed attestation fields: {e}"))
            return VerificationResult.from_checks(checks)
        if backend.verify(attestation, input_bytes, public_output):
            checks.append(CheckResult.passed("attestation", "Attestation verified by re-execution"))
        else:
            checks.append(CheckResult.failed("attestation", "Attestation does not verify"))

    return VerificationResult.from_checks(checks)
