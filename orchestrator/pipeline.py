"""
Inclusion Pipeline

In-process runner composing retrieval, proof generation and the
verification program:

    locate -> fetch block -> generate proof -> bundle -> execute/prove
           -> decode public output

Host errors (retrieval, encoding, index range) propagate to the caller.
A transaction that the program reports as not included is a normal result
with ok=False, not an exception.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from core.chain.provider import ChainDataProvider, JsonRpcChainProvider
from core.config.runtime import RuntimeConfig
from core.crypto.attestation import Attestation, ProvingBackend, ReexecutionBackend
from core.crypto.hashing import to_hex
from core.http import HttpClient
from core.inclusion.bundle import encode_input_bundle
from core.inclusion.generator import GeneratedProof, generate_inclusion_proof
from core.inclusion.record import ProofRecord, decode_public_output
from core.schemas.verification import CheckResult


logger = logging.getLogger(__name__)

# Backends selectable by name from configuration
BACKENDS: dict[str, type[ProvingBackend]] = {
    ReexecutionBackend.name: ReexecutionBackend,
}


def create_backend(name: str) -> ProvingBackend:
    """
    Instantiate a proving backend by its configured name.

    Raises:
        ValueError: If no backend is registered under name
    """
    try:
        return BACKENDS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown proving backend {name!r}; available: {sorted(BACKENDS)}"
        ) from None


class ProverMode(str, Enum):
    """How the verification program is run."""
    EXECUTE = "execute"  # Run only, no attestation
    PROVE = "prove"  # Run and attest


# =============================================================================
# Run Result
# =============================================================================

@dataclass
class PipelineResult:
    """Complete result of one pipeline run."""
    block_number: int
    transaction_index: int
    mode: ProverMode
    program_id: str
    generated: GeneratedProof
    input_bytes: bytes
    public_output: bytes
    record: ProofRecord
    attestation: Optional[Attestation] = None
    tx_hash: Optional[str] = None
    checks: list[CheckResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(check.ok for check in self.checks)

    @property
    def is_included(self) -> bool:
        return self.record.is_included

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "mode": self.mode.value,
            "program_id": self.program_id,
            "block_hash": self.record.block_hash,
            "block_number": self.record.block_number,
            "transaction_hash": self.record.transaction_hash,
            "transaction_index": self.record.transaction_index,
            "is_included": self.record.is_included,
            "verified_against_root": self.record.verified_against_root,
            "computed_root": to_hex(self.generated.computed_root),
            "root_matches_header": self.generated.root_matches_header,
            "proof_nodes": len(self.generated.proof),
            "attestation": self.attestation.model_dump() if self.attestation else None,
            "checks": [check.model_dump() for check in self.checks],
        }


# =============================================================================
# Pipeline Class
# =============================================================================

class InclusionPipeline:
    """
    Main pipeline runner.

    Usage:
        pipeline = InclusionPipeline.from_config(RuntimeConfig.from_env())
        result = pipeline.run(tx_hash, mode=ProverMode.PROVE)
    """

    def __init__(
        self,
        provider: ChainDataProvider,
        backend: Optional[ProvingBackend] = None,
        *,
        config: Optional[RuntimeConfig] = None,
    ) -> None:
        self.provider = provider
        self.backend = backend or ReexecutionBackend()
        self.config = config or RuntimeConfig()

    @classmethod
    def from_config(cls, config: RuntimeConfig) -> "InclusionPipeline":
        """Build a pipeline with the JSON-RPC provider and backend named in config."""
        http = HttpClient(
            timeout=config.http.timeout,
            default_headers={"User-Agent": config.http.user_agent},
            proxy=config.proxy,
        )
        provider = JsonRpcChainProvider(config.rpc.url, http_client=http)
        return cls(provider, create_backend(config.prover.backend), config=config)

    def close(self) -> None:
        """Release the provider's connections, if it holds any."""
        close = getattr(self.provider, "close", None)
        if callable(close):
            close()

    def _resolve_mode(self, mode: Optional[ProverMode | str]) -> ProverMode:
        return ProverMode(mode or self.config.prover.mode)

    def run(self, tx_hash: str, mode: Optional[ProverMode | str] = None) -> PipelineResult:
        """
        Prove inclusion of a transaction identified by hash.

        Raises:
            RetrievalError: If the transaction or its block cannot be fetched
        """
        logger.info(f"Locating transaction {tx_hash}")
        block_number, index = self.provider.locate_transaction(tx_hash)
        return self.run_for_index(block_number, index, mode, tx_hash=tx_hash)

    def run_for_index(
        self,
        block_number: int,
        index: int,
        mode: Optional[ProverMode | str] = None,
        *,
        tx_hash: Optional[str] = None,
    ) -> PipelineResult:
        """
        Prove inclusion of the transaction at a block position.

        Raises:
            RetrievalError: Block cannot be fetched
            NoTransactions / IndexOutOfRange / EncodingError: Generation failed
            ProofConstructionMismatch: Root mismatch with strict_root_check
        """
        run_mode = self._resolve_mode(mode)
        checks: list[CheckResult] = []

        logger.info(f"Fetching block {block_number}")
        header, transactions = self.provider.get_block(block_number)

        logger.info(f"Generating proof for index {index} of {len(transactions)} transactions")
        generated = generate_inclusion_proof(
            header,
            transactions,
            index,
            strict_root_check=self.config.pipeline.strict_root_check,
        )
        if generated.root_matches_header:
            checks.append(CheckResult.passed("root_matches_header", "Computed root matches header"))
        else:
            checks.append(CheckResult.warning(
                "root_matches_header",
                "Computed transactions root differs from header root",
                details={
                    "computed_root": to_hex(generated.computed_root),
                    "header_root": header.transactions_root,
                },
            ))

        input_bytes = encode_input_bundle(generated.to_input_bundle(header))

        attestation: Optional[Attestation] = None
        if run_mode is ProverMode.PROVE:
            logger.info(f"Proving with {self.backend.name} backend")
            attestation, public_output = self.backend.prove(input_bytes)
            if self.backend.verify(attestation, input_bytes, public_output):
                checks.append(CheckResult.passed("attestation_valid", "Attestation verified"))
            else:
                checks.append(CheckResult.failed("attestation_valid", "Attestation did not verify"))
        else:
            logger.info(f"Executing with {self.backend.name} backend")
            public_output = self.backend.execute(input_bytes).public_output

        record = decode_public_output(public_output)

        if tx_hash is not None:
            if record.transaction_hash == tx_hash.lower():
                checks.append(CheckResult.passed("transaction_hash_matches", "Proven transaction is the requested one"))
            else:
                checks.append(CheckResult.failed(
                    "transaction_hash_matches",
                    f"Proven transaction {record.transaction_hash} is not {tx_hash}",
                ))

        if record.is_included:
            checks.append(CheckResult.passed("inclusion", f"Transaction included at index {index}"))
        else:
            checks.append(CheckResult.failed("inclusion", f"Transaction not included at index {index}"))

        logger.info(
            f"Block {record.block_number} index {record.transaction_index}: "
            f"is_included={record.is_included}"
        )
        return PipelineResult(
            block_number=block_number,
            transaction_index=index,
            mode=run_mode,
            program_id=self.backend.program_id(),
            generated=generated,
            input_bytes=input_bytes,
            public_output=public_output,
            record=record,
            attestation=attestation,
            tx_hash=tx_hash,
            checks=checks,
        )
