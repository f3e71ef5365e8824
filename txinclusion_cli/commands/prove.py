"""
CLI Prove Command

Generate and check an inclusion proof for one transaction, optionally
writing an on-chain verifier fixture.

Usage:
    txinclusion prove --tx 0x... [--mode execute|prove] [--out fixture.json] [--json]
    txinclusion prove --block N --index I [--save]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from core.config import RuntimeConfig
from core.crypto.hashing import to_hex
from core.schemas.errors import InclusionException
from orchestrator.artifacts.fixture import build_fixture, save_fixture
from orchestrator.pipeline import InclusionPipeline, PipelineResult


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


@dataclass
class ProveSummary:
    """Summary of a proving run for CLI output."""
    block_hash: str = ""
    block_number: int = 0
    transaction_hash: str = ""
    transaction_index: int = 0
    is_included: bool = False
    verified_against_root: str = ""
    root_matches_header: bool = True
    proof_nodes: int = 0
    mode: str = ""
    program_id: str = ""
    attestation: str | None = None
    saved_to: str | None = None
    ok: bool = False
    checks: list[dict[str, Any]] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        for key in ("attestation", "saved_to"):
            if d[key] is None:
                del d[key]
        if not d["checks"]:
            del d["checks"]
        if not d["errors"]:
            del d["errors"]
        return d


def build_pipeline(config: RuntimeConfig) -> InclusionPipeline:
    """Create the pipeline used by the command."""
    return InclusionPipeline.from_config(config)


def build_summary(result: PipelineResult, debug: bool = False) -> ProveSummary:
    record = result.record
    summary = ProveSummary(
        block_hash=record.block_hash,
        block_number=record.block_number,
        transaction_hash=record.transaction_hash,
        transaction_index=record.transaction_index,
        is_included=record.is_included,
        verified_against_root=record.verified_against_root,
        root_matches_header=result.generated.root_matches_header,
        proof_nodes=len(result.generated.proof),
        mode=result.mode.value,
        program_id=result.program_id,
        attestation=result.attestation.digest if result.attestation else None,
        ok=result.ok,
    )
    for check in result.checks:
        if not check.ok:
            summary.errors.append(check.message)
    if debug:
        summary.checks = [
            {"check_id": c.check_id, "ok": c.ok, "severity": c.severity, "message": c.message}
            for c in result.checks
        ]
    return summary


def print_summary_human(summary: ProveSummary) -> None:
    """Print summary in human-readable format."""
    print(f"block_number: {summary.block_number}")
    print(f"block_hash: {summary.block_hash}")
    print(f"transaction_index: {summary.transaction_index}")
    print(f"transaction_hash: {summary.transaction_hash}")
    print(f"is_included: {str(summary.is_included).lower()}")
    print(f"verified_against_root: {summary.verified_against_root}")
    print(f"root_matches_header: {str(summary.root_matches_header).lower()}")
    print(f"proof_nodes: {summary.proof_nodes}")
    print(f"mode: {summary.mode}")
    print(f"program_id: {summary.program_id}")
    if summary.attestation:
        print(f"attestation: {summary.attestation}")
    if summary.saved_to:
        print(f"saved_to: {summary.saved_to}")

    if summary.errors:
        print(f"\nerrors ({len(summary.errors)}):")
        for err in summary.errors:
            print(f"  ✗ {err}")

    if summary.checks:
        print("\nchecks:")
        for check in summary.checks:
            status = "✓" if check["ok"] else "✗"
            print(f"  {status} {check['check_id']}: {check['message']}")


def fixture_path(args: Namespace, config: RuntimeConfig, result: PipelineResult) -> Path | None:
    """Where to write the fixture: --out wins, --save uses the output directory."""
    if args.out:
        return Path(args.out)
    if getattr(args, "save", False):
        name = f"block-{result.block_number}-tx-{result.transaction_index}.json"
        return Path(config.pipeline.output_dir) / name
    return None


def prove_cmd(args: Namespace) -> int:
    """
    Execute the prove command.

    Returns:
        Exit code
    """
    config: RuntimeConfig = args.runtime_config
    if args.strict_root_check:
        config.pipeline.strict_root_check = True

    if args.tx is None and (args.block is None or args.index is None):
        print("Error: provide --tx HASH or both --block and --index", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    pipeline = build_pipeline(config)
    try:
        if args.tx is not None:
            result = pipeline.run(args.tx, mode=args.mode)
        else:
            result = pipeline.run_for_index(args.block, args.index, mode=args.mode)
    except InclusionException as e:
        if args.debug:
            raise
        if args.json:
            print(json.dumps({"ok": False, "error": e.to_error_model().model_dump()}, indent=2))
        else:
            print(f"Error [{e.code}]: {e.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    finally:
        pipeline.close()

    summary = build_summary(result, debug=args.debug)

    out_path = fixture_path(args, config, result)
    if out_path is not None:
        summary.saved_to = str(save_fixture(build_fixture(result), out_path))

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print_summary_human(summary)

    if result.ok:
        logger.info(f"Proof complete, root {to_hex(result.generated.computed_root)}")
        return EXIT_SUCCESS
    logger.warning("Transaction inclusion was not confirmed")
    return EXIT_VERIFICATION_FAILED
