"""
CLI Verify-Fixture Command

Check a fixture file offline: its public values must decode to its stated
fields, and when it carries an attestation and input the attestation is
re-checked by re-executing the program.

Usage:
    txinclusion verify-fixture fixture.json [--json] [--debug]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from pathlib import Path

from core.schemas.versioning import UnsupportedFixtureVersionError
from orchestrator.artifacts.fixture import FixtureIOError, load_fixture, validate_fixture


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def verify_fixture_cmd(args: Namespace) -> int:
    """
    Execute the verify-fixture command.

    Returns:
        Exit code
    """
    fixture_path = Path(args.fixture_path)

    try:
        fixture = load_fixture(fixture_path)
    except (FixtureIOError, UnsupportedFixtureVersionError) as e:
        print(f"Error loading fixture: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    logger.info(f"Validating fixture {fixture_path}")
    result = validate_fixture(fixture)

    if args.json:
        report = {
            "fixture": str(fixture_path),
            "ok": result.ok,
            "is_included": fixture.is_included,
            "checks": [check.model_dump() for check in result.checks],
        }
        print(json.dumps(report, indent=2))
    else:
        print(f"fixture: {fixture_path}")
        print(f"block_number: {fixture.block_number}")
        print(f"transaction_index: {fixture.transaction_index}")
        print(f"is_included: {str(fixture.is_included).lower()}")
        print(f"ok: {str(result.ok).lower()}")
        for check in result.checks:
            status = "✓" if check.ok else "✗"
            print(f"  {status} {check.check_id}: {check.message}")

    if result.ok:
        logger.info("Fixture verified")
        return EXIT_SUCCESS
    logger.warning("Fixture verification failed")
    return EXIT_VERIFICATION_FAILED
