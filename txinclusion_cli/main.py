"""
CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m txinclusion_cli prove --tx HASH [--mode execute|prove] [--out PATH] [--json]
    python -m txinclusion_cli prove --block N --index I [--mode execute|prove]
    python -m txinclusion_cli verify-fixture PATH [--json]
    python -m txinclusion_cli program-id [--json]
    python -m txinclusion_cli config --init

Environment Variables:
    TXINCLUSION_RPC_URL            JSON-RPC endpoint
    TXINCLUSION_PROVER_MODE        execute or prove (default: execute)
    TXINCLUSION_STRICT_ROOT_CHECK  Fail on root mismatch (default: false)
    TXINCLUSION_LOG_LEVEL          Log level (default: INFO)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from core.crypto.attestation import DEFAULT_PROGRAM
from txinclusion_cli.commands import prove, verify_fixture
from txinclusion_cli.config import DEFAULT_CONFIG_NAME, get_default_config_template, load_config


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="txinclusion",
        description="Prove that a transaction sits at an exact index of its block.",
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s 0.1.0"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help=f"Path to YAML configuration file (default: ./{DEFAULT_CONFIG_NAME})",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write logs to this file",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- prove command ---
    prove_parser = subparsers.add_parser(
        "prove",
        help="Generate and check an inclusion proof",
        description="Fetch a block, build its transactions trie and run the verification program.",
    )
    target = prove_parser.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "--tx",
        type=str,
        default=None,
        help="Transaction hash to prove",
    )
    target.add_argument(
        "--block",
        type=int,
        default=None,
        help="Block number (use with --index)",
    )
    prove_parser.add_argument(
        "--index",
        type=int,
        default=None,
        help="Transaction index within --block",
    )
    prove_parser.add_argument(
        "--mode",
        type=str,
        choices=["execute", "prove"],
        default=None,
        help="Execute only, or execute and attest (default: from config)",
    )
    prove_parser.add_argument(
        "--strict-root-check",
        action="store_true",
        default=False,
        help="Fail if the computed root differs from the header root",
    )
    prove_parser.add_argument(
        "--out", "-o",
        type=str,
        default=None,
        help="Write an on-chain verifier fixture to this path",
    )
    prove_parser.add_argument(
        "--save",
        action="store_true",
        default=False,
        help="Write the fixture under the configured output directory",
    )
    prove_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON summary",
    )
    prove_parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Include detailed checks in output",
    )
    prove_parser.set_defaults(func=prove.prove_cmd)

    # --- verify-fixture command ---
    verify_parser = subparsers.add_parser(
        "verify-fixture",
        help="Check a fixture file offline",
        description="Decode public values, compare fields and re-check the attestation.",
    )
    verify_parser.add_argument(
        "fixture_path",
        type=str,
        help="Path to fixture JSON",
    )
    verify_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON report",
    )
    verify_parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Show tracebacks on errors",
    )
    verify_parser.set_defaults(func=verify_fixture.verify_fixture_cmd)

    # --- program-id command ---
    program_parser = subparsers.add_parser(
        "program-id",
        help="Print the verification program id",
        description="Print the id attestations are bound to (the verifying key analogue).",
    )
    program_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="JSON output",
    )
    program_parser.set_defaults(func=program_id_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage configuration",
        description="Initialize or display configuration.",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        default=False,
        help="Create a template configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Show current configuration",
    )
    config_parser.add_argument(
        "--path",
        type=str,
        default=DEFAULT_CONFIG_NAME,
        help=f"Path for config file (default: {DEFAULT_CONFIG_NAME})",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def program_id_cmd(args: argparse.Namespace) -> int:
    """Handle program-id command."""
    if args.json:
        print(json.dumps({
            "name": DEFAULT_PROGRAM.name,
            "version": DEFAULT_PROGRAM.version,
            "program_id": DEFAULT_PROGRAM.program_id,
        }, indent=2))
    else:
        print(DEFAULT_PROGRAM.program_id)
    return EXIT_SUCCESS


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        config_path = Path(args.path)
        if config_path.exists():
            print(f"Error: Config file already exists: {config_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

        config_path.write_text(get_default_config_template())
        print(f"Created configuration file: {config_path}")
        print("\nEdit this file to configure your settings.")
        print("You can also use environment variables (TXINCLUSION_* prefix).")
        return EXIT_SUCCESS

    if args.show:
        print(json.dumps(args.runtime_config.to_dict(), indent=2))
        return EXIT_SUCCESS

    print("Usage: txinclusion config [--init|--show]")
    print("  --init  Create a template configuration file")
    print("  --show  Show current configuration")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=not included / verification failed)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    setup_logging(level=args.log_level or config.log_level, log_file=args.log_file)

    # Attach config to args for commands to use
    args.runtime_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if getattr(args, "debug", False):
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
