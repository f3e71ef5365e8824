"""
CLI command modules.
"""

from txinclusion_cli.commands import prove, verify_fixture

__all__ = ["prove", "verify_fixture"]
