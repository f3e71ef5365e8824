"""
Artifact IO

Provides functionality for saving, loading and validating verifier fixtures.
"""

from orchestrator.artifacts.fixture import (
    FixtureIOError,
    InclusionFixture,
    build_fixture,
    load_fixture,
    save_fixture,
    validate_fixture,
)

__all__ = [
    "FixtureIOError",
    "InclusionFixture",
    "build_fixture",
    "save_fixture",
    "load_fixture",
    "validate_fixture",
]
