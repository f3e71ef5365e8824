"""
Schemas & Canonicalization
File: versioning.py

Purpose: Centralize program/format version constants.
This file must remain tiny and have no imports from other schema files
to avoid circular dependencies.
"""

from typing import Literal

# Name of the verification program whose runs are attested
PROGRAM_NAME: str = "tx-inclusion-precise-index"

# Version of the verification program. Bumping it changes the program id.
PROGRAM_VERSION: str = "v1"

# Version of the on-chain verifier fixture JSON layout
FIXTURE_FORMAT_VERSION: str = "v1"

# Type alias for fixture format version
FixtureFormatVersion = Literal["v1"]

SUPPORTED_FIXTURE_FORMAT_VERSIONS: frozenset[str] = frozenset({"v1"})


class UnsupportedFixtureVersionError(ValueError):
    """Raised when an unsupported fixture format version is encountered."""

    def __init__(self, version: str, supported: frozenset[str] | None = None) -> None:
        self.version = version
        self.supported = supported or SUPPORTED_FIXTURE_FORMAT_VERSIONS
        super().__init__(
            f"Unsupported fixture format version: '{version}'. "
            f"Supported versions: {sorted(self.supported)}"
        )


def assert_supported_fixture_version(version: str) -> None:
    """
    Validate that the given fixture format version is supported.

    Raises:
        UnsupportedFixtureVersionError: If the version is not supported.
    """
    if version not in SUPPORTED_FIXTURE_FORMAT_VERSIONS:
        raise UnsupportedFixtureVersionError(version)
