"""
Schemas & Canonicalization

Purpose: Export the public API for the schemas module: version constants,
canonical serialization, the error taxonomy and verification results.
"""

# Version constants
from .versioning import (
    FIXTURE_FORMAT_VERSION,
    PROGRAM_NAME,
    PROGRAM_VERSION,
    SUPPORTED_FIXTURE_FORMAT_VERSIONS,
    UnsupportedFixtureVersionError,
    assert_supported_fixture_version,
)

# Canonical serialization API
from .canonical import (
    CANONICAL_JSON_SEPARATORS,
    canonical_equals,
    canonicalize_value,
    dumps_canonical,
)

# Error models and exceptions
from .errors import (
    CanonicalizationException,
    EncodingError,
    ErrorCodes,
    InclusionError,
    InclusionException,
    IndexOutOfRange,
    InputDeserializationError,
    NoTransactions,
    NodeDecodingError,
    ProofConstructionMismatch,
    ProofSelfCheckError,
    RetrievalError,
)

# Verification schemas
from .verification import (
    CheckResult,
    CheckSeverity,
    VerificationResult,
)


__all__ = [
    # Versioning
    "PROGRAM_NAME",
    "PROGRAM_VERSION",
    "FIXTURE_FORMAT_VERSION",
    "SUPPORTED_FIXTURE_FORMAT_VERSIONS",
    "UnsupportedFixtureVersionError",
    "assert_supported_fixture_version",
    # Canonical serialization
    "dumps_canonical",
    "canonicalize_value",
    "canonical_equals",
    "CANONICAL_JSON_SEPARATORS",
    # Errors
    "ErrorCodes",
    "InclusionError",
    "InclusionException",
    "RetrievalError",
    "NoTransactions",
    "IndexOutOfRange",
    "EncodingError",
    "ProofConstructionMismatch",
    "ProofSelfCheckError",
    "InputDeserializationError",
    "NodeDecodingError",
    "CanonicalizationException",
    # Verification
    "CheckResult",
    "CheckSeverity",
    "VerificationResult",
]
