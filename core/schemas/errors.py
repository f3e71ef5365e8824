"""
Schemas & Canonicalization
File: errors.py

Purpose: Standard error taxonomy for proof generation and verification.
Defines both Pydantic models for structured error communication
and Python exceptions for control flow.

Host-side errors (retrieval, encoding, index range) are fatal to a single
generation attempt and propagate to the caller. Inside the verification
program only InputDeserializationError is fatal; a proof that does not
verify is a valid "not included" result, never an exception.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes."""

    # Chain data retrieval
    RETRIEVAL_FAILED = "RETRIEVAL_FAILED"

    # Proof generation (host)
    NO_TRANSACTIONS = "NO_TRANSACTIONS"
    INDEX_OUT_OF_RANGE = "INDEX_OUT_OF_RANGE"
    ENCODING_ERROR = "ENCODING_ERROR"
    ROOT_MISMATCH = "ROOT_MISMATCH"
    PROOF_SELF_CHECK_FAILED = "PROOF_SELF_CHECK_FAILED"

    # Verification program
    INPUT_DESERIALIZATION_ERROR = "INPUT_DESERIALIZATION_ERROR"
    NODE_DECODING_ERROR = "NODE_DECODING_ERROR"

    # Serialization
    CANONICALIZATION_ERROR = "CANONICALIZATION_ERROR"


# =============================================================================
# Pydantic Error Model (Structured Communication)
# =============================================================================

class InclusionError(BaseModel):
    """
    Error model for structured error communication.

    Used when an error has to cross a process or serialization boundary
    (CLI JSON output, orchestrator reports) instead of being raised.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.INDEX_OUT_OF_RANGE],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried",
    )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class InclusionException(Exception):
    """
    Base exception for all transaction inclusion errors.

    Carries structured error information and can be converted to an
    InclusionError model.
    """

    def __init__(
        self,
        message: str,
        code: str = "INCLUSION_ERROR",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_error_model(self) -> InclusionError:
        """Convert this exception to an InclusionError model."""
        return InclusionError(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class RetrievalError(InclusionException):
    """Chain data provider unreachable, or the requested data does not exist."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.RETRIEVAL_FAILED,
            details=details,
            retryable=retryable,
        )


class NoTransactions(InclusionException):
    """Raised when a proof is requested for a block without transactions."""

    def __init__(
        self,
        message: str = "Block contains no transactions; no inclusion proof is possible",
        block_number: int | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if block_number is not None:
            details["block_number"] = block_number
        super().__init__(
            message=message,
            code=ErrorCodes.NO_TRANSACTIONS,
            details=details,
        )


class IndexOutOfRange(InclusionException):
    """Raised when the target index is not a position inside the block."""

    def __init__(self, index: int, transaction_count: int) -> None:
        self.index = index
        self.transaction_count = transaction_count
        super().__init__(
            message=(
                f"Transaction index {index} out of range for block with "
                f"{transaction_count} transactions"
            ),
            code=ErrorCodes.INDEX_OUT_OF_RANGE,
            details={"index": index, "transaction_count": transaction_count},
        )


class EncodingError(InclusionException):
    """Raised when a transaction cannot be canonically encoded."""

    def __init__(
        self,
        message: str,
        tx_type: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if tx_type is not None:
            full_details["tx_type"] = tx_type
        super().__init__(
            message=message,
            code=ErrorCodes.ENCODING_ERROR,
            details=full_details,
        )


class ProofConstructionMismatch(InclusionException):
    """
    Computed transactions root differs from the header's stated root.

    Logged and tolerated by default; only raised when strict root checking
    is enabled.
    """

    def __init__(self, computed_root: str, header_root: str) -> None:
        self.computed_root = computed_root
        self.header_root = header_root
        super().__init__(
            message=(
                f"Computed transactions root {computed_root} does not match "
                f"header root {header_root}"
            ),
            code=ErrorCodes.ROOT_MISMATCH,
            details={"computed_root": computed_root, "header_root": header_root},
        )


class ProofSelfCheckError(InclusionException):
    """Raised when a freshly extracted proof fails verification on the host."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.PROOF_SELF_CHECK_FAILED,
            details=details,
        )


class InputDeserializationError(InclusionException):
    """Raised when an input bundle cannot be decoded. Aborts the program run."""

    def __init__(
        self,
        message: str,
        offset: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if offset is not None:
            full_details["offset"] = offset
        super().__init__(
            message=message,
            code=ErrorCodes.INPUT_DESERIALIZATION_ERROR,
            details=full_details,
        )


class NodeDecodingError(InclusionException):
    """Raised by the trie node codec on malformed node encodings."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.NODE_DECODING_ERROR,
            details=details,
        )


class CanonicalizationException(InclusionException):
    """Exception raised when canonical serialization fails."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.CANONICALIZATION_ERROR,
            details=details,
            retryable=False,
        )
