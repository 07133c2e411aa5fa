"""
Confidential Balance Protocol Error Handling

All error codes and exception classes.
"""

from enum import IntEnum
from typing import Optional, Any


class ErrorCode(IntEnum):
    """Protocol error codes."""

    # 1xxx - General errors
    UNKNOWN_ERROR = 1000
    INVALID_PARAMETER = 1001

    # 2xxx - Curve cryptography errors
    INVALID_POINT = 2001
    DECRYPTION_FAILED = 2002
    WRONG_PRIVATE_KEY = 2003

    # 3xxx - Proof pipeline errors
    INVALID_WITNESS = 3001
    AMOUNT_TOO_LARGE = 3002
    PROVING_BACKEND_FAILED = 3003

    # 4xxx - Codec errors
    MALFORMED_PUBLIC_INPUTS = 4001

    # 5xxx - Chain errors
    CHAIN_QUERY_FAILED = 5001


class ConfBalError(Exception):
    """Base exception for all confidential balance protocol errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Any] = None
    ):
        self.code = code
        self.message = message
        self.details = details
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        result = {
            "code": self.code.value,
            "name": self.code.name,
            "message": self.message,
        }
        if self.details is not None:
            result["details"] = self.details
        return result


# ==============================================================================
# Curve Errors (2xxx)
# ==============================================================================

class InvalidPointError(ConfBalError):
    def __init__(self, message: str = "Point is not on the curve", details: Any = None):
        super().__init__(ErrorCode.INVALID_POINT, message, details)


class DecryptionFailedError(ConfBalError):
    def __init__(self, bound: int, code: ErrorCode = ErrorCode.DECRYPTION_FAILED,
                 message: str = ""):
        super().__init__(
            code,
            message or f"No plaintext found within search bound {bound}",
            {"bound": bound}
        )
        self.bound = bound


class WrongPrivateKeyError(DecryptionFailedError):
    def __init__(self, bound: int):
        super().__init__(
            bound,
            code=ErrorCode.WRONG_PRIVATE_KEY,
            message="Wrong private key",
        )


# ==============================================================================
# Proof Pipeline Errors (3xxx)
# ==============================================================================

class InvalidWitnessError(ConfBalError):
    def __init__(self, circuit: str, reason: str):
        super().__init__(
            ErrorCode.INVALID_WITNESS,
            f"Witness execution failed for {circuit}: {reason}",
            {"circuit": circuit, "reason": reason}
        )
        self.circuit = circuit
        self.reason = reason


class AmountTooLargeError(ConfBalError):
    def __init__(self, amount: int, max_digits: int):
        super().__init__(
            ErrorCode.AMOUNT_TOO_LARGE,
            f"Amount is too large: {amount} exceeds {max_digits} digits after truncation",
            {"amount": str(amount), "max_digits": max_digits}
        )


class ProvingBackendError(ConfBalError):
    def __init__(self, circuit: str, reason: str):
        super().__init__(
            ErrorCode.PROVING_BACKEND_FAILED,
            f"Proof generation failed for {circuit}: {reason}",
            {"circuit": circuit, "reason": reason}
        )
        self.circuit = circuit


# ==============================================================================
# Codec Errors (4xxx)
# ==============================================================================

class MalformedPublicInputsError(ConfBalError):
    def __init__(self, message: str, expected: Optional[int] = None,
                 actual: Optional[int] = None):
        details = None
        if expected is not None:
            details = {"expected": expected, "actual": actual}
        super().__init__(ErrorCode.MALFORMED_PUBLIC_INPUTS, message, details)


# ==============================================================================
# Chain Errors (5xxx)
# ==============================================================================

class ChainQueryError(ConfBalError):
    def __init__(self, method: str, reason: str):
        super().__init__(
            ErrorCode.CHAIN_QUERY_FAILED,
            f"RPC {method} failed: {reason}",
            {"method": method, "reason": reason}
        )
