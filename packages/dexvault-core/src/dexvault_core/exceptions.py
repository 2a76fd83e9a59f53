"""Unified exception hierarchy for DexVault.

All DexVault-specific exceptions inherit from DexVaultException, enabling:
- Consistent error handling across packages
- HTTP status code mapping in the API layer
- Structured error responses

Only two exceptions ever reach a caller as-is: InvalidRequestError (400) and
PermissionDeniedError (403). Every other error raised below the API layer is
folded into InvalidRequestError by the command dispatcher, so a denied
permission and a malformed payload look the same from the outside.

All exceptions have:
- error_code: Machine-readable error code (e.g., "INVALID_REQUEST")
- http_status: HTTP status code used when the exception is rendered
- message: Human-readable error message
- details: Optional additional context dictionary
- to_dict(): Convert to API response format
"""
from __future__ import annotations

from typing import Any, Optional


class DexVaultException(Exception):
    """Base exception for all DexVault errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code
        details: Optional additional context
    """

    error_code: str = "DEXVAULT_ERROR"
    http_status: int = 500
    status_text: str = "Internal error."

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response format."""
        result: dict[str, Any] = {"status": self.status_text}
        if self.message:
            result["error"] = self.message
        return result


# =============================================================================
# Client-facing errors
# =============================================================================

class InvalidRequestError(DexVaultException):
    """Catch-all for malformed input, failed authorization or failed signing."""

    error_code = "INVALID_REQUEST"
    http_status = 400
    status_text = "Invalid request."

    @classmethod
    def wrap(cls, exc: BaseException, state: Optional[str] = None) -> "InvalidRequestError":
        """Fold a lower-level failure into an invalid-request error."""
        details: dict[str, Any] = {"cause": type(exc).__name__}
        if state:
            details["state"] = state
        return cls(str(exc) or type(exc).__name__, details=details)


class PermissionDeniedError(DexVaultException):
    """Account-level capability check failed; rendered without detail."""

    error_code = "PERMISSION_DENIED"
    http_status = 403
    status_text = "Permission denied."

    def __init__(self, message: str = "", details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message, details=details)

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status_text}


# =============================================================================
# Claim extraction
# =============================================================================

class ClaimsMissingError(DexVaultException):
    """The verified token carries no usable claim map or payload entry."""

    error_code = "CLAIMS_MISSING"
    http_status = 400


class PayloadDecodeError(DexVaultException):
    """The embedded payload string is not valid data for the target type."""

    error_code = "PAYLOAD_DECODE_ERROR"
    http_status = 400


# =============================================================================
# Authorization
# =============================================================================

class PreconditionFailedError(DexVaultException):
    """Datastore or user missing before a permission lookup."""

    error_code = "PRECONDITION_FAILED"
    http_status = 400


class NotPermittedError(DexVaultException):
    """The user holds no grant for the action on the signed wallet."""

    error_code = "NOT_PERMITTED"
    http_status = 400

    def __init__(self, message: str = "Not permitted.", details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message, details=details)


# =============================================================================
# Wallets and credentials
# =============================================================================

class WalletNotFoundError(DexVaultException):
    """No wallet with the requested name exists."""

    error_code = "WALLET_NOT_FOUND"
    http_status = 400

    def __init__(self, wallet: str) -> None:
        super().__init__(
            "No matching wallet could be found.",
            details={"wallet": wallet},
        )


class WalletExistsError(DexVaultException):
    """A wallet with the requested name already exists."""

    error_code = "WALLET_EXISTS"
    http_status = 400

    def __init__(self, wallet: str) -> None:
        super().__init__(
            f"Wallet '{wallet}' already exists.",
            details={"wallet": wallet},
        )


class ReservedWalletNameError(DexVaultException):
    """The requested wallet name is reserved for grants on every wallet."""

    error_code = "RESERVED_WALLET_NAME"
    http_status = 400

    def __init__(self, wallet: str) -> None:
        super().__init__(
            f"Wallet name '{wallet}' is reserved.",
            details={"wallet": wallet},
        )


class CredentialUnavailableError(DexVaultException):
    """The wallet exists but its signing material cannot be materialized.

    The message names the wallet only; it never carries key material or
    the error text of the underlying cipher.
    """

    error_code = "CREDENTIAL_UNAVAILABLE"
    http_status = 400

    def __init__(self, wallet: str) -> None:
        super().__init__(
            f"Signing credential for wallet '{wallet}' is unavailable.",
            details={"wallet": wallet},
        )


# =============================================================================
# Signing and submission
# =============================================================================

class TransactionBuildError(DexVaultException):
    """A transaction builder rejected its payload or failed to sign."""

    error_code = "TRANSACTION_BUILD_ERROR"
    http_status = 400


class SubmissionError(DexVaultException):
    """The remote network could not be reached or returned no usable answer."""

    error_code = "SUBMISSION_ERROR"
    http_status = 502

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if endpoint:
            details["endpoint"] = endpoint
        super().__init__(message, details=details)


__all__ = [
    "DexVaultException",
    "InvalidRequestError",
    "PermissionDeniedError",
    "ClaimsMissingError",
    "PayloadDecodeError",
    "PreconditionFailedError",
    "NotPermittedError",
    "WalletNotFoundError",
    "WalletExistsError",
    "ReservedWalletNameError",
    "CredentialUnavailableError",
    "TransactionBuildError",
    "SubmissionError",
]
