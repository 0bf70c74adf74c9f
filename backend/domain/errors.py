"""
Custom domain exceptions for consistent error handling.

These exceptions are mapped to HTTP status codes by the exception handlers
in main.py and rendered as {"success": false, "error": "<message>"}.
"""
from fastapi import HTTPException, status


class DomainError(HTTPException):
    """Base class for all domain-specific errors."""
    code = "domain_error"

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST, details: dict | None = None):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.details = details or {}


class NotFoundError(DomainError):
    """Resource not found (404)."""
    code = "not_found"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND, details=details)


class TokenNotFoundError(NotFoundError):
    """Configured token id is absent from a wallet's balance listing (404)."""
    code = "token_not_found"

    def __init__(self, token_id: str | None, wallet_id: str, details: dict | None = None):
        super().__init__("USDC balance not found in wallet.", details=details)
        self.token_id = token_id
        self.wallet_id = wallet_id


class ValidationError(DomainError):
    """Validation error (400)."""
    code = "validation_error"

    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        if field:
            message = f"Validation error on {field}: {message}"
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class AmountPrecisionError(ValidationError):
    """Amount cannot be represented exactly at the token's precision (400)."""
    code = "amount_precision"


class UnauthorizedError(DomainError):
    """Unauthorized access (401)."""
    code = "unauthorized"

    def __init__(self, message: str = "Unauthorized", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_401_UNAUTHORIZED, details=details)


class ConflictError(DomainError):
    """Resource conflict (409)."""
    code = "conflict"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_409_CONFLICT, details=details)


class ConfigurationError(DomainError):
    """Missing destination, admin wallet, or token id (500)."""
    code = "configuration_error"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, details=details)


class InsufficientFundsError(DomainError):
    """Wallet balance below the required amount (400)."""
    code = "insufficient_funds"

    def __init__(self, message: str = "Insufficient USDC balance.", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class ProviderError(DomainError):
    """Wallet provider API failure (502)."""
    code = "provider_error"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_502_BAD_GATEWAY, details=details)


class WalletRejectedError(DomainError):
    """User declined the transfer in their wallet (400)."""
    code = "wallet_rejected"

    def __init__(self, message: str = "Transaction rejected in wallet.", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)
