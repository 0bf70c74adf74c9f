"""
Exception classes raised by the third-party clients (Circle API, EVM node).

Services translate these into domain errors.
"""


class CircleAPIError(Exception):
    """Raised when a Circle W3S API call fails or returns an unusable body."""

    def __init__(self, message: str, status_code: int | None = None, code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class EvmNodeError(Exception):
    """Raised when there's an issue talking to the EVM JSON-RPC node."""
    pass


class TransferRejectedError(Exception):
    """Raised when the wallet owner declines a transfer request."""
    pass
