"""
Domain enums (minimal set used for clarity in services).
"""

from enum import Enum


class WalletType(str, Enum):
    EXTERNAL = "external"
    CUSTODIAL = "circle"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class DispatchState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    FAILED = "failed"
