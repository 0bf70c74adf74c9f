"""
Pydantic models for request/response validation.
"""
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ApiBase(BaseModel):
    """Shared base — allows construction by Python name or camelCase alias."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


# ── Wallets ─────────────────────────────────────────────────────────

class WalletOut(ApiBase):
    id: str
    circle_wallet_id: str
    blockchain: str
    address: str
    type: str
    name: Optional[str] = None


class UserWalletsResponse(ApiBase):
    wallets: List[WalletOut]


class DestinationResponse(ApiBase):
    address: str


class BalanceResponse(ApiBase):
    balance: str = Field(..., description="USDC amount as a decimal string")
    raw_balance: Optional[dict[str, Any]] = Field(None, alias="rawBalance")


# ── Payments ────────────────────────────────────────────────────────

class CircleUsdcPaymentRequest(ApiBase):
    """Buy credits with the user's custodial wallet."""
    credits: int = Field(..., gt=0)
    usdc_amount: Decimal = Field(..., alias="usdcAmount", gt=0)


class CirclePaymentResponse(ApiBase):
    success: bool = True
    transaction_id: str = Field(..., alias="transactionId")
    provider_transaction_id: str = Field(..., alias="providerTransactionId")


class ExternalTransactionRequest(ApiBase):
    """Record a transfer already sent from an external wallet."""
    credits: int = Field(..., gt=0)
    usdc_amount: Decimal = Field(..., alias="usdcAmount", gt=0)
    tx_hash: str = Field(..., alias="txHash", min_length=66, max_length=66)
    chain_id: int = Field(..., alias="chainId", gt=0)
    wallet_address: str = Field(..., alias="walletAddress")
    destination_address: str = Field(..., alias="destinationAddress")


class RecordTransactionResponse(ApiBase):
    success: bool = True
    transaction_id: str = Field(..., alias="transactionId")
