"""
Value types shared by the payment services.

WalletSelection is a closed union: a purchase attempt runs against exactly
one ExternalWallet or one CustodialWallet.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from domain.enums import WalletType


@dataclass(frozen=True)
class PurchaseRequest:
    credits: int
    usdc_amount: Decimal


@dataclass(frozen=True)
class ExternalWallet:
    chain_id: int
    address: str
    wallet_type: WalletType = WalletType.EXTERNAL


@dataclass(frozen=True)
class CustodialWallet:
    wallet_id: str
    blockchain: str
    address: str
    type: str = "SCA"
    wallet_type: WalletType = WalletType.CUSTODIAL


WalletSelection = Union[ExternalWallet, CustodialWallet]


@dataclass(frozen=True)
class TokenBalance:
    """
    A token balance entry.

    ``amount`` is the provider's decimal string for custodial wallets and the
    smallest-unit integer for on-chain reads.
    """
    token_id: Optional[str]
    decimals: int
    amount: Union[str, int]
    symbol: Optional[str] = None
    raw: Optional[dict] = None


@dataclass(frozen=True)
class DispatchResult:
    wallet_type: WalletType
    tx_hash: str
    amount_units: int
    chain: str
    wallet_id: str
    provider_transaction_id: Optional[str] = None
    idempotency_key: Optional[str] = None
