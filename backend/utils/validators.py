"""
Input validation utilities for the USDC Credits backend.

Provides reusable validators for EVM addresses, transaction hashes and
custodial wallet ids.
"""
import re
import uuid

from fastapi import Query
from web3 import Web3

from domain.errors import ValidationError

_TX_HASH_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


def validate_evm_address(address: str, field: str = "address") -> str:
    """
    Validate an EVM address (hex, 20 bytes; checksum enforced when mixed-case).

    Raises:
        ValidationError(400) if the address is invalid
    """
    if not address:
        raise ValidationError("address is required", field=field)

    if not Web3.is_address(address):
        raise ValidationError(f"invalid EVM address: {address[:12]}...", field=field)

    return address


def validate_tx_hash(tx_hash: str) -> str:
    if not tx_hash or not _TX_HASH_RE.match(tx_hash):
        raise ValidationError("expected a 0x-prefixed 32-byte hex hash", field="txHash")
    return tx_hash


def validate_wallet_id(wallet_id: str | None) -> str:
    """Circle wallet ids are UUIDs."""
    if not wallet_id:
        raise ValidationError("walletId is required")
    try:
        uuid.UUID(wallet_id)
    except ValueError:
        raise ValidationError(f"invalid wallet id: {wallet_id[:12]}", field="walletId")
    return wallet_id


def wallet_id_query(wallet_id: str | None = Query(None, alias="walletId")) -> str:
    """FastAPI dependency for the walletId query parameter."""
    return validate_wallet_id(wallet_id)
