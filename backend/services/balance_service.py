"""
Balance reader for both wallet paths.

Custodial wallets are read through the provider's balance listing and matched
on the configured USDC token id. External wallets are read on-chain with
ERC-20 balanceOf.
"""
import logging
from typing import Iterable, Optional

from domain.constants import ASSET_USDC
from domain.errors import ConfigurationError, ProviderError, TokenNotFoundError
from domain.payments import TokenBalance
from evm_client import EvmClient
from exceptions import CircleAPIError, EvmNodeError
from services.async_executor import run_blocking
from services.circle_client import CircleClient

logger = logging.getLogger(__name__)


def find_token_balance(balances: Iterable[TokenBalance], token_id: Optional[str]) -> Optional[TokenBalance]:
    if not token_id:
        return None
    for balance in balances:
        if balance.token_id == token_id:
            return balance
    return None


async def _list_balances(circle: CircleClient, wallet_id: str) -> list[TokenBalance]:
    try:
        return await circle.get_wallet_token_balance(wallet_id)
    except CircleAPIError as e:
        raise ProviderError(e.message or "Failed to fetch balance")


async def get_custodial_usdc_balance(circle: CircleClient, wallet_id: str, token_id: Optional[str]) -> dict:
    """
    USDC balance for the balance endpoint.

    A missing token is reported as a zero balance with rawBalance None.
    """
    balances = await _list_balances(circle, wallet_id)
    logger.debug(f"Wallet {wallet_id} balances: {[b.raw for b in balances]}")

    usdc = find_token_balance(balances, token_id)
    if usdc is None:
        logger.warning(f"Configured USDC token id {token_id} not found in wallet {wallet_id} balances")
        return {"balance": "0", "rawBalance": None}

    return {"balance": usdc.amount or "0", "rawBalance": usdc.raw}


async def require_custodial_usdc(circle: CircleClient, wallet_id: str, token_id: Optional[str]) -> TokenBalance:
    """USDC entry of a custodial wallet; raises TokenNotFoundError when absent."""
    if not token_id:
        raise ConfigurationError("USDC token id is not configured")

    balances = await _list_balances(circle, wallet_id)
    usdc = find_token_balance(balances, token_id)
    if usdc is None:
        logger.error(f"USDC with token id {token_id} not found in wallet {wallet_id}")
        raise TokenNotFoundError(token_id, wallet_id)
    return usdc


async def get_external_usdc_balance(
    evm: EvmClient,
    chain_id: int,
    owner: str,
    decimals: int = 6,
) -> TokenBalance:
    """On-chain USDC balance of an external wallet, in smallest units."""
    token_address = evm.usdc_address(chain_id)
    if not token_address:
        raise ConfigurationError(f"USDC not supported on chain {chain_id}")

    try:
        units = await run_blocking(evm.balance_of, token_address, owner)
    except EvmNodeError as e:
        raise ProviderError(str(e))

    return TokenBalance(
        token_id=token_address,
        decimals=decimals,
        amount=units,
        symbol=ASSET_USDC,
    )
