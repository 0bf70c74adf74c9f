"""
EVM client singleton for ERC-20 USDC reads and wallet-prompted transfers.

Transfers are sent with eth_sendTransaction from the connected account, so the
node (or the wallet behind it) is responsible for prompting and signing.
"""
import logging
from typing import Optional

from web3 import Web3
from web3.exceptions import ContractLogicError, Web3Exception

from config import settings
from domain.constants import USDC_CONTRACTS
from exceptions import EvmNodeError, TransferRejectedError

logger = logging.getLogger(__name__)

# Minimal ERC-20 ABI: balanceOf, transfer
ERC20_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": False,
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "value", "type": "uint256"},
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

# Substrings wallets use when the owner declines a request (EIP-1193 code 4001)
_REJECTION_MARKERS = ("user denied", "user rejected", "rejected the request", "4001")


def is_rejection(error: Exception) -> bool:
    text = str(error).lower()
    return any(marker in text for marker in _REJECTION_MARKERS)


class EvmClient:
    """Lazy web3 client for one JSON-RPC endpoint."""

    def __init__(self, rpc_url: str, chain_id: int, usdc_override: str = ""):
        self.rpc_url = rpc_url
        self.chain_id = chain_id
        self.usdc_override = usdc_override
        self._w3: Optional[Web3] = None

    @property
    def w3(self) -> Web3:
        if self._w3 is None:
            self._w3 = Web3(Web3.HTTPProvider(self.rpc_url))
            logger.info(f"web3 provider configured: chain_id={self.chain_id}")
        return self._w3

    def usdc_address(self, chain_id: Optional[int] = None) -> Optional[str]:
        """USDC contract for a chain; the configured override wins on the default chain."""
        chain_id = chain_id or self.chain_id
        if self.usdc_override and chain_id == self.chain_id:
            return self.usdc_override
        return USDC_CONTRACTS.get(chain_id)

    def _token(self, token_address: str):
        return self.w3.eth.contract(
            address=Web3.to_checksum_address(token_address),
            abi=ERC20_ABI,
        )

    def balance_of(self, token_address: str, owner: str) -> int:
        """ERC-20 balance of ``owner`` in smallest units."""
        try:
            return int(
                self._token(token_address)
                .functions.balanceOf(Web3.to_checksum_address(owner))
                .call()
            )
        except (Web3Exception, ValueError, OSError) as e:
            logger.error(f"balanceOf failed for {owner[:10]}...: {e}")
            raise EvmNodeError(f"Could not read token balance: {e}") from e

    def transfer(self, token_address: str, sender: str, destination: str, amount_units: int) -> str:
        """
        Request an ERC-20 transfer from ``sender``.

        Returns the transaction hash as soon as the wallet accepts the
        request; the transfer is not yet confirmed on-chain.
        """
        try:
            tx_hash = (
                self._token(token_address)
                .functions.transfer(Web3.to_checksum_address(destination), amount_units)
                .transact({"from": Web3.to_checksum_address(sender)})
            )
        except ContractLogicError as e:
            raise EvmNodeError(f"Token transfer reverted: {e}") from e
        except (Web3Exception, ValueError, OSError) as e:
            if is_rejection(e):
                raise TransferRejectedError(str(e)) from e
            logger.error(f"transfer request failed: {e}")
            raise EvmNodeError(f"Transfer request failed: {e}") from e

        hex_hash = Web3.to_hex(tx_hash)
        logger.info(f"ERC-20 transfer submitted: {hex_hash}")
        return hex_hash


# Global client instance
evm_client = EvmClient(
    rpc_url=settings.evm_rpc_url,
    chain_id=settings.evm_chain_id,
    usdc_override=settings.usdc_contract_address,
)
