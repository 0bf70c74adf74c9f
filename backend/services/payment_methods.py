"""
Payment methods — one contract, two wallet paths.

    ExternalWalletPayment   — ERC-20 transfer requested from a user-controlled
                              wallet; returns the real transaction hash.
    CustodialWalletPayment  — transfer created through the Circle API; returns
                              the provider transaction id and a "pending" hash.

Sufficiency is checked differently on each path: on-chain balances compare
as smallest-unit integers, custodial balances compare the provider's decimal
string as a float.
"""
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Optional

from domain.constants import CHAIN_NAMES, PENDING_TX_HASH
from domain.errors import (
    ConfigurationError,
    ProviderError,
    WalletRejectedError,
)
from domain.payments import (
    CustodialWallet,
    DispatchResult,
    ExternalWallet,
    PurchaseRequest,
    TokenBalance,
)
from evm_client import EvmClient
from exceptions import CircleAPIError, EvmNodeError, TransferRejectedError
from services import amounts, balance_service
from services.async_executor import run_blocking
from services.circle_client import CircleClient

logger = logging.getLogger(__name__)


class PaymentMethod(ABC):
    """Shared dispatch contract for both wallet paths."""

    wallet_type = None

    @abstractmethod
    async def load_balance(self) -> TokenBalance:
        ...

    @abstractmethod
    def estimate_required_amount(self, request: PurchaseRequest) -> int:
        """Smallest-unit amount the transfer will carry."""

    @abstractmethod
    def check_sufficiency(self, balance: Optional[TokenBalance], request: PurchaseRequest) -> bool:
        ...

    @abstractmethod
    async def dispatch(self, request: PurchaseRequest, destination: str) -> DispatchResult:
        ...


class ExternalWalletPayment(PaymentMethod):

    def __init__(
        self,
        evm: EvmClient,
        wallet: ExternalWallet,
        token_address: Optional[str] = None,
        decimals: int = 6,
    ):
        self.evm = evm
        self.wallet = wallet
        self.token_address = token_address or evm.usdc_address(wallet.chain_id)
        self.decimals = decimals
        self.wallet_type = wallet.wallet_type

    async def load_balance(self) -> TokenBalance:
        return await balance_service.get_external_usdc_balance(
            self.evm, self.wallet.chain_id, self.wallet.address, decimals=self.decimals
        )

    def estimate_required_amount(self, request: PurchaseRequest) -> int:
        return amounts.to_smallest_unit(request.usdc_amount, self.decimals)

    def check_sufficiency(self, balance: Optional[TokenBalance], request: PurchaseRequest) -> bool:
        if balance is None:
            return False
        return amounts.has_sufficient_onchain_balance(
            int(balance.amount), self.estimate_required_amount(request)
        )

    async def dispatch(self, request: PurchaseRequest, destination: str) -> DispatchResult:
        if not self.token_address:
            raise ConfigurationError("USDC not supported on current chain.")

        units = self.estimate_required_amount(request)
        try:
            tx_hash = await run_blocking(
                self.evm.transfer, self.token_address, self.wallet.address, destination, units
            )
        except TransferRejectedError:
            raise WalletRejectedError()
        except EvmNodeError as e:
            raise ProviderError(str(e))

        return DispatchResult(
            wallet_type=self.wallet_type,
            tx_hash=tx_hash,
            amount_units=units,
            chain=CHAIN_NAMES.get(self.wallet.chain_id, str(self.wallet.chain_id)),
            wallet_id=self.wallet.address,
        )


class CustodialWalletPayment(PaymentMethod):

    def __init__(
        self,
        circle: CircleClient,
        wallet: CustodialWallet,
        token_id: Optional[str],
        fee_level: str = "MEDIUM",
        default_decimals: int = 6,
        idempotency_key: Optional[str] = None,
    ):
        self.circle = circle
        self.wallet = wallet
        self.token_id = token_id
        self.fee_level = fee_level
        self.default_decimals = default_decimals
        # Caller-supplied key (e.g. X-Idempotency-Key); otherwise one per dispatch
        self.idempotency_key = idempotency_key
        self.wallet_type = wallet.wallet_type
        self._balance: Optional[TokenBalance] = None

    async def load_balance(self) -> TokenBalance:
        self._balance = await balance_service.require_custodial_usdc(
            self.circle, self.wallet.wallet_id, self.token_id
        )
        return self._balance

    @property
    def decimals(self) -> int:
        if self._balance is not None:
            return self._balance.decimals
        return self.default_decimals

    def estimate_required_amount(self, request: PurchaseRequest) -> int:
        return amounts.to_smallest_unit(request.usdc_amount, self.decimals)

    def check_sufficiency(self, balance: Optional[TokenBalance], request: PurchaseRequest) -> bool:
        if balance is None:
            return False
        return amounts.has_sufficient_custodial_balance(str(balance.amount), request.usdc_amount)

    async def dispatch(self, request: PurchaseRequest, destination: str) -> DispatchResult:
        if self._balance is None:
            # Decimals come from the balance entry; also rejects unmapped tokens
            await self.load_balance()

        units = self.estimate_required_amount(request)
        idempotency_key = self.idempotency_key or str(uuid.uuid4())

        logger.info(
            "Custodial payment: wallet=%s token=%s decimals=%s amount_units=%s from=%s to=%s",
            self.wallet.wallet_id,
            self.token_id,
            self.decimals,
            units,
            self.wallet.address,
            destination,
        )

        try:
            provider_tx_id = await self.circle.create_transaction(
                wallet_id=self.wallet.wallet_id,
                destination_address=destination,
                amounts=[str(units)],
                token_id=self.token_id,
                fee_level=self.fee_level,
                idempotency_key=idempotency_key,
            )
        except CircleAPIError as e:
            raise ProviderError(e.message or "Failed to process Circle payment")

        return DispatchResult(
            wallet_type=self.wallet_type,
            tx_hash=PENDING_TX_HASH,
            amount_units=units,
            chain=self.wallet.blockchain,
            wallet_id=self.wallet.wallet_id,
            provider_transaction_id=provider_tx_id,
            idempotency_key=idempotency_key,
        )
