"""
Purchase session — one UI-level state for both wallet paths.

Mirrors the purchase card: the user picks a wallet type (custodial is the
default when a custodial wallet exists), enters a credit amount, sees the
derived USDC total and whether their balance covers it, and submits. Every
failure becomes a transient notification; the session itself never raises
and the user may retry.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Awaitable, Callable, Optional

from domain.constants import PRESET_USDC_AMOUNTS
from domain.enums import DispatchState, TransactionStatus, WalletType
from domain.errors import DomainError
from domain.payments import DispatchResult, PurchaseRequest, TokenBalance
from services.dispatcher import PaymentDispatcher
from services.payment_methods import PaymentMethod

logger = logging.getLogger(__name__)

# Persists a submitted transfer; returns the stored transaction id (or None)
Recorder = Callable[[PurchaseRequest, DispatchResult], Awaitable[Optional[str]]]


@dataclass(frozen=True)
class Notification:
    level: str  # "success" | "error" | "warning"
    title: str
    description: str = ""


@dataclass
class CurrentTransaction:
    id: str
    credits: int
    usdc_amount: Decimal
    tx_hash: str
    status: str = TransactionStatus.PENDING.value
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class PurchaseSession:

    def __init__(
        self,
        *,
        destination: Optional[str],
        methods: dict[WalletType, PaymentMethod],
        recorder: Optional[Recorder] = None,
        usdc_per_credit: Decimal = Decimal("1"),
        credits: int = 10,
    ):
        self.destination = destination
        self.methods = methods
        self.recorder = recorder
        self.usdc_per_credit = Decimal(usdc_per_credit)
        self.credits = max(0, credits)
        self.wallet_type = (
            WalletType.CUSTODIAL if WalletType.CUSTODIAL in methods else WalletType.EXTERNAL
        )
        self.balances: dict[WalletType, Optional[TokenBalance]] = {}
        self.notifications: list[Notification] = []
        self.current_transaction: Optional[CurrentTransaction] = None
        self._dispatchers: dict[WalletType, PaymentDispatcher] = {}
        # Held from dispatch until the recorder returns
        self._busy = False

    # ── Inputs ──────────────────────────────────────────────────────

    def select_wallet(self, wallet_type: WalletType) -> None:
        if self.is_submitting:
            return
        self.wallet_type = wallet_type

    def set_credits(self, credits: int) -> None:
        if self.is_submitting:
            return
        self.credits = max(0, int(credits))

    def choose_preset(self, usdc_amount: int) -> None:
        if usdc_amount not in PRESET_USDC_AMOUNTS:
            raise ValueError(f"unknown preset: {usdc_amount}")
        credits, remainder = divmod(Decimal(usdc_amount), self.usdc_per_credit)
        if remainder:
            raise ValueError(
                f"preset {usdc_amount} USDC is not a whole number of credits at {self.usdc_per_credit} USDC each"
            )
        self.set_credits(int(credits))

    # ── Derived state ───────────────────────────────────────────────

    @property
    def method(self) -> Optional[PaymentMethod]:
        return self.methods.get(self.wallet_type)

    @property
    def dispatcher(self) -> PaymentDispatcher:
        if self.wallet_type not in self._dispatchers:
            self._dispatchers[self.wallet_type] = PaymentDispatcher(self.destination, self.method)
        return self._dispatchers[self.wallet_type]

    @property
    def state(self) -> DispatchState:
        return self.dispatcher.state

    @property
    def is_submitting(self) -> bool:
        return self._busy or any(d.is_submitting for d in self._dispatchers.values())

    @property
    def required_usdc(self) -> Decimal:
        return Decimal(self.credits) * self.usdc_per_credit

    @property
    def request(self) -> PurchaseRequest:
        return PurchaseRequest(credits=self.credits, usdc_amount=self.required_usdc)

    @property
    def balance(self) -> Optional[TokenBalance]:
        return self.balances.get(self.wallet_type)

    @property
    def sufficient(self) -> bool:
        if self.method is None:
            return False
        return self.method.check_sufficiency(self.balance, self.request)

    @property
    def can_submit(self) -> bool:
        if self.is_submitting:
            return False
        return self.dispatcher.can_submit(self.request, self.balance)

    # ── Actions ─────────────────────────────────────────────────────

    def notify(self, level: str, title: str, description: str = "") -> None:
        self.notifications.append(Notification(level, title, description))

    def dismiss(self) -> list[Notification]:
        shown, self.notifications = self.notifications, []
        return shown

    async def refresh_balance(self) -> Optional[TokenBalance]:
        method = self.method
        if method is None:
            return None
        try:
            balance = await method.load_balance()
        except DomainError as e:
            self.balances[self.wallet_type] = None
            self.notify("warning", "Could not load wallet balance.", e.message)
            return None
        self.balances[self.wallet_type] = balance
        return balance

    async def submit(self) -> Optional[CurrentTransaction]:
        """Run one purchase attempt; a no-op while one is in flight."""
        if self.is_submitting:
            return None
        if not self.destination:
            self.notify("error", "Configuration error", "Destination address missing.")
            return None
        if self.credits <= 0:
            self.notify("error", "Invalid amount", "Enter at least one credit.")
            return None

        self._busy = True
        try:
            return await self._submit(self.request)
        finally:
            self._busy = False

    async def _submit(self, request: PurchaseRequest) -> Optional[CurrentTransaction]:
        try:
            result = await self.dispatcher.dispatch(request)
        except DomainError as e:
            self.notify("error", "Payment failed", e.message)
            return None
        if result is None:
            return None

        if result.wallet_type == WalletType.CUSTODIAL:
            self.notify(
                "success",
                "Circle payment initiated!",
                "Your credits will be added once the transaction is confirmed.",
            )
        else:
            self.notify("success", "Transaction submitted", f"Hash: {result.tx_hash[:10]}...")

        transaction_id = result.provider_transaction_id or result.tx_hash
        if self.recorder is not None:
            try:
                recorded_id = await self.recorder(request, result)
            except DomainError as e:
                self.notify("error", "Recording failed", e.message)
                return None
            transaction_id = recorded_id or transaction_id

        self.current_transaction = CurrentTransaction(
            id=transaction_id,
            credits=request.credits,
            usdc_amount=request.usdc_amount,
            tx_hash=result.tx_hash,
        )
        return self.current_transaction

    def reset(self) -> None:
        """Close the confirmation view so the user can start again."""
        self.current_transaction = None
