"""
Payment dispatcher — idle → submitting → {submitted, failed}.

The submitting flag is the only concurrency guard: a dispatch() issued while
another is in flight returns None without touching the payment method. No
timeout is applied; a hung provider call keeps the dispatcher in submitting.
"""
import logging
from typing import Optional

from domain.enums import DispatchState
from domain.errors import ConfigurationError, DomainError, NotFoundError
from domain.payments import DispatchResult, PurchaseRequest, TokenBalance
from services.payment_methods import PaymentMethod

logger = logging.getLogger(__name__)


class PaymentDispatcher:

    def __init__(self, destination: Optional[str], method: Optional[PaymentMethod]):
        self.destination = destination
        self.method = method
        self.state = DispatchState.IDLE
        self.result: Optional[DispatchResult] = None
        self.last_error: Optional[DomainError] = None

    @property
    def is_submitting(self) -> bool:
        return self.state == DispatchState.SUBMITTING

    def can_submit(self, request: PurchaseRequest, balance: Optional[TokenBalance]) -> bool:
        """Whether the pay action is enabled."""
        if self.is_submitting:
            return False
        if not self.destination or self.method is None:
            return False
        if request.credits <= 0:
            return False
        return self.method.check_sufficiency(balance, request)

    async def dispatch(self, request: PurchaseRequest) -> Optional[DispatchResult]:
        if self.is_submitting:
            logger.info("Dispatch ignored: a payment is already being submitted")
            return None

        self.state = DispatchState.SUBMITTING
        self.result = None
        self.last_error = None
        try:
            if not self.destination:
                raise ConfigurationError("Destination address missing.")
            if self.method is None:
                raise NotFoundError("No wallet selected.")
            result = await self.method.dispatch(request, self.destination)
        except DomainError as e:
            self.state = DispatchState.FAILED
            self.last_error = e
            logger.warning(f"Payment dispatch failed ({e.code}): {e.message}")
            raise
        except Exception:
            self.state = DispatchState.FAILED
            raise

        self.state = DispatchState.SUBMITTED
        self.result = result
        return result
