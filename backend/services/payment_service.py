"""
Payment service — orchestrates a credit purchase end to end.

Custodial path (POST /api/circle/payment):
    1. Validate credits / usdcAmount (usdcAmount is derived from credits)
    2. Select the user's custodial wallet (SCA first)
    3. Resolve the admin wallet that receives the USDC
    4. Load the wallet's USDC entry (token decimals; unmapped token → 404)
    5. Check sufficiency, dispatch through the Circle API
    6. Record the transactions row (tx_hash "pending")

External path (POST /api/transactions):
    The transfer was already sent from the user's wallet; validate and record.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from config import PaymentConfig
from domain.errors import ConflictError, InsufficientFundsError, ValidationError
from domain.payments import PurchaseRequest
from services import amounts, transaction_service, wallet_service
from services.circle_client import CircleClient
from services.destination_service import DestinationResolver
from services.dispatcher import PaymentDispatcher
from services.payment_methods import CustodialWalletPayment
from utils.validators import validate_evm_address, validate_tx_hash

logger = logging.getLogger(__name__)


def build_purchase_request(credits: int, usdc_amount, config: PaymentConfig) -> PurchaseRequest:
    """
    Validate a client-supplied (credits, usdcAmount) pair.

    The client sends usdcAmount for display parity; the server recomputes it
    from credits and rejects a mismatch.
    """
    expected = amounts.credits_to_usdc(credits, config.usdc_per_credit)
    supplied = amounts.to_decimal(usdc_amount, field="usdcAmount")
    if supplied != expected:
        raise ValidationError(
            f"expected {expected} for {credits} credits",
            field="usdcAmount",
        )
    return PurchaseRequest(credits=credits, usdc_amount=expected)


async def execute_custodial_payment(
    db: AsyncSession,
    circle: CircleClient,
    *,
    user_id: str,
    credits: int,
    usdc_amount,
    config: PaymentConfig,
    idempotency_key: Optional[str] = None,
) -> dict:
    request = build_purchase_request(credits, usdc_amount, config)

    wallet_row = await wallet_service.select_custodial_wallet(db, user_id)
    wallet = wallet_service.to_custodial_wallet(wallet_row)
    admin = await wallet_service.get_admin_wallet(db, config.admin_wallet_label)

    method = CustodialWalletPayment(
        circle,
        wallet,
        token_id=config.usdc_token_id,
        fee_level=config.fee_level,
        default_decimals=config.default_decimals,
        idempotency_key=idempotency_key,
    )
    balance = await method.load_balance()
    if not method.check_sufficiency(balance, request):
        raise InsufficientFundsError(
            "Insufficient Circle wallet balance.",
            details={"balance": str(balance.amount), "required": str(request.usdc_amount)},
        )

    dispatcher = PaymentDispatcher(destination=admin.address, method=method)
    result = await dispatcher.dispatch(request)

    record = await transaction_service.record_custodial_payment(
        db,
        user_id=user_id,
        request=request,
        result=result,
        exchange_rate=Decimal(config.usdc_per_credit),
    )
    if record is None:
        logger.error(
            f"Circle transaction {result.provider_transaction_id} initiated but not recorded "
            f"(user={user_id}, credits={request.credits})"
        )

    return {
        "success": True,
        "transactionId": record.id if record is not None else result.provider_transaction_id,
        "providerTransactionId": result.provider_transaction_id,
    }


async def record_external_payment_request(
    db: AsyncSession,
    resolver: DestinationResolver,
    *,
    user_id: str,
    credits: int,
    usdc_amount,
    tx_hash: str,
    chain_id: int,
    wallet_address: str,
    destination_address: str,
    config: PaymentConfig,
) -> dict:
    request = build_purchase_request(credits, usdc_amount, config)
    validate_tx_hash(tx_hash)
    validate_evm_address(wallet_address, field="walletAddress")
    validate_evm_address(destination_address, field="destinationAddress")

    destination = await resolver.resolve(db)
    if destination.lower() != destination_address.lower():
        raise ConflictError("Destination address does not match the configured destination.")

    record = await transaction_service.record_external_payment(
        db,
        user_id=user_id,
        request=request,
        tx_hash=tx_hash,
        chain_id=chain_id,
        wallet_address=wallet_address,
        destination_address=destination_address,
        exchange_rate=Decimal(config.usdc_per_credit),
    )
    if record is None:
        logger.error(f"External transfer {tx_hash} not recorded (user={user_id})")
        return {"success": True, "transactionId": tx_hash}

    return {"success": True, "transactionId": record.id}
