"""
Transaction recorder — one transactions row per dispatched purchase.

Rows start as status "pending". Confirmation (status/tx_hash updates) happens
outside this service.

A failed write after a successful dispatch is tolerated: the funds have
already moved, so the caller still reports success and the failure is only
logged for operators. Callers receive None in that case.
"""
import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Transaction
from domain.constants import (
    ASSET_USDC,
    CHAIN_NAMES,
    CUSTODIAL_KEY_PREFIX,
    DIRECTION_CREDIT,
    EXTERNAL_KEY_PREFIX,
    PAYMENT_METHOD_CUSTODIAL,
    PAYMENT_METHOD_EXTERNAL,
)
from domain.enums import TransactionStatus
from domain.payments import DispatchResult, PurchaseRequest

logger = logging.getLogger(__name__)


def custodial_idempotency_key(provider_transaction_id: str) -> str:
    return f"{CUSTODIAL_KEY_PREFIX}{provider_transaction_id}"


def external_idempotency_key(chain_id: int, tx_hash: str) -> str:
    return f"{EXTERNAL_KEY_PREFIX}{chain_id}:{tx_hash.lower()}"


async def get_by_idempotency_key(db: AsyncSession, key: str) -> Optional[Transaction]:
    result = await db.execute(select(Transaction).where(Transaction.idempotency_key == key))
    return result.scalar_one_or_none()


async def _insert(db: AsyncSession, row: Transaction) -> Optional[Transaction]:
    db.add(row)
    try:
        await db.commit()
    except IntegrityError:
        # Same idempotency key already stored; keep the first row.
        await db.rollback()
        existing = await get_by_idempotency_key(db, row.idempotency_key)
        if existing is not None:
            logger.info(f"Transaction already recorded for key {row.idempotency_key}")
            return existing
        logger.error(f"Failed to record transaction {row.idempotency_key}: integrity error")
        return None
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to record transaction {row.idempotency_key}: {e}")
        return None

    await db.refresh(row)
    return row


async def record_custodial_payment(
    db: AsyncSession,
    *,
    user_id: str,
    request: PurchaseRequest,
    result: DispatchResult,
    exchange_rate: Decimal = Decimal("1"),
) -> Optional[Transaction]:
    """Persist a custodial transfer accepted by the provider (hash still pending)."""
    row = Transaction(
        user_id=user_id,
        wallet_id=result.wallet_id,
        direction=DIRECTION_CREDIT,
        amount_usdc=request.usdc_amount,
        credit_amount=request.credits,
        exchange_rate=exchange_rate,
        chain=result.chain,
        asset=ASSET_USDC,
        tx_hash=result.tx_hash,
        status=TransactionStatus.PENDING.value,
        idempotency_key=custodial_idempotency_key(result.provider_transaction_id),
        meta={
            "payment_method": PAYMENT_METHOD_CUSTODIAL,
            "circle_transaction_id": result.provider_transaction_id,
            "amount_units": str(result.amount_units),
        },
    )
    return await _insert(db, row)


async def record_external_payment(
    db: AsyncSession,
    *,
    user_id: str,
    request: PurchaseRequest,
    tx_hash: str,
    chain_id: int,
    wallet_address: str,
    destination_address: str,
    exchange_rate: Decimal = Decimal("1"),
) -> Optional[Transaction]:
    """Persist a transfer the user already sent from an external wallet."""
    key = external_idempotency_key(chain_id, tx_hash)
    existing = await get_by_idempotency_key(db, key)
    if existing is not None:
        return existing

    row = Transaction(
        user_id=user_id,
        wallet_id=wallet_address,
        direction=DIRECTION_CREDIT,
        amount_usdc=request.usdc_amount,
        credit_amount=request.credits,
        exchange_rate=exchange_rate,
        chain=CHAIN_NAMES.get(chain_id, str(chain_id)),
        asset=ASSET_USDC,
        tx_hash=tx_hash,
        status=TransactionStatus.PENDING.value,
        idempotency_key=key,
        meta={
            "payment_method": PAYMENT_METHOD_EXTERNAL,
            "chain_id": chain_id,
            "wallet_address": wallet_address,
            "destination_address": destination_address,
        },
    )
    return await _insert(db, row)


async def list_user_transactions(
    db: AsyncSession,
    user_id: str,
    *,
    limit: int = 50,
    offset: int = 0,
) -> list[Transaction]:
    result = await db.execute(
        select(Transaction)
        .where(Transaction.user_id == user_id)
        .order_by(Transaction.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


def serialize_transaction(tx: Transaction) -> dict:
    return {
        "id": tx.id,
        "walletId": tx.wallet_id,
        "direction": tx.direction,
        "amountUsdc": str(tx.amount_usdc),
        "creditAmount": tx.credit_amount,
        "chain": tx.chain,
        "asset": tx.asset,
        "txHash": tx.tx_hash,
        "status": tx.status,
        "createdAt": tx.created_at.isoformat() if tx.created_at else None,
    }
