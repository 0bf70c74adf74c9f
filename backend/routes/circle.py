"""
Circle wallet routes — custodial balance and payment.

Endpoints:
    GET  /api/circle/balance?walletId=   — USDC balance of one of the user's wallets
    POST /api/circle/payment             — buy credits from the custodial wallet
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from config import PaymentConfig
from deps import (
    AuthenticatedUser,
    get_circle_client,
    get_db,
    get_payment_config,
    require_user,
)
from domain.responses import ERROR_RESPONSES
from models import BalanceResponse, CirclePaymentResponse, CircleUsdcPaymentRequest
from services import balance_service, payment_service, wallet_service
from services.circle_client import CircleClient
from utils.validators import wallet_id_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/circle", tags=["circle"], responses=ERROR_RESPONSES)


@router.get("/balance", response_model=BalanceResponse)
async def get_balance(
    user: AuthenticatedUser = Depends(require_user),
    wallet_id: str = Depends(wallet_id_query),
    db: AsyncSession = Depends(get_db),
    circle: CircleClient = Depends(get_circle_client),
    config: PaymentConfig = Depends(get_payment_config),
):
    await wallet_service.get_user_wallet(db, user.id, wallet_id)
    return await balance_service.get_custodial_usdc_balance(circle, wallet_id, config.usdc_token_id)


@router.post("/payment", response_model=CirclePaymentResponse)
async def create_payment(
    req: CircleUsdcPaymentRequest,
    x_idempotency_key: Optional[str] = Header(None, alias="X-Idempotency-Key"),
    user: AuthenticatedUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    circle: CircleClient = Depends(get_circle_client),
    config: PaymentConfig = Depends(get_payment_config),
):
    logger.info(f"Circle payment requested: user={user.id} credits={req.credits}")
    return await payment_service.execute_custodial_payment(
        db,
        circle,
        user_id=user.id,
        credits=req.credits,
        usdc_amount=req.usdc_amount,
        config=config,
        idempotency_key=x_idempotency_key,
    )
