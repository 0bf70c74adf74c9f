"""
Transaction routes — record external-wallet payments and list history.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from config import PaymentConfig
from deps import (
    AuthenticatedUser,
    Pagination,
    get_db,
    get_destination_resolver,
    get_payment_config,
    pagination_params,
    require_user,
)
from domain.responses import ERROR_RESPONSES
from models import ExternalTransactionRequest, RecordTransactionResponse
from services import payment_service, transaction_service
from services.destination_service import DestinationResolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["transactions"], responses=ERROR_RESPONSES)


@router.post("/transactions", response_model=RecordTransactionResponse)
async def record_transaction(
    req: ExternalTransactionRequest,
    user: AuthenticatedUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    resolver: DestinationResolver = Depends(get_destination_resolver),
    config: PaymentConfig = Depends(get_payment_config),
):
    """Persist a transfer the user already sent from an external wallet."""
    logger.info(f"Recording external transfer {req.tx_hash[:10]}... for user={user.id}")
    return await payment_service.record_external_payment_request(
        db,
        resolver,
        user_id=user.id,
        credits=req.credits,
        usdc_amount=req.usdc_amount,
        tx_hash=req.tx_hash,
        chain_id=req.chain_id,
        wallet_address=req.wallet_address,
        destination_address=req.destination_address,
        config=config,
    )


@router.get("/transactions")
async def list_transactions(
    user: AuthenticatedUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    page: Pagination = Depends(pagination_params),
):
    rows = await transaction_service.list_user_transactions(
        db, user.id, limit=page["limit"], offset=page["offset"]
    )
    return {
        "transactions": [transaction_service.serialize_transaction(tx) for tx in rows],
        "limit": page["limit"],
        "offset": page["offset"],
    }
