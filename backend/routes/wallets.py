"""
Wallet routes — destination address and the user's custodial wallets.

Endpoints:
    GET /api/destination-wallet   — merchant address that receives USDC
    GET /api/user-wallets         — custodial wallets owned by the user
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from deps import (
    AuthenticatedUser,
    get_db,
    get_destination_resolver,
    require_user,
)
from domain.responses import ERROR_RESPONSES
from models import DestinationResponse, UserWalletsResponse
from services import wallet_service
from services.destination_service import DestinationResolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["wallets"], responses=ERROR_RESPONSES)


@router.get("/destination-wallet", response_model=DestinationResponse)
async def get_destination_wallet(
    user: AuthenticatedUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    resolver: DestinationResolver = Depends(get_destination_resolver),
):
    """Payments stay disabled client-side until this resolves."""
    address = await resolver.resolve(db)
    return {"address": address}


@router.get("/user-wallets", response_model=UserWalletsResponse)
async def get_user_wallets(
    user: AuthenticatedUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    wallets = await wallet_service.list_user_wallets(db, user.id)
    return {"wallets": [wallet_service.serialize_wallet(w) for w in wallets]}
