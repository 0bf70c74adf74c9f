"""
Wallet lookups: the user's custodial wallets and the platform admin wallet.
"""
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import AdminWallet, Wallet
from domain.errors import ConfigurationError, NotFoundError
from domain.payments import CustodialWallet

logger = logging.getLogger(__name__)


def serialize_wallet(wallet: Wallet) -> dict:
    return {
        "id": wallet.id,
        "circle_wallet_id": wallet.circle_wallet_id,
        "blockchain": wallet.blockchain,
        "address": wallet.address,
        "type": wallet.type,
        "name": wallet.name,
    }


def to_custodial_wallet(wallet: Wallet) -> CustodialWallet:
    return CustodialWallet(
        wallet_id=wallet.circle_wallet_id,
        blockchain=wallet.blockchain,
        address=wallet.address,
        type=wallet.type,
    )


async def list_user_wallets(db: AsyncSession, user_id: str) -> list[Wallet]:
    result = await db.execute(
        select(Wallet).where(Wallet.user_id == user_id).order_by(Wallet.created_at.desc())
    )
    return list(result.scalars().all())


async def get_user_wallet(db: AsyncSession, user_id: str, circle_wallet_id: str) -> Wallet:
    """A custodial wallet by provider id, only if owned by the user."""
    result = await db.execute(
        select(Wallet).where(
            Wallet.user_id == user_id,
            Wallet.circle_wallet_id == circle_wallet_id,
        )
    )
    wallet = result.scalar_one_or_none()
    if wallet is None:
        raise NotFoundError(f"Wallet not found: {circle_wallet_id}")
    return wallet


async def select_custodial_wallet(db: AsyncSession, user_id: str) -> Wallet:
    """
    Pick the wallet a custodial payment is sent from.

    Prefers an SCA wallet (type compared case-insensitively), otherwise the
    most recently created wallet.
    """
    result = await db.execute(
        select(Wallet)
        .where(Wallet.user_id == user_id, func.lower(Wallet.type) == "sca")
        .order_by(Wallet.created_at.desc())
        .limit(1)
    )
    wallet = result.scalar_one_or_none()
    if wallet is not None:
        return wallet

    result = await db.execute(
        select(Wallet)
        .where(Wallet.user_id == user_id)
        .order_by(Wallet.created_at.desc())
        .limit(1)
    )
    wallet = result.scalar_one_or_none()
    if wallet is None:
        raise NotFoundError(
            "Circle Developer Wallet not found. Please create one in the Wallet Demo first."
        )
    return wallet


async def get_admin_wallet(db: AsyncSession, label: str) -> AdminWallet:
    result = await db.execute(select(AdminWallet).where(AdminWallet.label == label))
    admin = result.scalar_one_or_none()
    if admin is None:
        logger.error(f"Admin wallet with label '{label}' not found")
        raise ConfigurationError("Platform admin wallet not configured")
    return admin
