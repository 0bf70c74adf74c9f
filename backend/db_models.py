"""
SQLAlchemy ORM models for the USDC Credits backend.

Tables:
    wallets        — custodial (Circle) wallets owned by users
    admin_wallets  — platform wallets that receive USDC
    transactions   — one row per dispatched credit purchase
"""
import uuid
from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, JSON, Index,
)

from database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Wallet(Base):
    """Custodial wallets created through the wallet provider."""
    __tablename__ = "wallets"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    circle_wallet_id = Column(String(64), unique=True, nullable=False)
    blockchain = Column(String(32), nullable=False)  # e.g. "ETH-SEPOLIA"
    address = Column(String(64), nullable=False)
    type = Column(String(8), nullable=False, default="SCA")  # "SCA" | "EOA"
    name = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class AdminWallet(Base):
    """Platform receiving wallets, looked up by label."""
    __tablename__ = "admin_wallets"

    id = Column(String(36), primary_key=True, default=_uuid)
    label = Column(String(100), unique=True, nullable=False)
    circle_wallet_id = Column(String(64), nullable=True)
    address = Column(String(64), nullable=False)
    chain = Column(String(32), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class Transaction(Base):
    """
    Credit purchase attempts.

    Created with status "pending"; status and tx_hash are updated later by a
    confirmation process outside this service. Rows are never deleted here.
    """
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    wallet_id = Column(String(64), nullable=False)  # circle wallet id or external address
    direction = Column(String(10), nullable=False, default="credit")
    amount_usdc = Column(Numeric(18, 6), nullable=False)
    credit_amount = Column(Integer, nullable=False)
    exchange_rate = Column(Numeric(18, 6), nullable=False, default=1)
    chain = Column(String(32), nullable=False)
    asset = Column(String(10), nullable=False, default="USDC")
    tx_hash = Column(String(80), nullable=False, default="pending")
    status = Column(String(10), nullable=False, default="pending")  # pending | confirmed | failed
    idempotency_key = Column(String(160), unique=True, nullable=False)
    meta = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        # For purchase history: filter by user, newest first
        Index("ix_transactions_user_created", "user_id", "created_at"),
    )
