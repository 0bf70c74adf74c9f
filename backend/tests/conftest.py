"""
Pytest configuration and shared fixtures for the USDC Credits tests.

Provides an in-memory SQLite session, an httpx client bound to the app with
dependency overrides, a fake Circle client, and Supabase-style auth headers.
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Test-only environment; must be set before config is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-supabase-secret-for-pytest-only")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:3000")

import asyncio
from datetime import datetime, timedelta
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from config import PaymentConfig, settings
from database import Base, get_db
from db_models import AdminWallet, Wallet
from services.circle_client import parse_token_balance

if not settings.supabase_jwt_secret:
    settings.supabase_jwt_secret = "test-supabase-secret-for-pytest-only"


# ── Test Data ────────────────────────────────────────────────────────

USER_ID = "6f1c2d8e-8a4b-4f3e-9c1d-2b7a5e0f9a11"
OTHER_USER_ID = "0b9d3c4a-1e2f-4a5b-8c7d-9e0f1a2b3c4d"

USDC_TOKEN_ID = "7adb2b7d-c9cd-5164-b2d4-b73b088274dc"
OTHER_TOKEN_ID = "979869da-9115-5f7d-917d-12d434e56ae7"

CIRCLE_WALLET_ID = "a3c5e7f9-0b1d-4f2a-8c3e-5d7f9b1c3e5a"
EOA_WALLET_ID = "b4d6f8a0-1c2e-4a3b-9d4f-6e8a0c2d4f6b"

USER_WALLET_ADDRESS = "0x" + "ab" * 20
ADMIN_ADDRESS = "0x" + "11" * 20
EXTERNAL_ADDRESS = "0x" + "cd" * 20
TX_HASH = "0x" + "a1" * 32


def usdc_balance_entry(amount: str = "150.00", token_id: str = USDC_TOKEN_ID, decimals: int = 6) -> dict:
    """One item of a Circle ``tokenBalances`` listing."""
    return {
        "token": {
            "id": token_id,
            "blockchain": "ETH-SEPOLIA",
            "name": "USDC",
            "symbol": "USDC",
            "decimals": decimals,
            "isNative": False,
        },
        "amount": amount,
        "updateDate": "2026-01-01T00:00:00Z",
    }


class FakeCircleClient:
    """
    Stand-in for CircleClient.

    Records every create_transaction call. ``gate`` (an asyncio.Event) makes
    create_transaction wait until the test releases it.
    """

    def __init__(
        self,
        entries: Optional[list] = None,
        transaction_id: str = "circle-tx-1",
        error: Optional[Exception] = None,
        gate: Optional[asyncio.Event] = None,
    ):
        self.entries = entries if entries is not None else [usdc_balance_entry()]
        self.transaction_id = transaction_id
        self.error = error
        self.gate = gate
        self.balance_calls = []
        self.transfers = []

    async def get_wallet_token_balance(self, wallet_id: str):
        self.balance_calls.append(wallet_id)
        return [parse_token_balance(entry) for entry in self.entries]

    async def create_transaction(self, **kwargs) -> str:
        self.transfers.append(kwargs)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.transaction_id


def auth_headers(user_id: str = USER_ID, email: str = "buyer@example.com") -> dict:
    from middleware.auth import issue_access_token

    token = issue_access_token(user_id=user_id, email=email)
    return {"Authorization": f"Bearer {token}"}


# ── Database Fixtures ────────────────────────────────────────────────


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create an in-memory SQLite database session for each test.

    Uses StaticPool to allow in-memory SQLite with async SQLAlchemy.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def payment_config() -> PaymentConfig:
    return PaymentConfig(
        destination_address=None,
        usdc_token_id=USDC_TOKEN_ID,
        usdc_per_credit=1,
        default_decimals=6,
        admin_wallet_label="Primary wallet",
        fee_level="MEDIUM",
    )


@pytest.fixture
def fake_circle() -> FakeCircleClient:
    return FakeCircleClient()


@pytest.fixture
def resolver(payment_config):
    from services.destination_service import DestinationResolver

    return DestinationResolver(payment_config)


@pytest.fixture
async def admin_wallet(db_session: AsyncSession) -> AdminWallet:
    admin = AdminWallet(label="Primary wallet", address=ADMIN_ADDRESS, chain="ETH-SEPOLIA")
    db_session.add(admin)
    await db_session.commit()
    await db_session.refresh(admin)
    return admin


@pytest.fixture
async def custodial_wallet(db_session: AsyncSession) -> Wallet:
    wallet = Wallet(
        user_id=USER_ID,
        circle_wallet_id=CIRCLE_WALLET_ID,
        blockchain="ETH-SEPOLIA",
        address=USER_WALLET_ADDRESS,
        type="SCA",
        name="Main",
        created_at=datetime.utcnow() - timedelta(days=1),
    )
    db_session.add(wallet)
    await db_session.commit()
    await db_session.refresh(wallet)
    return wallet


@pytest.fixture
async def client(db_session, fake_circle, resolver, payment_config) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx client bound to the app (no lifespan).

    Overrides the DB session, Circle client, destination resolver and
    payment config.
    """
    from deps import get_circle_client, get_destination_resolver, get_payment_config
    from main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_circle_client] = lambda: fake_circle
    app.dependency_overrides[get_destination_resolver] = lambda: resolver
    app.dependency_overrides[get_payment_config] = lambda: payment_config

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
