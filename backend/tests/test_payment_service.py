"""
Tests for the purchase orchestration (custodial and external paths).
"""
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from db_models import Transaction
from domain.errors import (
    ConfigurationError,
    ConflictError,
    InsufficientFundsError,
    NotFoundError,
    TokenNotFoundError,
    ValidationError,
)
from services import payment_service
from tests.conftest import (
    ADMIN_ADDRESS,
    CIRCLE_WALLET_ID,
    EXTERNAL_ADDRESS,
    OTHER_TOKEN_ID,
    TX_HASH,
    USDC_TOKEN_ID,
    USER_ID,
    FakeCircleClient,
    usdc_balance_entry,
)


class TestBuildPurchaseRequest:

    @pytest.mark.unit
    def test_matching_amount(self, payment_config):
        request = payment_service.build_purchase_request(25, "25.00", payment_config)
        assert request.credits == 25
        assert request.usdc_amount == Decimal("25")

    @pytest.mark.unit
    def test_mismatched_amount(self, payment_config):
        with pytest.raises(ValidationError) as exc_info:
            payment_service.build_purchase_request(25, "20", payment_config)
        assert "usdcAmount" in exc_info.value.message


class TestCustodialPayment:

    @pytest.mark.unit
    async def test_end_to_end(self, db_session, payment_config, admin_wallet, custodial_wallet):
        circle = FakeCircleClient(entries=[usdc_balance_entry(amount="150.00")], transaction_id="circle-tx-77")

        body = await payment_service.execute_custodial_payment(
            db_session,
            circle,
            user_id=USER_ID,
            credits=100,
            usdc_amount=Decimal("100"),
            config=payment_config,
            idempotency_key="idem-abc",
        )

        transfer = circle.transfers[0]
        assert transfer["wallet_id"] == CIRCLE_WALLET_ID
        assert transfer["destination_address"] == ADMIN_ADDRESS
        assert transfer["amounts"] == ["100000000"]
        assert transfer["token_id"] == USDC_TOKEN_ID
        assert transfer["idempotency_key"] == "idem-abc"

        assert body["success"] is True
        assert body["providerTransactionId"] == "circle-tx-77"

        row = (await db_session.execute(select(Transaction))).scalar_one()
        assert body["transactionId"] == row.id
        assert row.status == "pending"
        assert row.tx_hash == "pending"
        assert row.credit_amount == 100
        assert Decimal(row.amount_usdc) == Decimal("100")
        assert row.wallet_id == CIRCLE_WALLET_ID
        assert row.chain == "ETH-SEPOLIA"
        assert "circle-tx-77" in row.idempotency_key
        assert row.meta["payment_method"] == "circle_developer_wallet"

    @pytest.mark.unit
    async def test_no_custodial_wallet(self, db_session, payment_config, admin_wallet):
        circle = FakeCircleClient()
        with pytest.raises(NotFoundError) as exc_info:
            await payment_service.execute_custodial_payment(
                db_session, circle, user_id=USER_ID, credits=10, usdc_amount=10, config=payment_config
            )
        assert exc_info.value.message.startswith("Circle Developer Wallet not found")
        assert circle.transfers == []

    @pytest.mark.unit
    async def test_no_admin_wallet(self, db_session, payment_config, custodial_wallet):
        circle = FakeCircleClient()
        with pytest.raises(ConfigurationError) as exc_info:
            await payment_service.execute_custodial_payment(
                db_session, circle, user_id=USER_ID, credits=10, usdc_amount=10, config=payment_config
            )
        assert exc_info.value.message == "Platform admin wallet not configured"

    @pytest.mark.unit
    async def test_token_not_found_short_circuits(self, db_session, payment_config, admin_wallet, custodial_wallet):
        circle = FakeCircleClient(entries=[usdc_balance_entry(token_id=OTHER_TOKEN_ID)])
        with pytest.raises(TokenNotFoundError):
            await payment_service.execute_custodial_payment(
                db_session, circle, user_id=USER_ID, credits=10, usdc_amount=10, config=payment_config
            )
        assert circle.transfers == []
        assert (await db_session.execute(select(Transaction))).scalars().all() == []

    @pytest.mark.unit
    async def test_insufficient_balance(self, db_session, payment_config, admin_wallet, custodial_wallet):
        circle = FakeCircleClient(entries=[usdc_balance_entry(amount="5.00")])
        with pytest.raises(InsufficientFundsError) as exc_info:
            await payment_service.execute_custodial_payment(
                db_session, circle, user_id=USER_ID, credits=10, usdc_amount=10, config=payment_config
            )
        assert exc_info.value.message == "Insufficient Circle wallet balance."
        assert circle.transfers == []

    @pytest.mark.unit
    async def test_persistence_failure_still_succeeds(
        self, db_session, payment_config, admin_wallet, custodial_wallet, monkeypatch
    ):
        circle = FakeCircleClient(transaction_id="circle-tx-5")
        monkeypatch.setattr(db_session, "commit", AsyncMock(side_effect=SQLAlchemyError("disk I/O error")))

        body = await payment_service.execute_custodial_payment(
            db_session, circle, user_id=USER_ID, credits=10, usdc_amount=10, config=payment_config
        )

        assert body == {
            "success": True,
            "transactionId": "circle-tx-5",
            "providerTransactionId": "circle-tx-5",
        }
        assert len(circle.transfers) == 1


class TestExternalPayment:

    @pytest.mark.unit
    async def test_records_pending_row(self, db_session, payment_config, admin_wallet, resolver):
        body = await payment_service.record_external_payment_request(
            db_session,
            resolver,
            user_id=USER_ID,
            credits=10,
            usdc_amount=10,
            tx_hash=TX_HASH,
            chain_id=11155111,
            wallet_address=EXTERNAL_ADDRESS,
            destination_address=ADMIN_ADDRESS,
            config=payment_config,
        )

        row = (await db_session.execute(select(Transaction))).scalar_one()
        assert body == {"success": True, "transactionId": row.id}
        assert row.tx_hash == TX_HASH
        assert row.wallet_id == EXTERNAL_ADDRESS
        assert row.status == "pending"
        assert row.meta["payment_method"] == "external_wallet"

    @pytest.mark.unit
    async def test_destination_mismatch(self, db_session, payment_config, admin_wallet, resolver):
        with pytest.raises(ConflictError):
            await payment_service.record_external_payment_request(
                db_session,
                resolver,
                user_id=USER_ID,
                credits=10,
                usdc_amount=10,
                tx_hash=TX_HASH,
                chain_id=11155111,
                wallet_address=EXTERNAL_ADDRESS,
                destination_address=EXTERNAL_ADDRESS,
                config=payment_config,
            )

    @pytest.mark.unit
    async def test_bad_hash(self, db_session, payment_config, admin_wallet, resolver):
        with pytest.raises(ValidationError):
            await payment_service.record_external_payment_request(
                db_session,
                resolver,
                user_id=USER_ID,
                credits=10,
                usdc_amount=10,
                tx_hash="0x" + "zz" * 32,
                chain_id=11155111,
                wallet_address=EXTERNAL_ADDRESS,
                destination_address=ADMIN_ADDRESS,
                config=payment_config,
            )
