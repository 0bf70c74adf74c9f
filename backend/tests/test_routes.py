"""
Tests for API route endpoints.

Tests: health, destination wallet, user wallets, Circle balance and payment,
external transaction recording, error envelope.
"""
import pytest

from exceptions import CircleAPIError
from tests.conftest import (
    ADMIN_ADDRESS,
    CIRCLE_WALLET_ID,
    EXTERNAL_ADDRESS,
    OTHER_TOKEN_ID,
    OTHER_USER_ID,
    TX_HASH,
    USDC_TOKEN_ID,
    auth_headers,
    usdc_balance_entry,
)


def external_payload(**overrides) -> dict:
    payload = {
        "credits": 10,
        "usdcAmount": 10,
        "txHash": TX_HASH,
        "chainId": 11155111,
        "walletAddress": EXTERNAL_ADDRESS,
        "destinationAddress": ADMIN_ADDRESS,
    }
    payload.update(overrides)
    return payload


class TestHealthEndpoint:

    @pytest.mark.api
    async def test_health_returns_200(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database_connected"] is True
        assert "environment" in data


class TestAuthGuard:

    @pytest.mark.api
    @pytest.mark.parametrize(
        "method, path",
        [
            ("GET", "/api/destination-wallet"),
            ("GET", "/api/user-wallets"),
            ("GET", f"/api/circle/balance?walletId={CIRCLE_WALLET_ID}"),
            ("POST", "/api/circle/payment"),
            ("POST", "/api/transactions"),
            ("GET", "/api/transactions"),
        ],
    )
    async def test_requires_session(self, client, method, path):
        response = await client.request(method, path, json={} if method == "POST" else None)
        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Unauthorized"

    @pytest.mark.api
    async def test_invalid_token(self, client):
        response = await client.get("/api/user-wallets", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    @pytest.mark.api
    async def test_cookie_session(self, client):
        token = auth_headers()["Authorization"].split(" ", 1)[1]
        response = await client.get("/api/user-wallets", headers={"Cookie": f"sb-access-token={token}"})
        assert response.status_code == 200


class TestWalletEndpoints:

    @pytest.mark.api
    async def test_destination_from_admin_wallet(self, client, admin_wallet):
        response = await client.get("/api/destination-wallet", headers=auth_headers())
        assert response.status_code == 200
        assert response.json() == {"address": ADMIN_ADDRESS}

    @pytest.mark.api
    async def test_destination_not_configured(self, client):
        response = await client.get("/api/destination-wallet", headers=auth_headers())
        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Destination wallet address is not configured"
        assert body["code"] == "configuration_error"

    @pytest.mark.api
    async def test_user_wallets(self, client, custodial_wallet):
        response = await client.get("/api/user-wallets", headers=auth_headers())
        assert response.status_code == 200
        wallets = response.json()["wallets"]
        assert [w["circle_wallet_id"] for w in wallets] == [CIRCLE_WALLET_ID]
        assert wallets[0]["type"] == "SCA"

    @pytest.mark.api
    async def test_user_wallets_only_own(self, client, custodial_wallet):
        response = await client.get("/api/user-wallets", headers=auth_headers(user_id=OTHER_USER_ID))
        assert response.json() == {"wallets": []}


class TestCircleBalance:

    @pytest.mark.api
    async def test_balance(self, client, custodial_wallet, fake_circle):
        response = await client.get(
            "/api/circle/balance", params={"walletId": CIRCLE_WALLET_ID}, headers=auth_headers()
        )
        assert response.status_code == 200
        body = response.json()
        assert body["balance"] == "150.00"
        assert body["rawBalance"]["token"]["id"] == USDC_TOKEN_ID
        assert fake_circle.balance_calls == [CIRCLE_WALLET_ID]

    @pytest.mark.api
    async def test_missing_wallet_id(self, client):
        response = await client.get("/api/circle/balance", headers=auth_headers())
        assert response.status_code == 400
        assert response.json()["error"] == "walletId is required"

    @pytest.mark.api
    async def test_wallet_of_another_user(self, client, custodial_wallet, fake_circle):
        response = await client.get(
            "/api/circle/balance",
            params={"walletId": CIRCLE_WALLET_ID},
            headers=auth_headers(user_id=OTHER_USER_ID),
        )
        assert response.status_code == 404
        assert fake_circle.balance_calls == []

    @pytest.mark.api
    async def test_token_absent_reads_zero(self, client, custodial_wallet, fake_circle):
        fake_circle.entries = [usdc_balance_entry(token_id=OTHER_TOKEN_ID)]
        response = await client.get(
            "/api/circle/balance", params={"walletId": CIRCLE_WALLET_ID}, headers=auth_headers()
        )
        assert response.status_code == 200
        assert response.json()["balance"] == "0"


class TestCirclePayment:

    @pytest.mark.api
    async def test_payment(self, client, admin_wallet, custodial_wallet, fake_circle):
        response = await client.post(
            "/api/circle/payment",
            json={"credits": 100, "usdcAmount": 100},
            headers={**auth_headers(), "X-Idempotency-Key": "idem-route-1"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["providerTransactionId"] == "circle-tx-1"
        assert body["transactionId"]

        transfer = fake_circle.transfers[0]
        assert transfer["amounts"] == ["100000000"]
        assert transfer["destination_address"] == ADMIN_ADDRESS
        assert transfer["idempotency_key"] == "idem-route-1"

        history = await client.get("/api/transactions", headers=auth_headers())
        rows = history.json()["transactions"]
        assert [r["id"] for r in rows] == [body["transactionId"]]
        assert rows[0]["status"] == "pending"
        assert rows[0]["txHash"] == "pending"

    @pytest.mark.api
    async def test_no_custodial_wallet(self, client, admin_wallet):
        response = await client.post(
            "/api/circle/payment", json={"credits": 10, "usdcAmount": 10}, headers=auth_headers()
        )
        assert response.status_code == 404
        assert response.json()["error"].startswith("Circle Developer Wallet not found")

    @pytest.mark.api
    async def test_token_not_found(self, client, admin_wallet, custodial_wallet, fake_circle):
        fake_circle.entries = [usdc_balance_entry(token_id=OTHER_TOKEN_ID)]
        response = await client.post(
            "/api/circle/payment", json={"credits": 10, "usdcAmount": 10}, headers=auth_headers()
        )
        assert response.status_code == 404
        assert response.json()["error"] == "USDC balance not found in wallet."
        assert fake_circle.transfers == []

    @pytest.mark.api
    async def test_insufficient(self, client, admin_wallet, custodial_wallet, fake_circle):
        fake_circle.entries = [usdc_balance_entry(amount="1.00")]
        response = await client.post(
            "/api/circle/payment", json={"credits": 10, "usdcAmount": 10}, headers=auth_headers()
        )
        assert response.status_code == 400
        assert response.json()["code"] == "insufficient_funds"

    @pytest.mark.api
    async def test_provider_failure(self, client, admin_wallet, custodial_wallet, fake_circle):
        fake_circle.error = CircleAPIError("Insufficient native token for gas", status_code=400)
        response = await client.post(
            "/api/circle/payment", json={"credits": 10, "usdcAmount": 10}, headers=auth_headers()
        )
        assert response.status_code == 502
        assert response.json()["error"] == "Insufficient native token for gas"

    @pytest.mark.api
    async def test_amount_mismatch(self, client, admin_wallet, custodial_wallet):
        response = await client.post(
            "/api/circle/payment", json={"credits": 10, "usdcAmount": 9}, headers=auth_headers()
        )
        assert response.status_code == 400
        assert isinstance(response.json()["error"], str)

    @pytest.mark.api
    async def test_zero_credits(self, client):
        response = await client.post(
            "/api/circle/payment", json={"credits": 0, "usdcAmount": 10}, headers=auth_headers()
        )
        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert "credits" in body["error"]


class TestExternalTransactions:

    @pytest.mark.api
    async def test_record(self, client, admin_wallet):
        response = await client.post("/api/transactions", json=external_payload(), headers=auth_headers())
        assert response.status_code == 200
        first_id = response.json()["transactionId"]

        again = await client.post("/api/transactions", json=external_payload(), headers=auth_headers())
        assert again.json()["transactionId"] == first_id

        rows = (await client.get("/api/transactions", headers=auth_headers())).json()["transactions"]
        assert len(rows) == 1
        assert rows[0]["txHash"] == TX_HASH
        assert rows[0]["chain"] == "ETH-SEPOLIA"

    @pytest.mark.api
    async def test_wrong_destination(self, client, admin_wallet):
        response = await client.post(
            "/api/transactions",
            json=external_payload(destinationAddress=EXTERNAL_ADDRESS),
            headers=auth_headers(),
        )
        assert response.status_code == 409

    @pytest.mark.api
    async def test_invalid_wallet_address(self, client, admin_wallet):
        response = await client.post(
            "/api/transactions",
            json=external_payload(walletAddress="0x123"),
            headers=auth_headers(),
        )
        assert response.status_code == 400
        assert "walletAddress" in response.json()["error"]

    @pytest.mark.api
    async def test_history_pagination_bounds(self, client):
        response = await client.get("/api/transactions", params={"limit": 0}, headers=auth_headers())
        assert response.status_code == 422


class TestErrorEnvelope:

    @pytest.mark.api
    async def test_unknown_route(self, client):
        response = await client.get("/api/nope")
        assert response.status_code == 404
        body = response.json()
        assert body == {"success": False, "error": "Not Found", "code": "http_error"}

    @pytest.mark.api
    async def test_envelope_documented_in_openapi(self, client):
        schema = (await client.get("/openapi.json")).json()
        assert "StandardErrorResponse" in schema["components"]["schemas"]

        responses = schema["paths"]["/api/circle/payment"]["post"]["responses"]
        ref = responses["502"]["content"]["application/json"]["schema"]["$ref"]
        assert ref.endswith("/StandardErrorResponse")
