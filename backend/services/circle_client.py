"""
Circle Developer-Controlled Wallets client (W3S REST API).

Covers the three calls the purchase flow needs:
    GET  /wallets/{id}/balances                — token balances
    POST /developer/transactions/transfer      — create a transfer
    GET  /config/entity/publicKey              — key for entity secret ciphertext

Every write call carries a freshly encrypted entitySecretCiphertext: the hex
entity secret is RSA-OAEP(SHA-256) encrypted with the entity public key and
base64 encoded. Circle rejects reused ciphertexts.
"""
import base64
import logging
import uuid
from typing import Optional

import httpx
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding

from config import settings
from domain.payments import TokenBalance
from exceptions import CircleAPIError

logger = logging.getLogger(__name__)


def parse_token_balance(entry: dict, default_decimals: int = 6) -> TokenBalance:
    """Turn one ``tokenBalances`` item into a TokenBalance."""
    token = entry.get("token") or {}
    decimals = token.get("decimals")
    return TokenBalance(
        token_id=token.get("id"),
        decimals=int(decimals) if decimals is not None else default_decimals,
        amount=str(entry.get("amount") or "0"),
        symbol=token.get("symbol"),
        raw=entry,
    )


class CircleClient:
    """Async client for the Circle W3S API."""

    def __init__(
        self,
        api_key: str,
        entity_secret: str = "",
        base_url: str = "https://api.circle.com/v1/w3s",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.entity_secret = entity_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._public_key_pem: Optional[str] = None

    def _headers(self) -> dict:
        if not self.api_key:
            raise CircleAPIError("CIRCLE_API_KEY is not configured")
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> dict:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, headers=self._headers(), json=json)
        except httpx.HTTPError as e:
            logger.error(f"Circle {method} {path} transport error: {e}")
            raise CircleAPIError(f"Circle API unreachable: {e}") from e

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            message = body.get("message") or response.text or "Circle API error"
            logger.error(f"Circle {method} {path} -> {response.status_code}: {message}")
            raise CircleAPIError(message, status_code=response.status_code, code=body.get("code"))

        try:
            return response.json()
        except ValueError as e:
            raise CircleAPIError("Circle API returned a non-JSON body", status_code=response.status_code) from e

    # ── Entity secret ───────────────────────────────────────────────

    async def get_entity_public_key(self) -> str:
        """Fetch (once) the PEM public key used to encrypt the entity secret."""
        if self._public_key_pem is None:
            body = await self._request("GET", "/config/entity/publicKey")
            key = (body.get("data") or {}).get("publicKey")
            if not key:
                raise CircleAPIError("Entity public key missing from response")
            self._public_key_pem = key
        return self._public_key_pem

    async def entity_secret_ciphertext(self) -> str:
        if not self.entity_secret:
            raise CircleAPIError("CIRCLE_ENTITY_SECRET is not configured")
        pem = await self.get_entity_public_key()
        public_key = serialization.load_pem_public_key(pem.encode("utf-8"))
        ciphertext = public_key.encrypt(
            bytes.fromhex(self.entity_secret),
            padding.OAEP(
                mgf=padding.MGF1(algorithm=hashes.SHA256()),
                algorithm=hashes.SHA256(),
                label=None,
            ),
        )
        return base64.b64encode(ciphertext).decode("ascii")

    # ── Balances ────────────────────────────────────────────────────

    async def get_wallet_token_balance(self, wallet_id: str) -> list[TokenBalance]:
        body = await self._request("GET", f"/wallets/{wallet_id}/balances")
        entries = (body.get("data") or {}).get("tokenBalances") or []
        return [parse_token_balance(entry) for entry in entries]

    # ── Transfers ───────────────────────────────────────────────────

    async def create_transaction(
        self,
        *,
        wallet_id: str,
        destination_address: str,
        amounts: list[str],
        token_id: str,
        fee_level: str = "MEDIUM",
        idempotency_key: Optional[str] = None,
    ) -> str:
        """
        Create a token transfer from a developer-controlled wallet.

        Returns:
            The provider-side transaction id.
        """
        payload = {
            "idempotencyKey": idempotency_key or str(uuid.uuid4()),
            "entitySecretCiphertext": await self.entity_secret_ciphertext(),
            "walletId": wallet_id,
            "tokenId": token_id,
            "destinationAddress": destination_address,
            "amounts": amounts,
            "feeLevel": fee_level,
        }
        body = await self._request("POST", "/developer/transactions/transfer", json=payload)
        transaction_id = (body.get("data") or {}).get("id")
        if not transaction_id:
            raise CircleAPIError("Failed to initiate Circle transaction")
        return transaction_id


def build_circle_client() -> CircleClient:
    return CircleClient(
        api_key=settings.circle_api_key,
        entity_secret=settings.circle_entity_secret,
        base_url=settings.circle_base_url,
        timeout=settings.circle_timeout_seconds,
    )
