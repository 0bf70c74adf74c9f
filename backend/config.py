"""
Configuration management for the USDC Credits backend.

Loads settings from .env via pydantic-settings.

Notes:
    - payment_config is built once and cached; it is immutable for the
      process lifetime.
    - validate_production_settings() refuses to start a production
      deployment without Circle and Supabase credentials.
"""
import logging
from decimal import Decimal
from functools import cached_property
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class PaymentConfig(BaseModel):
    """Process-wide purchase configuration (read-only)."""
    model_config = ConfigDict(frozen=True)

    destination_address: Optional[str] = None
    usdc_token_id: Optional[str] = None
    usdc_per_credit: Decimal = Decimal("1")
    default_decimals: int = 6
    admin_wallet_label: str = "Primary wallet"
    fee_level: str = "MEDIUM"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Application ─────────────────────────────────────────────────
    environment: str = "development"

    # ── Database (Supabase Postgres or local SQLite) ────────────────
    database_url: str = "sqlite:///./data/credits.db"

    # ── Supabase Auth ───────────────────────────────────────────────
    supabase_url: str = ""
    supabase_jwt_secret: str = ""
    supabase_jwt_audience: str = "authenticated"

    # ── Circle Developer-Controlled Wallets ─────────────────────────
    circle_api_key: str = ""
    circle_entity_secret: str = ""
    circle_base_url: str = "https://api.circle.com/v1/w3s"
    circle_usdc_token_id: str = ""
    circle_fee_level: str = "MEDIUM"
    circle_timeout_seconds: float = 15.0

    # ── Destination ─────────────────────────────────────────────────
    # When empty, the admin wallet labelled admin_wallet_label is used.
    destination_wallet_address: str = ""
    admin_wallet_label: str = "Primary wallet"

    # ── External (EVM) wallets ──────────────────────────────────────
    evm_rpc_url: str = "http://127.0.0.1:8545"
    evm_chain_id: int = 11155111  # Ethereum Sepolia
    usdc_contract_address: str = ""
    usdc_decimals: int = 6

    # ── Purchase ────────────────────────────────────────────────────
    usdc_per_credit: Decimal = Decimal("1")

    # ── CORS ────────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def supabase_jwks_url(self) -> Optional[str]:
        if not self.supabase_url:
            return None
        return f"{self.supabase_url.rstrip('/')}/auth/v1/.well-known/jwks.json"

    @cached_property
    def payment_config(self) -> PaymentConfig:
        """
        Snapshot of the purchase settings (computed once, cached).

        Later mutation of the individual settings does not change it.
        """
        return PaymentConfig(
            destination_address=self.destination_wallet_address or None,
            usdc_token_id=self.circle_usdc_token_id or None,
            usdc_per_credit=self.usdc_per_credit,
            default_decimals=self.usdc_decimals,
            admin_wallet_label=self.admin_wallet_label,
            fee_level=self.circle_fee_level,
        )

    def validate_production_settings(self):
        """
        Validate settings for production safety. Called during app startup.
        """
        missing = []
        if not self.circle_api_key:
            missing.append("CIRCLE_API_KEY")
        if not self.circle_entity_secret:
            missing.append("CIRCLE_ENTITY_SECRET")
        if not self.circle_usdc_token_id:
            missing.append("CIRCLE_USDC_TOKEN_ID")
        if not self.supabase_jwt_secret and not self.supabase_url:
            missing.append("SUPABASE_JWT_SECRET or SUPABASE_URL")

        if self.environment == "production":
            if "*" in self.cors_origins:
                raise ValueError(
                    "CORS_ORIGINS must not contain '*' in production. "
                    "Set explicit allowed origins."
                )
            if missing:
                raise ValueError(
                    f"Missing required settings for production: {', '.join(missing)}"
                )
            logger.info("Production settings validated")
        else:
            for name in missing:
                logger.warning(f"{name} not set; related endpoints will fail")
            if "*" in self.cors_origins:
                logger.warning("CORS_ORIGINS contains '*' (open access)")


# Global settings instance
settings = Settings()
