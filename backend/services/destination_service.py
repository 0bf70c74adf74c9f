"""
Destination resolver — the merchant address that receives USDC.

Resolution order: DESTINATION_WALLET_ADDRESS, then the admin wallet with the
configured label. The first successful resolution is cached for the process.
"""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from config import PaymentConfig
from domain.errors import ConfigurationError
from services import wallet_service

logger = logging.getLogger(__name__)


class DestinationResolver:

    def __init__(self, config: PaymentConfig):
        self._config = config
        self._address: Optional[str] = None

    @property
    def cached(self) -> Optional[str]:
        return self._address

    def warm(self) -> Optional[str]:
        """Resolve from static configuration only (no DB). Used at startup."""
        if self._address is None and self._config.destination_address:
            self._address = self._config.destination_address
            logger.info(f"Destination wallet configured: {self._address[:10]}...")
        return self._address

    async def resolve(self, db: AsyncSession) -> str:
        if self.warm():
            return self._address

        try:
            admin = await wallet_service.get_admin_wallet(db, self._config.admin_wallet_label)
        except ConfigurationError:
            raise ConfigurationError("Destination wallet address is not configured")

        self._address = admin.address
        logger.info(f"Destination wallet resolved from admin wallet: {self._address[:10]}...")
        return self._address

    def reset(self) -> None:
        self._address = None
