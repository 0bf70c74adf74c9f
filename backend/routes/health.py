"""
Health check endpoint.
"""
from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(db: AsyncSession = Depends(get_db)):
    """Health check — verifies database connectivity and reports config gaps."""
    config = settings.payment_config
    body = {
        "environment": settings.environment,
        "circle_configured": bool(settings.circle_api_key and config.usdc_token_id),
        "destination_configured": bool(config.destination_address),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={**body, "status": "unhealthy", "database_connected": False},
        )
    return {**body, "status": "healthy", "database_connected": True}
