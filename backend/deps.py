"""
Shared FastAPI dependencies.

Routers import DB session, auth guard, third-party clients, the destination
resolver and pagination from here so tests can override them in one place.
"""

from __future__ import annotations

from typing import TypedDict

from fastapi import Query

from config import PaymentConfig, settings
from database import get_db  # noqa: F401
from middleware.auth import AuthenticatedUser, require_user  # noqa: F401
from services.circle_client import CircleClient, build_circle_client
from services.destination_service import DestinationResolver

_circle_client: CircleClient | None = None
destination_resolver = DestinationResolver(settings.payment_config)


class Pagination(TypedDict):
    limit: int
    offset: int


def pagination_params(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0, le=100_000),
) -> Pagination:
    return {"limit": limit, "offset": offset}


def get_payment_config() -> PaymentConfig:
    return settings.payment_config


def get_circle_client() -> CircleClient:
    """Process-wide Circle client (keeps the cached entity public key)."""
    global _circle_client
    if _circle_client is None:
        _circle_client = build_circle_client()
    return _circle_client


def get_destination_resolver() -> DestinationResolver:
    return destination_resolver
