"""
Supabase session authentication.

Supabase issues JWT access tokens for signed-in users. Clients send them as:
  - Authorization: Bearer <jwt>            (preferred)
  - sb-access-token cookie                 (browser fallback)

Tokens are verified with the project's JWT secret (HS256). When no secret is
configured but SUPABASE_URL is, the signing keys are taken from the project's
JWKS endpoint instead.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from typing import Optional

import jwt
from fastapi import Cookie, Header

from config import settings
from domain.errors import ConfigurationError, UnauthorizedError

logger = logging.getLogger(__name__)

_jwks_client: Optional[jwt.PyJWKClient] = None


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    email: Optional[str] = None
    role: Optional[str] = None


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


def _get_jwks_client() -> jwt.PyJWKClient:
    global _jwks_client
    if _jwks_client is None:
        _jwks_client = jwt.PyJWKClient(settings.supabase_jwks_url)
    return _jwks_client


def decode_access_token(token: str) -> dict:
    options = {"require": ["exp", "sub"]}
    try:
        if settings.supabase_jwt_secret:
            return jwt.decode(
                token,
                settings.supabase_jwt_secret,
                algorithms=["HS256"],
                audience=settings.supabase_jwt_audience,
                options=options,
            )
        if settings.supabase_jwks_url:
            signing_key = _get_jwks_client().get_signing_key_from_jwt(token)
            return jwt.decode(
                token,
                signing_key.key,
                algorithms=["ES256", "RS256"],
                audience=settings.supabase_jwt_audience,
                options=options,
            )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Access token expired.")
    except jwt.PyJWKClientError as e:
        logger.error(f"Could not fetch Supabase signing keys: {e}")
        raise UnauthorizedError()
    except jwt.InvalidTokenError:
        raise UnauthorizedError()

    raise ConfigurationError("Server auth misconfigured (Supabase JWT secret missing).")


def issue_access_token(*, user_id: str, email: Optional[str] = None, ttl_minutes: int = 60) -> str:
    """Sign a Supabase-shaped access token with the project secret."""
    if not settings.supabase_jwt_secret:
        raise ConfigurationError("Server auth misconfigured (Supabase JWT secret missing).")
    now = _now_utc()
    payload = {
        "aud": settings.supabase_jwt_audience,
        "sub": user_id,
        "email": email,
        "role": "authenticated",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=ttl_minutes)).timestamp()),
    }
    return jwt.encode(payload, settings.supabase_jwt_secret, algorithm="HS256")


async def require_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    sb_access_token: Optional[str] = Cookie(None, alias="sb-access-token"),
) -> AuthenticatedUser:
    """Dependency for every /api route; 401 without a valid session."""
    token = _parse_bearer_token(authorization) or sb_access_token
    if not token:
        raise UnauthorizedError()

    payload = decode_access_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError()
    return AuthenticatedUser(id=user_id, email=payload.get("email"), role=payload.get("role"))
