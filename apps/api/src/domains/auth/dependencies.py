# apps/api/src/domains/auth/dependencies.py
import secrets
from functools import lru_cache
from typing import Optional

import jwt
from fastapi import Depends, Header, HTTPException, status
from jwt import PyJWKClient

from src.core.settings import Settings, get_settings
from src.shared.exceptions import IntegrationAuthenticationError, InvalidTokenError

from .types import SupabaseJwtPayload


@lru_cache(maxsize=4)
def _get_jwks_client(supabase_url: str) -> PyJWKClient:
    return PyJWKClient(f"{supabase_url}/auth/v1/jwks")


def decode_supabase_jwt(token: str, settings: Settings) -> SupabaseJwtPayload:
    """
    Verifies JWT token. Uses JWT_SECRET for development mode if available,
    otherwise falls back to Supabase JWKS for production.
    """
    # Development mode: prefer JWT_SECRET if available
    if settings.JWT_SECRET:
        try:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET,
                algorithms=["HS256"],
                options={"verify_aud": False},
            )
            return SupabaseJwtPayload(**dict(payload))
        except jwt.PyJWTError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired token",
            )

    # Production mode: use Supabase JWKS
    if not settings.SUPABASE_URL:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Supabase not configured",
        )
    try:
        signing_key = _get_jwks_client(settings.SUPABASE_URL).get_signing_key_from_jwt(
            token
        )
        payload = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256", "ES256"],
            options={"verify_aud": False},
        )
        # Create typed Pydantic model for JWT payload
        return SupabaseJwtPayload(**dict(payload))
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer ") :].strip()
    return token or None


def get_auth_id(
    authorization: str = Header(None),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Extracts and validates the Supabase JWT from the Authorization header.
    Returns the user's UUID (from the `sub` claim).
    """
    token = _bearer_token(authorization)
    if not token:
        raise InvalidTokenError("Missing token")

    payload = decode_supabase_jwt(token, settings)
    if not payload.sub:
        raise InvalidTokenError("Token has no subject")
    return payload.sub


def get_session_user_id(session_token: Optional[str], settings: Settings) -> str:
    """
    Resolve the user behind the Supabase session cookie.

    Raises:
        IntegrationAuthenticationError: If the cookie is missing or does not
            verify as a Supabase access token
    """
    if not session_token:
        raise IntegrationAuthenticationError(
            "User not authenticated - no session cookie found"
        )

    try:
        payload = decode_supabase_jwt(session_token, settings)
    except HTTPException:
        raise IntegrationAuthenticationError("User not authenticated")

    if not payload.sub:
        raise IntegrationAuthenticationError("User not authenticated")
    return payload.sub


def _is_service_role(token: Optional[str], settings: Settings) -> bool:
    expected = settings.SUPABASE_SERVICE_ROLE_KEY
    if not token or not expected:
        return False
    return secrets.compare_digest(token.encode("utf-8"), expected.encode("utf-8"))


def require_service_role(
    authorization: str = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Restrict an internal endpoint to callers holding the service-role key.

    Without a configured service-role key (local development) every caller
    is accepted.
    """
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        return

    if not _is_service_role(_bearer_token(authorization), settings):
        raise InvalidTokenError("Service role credentials required")


def get_etl_scope(
    authorization: str = Header(None),
    settings: Settings = Depends(get_settings),
) -> Optional[str]:
    """
    Resolve which users an ETL run may touch.

    Returns None for the service role (cron trigger, all users) and the
    caller's user id for a signed-in user (manual refresh of their own data).
    """
    token = _bearer_token(authorization)

    if _is_service_role(token, settings):
        return None

    if not token:
        if not settings.SUPABASE_SERVICE_ROLE_KEY:
            return None
        raise InvalidTokenError("Missing token")

    payload = decode_supabase_jwt(token, settings)
    if not payload.sub:
        raise InvalidTokenError("Token has no subject")
    return payload.sub
