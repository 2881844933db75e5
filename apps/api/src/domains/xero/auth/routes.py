# apps/api/src/domains/xero/auth/routes.py
import logging
from typing import Optional
from urllib.parse import quote, urlencode

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse

from src.core.settings import Settings, get_settings
from src.domains.auth.dependencies import get_auth_id, require_service_role

from ..dependencies import get_oauth_service, get_token_service
from ..models import (
    RefreshTokenRequest,
    RefreshTokenResponse,
    XeroAuthUrlResponse,
    XeroCallbackParams,
    XeroConnectionStatus,
    XeroDisconnectResponse,
)
from .refresh import XeroTokenService
from .service import XeroOAuthService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Xero Auth"])


def _settings_redirect(frontend_url: str, **params: str) -> RedirectResponse:
    """Redirect to the frontend settings page with a status banner."""
    query = urlencode(params, quote_via=quote)
    return RedirectResponse(
        url=f"{frontend_url.rstrip('/')}/settings?{query}",
        status_code=status.HTTP_302_FOUND,
    )


@router.get(
    "/xero-oauth-start",
    response_model=XeroAuthUrlResponse,
    operation_id="startXeroConnection",
)
async def start_xero_connection(
    user_id: str = Depends(get_auth_id),
    service: XeroOAuthService = Depends(get_oauth_service),
) -> XeroAuthUrlResponse:
    """
    Build the Xero OAuth authorization URL for the signed-in user.

    The URL carries a signed state token (user ID + CSRF nonce) that the
    callback verifies. The state token expires in 30 minutes.
    """
    return service.start_connection(user_id)


@router.get("/xero-oauth-callback", operation_id="xeroOAuthCallback")
async def xero_oauth_callback(
    request: Request,
    code: Optional[str] = Query(None, description="OAuth authorization code"),
    state: Optional[str] = Query(None, description="OAuth state token"),
    error: Optional[str] = Query(None, description="OAuth error code"),
    error_description: Optional[str] = Query(
        None, description="OAuth error description"
    ),
    service: XeroOAuthService = Depends(get_oauth_service),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """
    Handle the OAuth callback from Xero after user authorization.

    **Authentication**: Supabase session cookie (``sb-access-token``)

    **Redirect Behavior**:
    - Success: `{frontend}/settings?xero=connected&org={name}`
    - Error: `{frontend}/settings?xero=error&message={description}`
    """
    if error:
        logger.error(f"Xero OAuth error: {error}")
        return _settings_redirect(
            settings.FRONTEND_URL, xero="error", message=error_description or error
        )

    callback_params = XeroCallbackParams(
        code=code,
        state=state,
        error=error,
        error_description=error_description,
    )

    try:
        connection = await service.complete_connection(
            callback_params,
            session_token=request.cookies.get(settings.SESSION_COOKIE_NAME),
        )
    except HTTPException as e:
        logger.error(f"OAuth callback error: {e.detail}")
        return _settings_redirect(settings.FRONTEND_URL, xero="error", message=e.detail)
    except Exception as e:
        logger.error(f"OAuth callback error: {e}", exc_info=True)
        return _settings_redirect(
            settings.FRONTEND_URL, xero="error", message="Connection failed"
        )

    return _settings_redirect(
        settings.FRONTEND_URL, xero="connected", org=connection.tenant_name
    )


@router.post(
    "/xero-refresh-token",
    response_model=RefreshTokenResponse,
    operation_id="refreshXeroToken",
    dependencies=[Depends(require_service_role)],
)
async def refresh_xero_token(
    body: Optional[RefreshTokenRequest] = None,
    service: XeroTokenService = Depends(get_token_service),
) -> RefreshTokenResponse:
    """
    Exchange a connection's stored refresh token for a fresh access token.

    **Authentication**: service-role key (internal callers only)

    Raises:
        HTTP 400: If connection_id is missing
        HTTP 405: For any method other than POST
        HTTP 500: Connection missing, undecryptable, or refresh rejected
    """
    connection_id = body.connection_id if body else None
    return await service.refresh_access_token(connection_id or "")


@router.get(
    "/xero-connection",
    response_model=XeroConnectionStatus,
    operation_id="getXeroConnectionStatus",
)
async def get_xero_connection_status(
    user_id: str = Depends(get_auth_id),
    service: XeroOAuthService = Depends(get_oauth_service),
) -> XeroConnectionStatus:
    """Get the signed-in user's Xero connection status."""
    return service.get_connection_status(user_id)


@router.delete(
    "/xero-connection",
    response_model=XeroDisconnectResponse,
    operation_id="disconnectXero",
)
async def disconnect_xero(
    user_id: str = Depends(get_auth_id),
    service: XeroOAuthService = Depends(get_oauth_service),
) -> XeroDisconnectResponse:
    """
    Disconnect the signed-in user's Xero integration.

    The stored connection, including the encrypted refresh token, is deleted.
    Cached extracts are kept.

    Raises:
        HTTP 404: If the user has no Xero connection
    """
    return service.disconnect(user_id)
