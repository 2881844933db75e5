# apps/api/src/domains/xero/auth/service.py
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlencode

import httpx
import jwt

from src.domains.auth.dependencies import get_session_user_id
from src.shared.encryption import encrypt_token
from src.shared.exceptions import (
    IntegrationAuthenticationError,
    IntegrationConnectionError,
    ResourceNotFoundError,
)

from ..models import (
    XeroAuthUrlResponse,
    XeroCallbackParams,
    XeroConnectionResponse,
    XeroConnectionStatus,
    XeroDisconnectResponse,
    XeroStateTokenPayload,
    XeroTenantInfo,
    XeroTokenResponse,
)
from .identity import XERO_AUTHORIZE_URL, XERO_CONNECTIONS_URL, XeroIdentityClient

STATE_TOKEN_TTL = timedelta(minutes=30)


class XeroOAuthService(XeroIdentityClient):
    """Service for the Xero OAuth connection lifecycle of a single user."""

    def start_connection(self, user_id: str) -> XeroAuthUrlResponse:
        """
        Build the Xero authorization URL for a signed-in user.

        Args:
            user_id: Supabase user ID of the user initiating the connection

        Returns:
            XeroAuthUrlResponse with authorization URL and state expiry
        """
        if not self.client_id:
            raise IntegrationConnectionError("Xero client credentials not configured")

        expires_at = datetime.now(timezone.utc) + STATE_TOKEN_TTL
        state_token = self._generate_state_token(user_id, expires_at)

        auth_params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.settings.xero_redirect_uri,
            "scope": self.settings.XERO_SCOPES,
            "state": state_token,
        }

        return XeroAuthUrlResponse(
            auth_url=f"{XERO_AUTHORIZE_URL}?{urlencode(auth_params)}",
            expires_at=expires_at,
        )

    async def complete_connection(
        self,
        callback_params: XeroCallbackParams,
        session_token: Optional[str],
    ) -> XeroConnectionResponse:
        """
        Complete the OAuth connection using the callback parameters.

        Exchanges the code, discovers the tenant, identifies the caller from
        the session cookie and upserts the encrypted connection. Nothing is
        written unless every step succeeds.

        Args:
            callback_params: Parameters from Xero OAuth callback
            session_token: Supabase access token from the session cookie

        Returns:
            XeroConnectionResponse with connection details

        Raises:
            IntegrationAuthenticationError: For OAuth flow and session errors
            IntegrationConnectionError: For upstream failures
            DatastoreError: If the connection cannot be stored
        """
        if callback_params.error:
            error_desc = callback_params.error_description or callback_params.error
            raise IntegrationAuthenticationError(error_desc)

        if not callback_params.code:
            raise IntegrationAuthenticationError("No authorization code provided")

        state_payload = None
        if callback_params.state:
            state_payload = self._validate_state_token(callback_params.state)

        self.logger.info("Processing OAuth callback with code")
        token_response = await self._exchange_code_for_tokens(callback_params.code)
        self.logger.info("Token exchange successful")

        tenant_info = await self._get_tenant_info(token_response.access_token)
        self.logger.info(f"Connected to Xero org: {tenant_info.tenantName}")

        user_id = get_session_user_id(session_token, self.settings)
        if state_payload and state_payload.user_id != user_id:
            raise IntegrationAuthenticationError(
                "OAuth state does not match the current session"
            )

        if not token_response.refresh_token:
            raise IntegrationAuthenticationError(
                "Xero did not issue a refresh token (offline_access scope missing)"
            )

        encrypted_token = encrypt_token(
            token_response.refresh_token, self.encryption_key
        )

        connected_at = datetime.now(timezone.utc)
        self.logger.info(f"Storing connection for user: {user_id}")
        self.repository.upsert_connection(
            user_id=user_id,
            tenant_id=tenant_info.tenantId,
            encrypted_refresh_token=encrypted_token,
            organization_name=tenant_info.tenantName,
            connected_at=connected_at,
        )
        self.logger.info("Connection stored successfully")

        return XeroConnectionResponse(
            message="Xero connection established successfully",
            connected_at=connected_at,
            tenant_name=tenant_info.tenantName,
            user_id=user_id,
        )

    def get_connection_status(self, user_id: str) -> XeroConnectionStatus:
        """Current connection status for a user; never exposes the token."""
        connection = self.repository.get_connection_for_user(user_id)
        return XeroConnectionStatus.from_record(connection)

    def disconnect(self, user_id: str) -> XeroDisconnectResponse:
        """
        Remove the user's Xero connection.

        Raises:
            ResourceNotFoundError: If the user has no connection
        """
        removed = self.repository.delete_connection_for_user(user_id)
        if not removed:
            raise ResourceNotFoundError("No Xero connection found")

        self.logger.info(f"Disconnected Xero for user: {user_id}")
        return XeroDisconnectResponse(
            message="Xero connection disconnected successfully",
            disconnected_at=datetime.now(timezone.utc),
        )

    def _generate_state_token(self, user_id: str, expires_at: datetime) -> str:
        """Generate JWT state token for OAuth flow."""
        if not self.settings.JWT_SECRET:
            raise IntegrationAuthenticationError("JWT secret not configured")

        payload = XeroStateTokenPayload(
            user_id=user_id,
            csrf_token=secrets.token_urlsafe(32),
            issued_at=datetime.now(timezone.utc),
            expires_at=expires_at,
        )

        return jwt.encode(
            payload.model_dump(mode="json"),
            self.settings.JWT_SECRET,
            algorithm="HS256",
        )

    def _validate_state_token(self, token: str) -> XeroStateTokenPayload:
        """Validate and decode JWT state token."""
        if not self.settings.JWT_SECRET:
            raise IntegrationAuthenticationError("JWT secret not configured")

        try:
            payload = jwt.decode(token, self.settings.JWT_SECRET, algorithms=["HS256"])
            state_payload = XeroStateTokenPayload(**payload)
        except (jwt.InvalidTokenError, ValueError):
            raise IntegrationAuthenticationError("Invalid OAuth state token")

        if datetime.now(timezone.utc) > state_payload.expires_at:
            raise IntegrationAuthenticationError("OAuth session expired")

        return state_payload

    async def _exchange_code_for_tokens(self, code: str) -> XeroTokenResponse:
        """Exchange OAuth authorization code for access tokens."""
        return await self._request_tokens(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.settings.xero_redirect_uri,
            },
            failure_message="Token exchange failed",
        )

    async def _get_tenant_info(self, access_token: str) -> XeroTenantInfo:
        """Get tenant information from Xero connections endpoint."""
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

        async with self._http_client() as client:
            try:
                response = await client.get(XERO_CONNECTIONS_URL, headers=headers)
            except httpx.RequestError as e:
                raise IntegrationConnectionError(f"Tenant info request failed: {e!r}")

        if response.is_error:
            raise IntegrationConnectionError(
                f"Failed to fetch Xero connections: {response.status_code}"
            )

        connections = response.json()
        if not connections:
            raise IntegrationConnectionError(
                "No Xero organization found for this account"
            )

        # First tenant wins; a fresh authorization normally grants exactly one
        return XeroTenantInfo(**connections[0])
