from datetime import datetime, timezone
from typing import Any, Dict

from src.shared.encryption import decrypt_token, encrypt_token
from src.shared.exceptions import (
    DatastoreError,
    InvalidDataError,
    XeroConnectionNotFoundError,
)

from ..models import RefreshTokenResponse
from .identity import XeroIdentityClient


class XeroTokenService(XeroIdentityClient):
    """Exchanges a stored, encrypted refresh token for a fresh access token."""

    async def refresh_access_token(self, connection_id: str) -> RefreshTokenResponse:
        """
        Refresh the Xero access token of a stored connection.

        The access token is returned to the caller and never persisted. The
        refresh token Xero rotates on every use is re-encrypted and saved
        together with ``last_refreshed_at``; that write is best effort and a
        failure is only logged.

        Args:
            connection_id: ID of the xero_connections record

        Returns:
            RefreshTokenResponse with the access token and its lifetime

        Raises:
            InvalidDataError: If no connection_id is given
            XeroConnectionNotFoundError: If the connection does not exist
            TokenDecryptionError: If the stored token cannot be decrypted
            IntegrationConnectionError: If Xero rejects the refresh
        """
        if not connection_id:
            raise InvalidDataError("connection_id is required")

        self.logger.info(f"Refreshing token for connection: {connection_id}")

        connection = self.repository.get_connection(connection_id)
        if not connection:
            raise XeroConnectionNotFoundError()

        refresh_token = decrypt_token(
            connection.encrypted_refresh_token, self.encryption_key
        )

        self.logger.info("Exchanging refresh token for new access token")
        tokens = await self._request_tokens(
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
            failure_message="Token refresh failed",
        )
        self.logger.info("Token refresh successful")

        update: Dict[str, Any] = {
            "last_refreshed_at": datetime.now(timezone.utc).isoformat()
        }
        if tokens.refresh_token and tokens.refresh_token != refresh_token:
            update["encrypted_refresh_token"] = encrypt_token(
                tokens.refresh_token, self.encryption_key
            )

        try:
            self.repository.update_connection(connection_id, update)
        except DatastoreError as e:
            if "encrypted_refresh_token" in update:
                self.logger.error(
                    f"Rotated refresh token not saved for connection "
                    f"{connection_id}: {e.detail}"
                )
            else:
                self.logger.warning(f"Failed to update last_refreshed_at: {e.detail}")

        return RefreshTokenResponse(
            access_token=tokens.access_token,
            expires_in=tokens.expires_in,
        )
