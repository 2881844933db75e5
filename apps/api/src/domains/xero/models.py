# apps/api/src/domains/xero/models.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class XeroCallbackParams(BaseModel):
    """Query parameters from Xero OAuth callback."""

    code: Optional[str] = Field(None, description="OAuth authorization code")
    state: Optional[str] = Field(None, description="JWT state token")
    error: Optional[str] = Field(None, description="Error code if authorization failed")
    error_description: Optional[str] = Field(None, description="Error description")


class XeroTokenResponse(BaseModel):
    """Response from Xero token endpoint."""

    access_token: str = Field(..., description="Access token for API calls")
    refresh_token: Optional[str] = Field(
        None, description="Refresh token for token renewal"
    )
    expires_in: int = Field(..., description="Token lifetime in seconds")
    token_type: str = Field(default="Bearer", description="Token type")
    scope: Optional[str] = Field(None, description="Granted scopes")


class XeroTenantInfo(BaseModel):
    """Information about a Xero tenant from connections endpoint."""

    id: Optional[str] = Field(None, description="Xero connection UUID")
    tenantId: str = Field(..., description="Xero tenant ID")
    tenantName: str = Field(..., description="Organization name in Xero")
    tenantType: Optional[str] = Field(
        None, description="Tenant type (ORGANISATION, PRACTICE)"
    )
    createdDateUtc: Optional[datetime] = Field(None, description="Connection created")
    updatedDateUtc: Optional[datetime] = Field(None, description="Connection updated")


class XeroStateTokenPayload(BaseModel):
    """JWT payload for OAuth state token."""

    user_id: str = Field(..., description="User starting the connection")
    csrf_token: str = Field(..., description="CSRF protection token")
    issued_at: datetime = Field(..., description="Token issue time")
    expires_at: datetime = Field(..., description="Token expiry time")


class XeroAuthUrlResponse(BaseModel):
    """Response model for OAuth authorization URL generation."""

    auth_url: str = Field(..., description="Xero OAuth authorization URL")
    expires_at: datetime = Field(..., description="When the state token expires")


class XeroConnectionResponse(BaseModel):
    """Result of a completed OAuth callback."""

    message: str = Field(..., description="Success message")
    connected_at: datetime = Field(..., description="When connection was established")
    tenant_name: str = Field(..., description="Connected Xero organization name")
    user_id: str = Field(..., description="User owning the connection")


class XeroConnectionRecord(BaseModel):
    """Row of the ``xero_connections`` table."""

    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str
    tenant_id: str
    encrypted_refresh_token: str
    organization_name: Optional[str] = None
    connected_at: Optional[datetime] = None
    last_refreshed_at: Optional[datetime] = None


class XeroConnectionStatus(BaseModel):
    """Response model for Xero connection status."""

    connected: bool = Field(..., description="Whether the user is connected to Xero")
    connection_id: Optional[str] = Field(None, description="Connection row ID")
    tenant_id: Optional[str] = Field(None, description="Xero tenant ID if connected")
    organization_name: Optional[str] = Field(
        None, description="Xero organization name if connected"
    )
    connected_at: Optional[datetime] = Field(
        None, description="When connection was established"
    )
    last_refreshed_at: Optional[datetime] = Field(
        None, description="Last token refresh time"
    )

    @classmethod
    def from_record(
        cls, connection: Optional[XeroConnectionRecord]
    ) -> "XeroConnectionStatus":
        """Create status response from a stored connection row."""
        if not connection:
            return cls(connected=False)

        return cls(
            connected=True,
            connection_id=connection.id,
            tenant_id=connection.tenant_id,
            organization_name=connection.organization_name,
            connected_at=connection.connected_at,
            last_refreshed_at=connection.last_refreshed_at,
        )


class XeroDisconnectResponse(BaseModel):
    """Response model for disconnection."""

    message: str = Field(..., description="Success message")
    disconnected_at: datetime = Field(..., description="When disconnection occurred")


class RefreshTokenRequest(BaseModel):
    """Body of the token refresh endpoint."""

    connection_id: Optional[str] = Field(
        None, description="ID of the xero_connections record"
    )


class RefreshTokenResponse(BaseModel):
    """Fresh Xero access token; the refresh token never leaves the server."""

    access_token: str = Field(..., description="Access token for API calls")
    expires_in: int = Field(..., description="Token lifetime in seconds")
