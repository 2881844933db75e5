import logging
from typing import Dict, Optional

import httpx

from src.core.settings import Settings
from src.domains.xero.repository import XeroRepository
from src.shared.exceptions import IntegrationConnectionError

from ..models import XeroTokenResponse

# Xero OAuth endpoints
XERO_AUTHORIZE_URL = "https://login.xero.com/identity/connect/authorize"
XERO_TOKEN_URL = "https://identity.xero.com/connect/token"
XERO_CONNECTIONS_URL = "https://api.xero.com/connections"


class XeroIdentityClient:
    """Shared plumbing for calls to the Xero identity provider."""

    def __init__(
        self,
        repository: XeroRepository,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.repository = repository
        self.settings = settings
        self.client_id = settings.XERO_CLIENT_ID
        self.client_secret = settings.XERO_CLIENT_SECRET
        self.encryption_key = settings.ENCRYPTION_KEY or ""
        self.timeout = settings.XERO_HTTP_TIMEOUT
        self.transport = transport
        self.logger = logger or logging.getLogger(__name__)

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, timeout=self.timeout)

    async def _request_tokens(
        self, data: Dict[str, str], failure_message: str
    ) -> XeroTokenResponse:
        """
        POST a grant to the Xero token endpoint using HTTP Basic client auth.

        Args:
            data: Form fields of the grant (grant_type and its parameters)
            failure_message: Prefix for errors, e.g. "Token exchange failed"

        Raises:
            IntegrationConnectionError: For missing credentials, transport
                failures, timeouts and non-2xx responses
        """
        if not self.client_id or not self.client_secret:
            raise IntegrationConnectionError("Xero client credentials not configured")

        async with self._http_client() as client:
            try:
                response = await client.post(
                    XERO_TOKEN_URL,
                    data=data,
                    auth=(self.client_id, self.client_secret),
                    headers={"Accept": "application/json"},
                )
            except httpx.RequestError as e:
                raise IntegrationConnectionError(f"{failure_message}: {e!r}")

        if response.is_error:
            self.logger.error(f"{failure_message}: {response.text}")
            raise IntegrationConnectionError(
                f"{failure_message}: {response.status_code}"
            )

        return XeroTokenResponse(**response.json())
