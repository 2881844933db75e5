import logging
from datetime import date, timedelta
from typing import Any, Dict, Optional

import httpx

from src.core.settings import Settings
from src.shared.exceptions import IntegrationConnectionError

XERO_API_BASE_URL = "https://api.xero.com/api.xro/2.0"


def xero_date_filter(value: date) -> str:
    """Xero where-clause date literal, e.g. DateTime(2024,1,15)."""
    return f"DateTime({value.year},{value.month},{value.day})"


class XeroDataService:
    """Read-only calls to the Xero accounting API used by the ETL."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.base_url = XERO_API_BASE_URL
        self.timeout = settings.XERO_HTTP_TIMEOUT
        self.wages_account_code = settings.XERO_WAGES_ACCOUNT_CODE
        self.rolling_weeks = settings.ETL_ROLLING_WEEKS
        self.transport = transport
        self.logger = logger or logging.getLogger(__name__)

    async def fetch_financial_data(
        self, access_token: str, tenant_id: str, as_of: date
    ) -> Dict[str, Any]:
        """
        Fetch the raw payloads the transform step works on.

        Args:
            access_token: Fresh Xero access token
            tenant_id: Xero tenant the connection is scoped to
            as_of: Run date; windows are computed backwards from it

        Returns:
            Dict with ``bankTransactions``, ``accounts`` and ``profitLoss``
            holding the untouched JSON responses

        Raises:
            IntegrationConnectionError: On any non-2xx response, transport
                error or timeout
        """
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Xero-Tenant-Id": tenant_id,
            "Accept": "application/json",
        }

        week_start = as_of - timedelta(days=7)
        report_start = as_of - timedelta(weeks=self.rolling_weeks) + timedelta(days=1)

        async with httpx.AsyncClient(
            transport=self.transport, timeout=self.timeout, headers=headers
        ) as client:
            self.logger.info("Calling Xero BankTransactions API")
            bank_transactions = await self._get_json(
                client,
                "BankTransactions",
                f"{self.base_url}/BankTransactions",
                params={
                    "where": (
                        f'Type=="RECEIVE" AND Date>={xero_date_filter(week_start)}'
                    )
                },
            )

            self.logger.info("Calling Xero Accounts API")
            accounts = await self._get_json(
                client,
                "Accounts",
                f"{self.base_url}/Accounts",
                params={"where": f'Code=="{self.wages_account_code}"'},
            )

            self.logger.info("Calling Xero ProfitAndLoss Report API")
            profit_loss = await self._get_json(
                client,
                "ProfitAndLoss",
                f"{self.base_url}/Reports/ProfitAndLoss",
                params={
                    "fromDate": report_start.isoformat(),
                    "toDate": as_of.isoformat(),
                },
            )

        return {
            "bankTransactions": bank_transactions,
            "accounts": accounts,
            "profitLoss": profit_loss,
        }

    async def _get_json(
        self,
        client: httpx.AsyncClient,
        name: str,
        url: str,
        params: Dict[str, str],
    ) -> Dict[str, Any]:
        try:
            response = await client.get(url, params=params)
        except httpx.RequestError as e:
            raise IntegrationConnectionError(f"{name} API request failed: {e!r}")

        if response.is_error:
            raise IntegrationConnectionError(
                f"{name} API failed: {response.status_code}"
            )

        return response.json()
