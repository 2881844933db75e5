import logging
from datetime import datetime, timezone
from typing import List, Optional

from src.core.settings import Settings

from ..auth.refresh import XeroTokenService
from ..models import XeroConnectionRecord
from ..repository import XeroRepository
from .data_service import XeroDataService
from .models import ETLSummary, XeroDataCacheRecord, XeroExtractResult
from .transform import transform_xero_data


class XeroETLExtractor:
    """
    Batch extraction of Xero data for every stored connection.

    Connections are processed one after another. Each one ends as a
    XeroExtractResult, so a failing user never stops the run; only failing to
    enumerate the connections does.
    """

    def __init__(
        self,
        repository: XeroRepository,
        token_service: XeroTokenService,
        data_service: XeroDataService,
        settings: Settings,
        logger: Optional[logging.Logger] = None,
    ):
        self.repository = repository
        self.token_service = token_service
        self.data_service = data_service
        self.rolling_weeks = settings.ETL_ROLLING_WEEKS
        self.wages_account_code = settings.XERO_WAGES_ACCOUNT_CODE
        self.logger = logger or logging.getLogger(__name__)

    async def run(self, user_id: Optional[str] = None) -> ETLSummary:
        """
        Extract, transform and cache data for all connections.

        Args:
            user_id: Restrict the run to this user's connection

        Returns:
            ETLSummary with success/failure counts and per-user errors

        Raises:
            DatastoreError: If the connections cannot be loaded
        """
        self.logger.info("Starting ETL extraction process")

        connections = self.repository.list_connections(user_id)
        self.logger.info(f"Found {len(connections)} Xero connections to process")

        results: List[XeroExtractResult] = []
        for connection in connections:
            results.append(await self.extract_connection(connection))

        summary = ETLSummary.from_results(results)
        self.logger.info(
            f"ETL complete. Success: {summary.success}, Failed: {summary.failed}"
        )
        return summary

    async def extract_connection(
        self, connection: XeroConnectionRecord
    ) -> XeroExtractResult:
        """Run refresh, extract, transform and cache for one connection."""
        user_id = connection.user_id
        try:
            self.logger.info(f"Processing connection for user: {user_id}")
            tokens = await self.token_service.refresh_access_token(connection.id)

            now = datetime.now(timezone.utc)
            self.logger.info(f"Extracting Xero data for user: {user_id}")
            xero_data = await self.data_service.fetch_financial_data(
                tokens.access_token, connection.tenant_id, now.date()
            )

            self.logger.info(f"Transforming data for user: {user_id}")
            metrics = transform_xero_data(
                xero_data,
                as_of=now.replace(tzinfo=None),
                rolling_weeks=self.rolling_weeks,
                wages_account_code=self.wages_account_code,
            )

            self.repository.upsert_cached_extract(
                XeroDataCacheRecord(
                    user_id=user_id,
                    date=now.date(),
                    data_json=xero_data,
                    extracted_at=now,
                    **metrics.model_dump(),
                )
            )
        except Exception as e:
            message = getattr(e, "detail", None) or str(e) or type(e).__name__
            self.logger.error(
                f"Failed to process user {user_id}: {message}", exc_info=True
            )
            return XeroExtractResult(user_id=user_id, success=False, error=message)

        self.logger.info(f"Successfully processed user: {user_id}")
        return XeroExtractResult(user_id=user_id, success=True, metrics=metrics)
