import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from src.domains.auth.dependencies import get_auth_id, get_etl_scope
from src.shared.exceptions import NotAuthorizedError, ResourceNotFoundError

from ..dependencies import get_etl_extractor, get_xero_repository
from ..repository import XeroRepository
from .extractor import XeroETLExtractor
from .models import ETLSummary, ETLTriggerRequest, XeroDataCacheRecord

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Xero ETL"])


@router.post(
    "/xero-etl-extract",
    response_model=ETLSummary,
    operation_id="runXeroEtlExtract",
    responses={207: {"model": ETLSummary, "description": "Some users failed"}},
)
async def run_xero_etl_extract(
    body: Optional[ETLTriggerRequest] = None,
    caller_user_id: Optional[str] = Depends(get_etl_scope),
    extractor: XeroETLExtractor = Depends(get_etl_extractor),
) -> JSONResponse:
    """
    Extract, transform and cache Xero data for connected users.

    Triggered by the daily cron job (service role, all users) or by a
    signed-in user refreshing their own dashboard data.

    **Status Codes**:
    - 200: every connection processed
    - 207: at least one connection failed (see ``errors``)
    - 500: connections could not be loaded
    """
    requested_user_id = body.user_id if body else None

    if caller_user_id is not None:
        if requested_user_id and requested_user_id != caller_user_id:
            raise NotAuthorizedError()
        requested_user_id = caller_user_id

    summary = await extractor.run(user_id=requested_user_id)

    return JSONResponse(
        content=summary.model_dump(mode="json"),
        status_code=(
            status.HTTP_200_OK if summary.failed == 0 else status.HTTP_207_MULTI_STATUS
        ),
    )


@router.get(
    "/xero-data-cache/latest",
    response_model=XeroDataCacheRecord,
    operation_id="getLatestXeroDataCache",
)
async def get_latest_xero_data_cache(
    user_id: str = Depends(get_auth_id),
    repository: XeroRepository = Depends(get_xero_repository),
) -> XeroDataCacheRecord:
    """Most recent cached extract of the signed-in user, for dashboards."""
    record = repository.get_latest_cached_extract(user_id)
    if not record:
        raise ResourceNotFoundError("No cached Xero data found")
    return record
