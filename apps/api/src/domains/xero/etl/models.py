import datetime as dt
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class XeroMetrics(BaseModel):
    """Summary metrics derived from one user's Xero data."""

    weekly_income: Optional[float] = None
    avg_wages: Optional[float] = None
    avg_expenses: Optional[float] = None
    total_cost_of_sales: Optional[float] = None
    total_operating_expenses: Optional[float] = None


class XeroDataCacheRecord(XeroMetrics):
    """Row of the ``xero_data_cache`` table, unique on (user_id, date)."""

    model_config = ConfigDict(extra="ignore")

    user_id: str
    date: dt.date
    data_json: Dict[str, Any] = Field(default_factory=dict)
    extracted_at: dt.datetime


class XeroExtractResult(BaseModel):
    """Outcome of extracting one connection: metrics on success, error otherwise."""

    user_id: str
    success: bool
    metrics: Optional[XeroMetrics] = None
    error: Optional[str] = None


class ETLError(BaseModel):
    """Per-user failure reported in the ETL summary."""

    user_id: str
    error: str


class ETLSummary(BaseModel):
    """Summary of an ETL run."""

    success: int = 0
    failed: int = 0
    errors: List[ETLError] = Field(default_factory=list)

    @classmethod
    def from_results(cls, results: List[XeroExtractResult]) -> "ETLSummary":
        errors = [
            ETLError(user_id=result.user_id, error=result.error or "Unknown error")
            for result in results
            if not result.success
        ]
        return cls(
            success=len(results) - len(errors),
            failed=len(errors),
            errors=errors,
        )


class ETLTriggerRequest(BaseModel):
    """Optional body of the ETL trigger endpoint."""

    user_id: Optional[str] = Field(
        None, description="Restrict the run to a single user's connection"
    )
