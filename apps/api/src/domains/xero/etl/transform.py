"""
Transform raw Xero payloads into the summary metrics cached per user per day.

The ProfitAndLoss report is requested for the trailing rolling window (see
``XeroDataService``), so every report amount is already a window total and a
weekly rolling average is that total divided by the number of weeks.
"""

import re
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from ..types import (
    XeroAccount,
    XeroAccountsResponse,
    XeroBankTransaction,
    XeroBankTransactionsResponse,
    XeroReport,
    XeroReportRow,
    XeroReportsResponse,
)
from .models import XeroMetrics

WEEKLY_INCOME_WINDOW = timedelta(days=7)
RECEIVE_TYPE = "RECEIVE"

COST_OF_SALES_LABELS = ("Cost of Sales", "Total Cost of Sales")
OPERATING_EXPENSES_LABELS = ("Operating Expenses", "Total Operating Expenses")
DEFAULT_WAGES_LABEL = "Wages and Salaries"

_CENT = Decimal("0.01")
_XERO_DATE_RE = re.compile(r"/Date\((-?\d+)([+-]\d{4})?\)/")


def _round_money(value: Decimal) -> float:
    return float(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def parse_xero_date(date_str: Optional[str]) -> Optional[datetime]:
    """
    Parse Xero API date format into a naive UTC datetime.

    Xero returns dates in format '/Date(1748476800000+0000)/' where the number
    is milliseconds since Unix epoch; newer endpoints also emit ISO strings.

    Returns:
        Parsed datetime or None if parsing fails
    """
    if not date_str:
        return None

    if date_str.startswith("/Date("):
        match = _XERO_DATE_RE.match(date_str)
        if not match:
            return None
        timestamp_s = int(match.group(1)) / 1000
        return datetime.fromtimestamp(timestamp_s, tz=timezone.utc).replace(
            tzinfo=None
        )

    try:
        parsed = datetime.fromisoformat(date_str.replace("Z", "+00:00"))
    except ValueError:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_report_number(value: Optional[str]) -> float:
    """Report cell text as a number; blank or non-numeric cells count as 0."""
    if not value:
        return 0.0
    try:
        return float(Decimal(value.replace(",", "").strip()))
    except InvalidOperation:
        return 0.0


def calculate_weekly_income(
    transactions: Iterable[XeroBankTransaction], as_of: datetime
) -> float:
    """
    Sum RECEIVE transactions dated within the 7 days before ``as_of``.

    Args:
        transactions: Bank transactions from Xero
        as_of: Naive UTC reference time of the run

    Returns:
        Total rounded to 2 decimal places
    """
    cutoff = as_of - WEEKLY_INCOME_WINDOW
    total = Decimal("0")

    for transaction in transactions:
        if transaction.Type != RECEIVE_TYPE:
            continue
        transaction_date = parse_xero_date(transaction.Date)
        if transaction_date is None or transaction_date < cutoff:
            continue
        total += transaction.Total or Decimal("0")

    return _round_money(total)


def calculate_rolling_average(total: Optional[float], weeks: int) -> Optional[float]:
    """Weekly average of a total covering ``weeks`` weekly buckets."""
    if total is None:
        return None
    if weeks <= 0:
        return 0.0
    return _round_money(Decimal(str(total)) / Decimal(weeks))


def find_report_value(rows: List[XeroReportRow], label: str) -> Optional[float]:
    """
    Depth-first search of a report tree for the value labelled ``label``.

    A row matches when its Title or RowType equals the label, yielding its
    first cell. Xero Row/SummaryRow leaves carry the label in their first
    cell instead, and then yield their last cell. Children are searched
    before the next sibling.

    Returns:
        The matched value, or None when nothing in the tree matches
    """
    for row in rows:
        if label in (row.Title, row.RowType) and row.Cells:
            return parse_report_number(row.Cells[0].Value)

        if len(row.Cells) > 1 and row.Cells[0].Value == label:
            return parse_report_number(row.Cells[-1].Value)

        nested = find_report_value(row.Rows, label)
        if nested is not None:
            return nested

    return None


def extract_report_value(report: XeroReport, label: str) -> float:
    """Value of the first report row labelled ``label``, or 0 if absent."""
    value = find_report_value(report.Rows, label)
    return value if value is not None else 0.0


def _first_report_value(report: XeroReport, labels: Iterable[str]) -> float:
    for label in labels:
        value = find_report_value(report.Rows, label)
        if value is not None:
            return value
    return 0.0


def find_wages_account(
    accounts: Iterable[XeroAccount], account_code: str
) -> Optional[XeroAccount]:
    return next((a for a in accounts if a.Code == account_code), None)


def transform_xero_data(
    xero_data: Dict[str, Any],
    as_of: datetime,
    rolling_weeks: int,
    wages_account_code: str,
) -> XeroMetrics:
    """
    Transform the combined Xero payload into summary metrics.

    Args:
        xero_data: Dict with bankTransactions, accounts and profitLoss payloads
        as_of: Naive UTC reference time of the run
        rolling_weeks: Number of weeks the ProfitAndLoss report covers
        wages_account_code: Chart-of-accounts code of the wages account

    Returns:
        XeroMetrics; avg_wages is None when the wages account does not exist
    """
    transactions = XeroBankTransactionsResponse.model_validate(
        xero_data.get("bankTransactions") or {}
    ).BankTransactions
    accounts = XeroAccountsResponse.model_validate(
        xero_data.get("accounts") or {}
    ).Accounts
    reports = XeroReportsResponse.model_validate(
        xero_data.get("profitLoss") or {}
    ).Reports
    report = reports[0] if reports else XeroReport()

    weekly_income = calculate_weekly_income(transactions, as_of)

    wages_account = find_wages_account(accounts, wages_account_code)
    avg_wages = None
    if wages_account:
        wages_total = extract_report_value(
            report, wages_account.Name or DEFAULT_WAGES_LABEL
        )
        avg_wages = calculate_rolling_average(wages_total, rolling_weeks)

    total_cost_of_sales = _first_report_value(report, COST_OF_SALES_LABELS)
    total_operating_expenses = _first_report_value(report, OPERATING_EXPENSES_LABELS)

    return XeroMetrics(
        weekly_income=weekly_income,
        avg_wages=avg_wages,
        avg_expenses=calculate_rolling_average(
            total_operating_expenses, rolling_weeks
        ),
        total_cost_of_sales=total_cost_of_sales,
        total_operating_expenses=total_operating_expenses,
    )
