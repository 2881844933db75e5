"""Xero API type definitions for type safety."""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class XeroPayloadModel(BaseModel):
    """Base for Xero response models; unknown Xero fields are kept, not rejected."""

    model_config = ConfigDict(extra="allow")


# Bank transactions
class XeroBankTransaction(XeroPayloadModel):
    """Xero bank transaction as read by the weekly income calculation."""

    BankTransactionID: Optional[str] = Field(
        None, description="Xero bank transaction identifier"
    )
    Type: Optional[str] = Field(None, description="Transaction type (SPEND, RECEIVE)")
    Status: Optional[str] = Field(None, description="Transaction status")
    Date: Optional[str] = Field(None, description="Transaction date in Xero format")
    Total: Optional[Decimal] = Field(None, description="Total transaction amount")


class XeroBankTransactionsResponse(XeroPayloadModel):
    """Response wrapper for bank transactions endpoint."""

    BankTransactions: List[XeroBankTransaction] = Field(default_factory=list)


# Accounts
class XeroAccount(XeroPayloadModel):
    """Xero chart-of-accounts entry."""

    AccountID: Optional[str] = Field(None, description="Xero account identifier")
    Code: Optional[str] = Field(None, description="Account code")
    Name: Optional[str] = Field(None, description="Account name")
    Type: Optional[str] = Field(None, description="Account type")


class XeroAccountsResponse(XeroPayloadModel):
    """Response wrapper for accounts endpoint."""

    Accounts: List[XeroAccount] = Field(default_factory=list)


# Reports
class XeroReportCell(XeroPayloadModel):
    """Single cell of a report row."""

    Value: Optional[str] = Field(None, description="Cell value as rendered by Xero")


class XeroReportRow(XeroPayloadModel):
    """
    Node of a Xero report tree.

    ``Section`` rows group child rows under a ``Title``; ``Row`` and
    ``SummaryRow`` leaves carry their label in the first cell and amounts in
    the following cells.
    """

    RowType: Optional[str] = Field(
        None, description="Header, Section, Row or SummaryRow"
    )
    Title: Optional[str] = Field(None, description="Section title")
    Cells: List[XeroReportCell] = Field(default_factory=list)
    Rows: List[XeroReportRow] = Field(default_factory=list)


class XeroReport(XeroPayloadModel):
    """A single Xero report (e.g. ProfitAndLoss)."""

    ReportID: Optional[str] = Field(None, description="Report identifier")
    ReportName: Optional[str] = Field(None, description="Report name")
    ReportDate: Optional[str] = Field(None, description="Report date label")
    Rows: List[XeroReportRow] = Field(default_factory=list)


class XeroReportsResponse(XeroPayloadModel):
    """Response wrapper for report endpoints."""

    Reports: List[XeroReport] = Field(default_factory=list)
