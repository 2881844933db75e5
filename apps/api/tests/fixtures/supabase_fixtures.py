"""
In-memory stand-in for the Supabase query builder used by XeroRepository.

Supports the subset of the postgrest builder the repository calls:
select/eq/order/limit, upsert(on_conflict=...), update, delete, execute.
"""

import copy
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest
from postgrest.exceptions import APIError


@dataclass
class FakeResponse:
    data: List[Dict[str, Any]]


@dataclass
class FakeQuery:
    client: "FakeSupabaseClient"
    table_name: str
    operation: str = "select"
    payload: Optional[Dict[str, Any]] = None
    on_conflict: Optional[str] = None
    filters: List[Tuple[str, Any]] = field(default_factory=list)
    order_by: Optional[Tuple[str, bool]] = None
    row_limit: Optional[int] = None

    def select(self, *columns: str) -> "FakeQuery":
        self.operation = "select"
        return self

    def upsert(self, data: Dict[str, Any], on_conflict: str = "") -> "FakeQuery":
        self.operation = "upsert"
        self.payload = data
        self.on_conflict = on_conflict
        return self

    def update(self, data: Dict[str, Any]) -> "FakeQuery":
        self.operation = "update"
        self.payload = data
        return self

    def delete(self) -> "FakeQuery":
        self.operation = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self.order_by = (column, desc)
        return self

    def limit(self, size: int) -> "FakeQuery":
        self.row_limit = size
        return self

    def execute(self) -> FakeResponse:
        return self.client._execute(self)


class FakeSupabaseClient:
    """Tables are plain lists of row dicts keyed by table name."""

    def __init__(self) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.failures: Dict[Tuple[str, str], Exception] = {}
        self.calls: List[Tuple[str, str]] = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(client=self, table_name=name)

    def rows(self, name: str) -> List[Dict[str, Any]]:
        return self.tables.setdefault(name, [])

    def insert_row(self, name: str, row: Dict[str, Any]) -> Dict[str, Any]:
        stored = {"id": str(uuid.uuid4()), **row}
        self.rows(name).append(stored)
        return stored

    def fail_on(self, table: str, operation: str, message: str = "boom") -> None:
        self.failures[(table, operation)] = APIError(
            {"message": message, "code": "XX000", "hint": None, "details": None}
        )

    def fail_transport_on(self, table: str, operation: str) -> None:
        """Make the call fail the way an unreachable Supabase does."""
        request = httpx.Request("GET", f"https://test-project.supabase.co/rest/v1/{table}")
        self.failures[(table, operation)] = httpx.ConnectError(
            "supabase unreachable", request=request
        )

    def _matches(self, row: Dict[str, Any], query: FakeQuery) -> bool:
        return all(row.get(column) == value for column, value in query.filters)

    def _execute(self, query: FakeQuery) -> FakeResponse:
        self.calls.append((query.table_name, query.operation))
        failure = self.failures.get((query.table_name, query.operation))
        if failure:
            raise failure

        rows = self.rows(query.table_name)

        if query.operation == "upsert":
            keys = [k.strip() for k in (query.on_conflict or "id").split(",")]
            payload = copy.deepcopy(query.payload or {})
            for row in rows:
                if all(row.get(k) == payload.get(k) for k in keys):
                    row.update(payload)
                    return FakeResponse(data=[copy.deepcopy(row)])
            return FakeResponse(data=[copy.deepcopy(self.insert_row(query.table_name, payload))])

        matched = [row for row in rows if self._matches(row, query)]

        if query.operation == "update":
            for row in matched:
                row.update(copy.deepcopy(query.payload or {}))
            return FakeResponse(data=copy.deepcopy(matched))

        if query.operation == "delete":
            self.tables[query.table_name] = [
                row for row in rows if not self._matches(row, query)
            ]
            return FakeResponse(data=copy.deepcopy(matched))

        if query.order_by:
            column, desc = query.order_by
            matched = sorted(matched, key=lambda r: str(r.get(column)), reverse=desc)
        if query.row_limit is not None:
            matched = matched[: query.row_limit]
        return FakeResponse(data=copy.deepcopy(matched))


@pytest.fixture
def fake_supabase() -> FakeSupabaseClient:
    """Empty in-memory Supabase database."""
    return FakeSupabaseClient()
