# apps/api/src/domains/xero/repository.py
import datetime as dt
from typing import Any, Dict, List, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from src.domains.xero.etl.models import XeroDataCacheRecord
from src.shared.exceptions import DatastoreError

from .models import XeroConnectionRecord

CONNECTIONS_TABLE = "xero_connections"
DATA_CACHE_TABLE = "xero_data_cache"

# postgrest reports query errors as APIError and lets transport errors through
DATASTORE_ERRORS = (APIError, httpx.HTTPError)


def _describe(error: Exception) -> str:
    if isinstance(error, APIError):
        return error.message or str(error)
    return f"{type(error).__name__}: {error}"


class XeroRepository:
    """Supabase table access for Xero connections and cached extracts."""

    def __init__(self, db: Client):
        self.db = db

    def upsert_connection(
        self,
        user_id: str,
        tenant_id: str,
        encrypted_refresh_token: str,
        organization_name: str,
        connected_at: dt.datetime,
    ) -> None:
        """Create or replace the user's single connection (unique on user_id)."""
        data = {
            "user_id": user_id,
            "tenant_id": tenant_id,
            "encrypted_refresh_token": encrypted_refresh_token,
            "organization_name": organization_name,
            "connected_at": connected_at.isoformat(),
        }
        try:
            self.db.table(CONNECTIONS_TABLE).upsert(
                data, on_conflict="user_id"
            ).execute()
        except DATASTORE_ERRORS as e:
            raise DatastoreError(f"Failed to store connection: {_describe(e)}")

    def get_connection(self, connection_id: str) -> Optional[XeroConnectionRecord]:
        try:
            response = (
                self.db.table(CONNECTIONS_TABLE)
                .select("*")
                .eq("id", connection_id)
                .limit(1)
                .execute()
            )
        except DATASTORE_ERRORS as e:
            raise DatastoreError(f"Failed to fetch connection: {_describe(e)}")

        return self._first_connection(response.data)

    def get_connection_for_user(self, user_id: str) -> Optional[XeroConnectionRecord]:
        try:
            response = (
                self.db.table(CONNECTIONS_TABLE)
                .select("*")
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
        except DATASTORE_ERRORS as e:
            raise DatastoreError(f"Failed to fetch connection: {_describe(e)}")

        return self._first_connection(response.data)

    def list_connections(
        self, user_id: Optional[str] = None
    ) -> List[XeroConnectionRecord]:
        """All stored connections, optionally only the given user's."""
        try:
            query = self.db.table(CONNECTIONS_TABLE).select("*")
            if user_id:
                query = query.eq("user_id", user_id)
            response = query.execute()
        except DATASTORE_ERRORS as e:
            raise DatastoreError(f"Failed to fetch connections: {_describe(e)}")

        return [XeroConnectionRecord.model_validate(row) for row in response.data or []]

    def update_connection(self, connection_id: str, data: Dict[str, Any]) -> None:
        try:
            self.db.table(CONNECTIONS_TABLE).update(data).eq(
                "id", connection_id
            ).execute()
        except DATASTORE_ERRORS as e:
            raise DatastoreError(f"Failed to update connection: {_describe(e)}")

    def delete_connection_for_user(self, user_id: str) -> int:
        """Delete the user's connection. Returns the number of rows removed."""
        try:
            response = (
                self.db.table(CONNECTIONS_TABLE).delete().eq("user_id", user_id).execute()
            )
        except DATASTORE_ERRORS as e:
            raise DatastoreError(f"Failed to delete connection: {_describe(e)}")

        return len(response.data or [])

    def upsert_cached_extract(self, record: XeroDataCacheRecord) -> None:
        """Store the day's extract, replacing an earlier run of the same day."""
        try:
            self.db.table(DATA_CACHE_TABLE).upsert(
                record.model_dump(mode="json"), on_conflict="user_id,date"
            ).execute()
        except DATASTORE_ERRORS as e:
            raise DatastoreError(f"Database upsert failed: {_describe(e)}")

    def get_latest_cached_extract(
        self, user_id: str
    ) -> Optional[XeroDataCacheRecord]:
        try:
            response = (
                self.db.table(DATA_CACHE_TABLE)
                .select("*")
                .eq("user_id", user_id)
                .order("date", desc=True)
                .limit(1)
                .execute()
            )
        except DATASTORE_ERRORS as e:
            raise DatastoreError(f"Failed to fetch cached data: {_describe(e)}")

        if not response.data:
            return None
        return XeroDataCacheRecord.model_validate(response.data[0])

    @staticmethod
    def _first_connection(
        rows: Optional[List[Dict[str, Any]]],
    ) -> Optional[XeroConnectionRecord]:
        if not rows:
            return None
        return XeroConnectionRecord.model_validate(rows[0])
