"""
Tests for XeroRepository table access against the in-memory Supabase client.
"""
from datetime import date, datetime, timezone

import pytest

from src.domains.xero.etl.models import XeroDataCacheRecord
from src.domains.xero.repository import (
    CONNECTIONS_TABLE,
    DATA_CACHE_TABLE,
    XeroRepository,
)
from src.shared.exceptions import DatastoreError
from tests.fixtures.supabase_fixtures import FakeSupabaseClient


def _cache_record(user_id: str, day: date, weekly_income: float) -> XeroDataCacheRecord:
    return XeroDataCacheRecord(
        user_id=user_id,
        date=day,
        data_json={"bankTransactions": {}},
        extracted_at=datetime(day.year, day.month, day.day, 6, tzinfo=timezone.utc),
        weekly_income=weekly_income,
    )


class TestConnections:
    """Test suite for xero_connections access."""

    def test_upsert_connection_replaces_existing_row(
        self, xero_repository: XeroRepository, fake_supabase: FakeSupabaseClient
    ) -> None:
        """Reconnecting keeps one row per user with the latest values."""
        # Arrange
        connected_at = datetime(2024, 7, 1, tzinfo=timezone.utc)

        # Act
        xero_repository.upsert_connection(
            "user-1", "tenant-a", "blob-a", "Org A", connected_at
        )
        xero_repository.upsert_connection(
            "user-1", "tenant-b", "blob-b", "Org B", connected_at
        )

        # Assert
        rows = fake_supabase.rows(CONNECTIONS_TABLE)
        assert len(rows) == 1
        assert rows[0]["tenant_id"] == "tenant-b"
        assert rows[0]["encrypted_refresh_token"] == "blob-b"
        assert rows[0]["connected_at"] == connected_at.isoformat()

    def test_get_connection_by_id(
        self, xero_repository: XeroRepository, stored_connection: dict
    ) -> None:
        connection = xero_repository.get_connection(stored_connection["id"])

        assert connection is not None
        assert connection.user_id == "test-user-id-123"
        assert connection.tenant_id == "test-tenant-id"
        assert connection.last_refreshed_at is None

    def test_get_missing_connection_returns_none(
        self, xero_repository: XeroRepository
    ) -> None:
        assert xero_repository.get_connection("missing-id") is None
        assert xero_repository.get_connection_for_user("nobody") is None

    def test_list_connections_filters_by_user(
        self, xero_repository: XeroRepository, fake_supabase: FakeSupabaseClient
    ) -> None:
        for user_id in ("user-1", "user-2"):
            fake_supabase.insert_row(
                CONNECTIONS_TABLE,
                {
                    "user_id": user_id,
                    "tenant_id": f"tenant-{user_id}",
                    "encrypted_refresh_token": "blob",
                },
            )

        assert len(xero_repository.list_connections()) == 2
        only_two = xero_repository.list_connections("user-2")
        assert [c.user_id for c in only_two] == ["user-2"]

    def test_update_connection(
        self,
        xero_repository: XeroRepository,
        fake_supabase: FakeSupabaseClient,
        stored_connection: dict,
    ) -> None:
        xero_repository.update_connection(
            stored_connection["id"], {"last_refreshed_at": "2024-07-02T00:00:00+00:00"}
        )

        row = fake_supabase.rows(CONNECTIONS_TABLE)[0]
        assert row["last_refreshed_at"] == "2024-07-02T00:00:00+00:00"

    def test_delete_connection_reports_removed_rows(
        self, xero_repository: XeroRepository, stored_connection: dict
    ) -> None:
        assert xero_repository.delete_connection_for_user("test-user-id-123") == 1
        assert xero_repository.delete_connection_for_user("test-user-id-123") == 0

    def test_datastore_failure_raises_datastore_error(
        self, xero_repository: XeroRepository, fake_supabase: FakeSupabaseClient
    ) -> None:
        fake_supabase.fail_on(CONNECTIONS_TABLE, "select", "relation does not exist")

        with pytest.raises(DatastoreError) as exc_info:
            xero_repository.list_connections()

        assert exc_info.value.status_code == 500
        assert exc_info.value.detail == (
            "Failed to fetch connections: relation does not exist"
        )

    def test_transport_failure_raises_datastore_error(
        self, xero_repository: XeroRepository, fake_supabase: FakeSupabaseClient
    ) -> None:
        fake_supabase.fail_transport_on(CONNECTIONS_TABLE, "update")

        with pytest.raises(DatastoreError) as exc_info:
            xero_repository.update_connection("any-id", {"last_refreshed_at": None})

        assert exc_info.value.detail == (
            "Failed to update connection: ConnectError: supabase unreachable"
        )


class TestCachedExtracts:
    """Test suite for xero_data_cache access."""

    def test_same_day_upsert_keeps_one_row(
        self, xero_repository: XeroRepository, fake_supabase: FakeSupabaseClient
    ) -> None:
        day = date(2024, 7, 15)

        xero_repository.upsert_cached_extract(_cache_record("user-1", day, 100.0))
        xero_repository.upsert_cached_extract(_cache_record("user-1", day, 250.0))

        rows = fake_supabase.rows(DATA_CACHE_TABLE)
        assert len(rows) == 1
        assert rows[0]["weekly_income"] == 250.0
        assert rows[0]["date"] == "2024-07-15"

    def test_different_days_are_separate_rows(
        self, xero_repository: XeroRepository, fake_supabase: FakeSupabaseClient
    ) -> None:
        xero_repository.upsert_cached_extract(
            _cache_record("user-1", date(2024, 7, 14), 10.0)
        )
        xero_repository.upsert_cached_extract(
            _cache_record("user-1", date(2024, 7, 15), 20.0)
        )

        assert len(fake_supabase.rows(DATA_CACHE_TABLE)) == 2

    def test_latest_cached_extract(self, xero_repository: XeroRepository) -> None:
        xero_repository.upsert_cached_extract(
            _cache_record("user-1", date(2024, 7, 14), 10.0)
        )
        xero_repository.upsert_cached_extract(
            _cache_record("user-1", date(2024, 7, 15), 20.0)
        )
        xero_repository.upsert_cached_extract(
            _cache_record("user-2", date(2024, 7, 16), 30.0)
        )

        latest = xero_repository.get_latest_cached_extract("user-1")

        assert latest is not None
        assert latest.date == date(2024, 7, 15)
        assert latest.weekly_income == 20.0
        assert xero_repository.get_latest_cached_extract("user-3") is None

    def test_upsert_failure_raises_datastore_error(
        self, xero_repository: XeroRepository, fake_supabase: FakeSupabaseClient
    ) -> None:
        fake_supabase.fail_on(DATA_CACHE_TABLE, "upsert", "constraint violation")

        with pytest.raises(DatastoreError) as exc_info:
            xero_repository.upsert_cached_extract(
                _cache_record("user-1", date(2024, 7, 15), 1.0)
            )

        assert exc_info.value.detail == "Database upsert failed: constraint violation"
