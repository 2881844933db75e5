# apps/api/src/core/database.py
from functools import lru_cache

from supabase import Client, create_client

from src.core.settings import settings


@lru_cache(maxsize=1)
def _service_client() -> Client:
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise ValueError("Supabase configuration is required for database access")

    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)


def get_db() -> Client:
    """Database dependency for FastAPI dependency injection."""
    return _service_client()
