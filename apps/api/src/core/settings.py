from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase configuration
    SUPABASE_URL: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    SUPABASE_ANON_KEY: str | None = None
    JWT_SECRET: str | None = None

    # Application URLs
    APP_BASE_URL: str = "http://localhost:8001"  # Default for development
    FRONTEND_URL: str = "http://localhost:5173"

    # Xero OAuth configuration
    XERO_CLIENT_ID: str | None = None
    XERO_CLIENT_SECRET: str | None = None
    XERO_REDIRECT_URI: str | None = None
    XERO_SCOPES: str = (
        "openid profile email accounting.transactions.read "
        "accounting.reports.read accounting.settings.read offline_access"
    )

    # Refresh token encryption (AES-256-GCM, 32 characters)
    ENCRYPTION_KEY: str | None = None

    # Supabase session cookie presented on the OAuth callback
    SESSION_COOKIE_NAME: str = "sb-access-token"

    # ETL configuration
    XERO_WAGES_ACCOUNT_CODE: str = "500"
    ETL_ROLLING_WEEKS: int = 8
    XERO_HTTP_TIMEOUT: float = 30.0

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    @property
    def xero_redirect_uri(self) -> str:
        """Redirect URI registered with Xero for the OAuth callback."""
        return self.XERO_REDIRECT_URI or f"{self.APP_BASE_URL}/xero-oauth-callback"


settings = Settings()


def get_settings() -> Settings:
    """Settings dependency for FastAPI dependency injection."""
    return settings
