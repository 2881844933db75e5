"""Auth domain type definitions for type safety."""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class SupabaseJwtPayload(BaseModel):
    """Claims read from a Supabase access token (bearer header or session cookie)."""

    sub: Optional[str] = Field(None, description="Subject (user ID)")
    iss: Optional[str] = Field(None, description="Token issuer")
    aud: Optional[str | list[str]] = Field(None, description="Token audience")
    exp: Optional[int] = Field(None, description="Expiration timestamp")
    iat: Optional[int] = Field(None, description="Issued at timestamp")

    email: Optional[str] = Field(None, description="User email address")
    role: Optional[Literal["authenticated", "anon", "service_role"]] = Field(
        None, description="User role"
    )
    session_id: Optional[str] = Field(None, description="Session identifier")

    model_config = {"extra": "allow"}
