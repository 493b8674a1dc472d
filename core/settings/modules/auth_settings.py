from __future__ import annotations

from pydantic import Field

from core.settings.modules.base_settings import StorefrontBaseSettings


class AuthSettings(StorefrontBaseSettings):
    """Access token verification settings."""

    access_token_secret: str = Field(default="change-me", alias="ACCESS_TOKEN_SECRET")
    algorithm: str = Field(default="HS256", alias="ACCESS_TOKEN_ALGORITHM")
    access_token_ttl_minutes: int = Field(default=30, gt=0, alias="ACCESS_TOKEN_TTL_MINUTES")
