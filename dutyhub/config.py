from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional


PLACEHOLDER_URL = "YOUR_SUPABASE_URL"
PLACEHOLDER_ANON_KEY = "YOUR_SUPABASE_ANON_KEY"


class Settings(BaseSettings):
    # Core
    environment: str = Field(default="dev")
    app_name: str = Field(default="DutyHub API")
    tz_default: str = Field(default="UTC", alias="TZ_DEFAULT")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Hosted backend (relational REST + auth)
    supabase_url: Optional[str] = Field(
        default=None,
        alias="SUPABASE_URL",
        description="e.g., https://<project>.supabase.co",
    )
    supabase_anon_key: Optional[str] = Field(default=None, alias="SUPABASE_ANON_KEY")
    # None disables the deadline; failures then only come back as transport errors
    http_timeout: Optional[float] = Field(default=None, alias="HTTP_TIMEOUT")

    # Auth
    password_reset_redirect_url: Optional[str] = Field(default=None, alias="PASSWORD_RESET_REDIRECT_URL")
    temp_password_length: int = Field(default=12, alias="TEMP_PASSWORD_LENGTH")

    # Rate limit
    rate_limit: str = Field(default="100/minute")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        populate_by_name = True

    @property
    def is_configured(self) -> bool:
        url = (self.supabase_url or "").strip()
        key = (self.supabase_anon_key or "").strip()
        if not url or not key:
            return False
        return url != PLACEHOLDER_URL and key != PLACEHOLDER_ANON_KEY

    @property
    def rest_url(self) -> str:
        return f"{(self.supabase_url or '').rstrip('/')}/rest/v1"

    @property
    def auth_url(self) -> str:
        return f"{(self.supabase_url or '').rstrip('/')}/auth/v1"


settings = Settings()
