from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    app_name: str = "Pulse"
    debug: bool = False
    log_level: str = "INFO"

    # Security
    secret_key: str = "dev-secret-key-change-in-production"
    auth_provider_key: str | None = None
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 1440  # 24 hours
    require_sign_in: bool = False

    # Database - supports SQLite (dev) or PostgreSQL (prod)
    database_url: str = "sqlite+aiosqlite:///./pulse.db"

    # Storage layout
    guest_scope: str = "guest"
    entries_key_prefix: str = "pulse_app_data_v1"
    seeded_key_prefix: str = "pulse_app_seeded"
    onboarded_key_prefix: str = "pulse_app_onboarded"
    obfuscate_storage: bool = True
    seed_demo_data: bool = True

    @property
    def async_database_url(self) -> str:
        """Convert DATABASE_URL to async format for SQLAlchemy."""
        url = self.database_url
        # Handle Railway/Fly PostgreSQL URLs
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql+asyncpg://", 1)
        elif url.startswith("postgresql://") and "+asyncpg" not in url:
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @property
    def signing_key(self) -> str:
        """Key used to sign access tokens; the provider key wins when configured."""
        return self.auth_provider_key or self.secret_key

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
