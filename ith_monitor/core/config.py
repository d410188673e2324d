"""
ITH Monitor - Configuration
All settings loaded from environment variables
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database (DATABASE_URL wins over the discrete fields)
    database_url: str = ""
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "ith_user"
    db_password: str = ""
    db_name: str = "ganaderapp"
    db_pool_size: int = 10
    db_pool_timeout: int = 30  # seconds waiting for a pool lease

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: str = "*"  # Comma-separated list

    # The Things Network downlink
    ttn_api_key: str = ""
    ttn_region: str = "eu1"
    ttn_base_url: str = ""
    downlink_f_port: int = 1
    downlink_timeout: float = 10.0

    # Webhook ingestion policy
    require_device_identity: bool = True

    @property
    def sqlalchemy_url(self) -> str:
        """Async SQLAlchemy URL for the relational store."""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def ttn_api_url(self) -> str:
        """Network server base URL, derived from the region when not set."""
        if self.ttn_base_url:
            return self.ttn_base_url.rstrip("/")
        return f"https://{self.ttn_region}.cloud.thethings.network"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    class Config:
        env_file = ".env"  # Fallback for local development
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
