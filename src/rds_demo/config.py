"""Server configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from rds_demo.gateway import GatewayConfig


class Settings(BaseSettings):
    """Server settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database connection
    db_host: str
    db_name: str
    db_user: str
    db_password: str
    db_port: int = 5432
    db_ssl: bool = True

    # Pool
    pg_pool_max: int = 5
    pg_idle_timeout_ms: int = 30_000
    pg_connect_timeout_ms: int = 5_000

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    debug: bool = False
    log_level: str = "INFO"

    def gateway_config(self) -> GatewayConfig:
        """Build the gateway configuration record from these settings."""
        return GatewayConfig(
            host=self.db_host,
            database_name=self.db_name,
            user=self.db_user,
            password=self.db_password,
            port=self.db_port,
            use_encrypted_transport=self.db_ssl,
            max_connections=self.pg_pool_max,
            idle_timeout_ms=self.pg_idle_timeout_ms,
            connect_timeout_ms=self.pg_connect_timeout_ms,
        )


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()
