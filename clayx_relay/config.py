"""
Configuration management for the Clayx command relay.

Uses Pydantic settings for validation and environment variable support.
"""
from functools import lru_cache
from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """PostgreSQL configuration for devices, commands and readings."""

    model_config = SettingsConfigDict(
        env_prefix='DATABASE_',
        env_file='.env',
        extra='ignore'
    )

    host: str = Field(default='localhost', description='Database host')
    port: int = Field(default=5432, description='Database port')
    name: str = Field(default='clayx', description='Database name')
    user: str = Field(default='postgres', description='Database user')
    password: str = Field(default='postgres', description='Database password')
    pool_size: int = Field(default=10, description='Connection pool size')
    max_overflow: int = Field(default=20, description='Max overflow connections')
    echo_sql: bool = Field(default=False, description='Echo SQL queries')
    create_tables: bool = Field(default=True, description='Create missing tables on startup')

    @property
    def url(self) -> str:
        """Build database URL."""
        return f"postgresql+asyncpg://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"


class RedisSettings(BaseSettings):
    """Redis configuration for the relay event journal."""

    model_config = SettingsConfigDict(
        env_prefix='REDIS_',
        env_file='.env',
        extra='ignore'
    )

    host: str = Field(default='localhost', description='Redis host')
    port: int = Field(default=6379, description='Redis port')
    db: int = Field(default=0, description='Redis database number')
    password: Optional[str] = Field(default=None, description='Redis password')
    ssl: bool = Field(default=False, description='Use SSL connection')

    # Event journal
    journal_enabled: bool = Field(default=False, description='Mirror relay events to a Redis stream')
    events_stream: str = Field(default='clayx:relay:events', description='Stream receiving relay events')
    stream_max_len: int = Field(default=100000, description='Max stream length')

    @property
    def url(self) -> str:
        """Build Redis URL."""
        auth = f":{self.password}@" if self.password else ""
        protocol = "rediss" if self.ssl else "redis"
        return f"{protocol}://{auth}{self.host}:{self.port}/{self.db}"


class JWTSettings(BaseSettings):
    """Bearer token verification for mobile clients."""

    model_config = SettingsConfigDict(
        env_prefix='JWT_',
        env_file='.env',
        extra='ignore'
    )

    secret_key: str = Field(
        default='clayx-secret-key-change-in-production',
        description='Secret used to verify access tokens'
    )
    algorithm: str = Field(default='HS256')
    issuer: Optional[str] = Field(default=None)
    audience: Optional[str] = Field(default=None)


class RelaySettings(BaseSettings):
    """Command relay behaviour."""

    model_config = SettingsConfigDict(
        env_prefix='RELAY_',
        env_file='.env',
        extra='ignore'
    )

    # Command validation
    min_interval_seconds: int = Field(default=5, description='Smallest report interval a device accepts')
    max_interval_seconds: int = Field(default=86400, description='Largest report interval a device accepts')

    # Socket channel
    outbound_queue_size: int = Field(default=256, description='Buffered frames per socket before it is dropped')

    # Command history
    history_default_limit: int = Field(default=50)
    history_max_limit: int = Field(default=500)


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore'
    )

    # Application
    app_name: str = Field(default='Clayx Smart Planter Relay')
    app_version: str = Field(default='1.0.0')
    debug: bool = Field(default=False)
    environment: str = Field(default='development')

    # Server
    host: str = Field(default='0.0.0.0')
    port: int = Field(default=3000)
    reload: bool = Field(default=False)

    # API
    api_prefix: str = Field(default='/api')
    cors_origins: List[str] = Field(default=['*'])

    # Logging
    log_level: str = Field(default='INFO')
    log_format: str = Field(default='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    # Sub-settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    jwt: JWTSettings = Field(default_factory=JWTSettings)
    relay: RelaySettings = Field(default_factory=RelaySettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == 'production'

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment == 'development'


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get cached application settings.

    Uses LRU cache to avoid re-reading environment variables on every access.
    """
    return AppSettings()
