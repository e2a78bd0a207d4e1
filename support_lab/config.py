"""
Support Lab - Configuration Management
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""

    # FastAPI
    fastapi_env: str = "development"
    host: str = "0.0.0.0"
    port: int = 3000

    # PostgreSQL (required - the service never starts without it)
    database_url: str
    db_pool_max_size: int = 20
    db_connect_timeout_seconds: float = 10.0

    # External API
    external_api_url: str = "https://httpbin.org"
    api_timeout_ms: int = 5000
    health_probe_timeout_ms: int = 3000

    # Feature flags
    enable_debug_endpoints: bool = True

    # S3-compatible object storage
    aws_endpoint_url: Optional[str] = None
    aws_default_region: str = "us-east-1"
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_s3_bucket_name: Optional[str] = None

    # Shutdown
    drain_timeout_seconds: float = 10.0

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def is_development(self) -> bool:
        """Internal error detail is only exposed in development"""
        return self.fastapi_env.lower() == "development"

    @property
    def is_production(self) -> bool:
        return self.fastapi_env.lower() == "production"

    @property
    def storage_configured(self) -> bool:
        """S3 is usable only when credentials and bucket are all present"""
        return bool(
            self.aws_access_key_id
            and self.aws_secret_access_key
            and self.aws_s3_bucket_name
        )

    def summary(self) -> dict:
        """Configuration overview safe to log (no secrets)"""
        return {
            "port": self.port,
            "environment": self.fastapi_env,
            "database": "configured" if self.database_url else "missing",
            "external_api": self.external_api_url,
            "api_timeout_ms": self.api_timeout_ms,
            "debug_endpoints": "enabled" if self.enable_debug_endpoints else "disabled",
            "storage": "configured" if self.storage_configured else "not configured",
        }


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
