"""
Runtime settings, loaded from environment variables (and .env when present).
"""
from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = Field(default="HouseHunt API")
    app_version: str = Field(default="1.0.0")

    # Database
    database_url: str = Field(default="mongodb://localhost:27017", description="MongoDB connection string")
    database_name: str = Field(default="househunt")
    store_retries: int = Field(default=3, ge=1, description="Attempts for transient store failures")
    store_retry_delay: float = Field(default=0.1, ge=0, description="Base backoff in seconds")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000)
    cors_origins: str = Field(default="*", description="Comma-separated allowed origins")

    log_level: str = Field(default="INFO")

    @property
    def allowed_origins(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()] or ["*"]


def get_settings() -> Settings:
    return Settings()
