from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")
    service_name: str = Field(default="obs-lab", alias="SERVICE_NAME")
    environment: str = Field(default="development", alias="ENVIRONMENT")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: str = Field(default="logs", alias="LOG_DIR")
    log_max_bytes: int = Field(default=20 * 1024 * 1024, alias="LOG_MAX_BYTES")
    log_retention_days: int = Field(default=14, alias="LOG_RETENTION_DAYS")
    log_compress: bool = Field(default=True, alias="LOG_COMPRESS")

    correlation_id_header: str = Field(default="X-Request-ID", alias="CORRELATION_ID_HEADER")
    cors_allow_origins: list[str] = Field(default=["*"], alias="CORS_ALLOW_ORIGINS")

    slow_delay_ms: int = Field(default=700, alias="SLOW_DELAY_MS")
    demo_username: str = Field(default="admin", alias="DEMO_USERNAME")
    demo_password: str = Field(default="1234", alias="DEMO_PASSWORD")

    @property
    def log_path(self) -> Path:
        return Path(self.log_dir)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
