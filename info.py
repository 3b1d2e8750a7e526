"""Service configuration, read from the environment and an optional ``.env``."""
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    port: int = Field(8080, ge=1, le=65535)
    bind_address: str = "0.0.0.0"
    media_dir: Path = Path("./multimedia")
    api_key: Optional[str] = None

    # Streaming
    chunk_size: int = Field(1024 * 1024, gt=0)

    # Logging
    log_level: str = "INFO"

    @field_validator("media_dir")
    @classmethod
    def media_dir_must_exist(cls, value: Path) -> Path:
        value = value.expanduser().resolve()
        if not value.is_dir():
            raise ValueError(f"media directory {value} does not exist")
        return value

    @field_validator("api_key")
    @classmethod
    def empty_api_key_disables(cls, value: Optional[str]) -> Optional[str]:
        return value or None


settings = Settings()

PORT = settings.port
BIND_ADDRESS = settings.bind_address
MEDIA_DIR = str(settings.media_dir)
API_KEY = settings.api_key
CHUNK_SIZE = settings.chunk_size
LOG_LEVEL = settings.log_level.upper()
