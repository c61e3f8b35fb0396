from functools import lru_cache
from typing import Annotated, List, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


LOG_LEVELS = ("debug", "info", "warn", "warning", "error")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    VERSION: str = "2.0.0"

    # Server
    PORT: int = Field(8787, ge=1, le=65535)
    HOST: str = "localhost"
    ENV: str = "development"

    # External review script
    SCRIPT_PATH: str = "./codereview.sh"
    TIMEOUT_MS: int = Field(300_000, ge=1000)

    # Request limits
    MAX_URLS: int = Field(10, ge=1, le=50)
    RATE_LIMIT_REQUESTS: int = Field(10, ge=1)
    RATE_LIMIT_WINDOW_MS: int = Field(60_000, ge=1)

    LOG_LEVEL: str = "info"
    CORS_ORIGINS: Annotated[List[str], NoDecode] = ["*"]

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().lower()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def split_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str):
            origins = [origin.strip() for origin in v.split(",") if origin.strip()]
            return origins or ["*"]
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
