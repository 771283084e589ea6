from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    env: str = Field(default="production", alias="OPEN_RUNTIMES_ENV")
    logs_dir: str = Field(default="/mnt/logs", alias="OPEN_RUNTIMES_LOGS_DIR")
    capture_native_logs: bool = Field(default=True, alias="OPEN_RUNTIMES_CAPTURE_NATIVE_LOGS")
    log_level: str = Field(default="INFO", alias="OPEN_RUNTIMES_LOG_LEVEL")

    @property
    def logs_path(self) -> Path:
        return Path(self.logs_dir)

    @property
    def is_development(self) -> bool:
        return self.env == "development"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
