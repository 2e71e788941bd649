import logging
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_BUCKETS = [0.003, 0.03, 0.1, 0.3, 1.5, 10.0]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=4000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=True, alias="LOG_JSON")

    metrics_path: str = Field(default="/metrics", alias="METRICS_PATH")
    metrics_include_method: bool = Field(default=True, alias="METRICS_INCLUDE_METHOD")
    metrics_include_path: bool = Field(default=True, alias="METRICS_INCLUDE_PATH")
    metrics_include_status_code: bool = Field(default=True, alias="METRICS_INCLUDE_STATUS_CODE")
    metrics_prefix: str = Field(default="", alias="METRICS_PREFIX")
    metrics_buckets: list[float] = Field(default_factory=lambda: list(DEFAULT_BUCKETS), alias="METRICS_BUCKETS")
    metrics_collect_default: bool = Field(default=False, alias="METRICS_COLLECT_DEFAULT")

    @field_validator("metrics_path")
    @classmethod
    def _check_metrics_path(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("METRICS_PATH must start with '/'")
        if value == "/":
            raise ValueError("METRICS_PATH cannot shadow the greeting route")
        return value

    @field_validator("metrics_buckets")
    @classmethod
    def _check_buckets(cls, value: list[float]) -> list[float]:
        if not value:
            raise ValueError("METRICS_BUCKETS must not be empty")
        if sorted(value) != list(value):
            raise ValueError("METRICS_BUCKETS must be sorted in increasing order")
        return value

    @property
    def log_level_number(self) -> int:
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
