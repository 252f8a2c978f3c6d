"""Builder configuration contract."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    npm_auth_token: str | None = Field(alias="NPM_AUTH_TOKEN", default=None)
    max_lambda_size: str = Field(alias="NEXT_BUILDER_MAX_LAMBDA_SIZE", default="5mb")
    dev_ports: list[int] = Field(alias="NEXT_BUILDER_DEV_PORTS", default=[5000, 4000])
    dev_ready_timeout: float = Field(alias="NEXT_BUILDER_DEV_READY_TIMEOUT", default=120.0)
    log_level: str = Field(alias="LOG_LEVEL", default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


_SIZE_UNITS = {"b": 1, "kb": 1024, "mb": 1024 * 1024, "gb": 1024 * 1024 * 1024}


def parse_size(value: str) -> int:
    """Convert a human size such as ``5mb`` or ``512kb`` into bytes."""
    text = value.strip().lower()
    for unit in sorted(_SIZE_UNITS, key=len, reverse=True):
        if text.endswith(unit):
            number = text[: -len(unit)].strip()
            return int(float(number) * _SIZE_UNITS[unit])
    return int(text)
