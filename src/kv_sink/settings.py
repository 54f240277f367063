from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import ErrorDisposition


class SinkSettings(BaseSettings):
    """Stage configuration, read from KV_SINK_* environment variables or a .env file."""

    store_url: str
    target_collection: str
    document_key_field: str
    username: Optional[str] = None
    password: Optional[SecretStr] = None
    on_record_error: ErrorDisposition = ErrorDisposition.ROUTE_TO_ERROR
    connect_timeout: float = 10.0
    error_file: Optional[Path] = None

    model_config = SettingsConfigDict(
        env_prefix="KV_SINK_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("store_url", "target_collection", "document_key_field")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("on_record_error", mode="before")
    @classmethod
    def _parse_disposition(cls, v):
        if isinstance(v, str):
            return ErrorDisposition(v)
        return v

    @field_validator("connect_timeout")
    @classmethod
    def _positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("connect_timeout must be > 0")
        return v

    @property
    def password_value(self) -> Optional[str]:
        return self.password.get_secret_value() if self.password is not None else None


@lru_cache()
def get_settings() -> SinkSettings:
    return SinkSettings()
