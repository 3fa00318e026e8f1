"""Lock settings loader."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from stocklock.utils.env import get_int_env


DEFAULT_REDIS_URL = "redis://localhost:6379/0"


class LockSettings(BaseModel):
    redis_url: str = DEFAULT_REDIS_URL
    ttl_ms: int = Field(default=3000, gt=0)
    retry_interval_ms: int = Field(default=100, gt=0)
    acquire_timeout_ms: Optional[int] = Field(default=None, gt=0)  # None waits forever
    key_prefix: str = ""
    socket_timeout_seconds: Optional[float] = Field(default=None, gt=0)
    audit_log_path: Optional[Path] = None

    @classmethod
    def from_file(cls, path: Path) -> "LockSettings":
        data = yaml.safe_load(path.read_text()) or {}
        try:
            settings = cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid lock settings: {exc}") from exc
        if settings.audit_log_path and not settings.audit_log_path.is_absolute():
            settings.audit_log_path = (path.parent / settings.audit_log_path).resolve()
        return settings

    @classmethod
    def from_env(cls) -> "LockSettings":
        data = {
            "redis_url": os.getenv("REDIS_URL", DEFAULT_REDIS_URL),
            "ttl_ms": get_int_env("STOCKLOCK_TTL_MS", default=3000),
            "retry_interval_ms": get_int_env("STOCKLOCK_RETRY_INTERVAL_MS", default=100),
            "acquire_timeout_ms": get_int_env("STOCKLOCK_ACQUIRE_TIMEOUT_MS"),
            "key_prefix": os.getenv("STOCKLOCK_KEY_PREFIX", ""),
        }
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid lock settings: {exc}") from exc
