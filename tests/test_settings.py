from __future__ import annotations

import pytest

from stocklock.core.facade import LockStockFacade
from stocklock.core.locks_redis import RedisLockRepository
from stocklock.core.settings import LockSettings
from stocklock.services.stock import InMemoryStockService
from stocklock.utils.env import get_bool_env, get_int_env


def test_defaults_match_reference_timings():
    settings = LockSettings()

    assert settings.ttl_ms == 3000
    assert settings.retry_interval_ms == 100
    assert settings.acquire_timeout_ms is None
    assert settings.key_prefix == ""


def test_from_file_resolves_relative_audit_path(tmp_path):
    path = tmp_path / "lock.yml"
    path.write_text("redis_url: redis://cache:6379/1\nttl_ms: 5000\naudit_log_path: logs/audit.log\n")

    settings = LockSettings.from_file(path)

    assert settings.redis_url == "redis://cache:6379/1"
    assert settings.ttl_ms == 5000
    assert settings.audit_log_path == (tmp_path / "logs" / "audit.log").resolve()


def test_from_file_empty_uses_defaults(tmp_path):
    path = tmp_path / "lock.yml"
    path.write_text("")

    assert LockSettings.from_file(path) == LockSettings()


def test_from_file_rejects_invalid_values(tmp_path):
    path = tmp_path / "lock.yml"
    path.write_text("ttl_ms: 0\n")

    with pytest.raises(ValueError, match="Invalid lock settings"):
        LockSettings.from_file(path)


def test_from_env(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "redis://other:6379/2")
    monkeypatch.setenv("STOCKLOCK_TTL_MS", "1500")
    monkeypatch.setenv("STOCKLOCK_RETRY_INTERVAL_MS", "25")
    monkeypatch.setenv("STOCKLOCK_ACQUIRE_TIMEOUT_MS", "")
    monkeypatch.setenv("STOCKLOCK_KEY_PREFIX", "stock:")

    settings = LockSettings.from_env()

    assert settings.redis_url == "redis://other:6379/2"
    assert settings.ttl_ms == 1500
    assert settings.retry_interval_ms == 25
    assert settings.acquire_timeout_ms is None
    assert settings.key_prefix == "stock:"


def test_env_helpers(monkeypatch):
    monkeypatch.setenv("FLAG", "off")
    monkeypatch.setenv("NUMBER", "nope")

    assert get_bool_env("FLAG", default=True) is False
    assert get_bool_env("MISSING_FLAG", default=True) is True
    with pytest.raises(ValueError):
        get_int_env("NUMBER")


def test_facade_from_settings_builds_redis_repository(tmp_path):
    settings = LockSettings(retry_interval_ms=20, key_prefix="stock:", audit_log_path=tmp_path / "audit.log")

    facade = LockStockFacade.from_settings(settings, InMemoryStockService())

    assert isinstance(facade._locks, RedisLockRepository)
    assert facade._locks.derive_key(3) == "stock:3"
    assert facade._audit is not None
