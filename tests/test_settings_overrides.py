from __future__ import annotations

from datastore.batch_table import build_default_table
from services.batch import build_default_batch_service
from settings import Settings, get_settings


def _clear_caches() -> None:
    for cache in (get_settings, build_default_table, build_default_batch_service):
        cache.cache_clear()


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    table_path = tmp_path / "batches.json"

    monkeypatch.setenv("BATCH_TABLE_NAME", "custom-table")
    monkeypatch.setenv("BATCH_TABLE_PERSISTENCE_PATH", str(table_path))
    monkeypatch.setenv("BATCH_WORKER_COUNT", "2")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    _clear_caches()

    table = build_default_table()
    service = build_default_batch_service()

    try:
        assert table.name == "custom-table"
        assert table.persistence_path == table_path
        assert service.table is table
        assert service.executor._max_workers == 2
        assert get_settings().log_level == "DEBUG"
    finally:
        service.shutdown()
        _clear_caches()


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("BATCH_WORKER_COUNT", "-3")
    monkeypatch.setenv("BATCH_TABLE_NAME", "   ")
    monkeypatch.setenv("BATCH_TABLE_PERSISTENCE_PATH", "")
    get_settings.cache_clear()

    try:
        settings = get_settings()
        assert settings.batch_workers == 4
        assert settings.table_name == "soil_health_batches"
        assert settings.table_persistence_path is None
    finally:
        get_settings.cache_clear()


def test_settings_from_mapping_without_touching_os_environ() -> None:
    settings = Settings.from_env({"BATCH_WORKER_COUNT": "abc", "LOG_LEVEL": " warning "})

    assert settings == Settings(batch_workers=4, log_level="WARNING")
    assert settings.table_persistence_path == "./tmp/batches.json"
