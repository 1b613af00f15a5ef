from __future__ import annotations

import logging
from pathlib import Path

import pytest

from prospectdb.config import (
    ConfigurationError,
    configure_logging,
    get_contacts_config,
    get_database_config,
    get_providers_config,
    get_storage_config,
    optional_env_var,
    optional_float_env_var,
)
from prospectdb.config.providers import DEFAULT_GEOCODING_URL, REGISTRY_DELAY_SECONDS


def test_optional_env_var_falls_back_on_blank(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    assert optional_env_var("EXAMPLE_VAR", "fallback") == "fallback"

    monkeypatch.setenv("EXAMPLE_VAR", " value ")
    assert optional_env_var("EXAMPLE_VAR", "fallback") == "value"


def test_optional_float_env_var_validates(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_DELAY", "0.5")
    assert optional_float_env_var("EXAMPLE_DELAY", 1.0) == 0.5

    monkeypatch.setenv("EXAMPLE_DELAY", "soon")
    with pytest.raises(ConfigurationError, match="must be a number"):
        optional_float_env_var("EXAMPLE_DELAY", 1.0)

    monkeypatch.setenv("EXAMPLE_DELAY", "-1")
    with pytest.raises(ConfigurationError, match="non-negative"):
        optional_float_env_var("EXAMPLE_DELAY", 1.0)


def test_providers_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "PROSPECTDB_HTTP_CACHE",
        "PROSPECTDB_GEOCODING_URL",
        "PROSPECTDB_REGISTRY_DELAY",
    ):
        monkeypatch.delenv(name, raising=False)

    config = get_providers_config()

    assert config.geocoding.resilience.base_url == DEFAULT_GEOCODING_URL
    assert config.registry.delay_seconds == REGISTRY_DELAY_SECONDS
    assert config.registry.resilience.cache is not None
    assert config.registry.resilience.cache.backend == "sqlite"
    assert config.routing.resilience.ratelimit is not None
    headers = config.routing.resilience.default_headers or {}
    assert headers["Accept"] == "application/json"


def test_providers_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROSPECTDB_HTTP_CACHE", "off")
    monkeypatch.setenv("PROSPECTDB_ROUTING_URL", "http://localhost:8080/navigation")
    monkeypatch.setenv("PROSPECTDB_GEOCODING_DELAY", "0")

    config = get_providers_config()

    assert config.routing.resilience.base_url == "http://localhost:8080/navigation"
    assert config.geocoding.delay_seconds == 0.0
    assert config.geocoding.resilience.cache is None


def test_providers_config_rejects_unknown_cache_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROSPECTDB_HTTP_CACHE", "redis")

    with pytest.raises(ConfigurationError, match="PROSPECTDB_HTTP_CACHE"):
        get_providers_config()


def test_contacts_config_prefix(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PROSPECTDB_ID_PREFIX", raising=False)
    assert get_contacts_config().default_id_prefix == "Vd_S"

    monkeypatch.setenv("PROSPECTDB_ID_PREFIX", "Lyon")
    config = get_contacts_config()
    assert config.default_id_prefix == "Lyon"
    assert config.initial_id_counter == 1


def test_storage_and_database_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PROSPECTDB_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("DATABASE_URI", raising=False)

    storage = get_storage_config()
    uri = get_database_config().uri

    assert storage.resolve_data_dir() == (tmp_path / "data").resolve()
    assert uri == f"sqlite+pysqlite:///{(tmp_path / 'data' / 'prospectdb.db').resolve()}"
    assert (tmp_path / "data").is_dir()

    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///:memory:")
    assert get_database_config().uri == "sqlite+pysqlite:///:memory:"


def test_configure_logging_quiets_http_loggers() -> None:
    configure_logging(level=logging.INFO, force=True)
    assert logging.getLogger("httpx").level == logging.WARNING

    configure_logging(level=logging.DEBUG, force=True)
    assert logging.getLogger("httpx").level == logging.DEBUG
    assert logging.getLogger().level == logging.DEBUG

    configure_logging(level=logging.WARNING, force=True)
