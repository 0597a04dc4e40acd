"""Tests for settings loading and log redaction."""

from anicatalog.infra.logging import redact_secrets
from anicatalog.infra.settings import Settings


def test_settings_read_environment_aliases(monkeypatch):
    monkeypatch.setenv("CATALOG_REQUEST_DELAY_MS", "1000")
    monkeypatch.setenv("DB_RETRY_ATTEMPTS", "5")
    monkeypatch.setenv("IMPORT_CHECKPOINT_PATH", "/tmp/progress.json")

    settings = Settings()

    assert settings.catalog_request_delay_ms == 1000
    assert settings.db_retry_attempts == 5
    assert settings.import_checkpoint_path == "/tmp/progress.json"


def test_settings_defaults(monkeypatch):
    monkeypatch.delenv("CATALOG_BASE_URL", raising=False)
    monkeypatch.delenv("CATALOG_MAX_RETRIES", raising=False)

    settings = Settings(_env_file=None)

    assert settings.catalog_base_url == "https://api.jikan.moe/v4"
    assert settings.catalog_max_retries == 3


def test_redacts_secret_keys_and_url_credentials():
    event = redact_secrets(
        None,
        None,
        {
            "event": "db.connect",
            "database_url": "postgresql://app:hunter2@db/anicatalog",
            "target": "postgresql://app:hunter2@db/anicatalog",
            "query": "page=2&token=abc",
        },
    )

    assert event["database_url"] == "***REDACTED***"
    assert "hunter2" not in event["target"]
    assert event["query"] == "page=2&token=***"
    assert event["event"] == "db.connect"
