from __future__ import annotations

import logging
from pathlib import Path  # noqa: TC003

import pytest

from contactipy.config import (
    ConfigurationError,
    ConflictResolution,
    ContactsPlusConfig,
    InvalidConfigurationValueError,
    MissingConfigurationError,
    ReviewPolicy,
    SyncConfig,
    configure_logging,
    get_contactsplus_config,
    get_database_uri,
    get_storage_config,
    get_sync_config,
    require_env_vars,
)
from contactipy.config.env import bool_from_env, int_from_env
from contactipy.config.storage import DEFAULT_DB_FILENAME

_SYNC_VARS = (
    "CONTACTIPY_SYNC_BATCH_SIZE",
    "CONTACTIPY_SYNC_MAX_RETRIES",
    "CONTACTIPY_SYNC_MAX_CONSECUTIVE_FAILURES",
    "CONTACTIPY_REVIEW_POLICY",
    "CONTACTIPY_SYNC_ON_IMPORT",
    "CONTACTIPY_CONFLICT_RESOLUTION",
)


@pytest.fixture
def clean_sync_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _SYNC_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PRESENT", " value ")
    monkeypatch.setenv("BLANK", "   ")
    monkeypatch.delenv("ABSENT", raising=False)

    assert require_env_vars(["PRESENT"]) == {"PRESENT": "value"}
    with pytest.raises(MissingConfigurationError, match="ABSENT, BLANK"):
        require_env_vars(["PRESENT", "BLANK", "ABSENT"])


def test_typed_loaders_validate_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SIZE", "ten")
    with pytest.raises(InvalidConfigurationValueError, match="expected an integer"):
        int_from_env("SIZE", 10)

    monkeypatch.setenv("SIZE", "0")
    with pytest.raises(ConfigurationError):
        int_from_env("SIZE", 10, minimum=1)

    monkeypatch.setenv("FLAG", "Yes")
    assert bool_from_env("FLAG", False)  # noqa: FBT003
    monkeypatch.setenv("FLAG", "maybe")
    with pytest.raises(InvalidConfigurationValueError):
        bool_from_env("FLAG", False)  # noqa: FBT003

    monkeypatch.delenv("FLAG")
    assert bool_from_env("FLAG", True)  # noqa: FBT003


def test_sync_config_defaults(clean_sync_env: pytest.MonkeyPatch) -> None:
    _ = clean_sync_env

    assert get_sync_config() == SyncConfig()


def test_sync_config_reads_environment(clean_sync_env: pytest.MonkeyPatch) -> None:
    clean_sync_env.setenv("CONTACTIPY_SYNC_BATCH_SIZE", "25")
    clean_sync_env.setenv("CONTACTIPY_REVIEW_POLICY", "Merge")
    clean_sync_env.setenv("CONTACTIPY_SYNC_ON_IMPORT", "true")
    clean_sync_env.setenv("CONTACTIPY_CONFLICT_RESOLUTION", "remote")

    config = get_sync_config()

    assert config.batch_size == 25
    assert config.review_policy is ReviewPolicy.MERGE
    assert config.sync_on_import
    assert config.conflict_resolution is ConflictResolution.REMOTE


def test_sync_config_rejects_unknown_policy(clean_sync_env: pytest.MonkeyPatch) -> None:
    clean_sync_env.setenv("CONTACTIPY_REVIEW_POLICY", "sometimes")

    with pytest.raises(InvalidConfigurationValueError, match="one of manual, merge, skip, new"):
        get_sync_config()


def test_contactsplus_config_requires_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CONTACTSPLUS_ACCESS_TOKEN", raising=False)

    with pytest.raises(MissingConfigurationError, match="CONTACTSPLUS_ACCESS_TOKEN"):
        get_contactsplus_config()


def test_contactsplus_config_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CONTACTSPLUS_ACCESS_TOKEN", "secret")
    monkeypatch.setenv("CONTACTSPLUS_API_BASE", "https://api.example.test/")
    monkeypatch.setenv("CONTACTSPLUS_TEAM_ID", "team-1")
    monkeypatch.setenv("READONLY_MODE", "1")
    monkeypatch.delenv("CONTACTSPLUS_TIMEOUT_SECONDS", raising=False)

    config = ContactsPlusConfig.from_environment()

    assert config.api_base == "https://api.example.test"
    assert config.team_id == "team-1"
    assert config.readonly
    assert config.timeout_seconds == 30.0
    assert config.auth_headers == {"Authorization": "Bearer secret"}


def test_storage_prefers_explicit_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    custom = tmp_path / "custom-data"
    monkeypatch.setenv("CONTACTIPY_DATA_DIR", str(custom))

    assert get_storage_config().resolve_data_dir() == custom.resolve()


def test_database_uri_uses_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")

    assert get_database_uri() == "sqlite:///override.db"


def test_database_uri_creates_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("CONTACTIPY_DATA_DIR", str(tmp_path / "data-dir"))

    uri = get_database_uri()

    expected_path = (tmp_path / "data-dir" / DEFAULT_DB_FILENAME).resolve()
    assert uri == f"sqlite+pysqlite:///{expected_path}"
    assert expected_path.parent.exists()


def test_configure_logging_quiets_http_libraries() -> None:
    configure_logging(force=True)

    try:
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger().level == logging.INFO
    finally:
        logging.getLogger("httpx").setLevel(logging.NOTSET)
