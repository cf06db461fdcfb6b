import pytest
from pydantic import ValidationError

from energyindex import canon, exceptions
from energyindex.config import Settings, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    # keep a developer's .env out of the picture
    monkeypatch.chdir(tmp_path)
    for name in (
        "LOG_LEVEL", "LOG_FILE", "ERROR_LOG_FILE", "STORE_PATH", "CSV_PATH", "CSV_DELIMITER"
    ):
        monkeypatch.delenv(f"ENERGYINDEX_{name}", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults():
    s = Settings()
    assert s.log_level == "INFO"
    assert s.log_file is None
    assert s.error_log_file is None
    assert s.store_path == canon.DEFAULT_STORE_PATH
    assert s.csv_delimiter == ";"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ENERGYINDEX_LOG_LEVEL", "debug")
    monkeypatch.setenv("ENERGYINDEX_STORE_PATH", "/tmp/x.bin")
    s = Settings()
    assert s.log_level == "DEBUG"
    assert s.store_path == "/tmp/x.bin"


def test_dotenv_file(tmp_path):
    (tmp_path / ".env").write_text("ENERGYINDEX_CSV_DELIMITER=,\n", encoding="utf-8")
    assert Settings().csv_delimiter == ","


def test_invalid_values_rejected():
    with pytest.raises(ValidationError):
        Settings(log_level="loud")
    with pytest.raises(ValidationError):
        Settings(csv_delimiter="")


def test_get_settings_is_cached_and_wraps_errors(monkeypatch):
    assert get_settings() is get_settings()

    get_settings.cache_clear()
    monkeypatch.setenv("ENERGYINDEX_LOG_LEVEL", "loud")
    with pytest.raises(exceptions.ConfigError):
        get_settings()
