import pytest
from pydantic import ValidationError

from config import Settings, load_settings

REQUIRED = dict(cmc_api_key="k", telegram_bot_token="t")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in list(Settings.model_fields) + ["TELEGRAM_CHANNEL_USERNAME"]:
        monkeypatch.delenv(name.upper(), raising=False)


def make(**overrides):
    values = dict(REQUIRED, telegram_channel_id="-100123")
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_defaults():
    settings = make()

    assert settings.telegram_channel_id == -100123
    assert settings.poll_interval_seconds == 600
    assert settings.upgrade_delay_seconds == 300
    assert settings.port == 3000
    assert settings.log_level == "INFO"


def test_channel_username_is_accepted():
    assert make(telegram_channel_id="@new_listings").telegram_channel_id == "@new_listings"


@pytest.mark.parametrize("bad", ["12345", "channel", "@"])
def test_bad_channel_id(bad):
    with pytest.raises(ValidationError):
        make(telegram_channel_id=bad)


def test_env_variables(monkeypatch):
    monkeypatch.setenv("CMC_API_KEY", "env-key")
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "env-token")
    monkeypatch.setenv("TELEGRAM_CHANNEL_USERNAME", "@from_env")
    monkeypatch.setenv("POLL_INTERVAL_MS", "30000")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings(_env_file=None)

    assert settings.cmc_api_key == "env-key"
    assert settings.telegram_channel_id == "@from_env"
    assert settings.poll_interval_ms == 30000
    assert settings.log_level == "DEBUG"


def test_settings_are_frozen():
    settings = make()

    with pytest.raises(ValidationError):
        settings.port = 8080


def test_poll_interval_lower_bound():
    with pytest.raises(ValidationError):
        make(poll_interval_ms=500)


def test_load_settings_exits_on_missing_values(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)

    with pytest.raises(SystemExit):
        load_settings()
