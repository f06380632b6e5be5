import pytest

from santa_draw.core.config import load_settings

SETTING_NAMES = [
    "HOST",
    "PORT",
    "DATABASE_URL",
    "ROSTER_PATH",
    "HTML_PATH",
    "SYMMETRIC_EXCLUSIONS",
    "MAX_ATTEMPTS",
    "RATE_LIMIT_CALLS",
    "RATE_LIMIT_PERIOD",
    "LOG_LEVEL",
    "LOG_PATH",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in SETTING_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = load_settings()
    assert settings.host == "0.0.0.0"
    assert settings.port == 3000
    assert settings.database_url == "sqlite:///data/santa.db"
    assert settings.roster_path == "roster.json"
    assert settings.symmetric_exclusions is True
    assert settings.max_attempts == 1000
    assert settings.rate_limit_calls == 5
    assert settings.rate_limit_period == 10
    assert settings.log_level == "INFO"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("DATABASE_URL", "postgresql://santa@localhost/santa")
    monkeypatch.setenv("SYMMETRIC_EXCLUSIONS", "no")
    monkeypatch.setenv("MAX_ATTEMPTS", "50")

    settings = load_settings()

    assert settings.port == 8080
    assert settings.database_url == "postgresql://santa@localhost/santa"
    assert settings.symmetric_exclusions is False
    assert settings.max_attempts == 50


@pytest.mark.parametrize(
    "name, value",
    [
        ("PORT", "eighty"),
        ("MAX_ATTEMPTS", "0"),
        ("RATE_LIMIT_CALLS", "-1"),
        ("SYMMETRIC_EXCLUSIONS", "maybe"),
    ],
)
def test_invalid_values_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=name):
        load_settings()
