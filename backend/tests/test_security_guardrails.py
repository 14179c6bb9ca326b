import pytest

from core import config as config_module


def _reset_settings_cache():
    config_module.get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _clear_cached_settings():
    yield
    _reset_settings_cache()


def test_non_local_debug_mode_is_blocked(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("BACKEND_API_URL", "https://shop.example.com")
    _reset_settings_cache()

    with pytest.raises(ValueError, match="debug=true"):
        config_module.get_settings()


def test_non_local_plain_http_backend_is_blocked(monkeypatch):
    monkeypatch.setenv("APP_ENV", "staging")
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.setenv("BACKEND_API_URL", config_module.DEFAULT_BACKEND_API_URL)
    _reset_settings_cache()

    with pytest.raises(ValueError, match="plain http"):
        config_module.get_settings()


def test_non_local_https_backend_is_allowed(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.setenv("BACKEND_API_URL", "https://shop.example.com")
    _reset_settings_cache()

    settings = config_module.get_settings()
    assert settings.api_root == "https://shop.example.com/api"


def test_local_allows_dev_defaults(monkeypatch):
    monkeypatch.setenv("APP_ENV", "local")
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("BACKEND_API_URL", config_module.DEFAULT_BACKEND_API_URL)
    _reset_settings_cache()

    settings = config_module.get_settings()
    assert settings.app_env == "local"
    assert settings.api_root == "http://127.0.0.1:8000/api"


def test_unknown_timezone_is_rejected(monkeypatch):
    monkeypatch.setenv("APP_ENV", "local")
    monkeypatch.setenv("BUSINESS_TIMEZONE", "Mars/Olympus_Mons")
    _reset_settings_cache()

    with pytest.raises(ValueError, match="business_timezone"):
        config_module.get_settings()


def test_business_timezone_is_exposed_as_tzinfo(monkeypatch):
    monkeypatch.setenv("APP_ENV", "local")
    monkeypatch.setenv("BUSINESS_TIMEZONE", "America/Chicago")
    _reset_settings_cache()

    settings = config_module.get_settings()
    assert settings.tz.key == "America/Chicago"
