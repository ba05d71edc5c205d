import pytest

from portal.config import PLACEHOLDER_SECRET, Settings
from portal.main import create_app


def test_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    settings = Settings()
    assert settings.session_max_age == 3600
    assert settings.bcrypt_rounds == 12
    assert settings.port == 3020


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("PORTAL_SESSION_SECRET", "from-env")
    monkeypatch.setenv("PORTAL_PORT", "8080")
    settings = Settings()
    assert settings.session_secret == "from-env"
    assert settings.port == 8080


def test_production_requires_secrets():
    settings = Settings(app_env="production", session_secret="real", session_store_secret=PLACEHOLDER_SECRET)
    with pytest.raises(RuntimeError):
        settings.validate_runtime()


def test_production_with_secrets():
    Settings(app_env="production", session_secret="a", session_store_secret="b").validate_runtime()


def test_create_app_refuses_placeholder_secrets_in_production():
    with pytest.raises(RuntimeError):
        create_app(Settings(app_env="production", database_url="sqlite://"))


def test_app_keeps_its_settings(app, settings):
    assert app.state.settings is settings


def test_reads_dotenv_file(tmp_path, monkeypatch):
    monkeypatch.delenv("PORTAL_SESSION_SECRET", raising=False)
    (tmp_path / ".env").write_text("PORTAL_SESSION_SECRET=from-dotenv\nPORTAL_BCRYPT_ROUNDS=10\n")
    monkeypatch.chdir(tmp_path)
    settings = Settings()
    assert settings.session_secret == "from-dotenv"
    assert settings.bcrypt_rounds == 10
