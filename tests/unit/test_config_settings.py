import pytest

from app.config import settings
from app.config.settings import is_truthy, load_settings

SSO_ENV = [
    "SSO_JWT_SECRET",
    "SSO_DEFAULT_MULTI_USER",
    "SSO_AUTO_ENABLE_MULTI_USER",
    "SSO_TOKEN_PARAM",
    "SSO_JWT_ALGORITHMS",
    "SSO_JWT_LEEWAY",
    "STORE_BACKEND",
    "STORE_API_URL",
    "STORE_API_KEY",
    "FLASK_SECRET_KEY",
    "EXCHANGE_TOKEN_TTL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in SSO_ENV:
        monkeypatch.delenv(name, raising=False)

    real_path = settings.Path

    def fake_path(target):
        if str(target) == "/run/secrets":
            return tmp_path
        return real_path(target)

    monkeypatch.setattr(settings, "Path", fake_path)
    return tmp_path


@pytest.mark.parametrize("value", [None, "", "0", "false", "FALSE", "no", "Off", "  off  "])
def test_falsy_values(value):
    assert is_truthy(value) is False


@pytest.mark.parametrize("value", ["1", "true", "TRUE", "yes", "on", "enabled"])
def test_truthy_values(value):
    assert is_truthy(value) is True


def test_defaults_without_secret():
    cfg = load_settings()
    assert cfg.jwt_secret is None
    assert cfg.sso_enabled is False
    assert cfg.default_multi_user is False
    assert cfg.auto_enable_multi_user is False
    assert cfg.token_param == "sso_token"
    assert cfg.exchange_path == "/sso/simple"
    assert cfg.store_backend == "memory"
    assert cfg.secret_key


def test_switches_and_secret_from_env(monkeypatch):
    monkeypatch.setenv("SSO_JWT_SECRET", "env-secret")
    monkeypatch.setenv("SSO_DEFAULT_MULTI_USER", "true")
    monkeypatch.setenv("SSO_AUTO_ENABLE_MULTI_USER", "no")
    monkeypatch.setenv("SSO_JWT_ALGORITHMS", "HS256, HS512")
    cfg = load_settings()
    assert cfg.jwt_secret == "env-secret"
    assert cfg.default_multi_user is True
    assert cfg.auto_enable_multi_user is False
    assert cfg.jwt_algorithms == ["HS256", "HS512"]


def test_secret_file_wins_over_env(monkeypatch, clean_env):
    (clean_env / "sso_jwt_secret").write_text("file-secret\n")
    monkeypatch.setenv("SSO_JWT_SECRET", "env-secret")
    assert load_settings().jwt_secret == "file-secret"


def test_http_backend_requires_url(monkeypatch):
    monkeypatch.setenv("STORE_BACKEND", "http")
    with pytest.raises(RuntimeError, match="STORE_API_URL"):
        load_settings()


def test_integer_settings_are_validated(monkeypatch):
    monkeypatch.setenv("EXCHANGE_TOKEN_TTL", "soon")
    with pytest.raises(RuntimeError, match="EXCHANGE_TOKEN_TTL"):
        load_settings()
