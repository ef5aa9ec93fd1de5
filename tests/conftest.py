"""Pytest shared fixtures for the SSO bridge."""
import pathlib
import sys
import time
from typing import Optional

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import jwt
import pytest
import requests

from app.config.settings import AppConfig
from app.core.stores import (
    InMemoryExchangeTokenStore,
    InMemorySettingsStore,
    InMemoryUserStore,
    StoreBundle,
)

TEST_SECRET = "test-sso-secret-with-enough-length-for-hs256"


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """Prevent unit tests from reaching a live host admin API."""
    if request.node.get_closest_marker("integration"):
        return

    def _refuse(method, url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")

    monkeypatch.setattr(requests, "request", _refuse)


@pytest.fixture(autouse=True)
def _audit_dir(monkeypatch, tmp_path):
    """Keep audit files inside the test's temp dir."""
    audit_dir = tmp_path / "audit"
    monkeypatch.setenv("AUDIT_LOG_DIR", str(audit_dir))
    monkeypatch.delenv("AUDIT_LOG_SIGNING_KEY", raising=False)
    monkeypatch.delenv("AUDIT_LOG_SIGNING_KEY_FILE", raising=False)
    return audit_dir


# ─────────────────────────────────────────────────────────────────────────────
# Configuration and stores
# ─────────────────────────────────────────────────────────────────────────────
def make_config(**overrides) -> AppConfig:
    base = dict(
        jwt_secret=TEST_SECRET,
        secret_key="flask-test-secret",
        session_cookie_secure=False,
        audit_enabled=False,
    )
    base.update(overrides)
    return AppConfig(**base)


def make_stores(multi_user: bool = True) -> StoreBundle:
    return StoreBundle(
        users=InMemoryUserStore(),
        settings=InMemorySettingsStore(multi_user_mode=multi_user),
        tokens=InMemoryExchangeTokenStore(ttl_seconds=300),
    )


@pytest.fixture()
def stores():
    return make_stores()


# ─────────────────────────────────────────────────────────────────────────────
# SSO token helpers
# ─────────────────────────────────────────────────────────────────────────────
def make_token(
    claims: Optional[dict] = None,
    *,
    secret: str = TEST_SECRET,
    exp_offset: Optional[int] = 3600,
    algorithm: str = "HS256",
) -> str:
    """Sign an SSO token the way the external identity provider does."""
    payload = {"userId": "U1", "email": "a@x.com"} if claims is None else dict(claims)
    if exp_offset is not None:
        payload["exp"] = int(time.time()) + exp_offset
    return jwt.encode(payload, secret, algorithm=algorithm)


# ─────────────────────────────────────────────────────────────────────────────
# Flask Test Client
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def app_factory(monkeypatch, tmp_path):
    """Build isolated apps with in-memory stores."""
    monkeypatch.setenv("FLASK_SESSION_TYPE", "filesystem")
    monkeypatch.setenv("FLASK_SESSION_DIR", str(tmp_path / "sessions"))
    from app.flask_app import create_app

    def _build(cfg: Optional[AppConfig] = None, stores: Optional[StoreBundle] = None):
        flask_app = create_app(cfg or make_config(), stores or make_stores())
        flask_app.config.update(TESTING=True)

        @flask_app.route("/")
        def index():
            return "home"

        @flask_app.route("/workspace/<slug>")
        def workspace(slug):
            return f"workspace {slug}"

        return flask_app

    return _build


@pytest.fixture()
def client(app_factory):
    flask_app = app_factory()
    with flask_app.test_client() as client:
        yield client


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (requires running stack)"
    )
