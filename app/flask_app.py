"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with the SSO hook, blueprints and configuration.
"""
from __future__ import annotations
import ipaddress
import logging
import os
from tempfile import gettempdir
from typing import Optional

from flask import Flask, request, abort
from flask_session import Session
from werkzeug.middleware.proxy_fix import ProxyFix

from app.config import AppConfig, load_settings
from app.core.stores import StoreBundle, build_stores


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(cfg: Optional[AppConfig] = None, stores: Optional[StoreBundle] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        cfg: Preloaded configuration (defaults to load_settings())
        stores: Store bundle to use (defaults to build_stores(cfg))
    """
    cfg = cfg or load_settings()
    stores = stores or build_stores(cfg)

    app = Flask(__name__)
    app.config["APP_CONFIG"] = cfg
    app.config["SSO_STORES"] = stores

    # Flask session configuration
    app.config["SECRET_KEY"] = cfg.secret_key
    if cfg.secret_key_fallbacks:
        app.config["SECRET_KEY_FALLBACKS"] = cfg.secret_key_fallbacks

    app.config["SESSION_TYPE"] = os.environ.get("FLASK_SESSION_TYPE", "filesystem")
    if app.config["SESSION_TYPE"] == "filesystem":
        session_dir = os.environ.get("FLASK_SESSION_DIR") or os.path.join(gettempdir(), "sso_bridge_flask_session")
        os.makedirs(session_dir, exist_ok=True)
        app.config["SESSION_FILE_DIR"] = session_dir

    app.config["SESSION_COOKIE_HTTPONLY"] = True
    # SSO arrives inside a cross-site iframe
    app.config["SESSION_COOKIE_SAMESITE"] = "None" if cfg.session_cookie_secure else "Lax"
    app.config["SESSION_COOKIE_SECURE"] = cfg.session_cookie_secure

    Session(app)

    # Trust X-Forwarded-* headers from proxy (nginx)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore

    trusted_proxy_networks = _parse_networks(cfg.trusted_proxy_ips)
    app.config["TRUSTED_PROXY_NETWORKS"] = trusted_proxy_networks
    _register_middleware(app, trusted_proxy_networks)

    # SSO hook runs after proxy validation, before any route
    from app.api import sso
    sso.init_sso(app, cfg, stores)

    # Register blueprints
    from app.api import health, errors, session as session_routes

    app.register_blueprint(session_routes.create_blueprint(cfg.exchange_path))
    app.register_blueprint(health.bp)

    errors.register_error_handlers(app)

    app.logger.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())
    logging.getLogger("app").setLevel(app.logger.level)

    print(f"[flask_app] SSO bridge {'enabled' if cfg.sso_enabled else 'disabled'}; store={stores.backend}")
    print(f"[flask_app] Exchange endpoint registered at {cfg.exchange_path}")

    return app


def _register_middleware(app: Flask, trusted_proxy_networks: list):
    """Register before_request middleware."""

    @app.before_request
    def enforce_proxy_headers() -> None:
        """Validate proxy headers from trusted sources only."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        original_remote = request.environ.get("werkzeug.proxy_fix.orig", {}).get("REMOTE_ADDR")
        if forwarded_for and original_remote:
            try:
                address = ipaddress.ip_address(original_remote)
                if not any(address in network for network in trusted_proxy_networks):
                    abort(400, description="Untrusted proxy")
            except ValueError:
                abort(400, description="Invalid proxy address")

        if forwarded_for and "," in forwarded_for:
            abort(400, description="Multiple forwarded clients not permitted")


# ─────────────────────────────────────────────────────────────────────────────
# Helper Functions
# ─────────────────────────────────────────────────────────────────────────────
def _parse_networks(raw: str) -> list:
    """Parse a comma-separated list of CIDR ranges, skipping invalid entries."""
    networks = []
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        try:
            networks.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            continue
    return networks


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=True)
