"""Health check endpoints."""
from flask import Blueprint, current_app, jsonify

from app.core.stores import StoreError

bp = Blueprint("health", __name__)


@bp.route("/health")
def health_check():
    """Basic health check endpoint."""
    return ("ok", 200, {"Content-Type": "text/plain"})


@bp.route("/ready")
def readiness_check():
    """Readiness check: the settings store must answer."""
    cfg = current_app.config["APP_CONFIG"]
    stores = current_app.config["SSO_STORES"]
    try:
        multi_user = stores.settings.is_multi_user_mode()
    except StoreError as exc:
        current_app.logger.warning(f"Readiness check failed: {exc}")
        return jsonify({"status": "unavailable", "store": stores.backend}), 503
    return jsonify({
        "status": "ready",
        "store": stores.backend,
        "sso": cfg.sso_enabled,
        "multiUserMode": multi_user,
    }), 200
