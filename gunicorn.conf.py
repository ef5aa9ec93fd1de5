"""Gunicorn configuration file with secret loading.

Run with:
    gunicorn -c gunicorn.conf.py

Secret Loading (post_fork hook):
    /run/secrets/<name> is copied into the matching environment variable when
    the variable is not already set, so load_settings() in each worker sees
    the same values whether secrets come from Docker or the environment.
"""
import os
from pathlib import Path

wsgi_app = "app.flask_app:create_app()"
bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:5000")
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "30"))
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()

SECRET_MAPPING = {
    "SSO_JWT_SECRET": "sso_jwt_secret",
    "FLASK_SECRET_KEY": "flask_secret_key",
    "STORE_API_KEY": "store_api_key",
    "AUDIT_LOG_SIGNING_KEY": "audit_log_signing_key",
}


def post_fork(server, worker):
    """Called just after a worker has been forked."""
    secrets_dir = Path("/run/secrets")
    if not secrets_dir.is_dir():
        worker.log.info("No /run/secrets mount; using environment only")
        return

    for env_name, secret_name in SECRET_MAPPING.items():
        if os.environ.get(env_name):
            continue
        secret_file = secrets_dir / secret_name
        if not secret_file.is_file():
            continue
        try:
            value = secret_file.read_text().strip()
        except OSError as exc:
            worker.log.error(f"Failed to read secret '{secret_name}': {exc}")
            continue
        if value:
            os.environ[env_name] = value
            worker.log.info(f"Loaded secret '{secret_name}' into {env_name}")

    if not os.environ.get("SSO_JWT_SECRET"):
        worker.log.warning("SSO_JWT_SECRET not available; SSO bridge will pass requests through")
