"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import os
import secrets
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

FALSY_VALUES = {"", "0", "false", "no", "off"}


def is_truthy(value: Optional[str]) -> bool:
    """Interpret a boolean-like environment value.

    Absent, "", "0", "false", "no" and "off" (any case) are false; any other
    string is true.
    """
    if value is None:
        return False
    return str(value).strip().lower() not in FALSY_VALUES


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                print(f"[settings] ✓ Loaded {secret_name} from /run/secrets")
                return secret_value
        except OSError as e:
            print(f"[settings] ✗ Failed to read /run/secrets/{secret_name}: {e}")

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


def _int_env(var_name: str, default: int) -> int:
    raw = os.environ.get(var_name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {var_name} must be an integer, got {raw!r}")


@dataclass
class AppConfig:
    """Application configuration container."""
    # SSO verification
    jwt_secret: Optional[str]
    jwt_algorithms: list[str] = field(default_factory=lambda: ["HS256"])
    jwt_leeway: int = 0
    token_param: str = "sso_token"

    # Multi-user bootstrap switches
    default_multi_user: bool = False
    auto_enable_multi_user: bool = False

    # Identity and roles
    username_prefix: str = "setpar_"
    elevated_role: str = "manager"
    standard_role: str = "default"
    elevated_role_claim: str = "superadmin"

    # Session exchange
    exchange_path: str = "/sso/simple"
    exchange_token_ttl: int = 300

    # Stores
    store_backend: str = "memory"
    store_api_url: str = ""
    store_api_key: str = ""

    # Flask
    secret_key: str = ""
    secret_key_fallbacks: list[str] = field(default_factory=list)
    session_cookie_secure: bool = True
    trusted_proxy_ips: str = "127.0.0.1/32,::1/128"

    # Audit
    audit_enabled: bool = True

    @property
    def sso_enabled(self) -> bool:
        """SSO is active only when a verification secret is configured."""
        return bool(self.jwt_secret)


def load_settings() -> AppConfig:
    """Load application settings from environment and /run/secrets."""
    jwt_secret = _load_secret_from_file("sso_jwt_secret", "SSO_JWT_SECRET")
    if not jwt_secret:
        print("[settings] ⚠️ SSO_JWT_SECRET not configured; SSO bridge inactive")

    secret_key = _load_secret_from_file("flask_secret_key", "FLASK_SECRET_KEY")
    if not secret_key:
        secret_key = secrets.token_urlsafe(48)
        print("[settings] Generated temporary FLASK_SECRET_KEY")

    secret_key_fallbacks = [
        key.strip()
        for key in os.environ.get("FLASK_SECRET_KEY_FALLBACKS", "").split(",")
        if key.strip()
    ]

    jwt_algorithms = [
        alg.strip()
        for alg in os.environ.get("SSO_JWT_ALGORITHMS", "HS256").split(",")
        if alg.strip()
    ] or ["HS256"]

    store_backend = os.environ.get("STORE_BACKEND", "memory").strip().lower() or "memory"
    store_api_url = os.environ.get("STORE_API_URL", "").strip()
    store_api_key = _load_secret_from_file("store_api_key", "STORE_API_KEY") or ""
    if store_backend == "http" and not store_api_url:
        raise RuntimeError("STORE_API_URL is required when STORE_BACKEND=http.")

    cfg = AppConfig(
        jwt_secret=jwt_secret,
        jwt_algorithms=jwt_algorithms,
        jwt_leeway=_int_env("SSO_JWT_LEEWAY", 0),
        token_param=os.environ.get("SSO_TOKEN_PARAM", "sso_token").strip() or "sso_token",
        default_multi_user=is_truthy(os.environ.get("SSO_DEFAULT_MULTI_USER")),
        auto_enable_multi_user=is_truthy(os.environ.get("SSO_AUTO_ENABLE_MULTI_USER")),
        username_prefix=os.environ.get("SSO_USERNAME_PREFIX", "setpar_"),
        elevated_role=os.environ.get("SSO_ELEVATED_ROLE", "manager").strip().lower() or "manager",
        standard_role=os.environ.get("SSO_STANDARD_ROLE", "default").strip().lower() or "default",
        elevated_role_claim=os.environ.get("SSO_ELEVATED_ROLE_CLAIM", "superadmin").strip() or "superadmin",
        exchange_path=os.environ.get("SSO_EXCHANGE_PATH", "/sso/simple").strip() or "/sso/simple",
        exchange_token_ttl=_int_env("EXCHANGE_TOKEN_TTL", 300),
        store_backend=store_backend,
        store_api_url=store_api_url,
        store_api_key=store_api_key,
        secret_key=secret_key,
        secret_key_fallbacks=secret_key_fallbacks,
        session_cookie_secure=is_truthy(os.environ.get("FLASK_SESSION_COOKIE_SECURE", "true")),
        trusted_proxy_ips=os.environ.get("TRUSTED_PROXY_IPS", "127.0.0.1/32,::1/128"),
        audit_enabled=is_truthy(os.environ.get("AUDIT_LOG_ENABLED", "true")),
    )

    print(
        f"[settings] SSO={'on' if cfg.sso_enabled else 'off'}; store={cfg.store_backend}; "
        f"default_multi_user={cfg.default_multi_user}; auto_enable_multi_user={cfg.auto_enable_multi_user}"
    )
    return cfg
