"""Audit logging for SSO provisioning events."""

from __future__ import annotations
import datetime
import hashlib
import hmac
import json
import logging
import os
from pathlib import Path
from typing import Any, Literal

logger = logging.getLogger(__name__)

AUDIT_LOG_FILENAME = "sso-events.jsonl"

EventType = Literal[
    "sso_user_created",
    "sso_user_migrated",
    "sso_role_synced",
    "sso_multi_user_enabled",
    "sso_login_failed",
]


def audit_log_dir() -> Path:
    return Path(os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"))


def audit_log_file() -> Path:
    return audit_log_dir() / AUDIT_LOG_FILENAME


def _get_signing_key() -> bytes:
    """Read the signing key lazily so secrets loaded after import are honoured."""
    key_file = os.environ.get("AUDIT_LOG_SIGNING_KEY_FILE")
    if key_file and Path(key_file).exists():
        try:
            return Path(key_file).read_text(encoding="utf-8").strip().encode("utf-8")
        except OSError as exc:
            logger.warning("[audit] Cannot read signing key file %s: %s", key_file, exc)
    return os.environ.get("AUDIT_LOG_SIGNING_KEY", "").strip().encode("utf-8")


def _sign_event(event: dict[str, Any]) -> str:
    """Generate HMAC-SHA256 signature for audit event."""
    signing_key = _get_signing_key()
    if not signing_key:
        return ""
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":"))
    return hmac.new(signing_key, canonical.encode("utf-8"), hashlib.sha256).hexdigest()


def log_sso_event(
    event_type: EventType,
    username: str,
    *,
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """Append an SSO event to the audit trail with timestamp and signature.

    Args:
        event_type: Kind of SSO operation
        username: Local username affected (empty when none was derived)
        details: Additional context (roles, legacy username, stage)
        success: Whether the operation succeeded
    """
    directory = audit_log_dir()
    directory.mkdir(parents=True, exist_ok=True)
    directory.chmod(0o700)

    event = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "event_type": event_type,
        "username": username,
        "operator": "sso",
        "success": success,
        "details": details or {},
    }

    signature = _sign_event(event)
    if signature:
        event["signature"] = signature

    path = audit_log_file()
    with path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(event, ensure_ascii=False) + "\n")
    path.chmod(0o600)


def safe_log_sso_event(
    event_type: EventType,
    username: str,
    *,
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> bool:
    """Log an SSO event without ever raising.

    Returns:
        True if the event was written, False if writing failed
    """
    try:
        log_sso_event(event_type, username, details=details, success=success)
        return True
    except OSError as e:
        logger.warning("[audit] Failed to log %s event for %s: %s", event_type, username, e)
        return False


def verify_audit_log() -> tuple[int, int]:
    """Verify all signatures in the audit log.

    Returns:
        Tuple of (total_events, valid_signatures)
    """
    path = audit_log_file()
    if not path.exists():
        return 0, 0

    total = 0
    valid = 0
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            total += 1
            try:
                event = json.loads(line)
                stored_sig = event.pop("signature", "")
                if not stored_sig:
                    continue
                computed_sig = _sign_event(event)
                if computed_sig and hmac.compare_digest(stored_sig, computed_sig):
                    valid += 1
            except (json.JSONDecodeError, AttributeError):
                continue

    return total, valid
