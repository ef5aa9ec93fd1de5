import json

from app.core import audit


def test_events_are_appended_as_json_lines(_audit_dir):
    audit.log_sso_event("sso_user_created", "setpar_u1", details={"role": "default"})
    audit.log_sso_event("sso_role_synced", "setpar_u1", details={"from": "default", "to": "manager"})

    lines = audit.audit_log_file().read_text().splitlines()
    events = [json.loads(line) for line in lines]
    assert [e["event_type"] for e in events] == ["sso_user_created", "sso_role_synced"]
    assert events[0]["operator"] == "sso"
    assert "signature" not in events[0]


def test_signed_events_verify(monkeypatch):
    monkeypatch.setenv("AUDIT_LOG_SIGNING_KEY", "audit-key")
    audit.log_sso_event("sso_user_migrated", "setpar_u1", details={"legacy_username": "setpar_bob"})
    audit.log_sso_event("sso_login_failed", "", success=False)
    assert audit.verify_audit_log() == (2, 2)


def test_tampered_event_fails_verification(monkeypatch):
    monkeypatch.setenv("AUDIT_LOG_SIGNING_KEY", "audit-key")
    audit.log_sso_event("sso_user_created", "setpar_u1")
    path = audit.audit_log_file()
    path.write_text(path.read_text().replace("setpar_u1", "setpar_u2"))
    assert audit.verify_audit_log() == (1, 0)


def test_missing_log_verifies_empty():
    assert audit.verify_audit_log() == (0, 0)


def test_safe_logger_never_raises(monkeypatch):
    def boom(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(audit, "log_sso_event", boom)
    assert audit.safe_log_sso_event("sso_user_created", "setpar_u1") is False
