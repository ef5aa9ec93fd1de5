"""SSO bridge error taxonomy.

Each fatal pipeline condition is an SSOError subclass carrying the HTTP status
and the message returned to the caller. Pass-through conditions (no token,
no configured secret) are not errors and never reach this module.
"""
from __future__ import annotations
from typing import Optional


class SSOError(Exception):
    """Terminal SSO failure with HTTP status and public message."""

    status: int = 500
    public_message: str = "SSO authentication failed."

    def __init__(self, detail: str = "", *, stage: str = "", username: Optional[str] = None):
        self.detail = detail or self.public_message
        self.stage = stage
        self.username = username
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        """Convert to the JSON error body."""
        return {"error": self.public_message}


class TokenExpired(SSOError):
    status = 401
    public_message = "SSO token expired."


class TokenInvalid(SSOError):
    status = 401
    public_message = "Invalid SSO token."


class PayloadIncomplete(SSOError):
    status = 401
    public_message = "Invalid SSO token payload."


class UnresolvableIdentity(SSOError):
    status = 401
    public_message = "Invalid SSO token payload."


class MultiTenancyDisabled(SSOError):
    status = 403
    public_message = "Multi-user mode must be enabled for SSO."


class MigrationFailed(SSOError):
    status = 500
    public_message = "Failed to migrate SSO user."


class ProvisioningFailed(SSOError):
    status = 500
    public_message = "Failed to create SSO user."


class RoleSyncFailed(SSOError):
    status = 500
    public_message = "Failed to sync SSO user role."


class SessionIssuanceFailed(SSOError):
    status = 500
    public_message = "Failed to create SSO session."


class Unexpected(SSOError):
    status = 500
    public_message = "SSO authentication failed."
