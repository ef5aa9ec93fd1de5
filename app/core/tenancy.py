"""Multi-user mode bootstrap.

SSO accounts can only be provisioned once the host runs in multi-user mode.
Two independent switches may turn it on:

- default switch : enable at boot (and on any request that finds it off)
- auto switch    : enable on the first valid SSO request

Enabling is an idempotent settings write; concurrent requests may all try it.
"""
from __future__ import annotations
import logging

from app.core.audit import safe_log_sso_event
from app.core.stores import SettingsStore, StoreError

logger = logging.getLogger(__name__)

DEFAULT_SWITCH = "SSO_DEFAULT_MULTI_USER"
AUTO_SWITCH = "SSO_AUTO_ENABLE_MULTI_USER"


class MultiTenancyBootstrapper:
    """Guarantees multi-user mode before any identity work."""

    def __init__(
        self,
        settings: SettingsStore,
        *,
        default_enable: bool = False,
        auto_enable: bool = False,
        audit: bool = False,
    ):
        self.settings = settings
        self.default_enable = default_enable
        self.auto_enable = auto_enable
        self.audit = audit

    def is_enabled(self) -> bool:
        return self.settings.is_multi_user_mode()

    def enable(self, reason: str = "unspecified") -> bool:
        """Turn on multi-user mode (and mark onboarding complete).

        Returns:
            True on success, False when the settings write failed
        """
        try:
            self.settings.update_settings(multi_user_mode=True, onboarding_complete=True)
        except StoreError as exc:
            logger.error("[SSO] Failed to enable multi-user mode (%s): %s", reason, exc)
            return False
        logger.info("[SSO] Multi-user mode enabled (%s).", reason)
        if self.audit:
            safe_log_sso_event("sso_multi_user_enabled", "", details={"reason": reason})
        return True

    def ensure_default_enabled(self) -> bool:
        """Boot-time check: honour only the default switch."""
        if self.is_enabled():
            return True
        if not self.default_enable:
            return False
        return self.enable(DEFAULT_SWITCH)

    def ensure_enabled(self) -> bool:
        """Request-time check: default switch first, then auto switch."""
        if self.is_enabled():
            return True

        if self.default_enable and self.enable(DEFAULT_SWITCH):
            return True

        if not self.auto_enable:
            return False
        return self.enable(AUTO_SWITCH)
