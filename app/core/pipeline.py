"""SSO reconciliation pipeline.

Stages run strictly in order and short-circuit on failure:

    token check -> multi-user bootstrap -> username derivation -> role mapping
    -> identity resolution -> provisioning -> session exchange

Pure Python: no Flask imports, so every stage can be exercised against
in-memory stores.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from app.core.audit import safe_log_sso_event
from app.core.errors import (
    MultiTenancyDisabled,
    PayloadIncomplete,
    SSOError,
    TokenExpired,
    TokenInvalid,
    Unexpected,
)
from app.core.identity import IdentityResolver, Resolution, ResolutionState, derive_username
from app.core.provisioning import UserProvisioner
from app.core.roles import map_role
from app.core.session_bridge import SessionBridge
from app.core.stores import LocalUser, StoreBundle, StoreError
from app.core.tenancy import MultiTenancyBootstrapper
from app.core.tokens import TokenStatus, check_sso_token

logger = logging.getLogger(__name__)

_TOKEN_FAILURES = {
    TokenStatus.EXPIRED: TokenExpired,
    TokenStatus.INVALID: TokenInvalid,
    TokenStatus.INCOMPLETE: PayloadIncomplete,
}


@dataclass
class SSOOutcome:
    """Result of one pipeline run.

    A pass-through outcome means the request carries nothing for the bridge
    (no token, or the bridge is not configured) and must continue untouched.
    """
    passthrough: bool
    reason: str = ""
    redirect_url: Optional[str] = None
    user: Optional[LocalUser] = None
    resolution: Optional[Resolution] = None
    created: bool = False

    @classmethod
    def pass_through(cls, reason: str) -> "SSOOutcome":
        return cls(passthrough=True, reason=reason)


class SSOPipeline:
    """Maps one trusted external session onto a local account and session."""

    def __init__(self, cfg, stores: StoreBundle):
        self.cfg = cfg
        self.stores = stores
        self.bootstrapper = MultiTenancyBootstrapper(
            stores.settings,
            default_enable=cfg.default_multi_user,
            auto_enable=cfg.auto_enable_multi_user,
            audit=cfg.audit_enabled,
        )
        self.resolver = IdentityResolver(stores.users, prefix=cfg.username_prefix)
        self.provisioner = UserProvisioner(stores.users)
        self.bridge = SessionBridge(stores.tokens, exchange_path=cfg.exchange_path)

    def run(self, token: Optional[str], requested_path: Optional[str] = None) -> SSOOutcome:
        """Reconcile an SSO token into a local session redirect.

        Args:
            token: Raw token from the request (None/empty -> pass through)
            requested_path: Path the caller originally asked for

        Returns:
            SSOOutcome (pass-through or redirect)

        Raises:
            SSOError: Any terminal condition, already logged
        """
        if not token:
            return SSOOutcome.pass_through("no token")

        check = check_sso_token(
            token,
            self.cfg.jwt_secret,
            algorithms=self.cfg.jwt_algorithms,
            leeway=self.cfg.jwt_leeway,
        )
        if check.status is TokenStatus.MISSING_SECRET:
            logger.error("[SSO] SSO_JWT_SECRET is not configured.")
            return SSOOutcome.pass_through(check.reason)
        if not check.ok:
            logger.warning("[SSO] Rejected token: %s", check.reason)
            error = _TOKEN_FAILURES[check.status](check.reason, stage="token")
            self._audit_failure(error)
            raise error

        payload = check.payload
        stage = "multi_user"
        username = None
        try:
            if not self.bootstrapper.ensure_enabled():
                logger.error(
                    "[SSO] Multi-user mode is not enabled. Set SSO_DEFAULT_MULTI_USER=true "
                    "or SSO_AUTO_ENABLE_MULTI_USER=true."
                )
                raise MultiTenancyDisabled("multi-user mode disabled", stage=stage)

            stage = "identity"
            username = derive_username(payload, self.cfg.username_prefix)
            role = map_role(
                payload,
                elevated_role=self.cfg.elevated_role,
                standard_role=self.cfg.standard_role,
                elevated_claim=self.cfg.elevated_role_claim,
            )
            resolution = self.resolver.resolve(username, payload)

            stage = "provisioning"
            result = self.provisioner.provision(resolution, role)

            stage = "session"
            redirect_url = self.bridge.issue(result.user, requested_path)
        except SSOError as error:
            if error.username is None:
                error.username = username
            if error.status < 500 and not isinstance(error, MultiTenancyDisabled):
                logger.warning("[SSO] %s rejected: %s", error.stage or stage, error.detail)
            self._audit_failure(error)
            raise
        except StoreError as exc:
            logger.error("[SSO] Store failure during %s for %s: %s", stage, username or "<unknown>", exc)
            error = Unexpected(str(exc), stage=stage, username=username)
            self._audit_failure(error)
            raise error from exc

        self._audit_success(resolution, result)
        return SSOOutcome(
            passthrough=False,
            redirect_url=redirect_url,
            user=result.user,
            resolution=resolution,
            created=result.created,
        )

    def _audit_success(self, resolution, result) -> None:
        if not self.cfg.audit_enabled:
            return
        username = result.user.username
        if resolution.state is ResolutionState.MIGRATED:
            safe_log_sso_event(
                "sso_user_migrated",
                username,
                details={"legacy_username": resolution.legacy_username},
            )
        if result.created:
            safe_log_sso_event("sso_user_created", username, details={"role": result.user.role})
        elif result.role_changed:
            safe_log_sso_event(
                "sso_role_synced",
                username,
                details={"from": result.previous_role, "to": result.user.role},
            )

    def _audit_failure(self, error: SSOError) -> None:
        if not self.cfg.audit_enabled:
            return
        safe_log_sso_event(
            "sso_login_failed",
            error.username or "",
            details={"stage": error.stage, "error": type(error).__name__},
            success=False,
        )
