"""SSO user provisioning.

Creates the local account for a first-time external identity, or keeps the
role of an existing account in sync with the external privileges. Role is
the only field re-synchronized on later logins.
"""
from __future__ import annotations
import logging
import secrets
from dataclasses import dataclass

from app.core.errors import ProvisioningFailed, RoleSyncFailed
from app.core.identity import Resolution
from app.core.stores import LocalUser, StoreError, UserStore

logger = logging.getLogger(__name__)


def generate_sso_password() -> str:
    """Random credential for SSO-only accounts (never used to log in)."""
    return secrets.token_hex(32)


@dataclass
class ProvisioningResult:
    user: LocalUser
    created: bool = False
    role_changed: bool = False
    previous_role: str = ""


class UserProvisioner:
    """Creates or synchronizes the local account behind an SSO login."""

    def __init__(self, users: UserStore):
        self.users = users

    def provision(self, resolution: Resolution, role: str) -> ProvisioningResult:
        """Ensure a local user exists with the mapped role.

        Raises:
            ProvisioningFailed: Account creation failed (including a lost
                uniqueness race; a retry will find the winner)
            RoleSyncFailed: Role update failed
        """
        if resolution.user is None:
            return self._create(resolution.username, role)

        user = resolution.user
        if user.role == role:
            return ProvisioningResult(user)
        return self._sync_role(user, role)

    def _create(self, username: str, role: str) -> ProvisioningResult:
        try:
            user = self.users.create(username=username, password=generate_sso_password(), role=role)
        except StoreError as exc:
            logger.error("[SSO] Failed to create SSO user %s: %s", username, exc)
            raise ProvisioningFailed(str(exc), stage="provisioning", username=username) from exc

        logger.info("[SSO] Created user: %s (mapped role: %s)", username, role)
        return ProvisioningResult(user, created=True)

    def _sync_role(self, user: LocalUser, role: str) -> ProvisioningResult:
        try:
            updated = self.users.update(user.id, role=role)
        except StoreError as exc:
            logger.error("[SSO] Failed to update role for %s: %s", user.username, exc)
            raise RoleSyncFailed(str(exc), stage="provisioning", username=user.username) from exc

        logger.info("[SSO] Updated user role: %s %s -> %s", user.username, user.role, role)
        return ProvisioningResult(updated, role_changed=True, previous_role=user.role)
