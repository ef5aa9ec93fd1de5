"""Local username derivation and identity resolution.

Usernames come from the external identifier when there is one
(``setpar_<id>``) and from the email local-part otherwise (legacy scheme).
Resolution looks up the identifier-based name first and migrates a matching
legacy account onto it when that does not collide with another account.

Resolution states:

    NOT_FOUND ──> LEGACY_FOUND_NO_CONFLICT ──> MIGRATED
        │     └─> LEGACY_FOUND_CONFLICT ────> LEGACY_KEPT
        ├─> RESOLVED   (identifier-based user already exists)
        └─> NONE       (nothing found, provisioner creates)
"""
from __future__ import annotations
import enum
import logging
import re
from dataclasses import dataclass
from typing import Optional

from app.core.errors import MigrationFailed, UnresolvableIdentity
from app.core.stores import LocalUser, StoreError, UserStore
from app.core.tokens import ExternalSessionPayload

logger = logging.getLogger(__name__)

USERNAME_MAX_LENGTH = 32
DEFAULT_USERNAME_PREFIX = "setpar_"

_ID_STRIP = re.compile(r"[^a-z0-9]")
_LOCALPART_STRIP = re.compile(r"[^a-z0-9._@-]")


def primary_username(user_id: Optional[str], prefix: str = DEFAULT_USERNAME_PREFIX) -> Optional[str]:
    """Derive the identifier-based username, or None when nothing usable remains."""
    core = _ID_STRIP.sub("", str(user_id or "").lower())
    if not core:
        return None
    return f"{prefix}{core}"[:USERNAME_MAX_LENGTH]


def legacy_localpart(email: Optional[str]) -> str:
    """Normalized email local-part used by the legacy scheme (may be empty)."""
    localpart = str(email or "").split("@")[0].lower()
    return _LOCALPART_STRIP.sub("", localpart)[:USERNAME_MAX_LENGTH]


def legacy_username(email: Optional[str], prefix: str = DEFAULT_USERNAME_PREFIX) -> Optional[str]:
    """Derive the email-based (legacy) username, or None."""
    localpart = legacy_localpart(email)
    if not localpart:
        return None
    return f"{prefix}{localpart}"[:USERNAME_MAX_LENGTH]


def derive_username(payload: ExternalSessionPayload, prefix: str = DEFAULT_USERNAME_PREFIX) -> str:
    """Derive the local username for a payload.

    Raises:
        UnresolvableIdentity: Neither the identifier nor the email yields a name
    """
    username = primary_username(payload.user_id, prefix) or legacy_username(payload.email, prefix)
    if not username:
        raise UnresolvableIdentity("Could not derive username from payload", stage="identity")
    return username


class ResolutionState(enum.Enum):
    NOT_FOUND = "not_found"
    LEGACY_FOUND_NO_CONFLICT = "legacy_found_no_conflict"
    LEGACY_FOUND_CONFLICT = "legacy_found_conflict"
    RESOLVED = "resolved"
    MIGRATED = "migrated"
    LEGACY_KEPT = "legacy_kept"
    NONE = "none"


TERMINAL_STATES = {
    ResolutionState.RESOLVED,
    ResolutionState.MIGRATED,
    ResolutionState.LEGACY_KEPT,
    ResolutionState.NONE,
}


@dataclass
class Resolution:
    """Result of resolving one external identity against the user store."""
    state: ResolutionState
    username: str
    user: Optional[LocalUser] = None
    legacy_username: Optional[str] = None


class IdentityResolver:
    """Reconciles a derived username with the local user store."""

    def __init__(self, users: UserStore, prefix: str = DEFAULT_USERNAME_PREFIX):
        self.users = users
        self.prefix = prefix

    def resolve(self, username: str, payload: ExternalSessionPayload) -> Resolution:
        """Resolve the local account for a derived username.

        Raises:
            MigrationFailed: Renaming the legacy account failed at the store
            StoreError: A lookup failed
        """
        user = self.users.get_by_username(username)
        if user is not None:
            return Resolution(ResolutionState.RESOLVED, username, user)

        resolution = Resolution(ResolutionState.NOT_FOUND, username)
        while resolution.state not in TERMINAL_STATES:
            resolution = self._step(resolution, payload)
        return resolution

    def _step(self, current: Resolution, payload: ExternalSessionPayload) -> Resolution:
        state = current.state
        if state is ResolutionState.NOT_FOUND:
            return self._find_legacy(current, payload)
        if state is ResolutionState.LEGACY_FOUND_NO_CONFLICT:
            return self._migrate(current)
        if state is ResolutionState.LEGACY_FOUND_CONFLICT:
            logger.warning(
                "[SSO] Username %s is held by another account; keeping legacy user %s unrenamed.",
                current.username,
                current.legacy_username,
            )
            return Resolution(ResolutionState.LEGACY_KEPT, current.username, current.user, current.legacy_username)
        raise ValueError(f"No transition from state {state}")

    def _find_legacy(self, current: Resolution, payload: ExternalSessionPayload) -> Resolution:
        # Legacy accounts are matched under the prefixed name (setpar_<localpart>).
        # Bare local-part usernames from before the prefix was introduced are not
        # looked up and therefore never migrated.
        legacy_name = legacy_username(payload.email, self.prefix)
        if not legacy_name or legacy_name == current.username:
            return Resolution(ResolutionState.NONE, current.username)

        legacy_user = self.users.get_by_username(legacy_name)
        if legacy_user is None:
            return Resolution(ResolutionState.NONE, current.username, legacy_username=legacy_name)

        holder = self.users.get_by_username(current.username)
        if holder is not None and holder.id != legacy_user.id:
            return Resolution(ResolutionState.LEGACY_FOUND_CONFLICT, current.username, legacy_user, legacy_name)
        return Resolution(ResolutionState.LEGACY_FOUND_NO_CONFLICT, current.username, legacy_user, legacy_name)

    def _migrate(self, current: Resolution) -> Resolution:
        try:
            renamed = self.users.update(current.user.id, username=current.username)
        except StoreError as exc:
            logger.error(
                "[SSO] Failed to migrate legacy username %s -> %s: %s",
                current.legacy_username,
                current.username,
                exc,
            )
            raise MigrationFailed(str(exc), stage="identity", username=current.username) from exc

        logger.info("[SSO] Migrated legacy username %s -> %s.", current.legacy_username, current.username)
        return Resolution(ResolutionState.MIGRATED, current.username, renamed, current.legacy_username)
