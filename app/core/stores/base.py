"""Store interfaces consumed by the SSO bridge.

The bridge never owns persistence. It talks to three narrow capabilities:

- UserStore           : local accounts (unique username constraint lives here)
- SettingsStore       : process-wide system settings (multi-user mode flag)
- ExchangeTokenStore  : single-use, short-lived session exchange tokens

Implementations raise StoreError subclasses on failure; they never return
error tuples.
"""
from __future__ import annotations
import datetime
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol


@dataclass
class LocalUser:
    """Local account as seen by the bridge (request-scoped copy)."""
    id: int
    username: str
    role: str
    password_hash: str = ""
    created_at: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )

    def public_fields(self) -> dict[str, Any]:
        """Return the user without credential material."""
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role,
            "createdAt": self.created_at.isoformat(),
        }


class UserStore(Protocol):
    def get_by_username(self, username: str) -> Optional[LocalUser]:
        ...

    def get_by_id(self, user_id: int) -> Optional[LocalUser]:
        ...

    def create(self, username: str, password: str, role: str) -> LocalUser:
        ...

    def update(self, user_id: int, **fields: Any) -> LocalUser:
        ...


class SettingsStore(Protocol):
    def is_multi_user_mode(self) -> bool:
        ...

    def update_settings(self, **values: Any) -> None:
        ...


class ExchangeTokenStore(Protocol):
    def issue(self, user_id: int) -> str:
        ...

    def redeem(self, token: str) -> Optional[int]:
        ...


@dataclass
class StoreBundle:
    """The three stores wired into one application instance."""
    users: UserStore
    settings: SettingsStore
    tokens: ExchangeTokenStore
    backend: str = "memory"
