"""In-process store implementations.

Used as the default backend for single-process deployments and by the test
suite. Every store guards its state with a lock so concurrent requests see
the same guarantees a database would give (unique usernames, idempotent
settings writes, single-use tokens).
"""
from __future__ import annotations
import dataclasses
import secrets
import threading
import time
from typing import Any, Callable, Optional

from werkzeug.security import generate_password_hash

from .base import LocalUser
from .exceptions import StoreError, UserNotFoundError, UsernameTakenError

UPDATABLE_USER_FIELDS = {"username", "role", "password"}


class InMemoryUserStore:
    """User store with a unique-username constraint."""

    def __init__(self):
        self._lock = threading.Lock()
        self._users: dict[int, LocalUser] = {}
        self._next_id = 1

    def get_by_username(self, username: str) -> Optional[LocalUser]:
        with self._lock:
            for user in self._users.values():
                if user.username == username:
                    return dataclasses.replace(user)
        return None

    def get_by_id(self, user_id: int) -> Optional[LocalUser]:
        with self._lock:
            user = self._users.get(user_id)
            return dataclasses.replace(user) if user else None

    def create(self, username: str, password: str, role: str) -> LocalUser:
        if not username:
            raise StoreError("username is required")
        with self._lock:
            if self._username_in_use(username):
                raise UsernameTakenError(f"Username '{username}' already exists")
            user = LocalUser(
                id=self._next_id,
                username=username,
                role=role,
                password_hash=generate_password_hash(password),
            )
            self._users[user.id] = user
            self._next_id += 1
            return dataclasses.replace(user)

    def update(self, user_id: int, **fields: Any) -> LocalUser:
        unknown = set(fields) - UPDATABLE_USER_FIELDS
        if unknown:
            raise StoreError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                raise UserNotFoundError(f"User {user_id} not found")

            new_username = fields.get("username")
            if new_username is not None and new_username != user.username:
                if self._username_in_use(new_username):
                    raise UsernameTakenError(f"Username '{new_username}' already exists")
                user.username = new_username
            if "role" in fields:
                user.role = fields["role"]
            if "password" in fields:
                user.password_hash = generate_password_hash(fields["password"])
            return dataclasses.replace(user)

    def count(self) -> int:
        with self._lock:
            return len(self._users)

    def _username_in_use(self, username: str) -> bool:
        return any(u.username == username for u in self._users.values())


class InMemorySettingsStore:
    """System settings; writes are idempotent merges."""

    def __init__(self, **initial: Any):
        self._lock = threading.Lock()
        self._values: dict[str, Any] = {"multi_user_mode": False, "onboarding_complete": False}
        self._values.update(initial)

    def is_multi_user_mode(self) -> bool:
        with self._lock:
            return bool(self._values.get("multi_user_mode"))

    def update_settings(self, **values: Any) -> None:
        with self._lock:
            self._values.update(values)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._values.get(key, default)


class InMemoryExchangeTokenStore:
    """Single-use exchange tokens with a fixed lifetime."""

    def __init__(self, ttl_seconds: int = 300, clock: Callable[[], float] = time.monotonic):
        self._lock = threading.Lock()
        self._ttl = ttl_seconds
        self._clock = clock
        self._tokens: dict[str, tuple[int, float]] = {}

    def issue(self, user_id: int) -> str:
        token = secrets.token_urlsafe(32)
        with self._lock:
            self._purge_expired()
            self._tokens[token] = (user_id, self._clock() + self._ttl)
        return token

    def redeem(self, token: str) -> Optional[int]:
        with self._lock:
            entry = self._tokens.pop(token, None)
        if entry is None:
            return None
        user_id, expires_at = entry
        if self._clock() >= expires_at:
            return None
        return user_id

    def pending(self) -> int:
        with self._lock:
            return len(self._tokens)

    def _purge_expired(self) -> None:
        now = self._clock()
        for token in [t for t, (_, exp) in self._tokens.items() if exp <= now]:
            del self._tokens[token]
