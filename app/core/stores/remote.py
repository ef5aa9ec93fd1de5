"""Store implementations backed by the host application's admin API.

Endpoints used:
    GET   /users?username=<name>            -> {"users": [...]}
    GET   /users/<id>                        -> {"user": {...}}    (404 when unknown)
    POST  /users                             -> {"user": {...}}   (409 on duplicate)
    PATCH /users/<id>                        -> {"user": {...}}   (409 on duplicate)
    GET   /system/settings                   -> {"settings": {...}}
    PATCH /system/settings                   -> 200
    POST  /auth/temporary-tokens             -> {"token": "..."}
    POST  /auth/temporary-tokens/redeem      -> {"userId": 1}     (404 when unknown/used)
"""
from __future__ import annotations
import datetime
from typing import Any, Optional

from .base import LocalUser
from .client import StoreAPIClient, json_object
from .exceptions import (
    StoreAPIError,
    StoreError,
    SettingsUpdateError,
    TokenIssueError,
    UserNotFoundError,
    UsernameTakenError,
)


def _user_from_json(data: dict) -> LocalUser:
    """Build a LocalUser from an API representation."""
    if not isinstance(data, dict) or "id" not in data or "username" not in data:
        raise StoreError(f"Malformed user representation: {data!r}")
    created_raw = data.get("createdAt")
    created_at = None
    if isinstance(created_raw, str):
        try:
            created_at = datetime.datetime.fromisoformat(created_raw.replace("Z", "+00:00"))
        except ValueError:
            created_at = None
    # missing role reads as empty so the provisioner role sync decides
    user = LocalUser(id=data["id"], username=data["username"], role=data.get("role") or "")
    if created_at:
        user.created_at = created_at
    return user


class RemoteUserStore:
    """User store over the host admin API."""

    def __init__(self, client: StoreAPIClient):
        self.client = client

    def get_by_username(self, username: str) -> Optional[LocalUser]:
        """Return the user that exactly matches the username, if any."""
        resp = self.client.get("/users", params={"username": username})
        users = json_object(resp).get("users") or []
        if not isinstance(users, list):
            raise StoreError(f"Malformed user list: {users!r}")
        for item in users:
            if isinstance(item, dict) and item.get("username") == username:
                return _user_from_json(item)
        return None

    def get_by_id(self, user_id: int) -> Optional[LocalUser]:
        try:
            resp = self.client.get(f"/users/{user_id}")
        except StoreAPIError as exc:
            if exc.status_code == 404:
                return None
            raise
        return _user_from_json(json_object(resp).get("user"))

    def create(self, username: str, password: str, role: str) -> LocalUser:
        try:
            resp = self.client.post("/users", json={"username": username, "password": password, "role": role})
        except StoreAPIError as exc:
            if exc.status_code == 409:
                raise UsernameTakenError(f"Username '{username}' already exists") from exc
            raise
        return _user_from_json(json_object(resp).get("user"))

    def update(self, user_id: int, **fields: Any) -> LocalUser:
        try:
            resp = self.client.patch(f"/users/{user_id}", json=fields)
        except StoreAPIError as exc:
            if exc.status_code == 404:
                raise UserNotFoundError(f"User {user_id} not found") from exc
            if exc.status_code == 409:
                raise UsernameTakenError(f"Username '{fields.get('username')}' already exists") from exc
            raise
        return _user_from_json(json_object(resp).get("user"))


class RemoteSettingsStore:
    """System settings over the host admin API."""

    def __init__(self, client: StoreAPIClient):
        self.client = client

    def is_multi_user_mode(self) -> bool:
        resp = self.client.get("/system/settings")
        settings = json_object(resp).get("settings") or {}
        if not isinstance(settings, dict):
            raise StoreError(f"Malformed settings: {settings!r}")
        return bool(settings.get("multi_user_mode"))

    def update_settings(self, **values: Any) -> None:
        try:
            self.client.patch("/system/settings", json=values)
        except StoreAPIError as exc:
            raise SettingsUpdateError(str(exc)) from exc


class RemoteExchangeTokenStore:
    """Temporary auth tokens issued by the host."""

    def __init__(self, client: StoreAPIClient):
        self.client = client

    def issue(self, user_id: int) -> str:
        try:
            resp = self.client.post("/auth/temporary-tokens", json={"userId": user_id})
        except StoreAPIError as exc:
            raise TokenIssueError(str(exc)) from exc
        token = json_object(resp).get("token")
        if not token or not isinstance(token, str):
            raise TokenIssueError("Host returned no token")
        return token

    def redeem(self, token: str) -> Optional[int]:
        try:
            resp = self.client.post("/auth/temporary-tokens/redeem", json={"token": token})
        except StoreAPIError as exc:
            if exc.status_code in (400, 404, 410):
                return None
            raise
        return json_object(resp).get("userId")
