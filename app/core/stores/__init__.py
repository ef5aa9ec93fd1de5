"""Store layer for the SSO bridge.

Architecture:
- base.py: LocalUser, store protocols, StoreBundle
- memory.py: thread-safe in-process stores (default backend, tests)
- client.py: HTTP client for the host admin API
- remote.py: stores backed by the host admin API
- exceptions.py: typed exceptions for error handling

Usage:
    from app.core.stores import build_stores

    stores = build_stores(cfg)
    user = stores.users.get_by_username("setpar_u1")
"""
from .base import LocalUser, UserStore, SettingsStore, ExchangeTokenStore, StoreBundle
from .client import StoreAPIClient, REQUEST_TIMEOUT
from .exceptions import (
    StoreError,
    StoreAPIError,
    UserNotFoundError,
    UsernameTakenError,
    SettingsUpdateError,
    TokenIssueError,
)
from .memory import InMemoryUserStore, InMemorySettingsStore, InMemoryExchangeTokenStore
from .remote import RemoteUserStore, RemoteSettingsStore, RemoteExchangeTokenStore

SUPPORTED_BACKENDS = {"memory", "http"}


def build_stores(cfg) -> StoreBundle:
    """Instantiate the stores selected by cfg.store_backend."""
    backend = (cfg.store_backend or "memory").lower()
    if backend not in SUPPORTED_BACKENDS:
        raise ValueError(f"Unsupported store backend: {backend} (expected one of {sorted(SUPPORTED_BACKENDS)})")
    if backend == "memory":
        return StoreBundle(
            users=InMemoryUserStore(),
            settings=InMemorySettingsStore(),
            tokens=InMemoryExchangeTokenStore(ttl_seconds=cfg.exchange_token_ttl),
            backend="memory",
        )
    client = StoreAPIClient(cfg.store_api_url, api_key=cfg.store_api_key)
    return StoreBundle(
        users=RemoteUserStore(client),
        settings=RemoteSettingsStore(client),
        tokens=RemoteExchangeTokenStore(client),
        backend="http",
    )


__all__ = [
    "LocalUser",
    "UserStore",
    "SettingsStore",
    "ExchangeTokenStore",
    "StoreBundle",
    "StoreAPIClient",
    "REQUEST_TIMEOUT",
    "StoreError",
    "StoreAPIError",
    "UserNotFoundError",
    "UsernameTakenError",
    "SettingsUpdateError",
    "TokenIssueError",
    "InMemoryUserStore",
    "InMemorySettingsStore",
    "InMemoryExchangeTokenStore",
    "RemoteUserStore",
    "RemoteSettingsStore",
    "RemoteExchangeTokenStore",
    "SUPPORTED_BACKENDS",
    "build_stores",
]
