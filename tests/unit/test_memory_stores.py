import threading

import pytest
from werkzeug.security import check_password_hash

from app.core.stores import (
    InMemoryExchangeTokenStore,
    InMemorySettingsStore,
    InMemoryUserStore,
    StoreError,
    UserNotFoundError,
    UsernameTakenError,
)


class TestUserStore:
    def test_create_hashes_password(self):
        users = InMemoryUserStore()
        user = users.create("alice", "s3cret", "default")
        assert user.id == 1
        assert check_password_hash(user.password_hash, "s3cret")
        assert "password_hash" not in user.public_fields()

    def test_usernames_are_unique(self):
        users = InMemoryUserStore()
        users.create("alice", "pw", "default")
        with pytest.raises(UsernameTakenError):
            users.create("alice", "pw", "manager")

    def test_concurrent_creates_produce_one_user(self):
        users = InMemoryUserStore()
        failures = []

        def worker():
            try:
                users.create("setpar_u1", "pw", "default")
            except UsernameTakenError as exc:
                failures.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert users.count() == 1
        assert len(failures) == 7

    def test_rename_to_taken_username_fails(self):
        users = InMemoryUserStore()
        users.create("alice", "pw", "default")
        bob = users.create("bob", "pw", "default")
        with pytest.raises(UsernameTakenError):
            users.update(bob.id, username="alice")
        assert users.get_by_username("bob") is not None

    def test_update_unknown_user(self):
        with pytest.raises(UserNotFoundError):
            InMemoryUserStore().update(99, role="manager")

    def test_update_rejects_unknown_fields(self):
        users = InMemoryUserStore()
        user = users.create("alice", "pw", "default")
        with pytest.raises(StoreError):
            users.update(user.id, email="a@x.com")

    def test_returned_users_are_copies(self):
        users = InMemoryUserStore()
        user = users.create("alice", "pw", "default")
        user.role = "manager"
        assert users.get_by_id(user.id).role == "default"


class TestSettingsStore:
    def test_defaults_to_single_user(self):
        assert InMemorySettingsStore().is_multi_user_mode() is False

    def test_update_is_idempotent_merge(self):
        store = InMemorySettingsStore()
        store.update_settings(multi_user_mode=True, onboarding_complete=True)
        store.update_settings(multi_user_mode=True, onboarding_complete=True)
        assert store.is_multi_user_mode() is True
        assert store.get("onboarding_complete") is True


class TestExchangeTokenStore:
    def test_tokens_are_single_use(self):
        tokens = InMemoryExchangeTokenStore()
        token = tokens.issue(5)
        assert tokens.redeem(token) == 5
        assert tokens.redeem(token) is None

    def test_tokens_expire(self):
        now = [1000.0]
        tokens = InMemoryExchangeTokenStore(ttl_seconds=60, clock=lambda: now[0])
        token = tokens.issue(5)
        now[0] += 61
        assert tokens.redeem(token) is None

    def test_unknown_token(self):
        assert InMemoryExchangeTokenStore().redeem("nope") is None

    def test_expired_tokens_are_purged_on_issue(self):
        now = [0.0]
        tokens = InMemoryExchangeTokenStore(ttl_seconds=10, clock=lambda: now[0])
        tokens.issue(1)
        now[0] = 20
        tokens.issue(2)
        assert tokens.pending() == 1
