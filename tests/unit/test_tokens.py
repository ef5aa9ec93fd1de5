import jwt
import pytest

from app.core.tokens import ExternalSessionPayload, TokenStatus, check_sso_token
from tests.conftest import TEST_SECRET, make_token


def test_valid_token_returns_payload():
    check = check_sso_token(make_token({"userId": "U1", "email": "a@x.com"}), TEST_SECRET)
    assert check.ok
    assert check.status is TokenStatus.VALID
    assert check.payload.user_id == "U1"
    assert check.payload.email == "a@x.com"


@pytest.mark.parametrize("secret", [None, ""])
def test_missing_secret_is_classified_not_raised(secret):
    check = check_sso_token(make_token(), secret)
    assert check.status is TokenStatus.MISSING_SECRET
    assert check.payload is None


def test_expired_token():
    check = check_sso_token(make_token(exp_offset=-60), TEST_SECRET)
    assert check.status is TokenStatus.EXPIRED


def test_leeway_accepts_recently_expired_token():
    check = check_sso_token(make_token(exp_offset=-5), TEST_SECRET, leeway=30)
    assert check.ok


def test_wrong_secret_is_invalid():
    check = check_sso_token(make_token(secret="another-secret-that-is-long-enough-too"), TEST_SECRET)
    assert check.status is TokenStatus.INVALID


@pytest.mark.parametrize("token", ["not-a-jwt", "a.b.c", ""])
def test_malformed_token_is_invalid(token):
    check = check_sso_token(token, TEST_SECRET)
    assert check.status is TokenStatus.INVALID


def test_unsigned_token_is_rejected():
    token = jwt.encode({"userId": "attacker", "email": "evil@x.com"}, None, algorithm="none")
    check = check_sso_token(token, TEST_SECRET)
    assert check.status is TokenStatus.INVALID


def test_disallowed_algorithm_is_rejected():
    token = make_token(algorithm="HS512")
    check = check_sso_token(token, TEST_SECRET, algorithms=["HS256"])
    assert check.status is TokenStatus.INVALID


def test_payload_without_identifier_and_email_is_incomplete():
    check = check_sso_token(make_token({"role": "superadmin"}), TEST_SECRET)
    assert check.status is TokenStatus.INCOMPLETE


@pytest.mark.parametrize(
    "claims",
    [
        {"email": "Bob.Smith@x.com"},
        {"userId": "U1"},
        {"sub": "U2"},
    ],
)
def test_identifier_or_email_is_enough(claims):
    assert check_sso_token(make_token(claims), TEST_SECRET).ok


class TestExternalSessionPayload:
    def test_user_id_falls_back_to_sub(self):
        payload = ExternalSessionPayload.from_claims({"sub": "abc", "email": "a@x.com"})
        assert payload.user_id == "abc"

    def test_numeric_user_id_is_stringified(self):
        payload = ExternalSessionPayload.from_claims({"userId": 42})
        assert payload.user_id == "42"

    @pytest.mark.parametrize("value", ["true", 1, "yes", None])
    def test_privilege_flags_require_literal_true(self, value):
        payload = ExternalSessionPayload.from_claims({"userId": "U1", "isOwner": value, "isSuperAdmin": value})
        assert payload.is_owner is False
        assert payload.is_super_admin is False

    def test_non_string_role_is_ignored(self):
        payload = ExternalSessionPayload.from_claims({"userId": "U1", "role": ["superadmin"]})
        assert payload.role is None
