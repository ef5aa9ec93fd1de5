import pytest

from app.core.roles import ELEVATED_ROLE, STANDARD_ROLE, is_elevated, map_role
from app.core.tokens import ExternalSessionPayload


def _payload(**claims):
    base = {"userId": "U1", "email": "a@x.com"}
    base.update(claims)
    return ExternalSessionPayload.from_claims(base)


@pytest.mark.parametrize(
    "claims",
    [
        {"isOwner": True},
        {"isSuperAdmin": True},
        {"role": "superadmin"},
        {"isOwner": True, "role": "member"},
    ],
)
def test_elevated_signals_map_to_manager(claims):
    assert map_role(_payload(**claims)) == ELEVATED_ROLE == "manager"


@pytest.mark.parametrize(
    "claims",
    [
        {},
        {"role": "member"},
        {"role": "SuperAdmin"},
        {"isOwner": False, "isSuperAdmin": False},
        {"isOwner": "true"},
    ],
)
def test_everything_else_maps_to_default(claims):
    assert map_role(_payload(**claims)) == STANDARD_ROLE == "default"


def test_custom_role_names():
    payload = _payload(role="admin")
    assert is_elevated(payload, elevated_claim="admin")
    assert map_role(payload, elevated_role="admin", standard_role="user", elevated_claim="admin") == "admin"
    assert map_role(_payload(), elevated_role="admin", standard_role="user", elevated_claim="admin") == "user"
