"""SSO token validation.

Verifies the signed session token issued by the trusted external identity
provider and converts every PyJWT outcome into an explicit TokenCheck value.

Validations performed:
1. Signature verification (shared secret, HS256 by default)
2. Expiration (exp claim, when present)
3. Payload shape (must identify the caller by userId/sub and/or email)
"""
from __future__ import annotations
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHMS = ("HS256",)


class TokenStatus(enum.Enum):
    VALID = "valid"
    MISSING_SECRET = "missing_secret"
    EXPIRED = "expired"
    INVALID = "invalid"
    INCOMPLETE = "incomplete"


@dataclass(frozen=True)
class ExternalSessionPayload:
    """Decoded claims of one external session (request-scoped)."""
    user_id: Optional[str]
    email: Optional[str]
    is_super_admin: bool = False
    is_owner: bool = False
    role: Optional[str] = None
    claims: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> "ExternalSessionPayload":
        raw_id = claims.get("userId")
        if raw_id in (None, ""):
            raw_id = claims.get("sub")
        user_id = str(raw_id) if raw_id not in (None, "") else None

        email = claims.get("email")
        email = email if isinstance(email, str) and email else None

        role = claims.get("role")
        return cls(
            user_id=user_id,
            email=email,
            # Only a literal boolean true grants privileges
            is_super_admin=claims.get("isSuperAdmin") is True,
            is_owner=claims.get("isOwner") is True,
            role=role if isinstance(role, str) else None,
            claims=dict(claims),
        )


@dataclass(frozen=True)
class TokenCheck:
    """Outcome of validating one SSO token."""
    status: TokenStatus
    payload: Optional[ExternalSessionPayload] = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status is TokenStatus.VALID


def check_sso_token(
    token: str,
    secret: Optional[str],
    *,
    algorithms: Sequence[str] = DEFAULT_ALGORITHMS,
    leeway: int = 0,
) -> TokenCheck:
    """Validate an SSO token against the shared secret.

    Args:
        token: Raw token string from the request
        secret: Shared verification secret (None/empty disables SSO)
        algorithms: Accepted JWS algorithms
        leeway: Allowed clock skew in seconds

    Returns:
        TokenCheck with a VALID payload or the failure classification.
        Never raises for token problems.
    """
    if not secret:
        return TokenCheck(TokenStatus.MISSING_SECRET, reason="SSO secret is not configured")

    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=list(algorithms),
            options={"verify_aud": False},
            leeway=leeway,
        )
    except ExpiredSignatureError:
        return TokenCheck(TokenStatus.EXPIRED, reason="Token expired (exp claim)")
    except InvalidTokenError as e:
        return TokenCheck(TokenStatus.INVALID, reason=f"{type(e).__name__}: {e}")

    if not isinstance(claims, Mapping):
        return TokenCheck(TokenStatus.INCOMPLETE, reason="Token payload is not an object")

    payload = ExternalSessionPayload.from_claims(claims)
    if not payload.user_id and not payload.email:
        return TokenCheck(TokenStatus.INCOMPLETE, reason="Token payload lacks userId and email")

    logger.debug("[SSO] Token validated for external user %s", payload.user_id or "<email-only>")
    return TokenCheck(TokenStatus.VALID, payload=payload)
