"""External privilege signals -> local role mapping."""
from __future__ import annotations

from app.core.tokens import ExternalSessionPayload

ELEVATED_ROLE = "manager"
STANDARD_ROLE = "default"
ELEVATED_ROLE_CLAIM = "superadmin"


def is_elevated(payload: ExternalSessionPayload, elevated_claim: str = ELEVATED_ROLE_CLAIM) -> bool:
    """Check if the external session carries any elevated privilege signal."""
    return payload.is_super_admin or payload.is_owner or payload.role == elevated_claim


def map_role(
    payload: ExternalSessionPayload,
    *,
    elevated_role: str = ELEVATED_ROLE,
    standard_role: str = STANDARD_ROLE,
    elevated_claim: str = ELEVATED_ROLE_CLAIM,
) -> str:
    """Map an external session to exactly one of the two local roles.

    External super admins and owners become local managers; everyone else
    gets the default role.
    """
    return elevated_role if is_elevated(payload, elevated_claim) else standard_role
