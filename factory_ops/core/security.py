from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional
from uuid import UUID

from jose import JWTError, jwt

from factory_ops.core.settings import get_app_settings


@dataclass(frozen=True)
class Principal:
    """Caller identity resolved from a verified access token."""
    user_id: str
    email: Optional[str] = None
    roles: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def user_uuid(self) -> Optional[UUID]:
        """Subject as a UUID, or None when the identity provider uses another id format."""
        try:
            return UUID(self.user_id)
        except ValueError:
            return None

    def has_any_role(self, *required: str) -> bool:
        if "admin" in self.roles:
            return True
        return not self.roles.isdisjoint(required)


# PUBLIC_INTERFACE
def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT; raises JWTError if invalid/expired."""
    settings = get_app_settings()
    options = {"verify_aud": settings.JWT_AUDIENCE is not None}
    return jwt.decode(
        token,
        settings.JWT_SECRET_KEY,
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.JWT_AUDIENCE,
        options=options,
    )


def _roles_from_claims(claims: Dict[str, Any]) -> FrozenSet[str]:
    roles = claims.get("roles")
    if roles is None:
        roles = (claims.get("app_metadata") or {}).get("roles")
    if isinstance(roles, str):
        roles = [roles]
    return frozenset(str(r) for r in (roles or []))


# PUBLIC_INTERFACE
def principal_from_token(token: str) -> Principal:
    """
    Verify a token and build the Principal it describes.

    Raises:
        JWTError: when the token is invalid, expired or has no subject.
    """
    claims = decode_token(token)
    sub = claims.get("sub")
    if not sub:
        raise JWTError("Token has no subject")
    return Principal(user_id=str(sub), email=claims.get("email"), roles=_roles_from_claims(claims))
