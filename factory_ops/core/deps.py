from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from factory_ops.core.logging import user_id_var
from factory_ops.core.security import Principal, principal_from_token

logger = logging.getLogger(__name__)

# Bearer scheme (used by docs); tokens come from the external identity provider
bearer_scheme = HTTPBearer(auto_error=False)


# PUBLIC_INTERFACE
async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    """
    Resolve the calling principal from the Authorization bearer token.

    Raises:
        HTTPException: 401 Unauthorized if the token is missing or invalid.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        principal = principal_from_token(credentials.credentials)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user_id_var.set(principal.user_id)
    return principal


# PUBLIC_INTERFACE
def require_roles(*required: str):
    """
    Create a dependency that requires the current principal to hold one of the given roles.

    The 'admin' role always passes.
    """

    async def _dep(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not principal.has_any_role(*required):
            logger.info("Role check failed: need one of %s, have %s", required, sorted(principal.roles))
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return principal

    return _dep
