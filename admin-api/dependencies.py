from fastapi import Depends, Header
import logging
from typing import Optional
from slowapi import Limiter
from slowapi.util import get_remote_address
from errors import Forbidden, Unauthorized
from schemas import Identity
from security import decode_access_token

logger = logging.getLogger(__name__)

ADMIN_ROLES = ("admin", "super_admin")

limiter = Limiter(key_func=get_remote_address)


def get_current_user(authorization: Optional[str] = Header(None)) -> Identity:
    """
    Validates the bearer token and returns the caller's identity.
    401 when no token is supplied, 403 when it does not verify.
    """
    parts = authorization.split(" ") if authorization else []
    token = parts[1] if len(parts) > 1 else None

    if not token:
        logger.warning("Missing bearer token")
        raise Unauthorized("Access token required")

    claims = decode_access_token(token)
    try:
        return Identity(id=claims["id"], username=claims["username"], role=claims["role"])
    except (KeyError, ValueError):
        logger.warning("Access token is missing identity claims")
        raise Forbidden("Invalid or expired token")


def require_role(*roles: str):
    """Builds a dependency that admits only callers holding one of `roles`."""
    def checker(identity: Identity = Depends(get_current_user)) -> Identity:
        if identity.role not in roles:
            logger.warning(f"User {identity.username} with role {identity.role} denied")
            raise Forbidden("Admin access required")
        return identity
    return checker


require_admin = require_role(*ADMIN_ROLES)
