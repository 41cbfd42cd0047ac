from fastapi import Header, HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import logging
import secrets

from badge_registry.core.config import settings
from badge_registry.core.validation import is_valid_principal

logger = logging.getLogger(__name__)

# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


async def get_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> str:
    """
    Resolve the calling principal from the Authorization header.

    Expects header: Authorization: Bearer <principal>
    """
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=401,
            detail="Caller required. Include 'Authorization: Bearer <principal>' header.",
        )

    principal = credentials.credentials
    if not is_valid_principal(principal):
        logger.warning(f"Invalid principal attempted: {principal[:20]}...")
        raise HTTPException(status_code=401, detail="Invalid principal format")

    return principal


async def require_admin(x_admin_token: Optional[str] = Header(None)) -> None:
    """Dependency guarding host-level operations such as advancing the block counter."""
    if not x_admin_token or not secrets.compare_digest(x_admin_token, settings.ADMIN_TOKEN):
        raise HTTPException(status_code=403, detail="Admin access required")
