from fastapi import APIRouter, Depends, HTTPException

from badge_registry.core.service_dependencies import get_registry_service
from badge_registry.core.validation import is_valid_principal
from badge_registry.schemas.badge import OwnedBadges
from badge_registry.services.registry_service import RegistryService

router = APIRouter(prefix="/api/principals", tags=["principals"])


@router.get("/{principal}/badges", response_model=OwnedBadges)
async def get_principal_badges(principal: str, registry: RegistryService = Depends(get_registry_service)):
    """Active badges currently owned by a principal."""
    if not is_valid_principal(principal):
        raise HTTPException(status_code=400, detail="Invalid principal format")
    badge_ids = await registry.get_owned_badges(principal)
    return OwnedBadges(principal=principal, badge_ids=badge_ids)
