import logging
from typing import Optional

from fastapi import APIRouter, Depends

from badge_registry.core.context import ExecutionContext
from badge_registry.core.dependencies import (
    get_anonymous_context,
    get_block_height,
    get_execution_context,
)
from badge_registry.core.service_dependencies import get_registry_service
from badge_registry.schemas.badge import (
    BadgeDetail,
    BadgeMetadata,
    BadgeVerification,
    BatchMintRequest,
    BatchMintResult,
    MintRequest,
    MintResponse,
    RegistryStats,
    TimeLimitedMintRequest,
    TransferRequest,
    UpdateUriRequest,
)
from badge_registry.schemas.error import ErrorResponse
from badge_registry.services.registry_service import RegistryService

router = APIRouter(prefix="/api/badges", tags=["badges"])
logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    401: {"description": "Caller required"},
    403: {"model": ErrorResponse, "description": "Caller does not own the badge"},
    404: {"model": ErrorResponse, "description": "Badge not found"},
    409: {"model": ErrorResponse, "description": "Badge lifecycle conflict"},
}


@router.post("", response_model=MintResponse, status_code=201, responses=ERROR_RESPONSES)
async def mint_badge(
    request: MintRequest,
    ctx: ExecutionContext = Depends(get_execution_context),
    registry: RegistryService = Depends(get_registry_service),
):
    """Mint a new badge owned by the caller."""
    badge_id = await registry.mint(request.uri, ctx)
    return MintResponse(badge_id=badge_id)


@router.post("/time-limited", response_model=MintResponse, status_code=201, responses=ERROR_RESPONSES)
async def mint_time_limited_badge(
    request: TimeLimitedMintRequest,
    ctx: ExecutionContext = Depends(get_execution_context),
    registry: RegistryService = Depends(get_registry_service),
):
    """Mint a badge that can be burned by anyone once expiry_block is reached."""
    badge_id = await registry.mint_time_limited(request.uri, request.expiry_block, ctx)
    return MintResponse(badge_id=badge_id)


@router.post("/batch", response_model=BatchMintResult, status_code=201, responses=ERROR_RESPONSES)
async def batch_mint_badges(
    request: BatchMintRequest,
    ctx: ExecutionContext = Depends(get_execution_context),
    registry: RegistryService = Depends(get_registry_service),
):
    """
    Mint up to 100 badges in one operation.

    Invalid URIs are skipped: `badge_ids` lists the minted ids in order and
    `failures` gives the request index and error of every skipped URI.
    """
    return await registry.batch_mint(request.uris, ctx)


@router.get("/stats", response_model=RegistryStats)
async def get_registry_stats(registry: RegistryService = Depends(get_registry_service)):
    return await registry.get_stats()


@router.get("/last-id")
async def get_last_badge_id(registry: RegistryService = Depends(get_registry_service)):
    return {"last_id": await registry.get_last_id()}


@router.get("/{badge_id}", response_model=BadgeDetail, responses=ERROR_RESPONSES)
async def get_badge(
    badge_id: int,
    block_height: int = Depends(get_block_height),
    registry: RegistryService = Depends(get_registry_service),
):
    return await registry.get_badge(badge_id, block_height)


@router.get("/{badge_id}/uri")
async def get_badge_uri(badge_id: int, registry: RegistryService = Depends(get_registry_service)):
    uri: Optional[str] = await registry.get_uri(badge_id)
    return {"badge_id": badge_id, "uri": uri}


@router.get("/{badge_id}/owner")
async def get_badge_owner(badge_id: int, registry: RegistryService = Depends(get_registry_service)):
    owner: Optional[str] = await registry.get_owner(badge_id)
    return {"badge_id": badge_id, "owner": owner}


@router.get("/{badge_id}/burned")
async def get_badge_burned(badge_id: int, registry: RegistryService = Depends(get_registry_service)):
    return {"badge_id": badge_id, "burned": await registry.is_burned(badge_id)}


@router.get("/{badge_id}/metadata", response_model=BadgeMetadata, responses=ERROR_RESPONSES)
async def get_badge_metadata(badge_id: int, registry: RegistryService = Depends(get_registry_service)):
    return await registry.get_metadata(badge_id)


@router.get("/{badge_id}/expired")
async def get_badge_expired(
    badge_id: int,
    block_height: int = Depends(get_block_height),
    registry: RegistryService = Depends(get_registry_service),
):
    expired = await registry.is_expired(badge_id, block_height)
    return {"badge_id": badge_id, "expired": expired, "block_height": block_height}


@router.get("/{badge_id}/verify", response_model=BadgeVerification)
async def verify_badge(badge_id: int, registry: RegistryService = Depends(get_registry_service)):
    """Diagnostic snapshot of a badge id. Always 200, absence is reported in the body."""
    return await registry.verify(badge_id)


@router.post("/{badge_id}/transfer", responses=ERROR_RESPONSES)
async def transfer_badge(
    badge_id: int,
    request: TransferRequest,
    ctx: ExecutionContext = Depends(get_execution_context),
    registry: RegistryService = Depends(get_registry_service),
):
    await registry.transfer(badge_id, request.recipient, ctx)
    return {"success": True, "badge_id": badge_id, "owner": request.recipient}


@router.put("/{badge_id}/uri", responses=ERROR_RESPONSES)
async def update_badge_uri(
    badge_id: int,
    request: UpdateUriRequest,
    ctx: ExecutionContext = Depends(get_execution_context),
    registry: RegistryService = Depends(get_registry_service),
):
    await registry.update_uri(badge_id, request.uri, ctx)
    return {"success": True, "badge_id": badge_id, "uri": request.uri}


@router.post("/{badge_id}/burn", responses=ERROR_RESPONSES)
async def burn_badge(
    badge_id: int,
    ctx: ExecutionContext = Depends(get_execution_context),
    registry: RegistryService = Depends(get_registry_service),
):
    await registry.burn(badge_id, ctx)
    return {"success": True, "badge_id": badge_id, "burned": True}


@router.post("/{badge_id}/burn-expired", responses=ERROR_RESPONSES)
async def burn_expired_badge(
    badge_id: int,
    ctx: ExecutionContext = Depends(get_anonymous_context),
    registry: RegistryService = Depends(get_registry_service),
):
    """Burn a time-limited badge past its expiry block. No caller identity is required."""
    await registry.burn_expired(badge_id, ctx)
    return {"success": True, "badge_id": badge_id, "burned": True}
