import logging

from fastapi import APIRouter, Depends

from badge_registry.core.api_auth import require_admin
from badge_registry.core.service_dependencies import get_block_service
from badge_registry.schemas.block import AdvanceBlocksRequest, BlockHeightResponse
from badge_registry.services.block_service import BlockService

router = APIRouter(prefix="/api/blocks", tags=["blocks"])
logger = logging.getLogger(__name__)


@router.get("/current", response_model=BlockHeightResponse)
async def get_current_block(block_service: BlockService = Depends(get_block_service)):
    return BlockHeightResponse(block_height=await block_service.get_block_height())


@router.post("/advance", response_model=BlockHeightResponse, dependencies=[Depends(require_admin)])
async def advance_blocks(
    request: AdvanceBlocksRequest,
    block_service: BlockService = Depends(get_block_service),
):
    """Advance the host block counter. The counter never moves backwards."""
    block_height = await block_service.advance(request.count)
    return BlockHeightResponse(block_height=block_height)
