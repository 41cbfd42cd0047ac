from fastapi import Depends

from badge_registry.core.api_auth import get_caller
from badge_registry.core.context import ExecutionContext
from badge_registry.core.service_dependencies import get_block_service
from badge_registry.services.block_service import BlockService


async def get_block_height(block_service: BlockService = Depends(get_block_service)) -> int:
    """Current host block height."""
    return await block_service.get_block_height()


async def get_execution_context(
    caller: str = Depends(get_caller),
    block_height: int = Depends(get_block_height),
) -> ExecutionContext:
    """Execution context for an authenticated registry call."""
    return ExecutionContext(caller=caller, block_height=block_height)


async def get_anonymous_context(block_height: int = Depends(get_block_height)) -> ExecutionContext:
    """Execution context for operations anyone may call."""
    return ExecutionContext(caller="anonymous", block_height=block_height)
