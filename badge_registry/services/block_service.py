import asyncio
import logging
from typing import Optional

from badge_registry.core.locks import registry_lock
from badge_registry.repositories.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)


class BlockService:
    """Host block counter read by the registry to gate expiry."""

    def __init__(self, uow: AbstractUnitOfWork, lock: Optional[asyncio.Lock] = None):
        self.uow = uow
        self.lock = lock or registry_lock

    async def get_block_height(self) -> int:
        return await self.uow.registry.get_block_height()

    async def advance(self, count: int = 1) -> int:
        """Advance the block counter by count blocks and return the new height."""
        async with self.lock:
            async with self.uow:
                block_height = await self.uow.registry.advance_block_height(count)

        logger.info(f"Advanced block height by {count} to {block_height}")
        return block_height
