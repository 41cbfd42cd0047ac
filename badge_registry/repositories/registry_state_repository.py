import logging

from sqlalchemy.ext.asyncio import AsyncSession

from badge_registry.models.registry_state import RegistryState, REGISTRY_STATE_ID
from badge_registry.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class RegistryStateRepository(BaseRepository[RegistryState]):
    """Repository for the single registry state row."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, RegistryState)

    async def get_state(self) -> RegistryState:
        """Get the registry state row, creating it on first use."""
        state = await self.get_by_id(REGISTRY_STATE_ID)
        if state is None:
            logger.info("Initialising registry state")
            state = await self.create({
                "id": REGISTRY_STATE_ID,
                "last_id": 0,
                "total_mints": 0,
                "total_burns": 0,
                "total_transfers": 0,
                "block_height": 0
            })
        return state

    async def get_last_id(self) -> int:
        state = await self.get_state()
        return state.last_id

    async def get_block_height(self) -> int:
        state = await self.get_state()
        return state.block_height

    async def set_last_id(self, last_id: int) -> RegistryState:
        state = await self.get_state()
        state.last_id = last_id
        await self.db.flush()
        return state

    async def increment(self, counter: str, amount: int = 1) -> RegistryState:
        """Increment one of total_mints, total_burns or total_transfers."""
        if counter not in ("total_mints", "total_burns", "total_transfers"):
            raise ValueError(f"Unknown registry counter: {counter}")
        state = await self.get_state()
        setattr(state, counter, getattr(state, counter) + amount)
        await self.db.flush()
        return state

    async def advance_block_height(self, count: int) -> int:
        """Move the block counter forward; it never moves back."""
        if count < 1:
            raise ValueError("Block height can only advance")
        state = await self.get_state()
        state.block_height = state.block_height + count
        await self.db.flush()
        return state.block_height
