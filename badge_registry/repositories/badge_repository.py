from typing import List, Optional
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from badge_registry.models.badge import Badge
from badge_registry.repositories.base import BaseRepository


class BadgeRepository(BaseRepository[Badge]):
    """Repository for the badge metadata (URI) and lifecycle (burned, expiry) store."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Badge)

    async def create_badge(self, badge_id: int, uri: str, expiry_block: Optional[int] = None) -> Badge:
        """Record a newly minted badge."""
        return await self.create({
            "id": badge_id,
            "uri": uri,
            "burned": False,
            "expiry_block": expiry_block
        })

    async def get_uri(self, badge_id: int) -> Optional[str]:
        """Get the URI of a badge, if one is recorded."""
        result = await self.db.execute(
            select(Badge.uri).filter(Badge.id == badge_id)
        )
        return result.scalar_one_or_none()

    async def set_uri(self, badge_id: int, uri: str) -> Optional[Badge]:
        """Overwrite the URI of a badge."""
        return await self.update(badge_id, {"uri": uri})

    async def is_burned(self, badge_id: int) -> bool:
        """Burned flag of a badge; badges without a record are not burned."""
        result = await self.db.execute(
            select(Badge.burned).filter(Badge.id == badge_id)
        )
        return bool(result.scalar_one_or_none())

    async def mark_burned(self, badge_id: int) -> Optional[Badge]:
        """Set the terminal burned flag."""
        return await self.update(badge_id, {"burned": True})

    async def get_expiry(self, badge_id: int) -> Optional[int]:
        """Expiry block of a badge, or None when it is not time-limited."""
        result = await self.db.execute(
            select(Badge.expiry_block).filter(Badge.id == badge_id)
        )
        return result.scalar_one_or_none() or None

    async def get_expired_ids(self, block_height: int) -> List[int]:
        """Ids of unburned badges whose expiry block has been reached."""
        result = await self.db.execute(
            select(Badge.id)
            .filter(
                and_(
                    Badge.burned == False,  # noqa: E712
                    Badge.expiry_block.is_not(None),
                    Badge.expiry_block > 0,
                    Badge.expiry_block <= block_height
                )
            )
            .order_by(Badge.id)
        )
        return list(result.scalars().all())
