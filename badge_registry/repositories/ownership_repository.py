"""Identity store: the authoritative owner of every badge id."""

from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from badge_registry.core.exceptions import OwnershipError
from badge_registry.models.badge_owner import BadgeOwner


class OwnershipRepository:
    """Exclusive single-owner store. Every ownership check in the registry goes through owner_of."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def owner_of(self, badge_id: int) -> Optional[str]:
        """Get the current owner of a badge, or None if it has none."""
        result = await self.db.execute(
            select(BadgeOwner.owner).filter(BadgeOwner.badge_id == badge_id)
        )
        return result.scalar_one_or_none()

    async def create(self, badge_id: int, owner: str) -> None:
        """Grant ownership of a fresh id."""
        if await self.owner_of(badge_id) is not None:
            raise OwnershipError(badge_id, "already owned")
        self.db.add(BadgeOwner(badge_id=badge_id, owner=owner))
        await self.db.flush()

    async def transfer(self, badge_id: int, sender: str, recipient: str) -> None:
        """Move ownership from sender to recipient."""
        row = await self._get_row(badge_id)
        if row is None or row.owner != sender:
            raise OwnershipError(badge_id, f"not owned by {sender}")
        row.owner = recipient
        await self.db.flush()

    async def revoke(self, badge_id: int, owner: str) -> None:
        """Remove ownership entirely."""
        if await self.owner_of(badge_id) != owner:
            raise OwnershipError(badge_id, f"not owned by {owner}")
        await self.db.execute(
            delete(BadgeOwner).filter(BadgeOwner.badge_id == badge_id)
        )

    async def get_badge_ids_by_owner(self, owner: str) -> List[int]:
        """Ids currently owned by a principal, ascending."""
        result = await self.db.execute(
            select(BadgeOwner.badge_id)
            .filter(BadgeOwner.owner == owner)
            .order_by(BadgeOwner.badge_id)
        )
        return list(result.scalars().all())

    async def _get_row(self, badge_id: int) -> Optional[BadgeOwner]:
        result = await self.db.execute(
            select(BadgeOwner).filter(BadgeOwner.badge_id == badge_id)
        )
        return result.scalar_one_or_none()
