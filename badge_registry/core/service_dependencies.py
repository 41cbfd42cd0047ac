from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from badge_registry.core.database import get_db
from badge_registry.repositories.unit_of_work import SqlAlchemyUnitOfWork
from badge_registry.services.block_service import BlockService
from badge_registry.services.registry_service import RegistryService


async def get_registry_service(db: AsyncSession = Depends(get_db)) -> RegistryService:
    """Dependency to provide RegistryService."""
    uow = SqlAlchemyUnitOfWork(db)
    return RegistryService(uow)


async def get_block_service(db: AsyncSession = Depends(get_db)) -> BlockService:
    """Dependency to provide BlockService."""
    uow = SqlAlchemyUnitOfWork(db)
    return BlockService(uow)
