from sqlalchemy import Column, Integer, BigInteger, DateTime
from sqlalchemy.sql import func

from badge_registry.models import Base

REGISTRY_STATE_ID = 1


class RegistryState(Base):
    """Single-row table holding the registry counters and the host block counter."""

    __tablename__ = "registry_state"

    id = Column(Integer, primary_key=True, autoincrement=False, default=REGISTRY_STATE_ID)
    last_id = Column(Integer, default=0, nullable=False)
    total_mints = Column(Integer, default=0, nullable=False)
    total_burns = Column(Integer, default=0, nullable=False)
    total_transfers = Column(Integer, default=0, nullable=False)
    block_height = Column(BigInteger, default=0, nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def active_badges(self) -> int:
        return self.total_mints - self.total_burns
