from sqlalchemy import Column, Integer, BigInteger, Boolean, DateTime, String
from sqlalchemy.sql import func
from badge_registry.models import Base


class Badge(Base):
    """Metadata and lifecycle record of a badge. Ownership lives in BadgeOwner."""

    __tablename__ = "badges"

    id = Column(Integer, primary_key=True, autoincrement=False)
    uri = Column(String(256), nullable=True)
    burned = Column(Boolean, default=False, nullable=False)
    expiry_block = Column(BigInteger, nullable=True, index=True)
    minted_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def is_time_limited(self) -> bool:
        return bool(self.expiry_block)

    def is_expired_at(self, block_height: int) -> bool:
        """True once the chain has reached the badge's expiry block."""
        return self.is_time_limited and block_height >= self.expiry_block
