"""Identity store row: at most one owner per badge id."""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from badge_registry.models import Base


class BadgeOwner(Base):
    __tablename__ = "badge_owners"

    badge_id = Column(Integer, primary_key=True, autoincrement=False)
    owner = Column(String(128), nullable=False, index=True)
    acquired_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
