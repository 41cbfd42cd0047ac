from sqlalchemy.orm import declarative_base

Base = declarative_base()

from .badge import Badge as Badge  # noqa: E402
from .badge_owner import BadgeOwner as BadgeOwner  # noqa: E402
from .registry_state import RegistryState as RegistryState  # noqa: E402
