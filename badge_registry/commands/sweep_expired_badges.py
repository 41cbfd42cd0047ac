"""
Command to burn every time-limited badge whose expiry block has been reached.
Each badge is burned in its own registry operation, so one failure never undoes
the others.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from badge_registry.core.context import ExecutionContext
from badge_registry.core.database import AsyncSessionLocal
from badge_registry.core.exceptions import RegistryError
from badge_registry.repositories.unit_of_work import SqlAlchemyUnitOfWork
from badge_registry.services.registry_service import RegistryService

logger = logging.getLogger(__name__)

SWEEPER_PRINCIPAL = "expiry-sweeper"


async def sweep_expired_badges(db=None, lock=None) -> Dict[str, Any]:
    """
    Burn all expired, unburned badges at the current block height.

    Args:
        db: Optional database session. If not provided, creates a new one.
        lock: Optional lock to serialise on instead of the process-wide registry lock.

    Returns:
        Dictionary with sweep statistics
    """
    start_time = datetime.now(timezone.utc)

    async def _sweep(session) -> Dict[str, Any]:
        registry = RegistryService(SqlAlchemyUnitOfWork(session), lock=lock)
        block_height = await registry.uow.registry.get_block_height()
        expired_ids = await registry.uow.badges.get_expired_ids(block_height)
        logger.info(f"Found {len(expired_ids)} expired badges at block {block_height}")

        ctx = ExecutionContext(caller=SWEEPER_PRINCIPAL, block_height=block_height)
        burned = 0
        errors = []
        for badge_id in expired_ids:
            try:
                await registry.burn_expired(badge_id, ctx)
                burned += 1
            except RegistryError as e:
                logger.error(f"Failed to burn expired badge {badge_id}: {e.code}")
                errors.append(f"Badge {badge_id}: {e.code} ({e.detail})")

        return {
            "block_height": block_height,
            "checked": len(expired_ids),
            "burned": burned,
            "failed": len(errors),
            "errors": errors,
        }

    if db is not None:
        results = await _sweep(db)
    else:
        async with AsyncSessionLocal() as session:
            results = await _sweep(session)

    results["duration_seconds"] = (datetime.now(timezone.utc) - start_time).total_seconds()
    logger.info(
        f"Expiry sweep finished: {results['burned']} burned, {results['failed']} failed "
        f"in {results['duration_seconds']:.2f}s"
    )
    return results
