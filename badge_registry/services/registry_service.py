"""Badge registry state machine.

Every mutating operation validates its inputs and the caller, then updates the
identity store, the metadata/lifecycle store and the registry counters inside a
single unit of work. A failure at any point rolls the whole operation back.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import List, Optional, Sequence

from badge_registry.core.config import settings
from badge_registry.core.context import ExecutionContext
from badge_registry.core.exceptions import (
    AlreadyBurned,
    BadgeNotFound,
    BatchTooLarge,
    IdOutOfRange,
    InvalidExpiry,
    InvalidId,
    InvalidUri,
    MintFailed,
    NotOwner,
    NotTimeLimited,
    NotYetExpired,
    OwnerMissing,
    OwnershipError,
    RegistryError,
    UriMissing,
)
from badge_registry.core.locks import registry_lock
from badge_registry.core.validation import MAX_BATCH_SIZE, MAX_BLOCK_HEIGHT, is_valid_uri
from badge_registry.repositories.unit_of_work import AbstractUnitOfWork
from badge_registry.schemas.badge import (
    BadgeDetail,
    BadgeMetadata,
    BadgeVerification,
    BatchMintFailure,
    BatchMintResult,
    RegistryStats,
)

logger = logging.getLogger(__name__)


class RegistryService:
    """Service for issuing, transferring, updating and revoking badges."""

    def __init__(self, uow: AbstractUnitOfWork, lock: Optional[asyncio.Lock] = None):
        self.uow = uow
        self.lock = lock or registry_lock

    @asynccontextmanager
    async def _transaction(self, description: str):
        async with self.lock:
            try:
                async with self.uow:
                    yield
            except RegistryError as e:
                logger.warning(f"{description} rejected: {e.code} ({e.detail})")
                raise

    # ------------------------------------------------------------------
    # Minting
    # ------------------------------------------------------------------

    async def mint(self, uri: str, ctx: ExecutionContext) -> int:
        """Mint a new badge owned by the caller and return its id."""
        async with self._transaction(f"Mint by {ctx.caller}"):
            badge_id = await self._mint(uri, ctx.caller)

        logger.info(f"Minted badge {badge_id} for {ctx.caller}")
        return badge_id

    async def mint_time_limited(self, uri: str, expiry_block: int, ctx: ExecutionContext) -> int:
        """
        Mint a badge that becomes eligible for burn_expired at expiry_block.
        The expiry must lie strictly after the current block.
        """
        async with self._transaction(f"Time-limited mint by {ctx.caller}"):
            block_height = await self._block_height(ctx)
            if expiry_block <= block_height:
                raise InvalidExpiry(expiry_block, block_height)
            if expiry_block > MAX_BLOCK_HEIGHT:
                raise InvalidExpiry(
                    expiry_block, block_height, f"Expiry block must not exceed {MAX_BLOCK_HEIGHT}"
                )

            recorded_expiry = expiry_block if settings.PERSIST_BADGE_EXPIRY else None
            badge_id = await self._mint(uri, ctx.caller, expiry_block=recorded_expiry)

        logger.info(f"Minted badge {badge_id} for {ctx.caller} expiring at block {expiry_block}")
        return badge_id

    async def batch_mint(self, uris: Sequence[str], ctx: ExecutionContext) -> BatchMintResult:
        """
        Mint one badge per URI, left to right.

        Elements the registry rejects are skipped rather than failing the batch:
        badge_ids only holds the ids that were minted, in mint order, and
        failures reports the position and reason of every skipped element.
        """
        if len(uris) > MAX_BATCH_SIZE:
            logger.warning(f"Batch mint by {ctx.caller} rejected: {len(uris)} URIs")
            raise BatchTooLarge(len(uris), MAX_BATCH_SIZE)

        badge_ids: List[int] = []
        failures: List[BatchMintFailure] = []

        async with self._transaction(f"Batch mint by {ctx.caller}"):
            for index, uri in enumerate(uris):
                try:
                    badge_ids.append(await self._mint(uri, ctx.caller))
                except RegistryError as e:
                    logger.warning(f"Skipping batch element {index} for {ctx.caller}: {e.code}")
                    failures.append(BatchMintFailure(index=index, error=e.code, detail=e.detail))

        logger.info(
            f"Batch minted {len(badge_ids)} of {len(uris)} badges for {ctx.caller}"
        )
        return BatchMintResult(badge_ids=badge_ids, failures=failures)

    async def _mint(self, uri: str, owner: str, expiry_block: Optional[int] = None) -> int:
        # All checks happen before the first write so a rejected element of a
        # batch leaves nothing behind in the session.
        if not is_valid_uri(uri):
            raise InvalidUri()

        new_id = await self.uow.registry.get_last_id() + 1
        if await self.uow.badges.exists(new_id):
            raise MintFailed(f"Badge id {new_id} is already recorded")

        try:
            await self.uow.ownerships.create(new_id, owner)
        except OwnershipError as e:
            raise MintFailed(str(e)) from e

        await self.uow.badges.create_badge(new_id, uri, expiry_block=expiry_block)
        await self.uow.registry.set_last_id(new_id)
        await self._count("total_mints")
        return new_id

    # ------------------------------------------------------------------
    # Ownership and metadata
    # ------------------------------------------------------------------

    async def transfer(self, badge_id: int, recipient: str, ctx: ExecutionContext) -> None:
        """Move a badge from the caller to recipient. Self-transfers are allowed."""
        async with self._transaction(f"Transfer of badge {badge_id} by {ctx.caller}"):
            if await self.is_burned(badge_id):
                raise AlreadyBurned(badge_id)

            await self._require_owner(badge_id, ctx.caller)
            try:
                await self.uow.ownerships.transfer(badge_id, ctx.caller, recipient)
            except OwnershipError as e:
                raise NotOwner(str(e)) from e
            await self._count("total_transfers")

        logger.info(f"Transferred badge {badge_id} from {ctx.caller} to {recipient}")

    async def update_uri(self, badge_id: int, new_uri: str, ctx: ExecutionContext) -> None:
        """Replace the metadata URI of a badge the caller owns."""
        async with self._transaction(f"URI update of badge {badge_id} by {ctx.caller}"):
            # Burned badges have no owner, so this also blocks them
            await self._require_owner(badge_id, ctx.caller)
            if not is_valid_uri(new_uri):
                raise InvalidUri()
            await self.uow.badges.set_uri(badge_id, new_uri)

        logger.info(f"Updated URI of badge {badge_id}")

    # ------------------------------------------------------------------
    # Burning
    # ------------------------------------------------------------------

    async def burn(self, badge_id: int, ctx: ExecutionContext) -> None:
        """Irreversibly revoke a badge the caller owns."""
        async with self._transaction(f"Burn of badge {badge_id} by {ctx.caller}"):
            await self._burn(badge_id, ctx.caller)

        logger.info(f"Burned badge {badge_id} owned by {ctx.caller}")

    async def burn_expired(self, badge_id: int, ctx: ExecutionContext) -> None:
        """Burn a time-limited badge whose expiry block has been reached. Anyone may call this."""
        async with self._transaction(f"Expiry burn of badge {badge_id} by {ctx.caller}"):
            expiry_block = await self._get_expiry(badge_id)
            if expiry_block is None:
                raise NotTimeLimited(badge_id)
            block_height = await self._block_height(ctx)
            if block_height < expiry_block:
                raise NotYetExpired(badge_id, expiry_block)

            # Acts as whoever owns the badge now
            owner = await self.uow.ownerships.owner_of(badge_id)
            await self._burn(badge_id, owner)

        logger.info(f"Burned expired badge {badge_id} at block {block_height}")

    async def _burn(self, badge_id: int, caller: Optional[str]) -> None:
        # Burned badges have no owner; report them as burned rather than missing
        if await self.is_burned(badge_id):
            raise AlreadyBurned(badge_id)
        owner = await self._require_owner(badge_id, caller)

        try:
            await self.uow.ownerships.revoke(badge_id, owner)
        except OwnershipError as e:
            raise NotOwner(str(e)) from e
        await self.uow.badges.mark_burned(badge_id)
        await self._count("total_burns")

    async def _require_owner(self, badge_id: int, caller: Optional[str]) -> str:
        owner = await self.get_owner(badge_id)
        if owner is None:
            raise BadgeNotFound(badge_id)
        if owner != caller:
            raise NotOwner(f"{caller} does not own badge {badge_id}")
        return owner

    async def _count(self, counter: str) -> None:
        if settings.TRACK_REGISTRY_STATS:
            await self.uow.registry.increment(counter)

    async def _block_height(self, ctx: ExecutionContext) -> int:
        # The host counter only moves forward, and ctx may have been resolved
        # before the lock was taken, so the stored height wins when it is ahead
        stored_height = await self.uow.registry.get_block_height()
        return max(ctx.block_height, stored_height)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    # Ids that were never issued are answered without touching the stores, so
    # ids beyond the column range read as absent instead of failing in SQL.

    async def get_uri(self, badge_id: int) -> Optional[str]:
        if not await self._is_issued(badge_id):
            return None
        return await self.uow.badges.get_uri(badge_id)

    async def get_owner(self, badge_id: int) -> Optional[str]:
        if not await self._is_issued(badge_id):
            return None
        return await self.uow.ownerships.owner_of(badge_id)

    async def get_last_id(self) -> int:
        return await self.uow.registry.get_last_id()

    async def is_burned(self, badge_id: int) -> bool:
        if not await self._is_issued(badge_id):
            return False
        return await self.uow.badges.is_burned(badge_id)

    async def is_expired(self, badge_id: int, block_height: int) -> bool:
        """True iff the badge has a recorded expiry and block_height has reached it."""
        expiry_block = await self._get_expiry(badge_id)
        return expiry_block is not None and block_height >= expiry_block

    async def _get_expiry(self, badge_id: int) -> Optional[int]:
        if not await self._is_issued(badge_id):
            return None
        return await self.uow.badges.get_expiry(badge_id)

    # Names the query surface is also known by
    is_achievement_burned = is_burned
    is_badge_expired = is_expired

    async def get_metadata(self, badge_id: int) -> BadgeMetadata:
        """
        Get uri, owner and burned flag of an issued badge.
        Missing URI or owner for an issued id is reported, never defaulted.
        """
        await self._require_issued(badge_id)

        uri = await self.uow.badges.get_uri(badge_id)
        if uri is None:
            raise UriMissing(badge_id)
        owner = await self.uow.ownerships.owner_of(badge_id)
        if owner is None:
            raise OwnerMissing(badge_id)

        return BadgeMetadata(
            uri=uri,
            owner=owner,
            burned=await self.uow.badges.is_burned(badge_id),
        )

    async def verify(self, badge_id: int) -> BadgeVerification:
        """One-shot health check of a badge id. Never raises for a missing badge."""
        if not await self._is_issued(badge_id):
            return BadgeVerification(exists=False, owner=None, has_uri=False, burned=False)

        owner = await self.uow.ownerships.owner_of(badge_id)
        uri = await self.uow.badges.get_uri(badge_id)

        return BadgeVerification(
            exists=True,
            owner=owner,
            has_uri=uri is not None,
            burned=await self.uow.badges.is_burned(badge_id),
        )

    async def get_badge(self, badge_id: int, block_height: int) -> BadgeDetail:
        """Full view of an issued badge, including burned ones."""
        await self._require_issued(badge_id)

        badge = await self.uow.badges.get_by_id(badge_id)
        owner = await self.uow.ownerships.owner_of(badge_id)
        if badge is None:
            return BadgeDetail(id=badge_id, owner=owner, burned=False, expired=False)

        return BadgeDetail(
            id=badge.id,
            uri=badge.uri,
            owner=owner,
            burned=badge.burned,
            expiry_block=badge.expiry_block or None,
            expired=badge.is_expired_at(block_height),
        )

    async def get_owned_badges(self, principal: str) -> List[int]:
        return await self.uow.ownerships.get_badge_ids_by_owner(principal)

    async def get_stats(self) -> RegistryStats:
        state = await self.uow.registry.get_state()
        return RegistryStats(
            total_mints=state.total_mints,
            total_burns=state.total_burns,
            total_transfers=state.total_transfers,
            active_badges=state.active_badges,
        )

    async def _require_issued(self, badge_id: int) -> None:
        if badge_id < 1:
            raise InvalidId()
        last_id = await self.uow.registry.get_last_id()
        if badge_id > last_id:
            raise IdOutOfRange(badge_id, last_id)

    async def _is_issued(self, badge_id: int) -> bool:
        return 1 <= badge_id <= await self.uow.registry.get_last_id()
