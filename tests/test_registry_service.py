import asyncio

import pytest

from badge_registry.core.exceptions import (
    AlreadyBurned,
    BadgeNotFound,
    BatchTooLarge,
    IdOutOfRange,
    InvalidExpiry,
    InvalidId,
    InvalidUri,
    NotBadgeOwner,
    NotOwner,
    NotTimeLimited,
    NotYetExpired,
    OwnerMissing,
)
from badge_registry.services.block_service import BlockService


class TestMint:
    """Test single badge minting."""

    async def test_mint_assigns_sequential_ids(self, registry, ctx):
        for expected_id in (1, 2, 3):
            last_id_before = await registry.get_last_id()
            badge_id = await registry.mint(f"ipfs://badge/{expected_id}", ctx())

            assert badge_id == last_id_before + 1 == expected_id
            assert await registry.get_last_id() == badge_id

    async def test_mint_records_owner_and_uri(self, registry, ctx):
        badge_id = await registry.mint("https://example.com/badges/first-commit.json", ctx("alice"))

        assert await registry.get_owner(badge_id) == "alice"
        assert await registry.get_uri(badge_id) == "https://example.com/badges/first-commit.json"
        assert await registry.is_burned(badge_id) is False

    async def test_mint_empty_uri_fails(self, registry, ctx):
        with pytest.raises(InvalidUri):
            await registry.mint("", ctx())

        assert await registry.get_last_id() == 0
        assert await registry.get_owner(1) is None

    async def test_mint_uri_length_boundary(self, registry, ctx):
        badge_id = await registry.mint("u" * 256, ctx())
        assert badge_id == 1

        with pytest.raises(InvalidUri):
            await registry.mint("u" * 257, ctx())

        assert await registry.get_last_id() == 1

    async def test_failed_mint_does_not_touch_counters(self, registry, ctx):
        await registry.mint("a", ctx())
        with pytest.raises(InvalidUri):
            await registry.mint("", ctx())

        stats = await registry.get_stats()
        assert stats.total_mints == 1
        assert stats.active_badges == 1


class TestBatchMint:
    """Test batch minting and its partial-success contract."""

    async def test_batch_over_limit_mints_nothing(self, registry, ctx):
        with pytest.raises(BatchTooLarge):
            await registry.batch_mint([f"uri-{i}" for i in range(101)], ctx())

        assert await registry.get_last_id() == 0

    async def test_batch_at_limit_succeeds(self, registry, ctx):
        result = await registry.batch_mint([f"uri-{i}" for i in range(100)], ctx())

        assert result.badge_ids == list(range(1, 101))
        assert result.failures == []
        assert await registry.get_last_id() == 100

    async def test_invalid_element_is_skipped(self, registry, ctx):
        result = await registry.batch_mint(["", "first", "second"], ctx("alice"))

        assert result.badge_ids == [1, 2]
        assert await registry.get_last_id() == 2
        assert await registry.get_uri(1) == "first"
        assert await registry.get_uri(2) == "second"

        assert len(result.failures) == 1
        assert result.failures[0].index == 0
        assert result.failures[0].error == "InvalidUri"

    async def test_skipped_element_loses_positional_correspondence(self, registry, ctx):
        result = await registry.batch_mint(["a", "x" * 300, "b"], ctx())

        assert result.badge_ids == [1, 2]
        assert await registry.get_uri(2) == "b"
        assert [failure.index for failure in result.failures] == [1]

    async def test_empty_batch(self, registry, ctx):
        result = await registry.batch_mint([], ctx())

        assert result.badge_ids == []
        assert await registry.get_last_id() == 0

    async def test_batch_counts_each_successful_mint(self, registry, ctx):
        await registry.batch_mint(["a", "", "b", "c"], ctx())

        stats = await registry.get_stats()
        assert stats.total_mints == 3


class TestTransfer:
    """Test exclusive ownership transfer."""

    async def test_transfer_moves_ownership(self, registry, ctx):
        badge_id = await registry.mint("a", ctx("alice"))

        await registry.transfer(badge_id, "bob", ctx("alice"))

        assert await registry.get_owner(badge_id) == "bob"
        with pytest.raises(NotOwner):
            await registry.transfer(badge_id, "carol", ctx("alice"))
        assert await registry.get_owner(badge_id) == "bob"

    async def test_transfer_by_non_owner_fails(self, registry, ctx):
        badge_id = await registry.mint("a", ctx("alice"))

        with pytest.raises(NotBadgeOwner):
            await registry.transfer(badge_id, "mallory", ctx("mallory"))

        assert await registry.get_owner(badge_id) == "alice"

    async def test_transfer_unknown_badge_fails(self, registry, ctx):
        with pytest.raises(BadgeNotFound):
            await registry.transfer(42, "bob", ctx("alice"))

    async def test_self_transfer_is_allowed(self, registry, ctx):
        badge_id = await registry.mint("a", ctx("alice"))

        await registry.transfer(badge_id, "alice", ctx("alice"))

        assert await registry.get_owner(badge_id) == "alice"
        assert (await registry.get_stats()).total_transfers == 1

    async def test_transfer_of_burned_badge_fails(self, registry, ctx):
        badge_id = await registry.mint("a", ctx("alice"))
        await registry.burn(badge_id, ctx("alice"))

        with pytest.raises(AlreadyBurned):
            await registry.transfer(badge_id, "bob", ctx("alice"))

    async def test_owned_badges_follow_transfers(self, registry, ctx):
        await registry.batch_mint(["a", "b", "c"], ctx("alice"))
        await registry.transfer(2, "bob", ctx("alice"))

        assert await registry.get_owned_badges("alice") == [1, 3]
        assert await registry.get_owned_badges("bob") == [2]
        assert await registry.get_owned_badges("nobody") == []


class TestUpdateUri:
    """Test metadata updates."""

    async def test_owner_can_update_uri(self, registry, ctx):
        badge_id = await registry.mint("old", ctx("alice"))

        await registry.update_uri(badge_id, "new", ctx("alice"))

        assert await registry.get_uri(badge_id) == "new"

    async def test_non_owner_update_leaves_uri_unchanged(self, registry, ctx):
        badge_id = await registry.mint("old", ctx("alice"))

        with pytest.raises(NotOwner):
            await registry.update_uri(badge_id, "hijacked", ctx("mallory"))

        assert await registry.get_uri(badge_id) == "old"

    async def test_invalid_uri_update_fails(self, registry, ctx):
        badge_id = await registry.mint("old", ctx("alice"))

        with pytest.raises(InvalidUri):
            await registry.update_uri(badge_id, "", ctx("alice"))

        assert await registry.get_uri(badge_id) == "old"

    async def test_update_unknown_badge_fails(self, registry, ctx):
        with pytest.raises(BadgeNotFound):
            await registry.update_uri(7, "new", ctx("alice"))

    async def test_update_burned_badge_fails(self, registry, ctx):
        badge_id = await registry.mint("old", ctx("alice"))
        await registry.burn(badge_id, ctx("alice"))

        with pytest.raises(BadgeNotFound):
            await registry.update_uri(badge_id, "new", ctx("alice"))


class TestBurn:
    """Test owner burns and burn terminality."""

    async def test_scenario_transfer_then_burn(self, registry, ctx):
        badge_id = await registry.mint("a", ctx("P"))
        assert badge_id == 1

        await registry.transfer(1, "Q", ctx("P"))
        await registry.burn(1, ctx("Q"))

        assert await registry.get_owner(1) is None
        assert await registry.is_achievement_burned(1) is True
        with pytest.raises(AlreadyBurned):
            await registry.burn(1, ctx("Q"))

    async def test_burn_by_non_owner_fails(self, registry, ctx):
        badge_id = await registry.mint("a", ctx("alice"))

        with pytest.raises(NotOwner):
            await registry.burn(badge_id, ctx("mallory"))

        assert await registry.is_burned(badge_id) is False
        assert await registry.get_owner(badge_id) == "alice"

    async def test_burn_unknown_badge_fails(self, registry, ctx):
        with pytest.raises(BadgeNotFound):
            await registry.burn(3, ctx("alice"))

    async def test_burned_badge_rejects_every_mutation(self, registry, ctx):
        badge_id = await registry.mint("a", ctx("alice"))
        await registry.burn(badge_id, ctx("alice"))

        with pytest.raises((AlreadyBurned, BadgeNotFound, NotOwner)):
            await registry.transfer(badge_id, "bob", ctx("alice"))
        with pytest.raises((AlreadyBurned, BadgeNotFound, NotOwner)):
            await registry.update_uri(badge_id, "b", ctx("alice"))
        with pytest.raises((AlreadyBurned, BadgeNotFound, NotOwner)):
            await registry.burn(badge_id, ctx("alice"))

        assert await registry.is_burned(badge_id) is True
        assert await registry.get_uri(badge_id) == "a"

    async def test_burned_ids_are_never_reused(self, registry, ctx):
        await registry.mint("a", ctx())
        await registry.burn(1, ctx())

        assert await registry.mint("b", ctx()) == 2


class TestTimeLimited:
    """Test expiry recording and expiry burns."""

    async def test_expiry_gating(self, registry, ctx):
        badge_id = await registry.mint_time_limited("event-pass", 100, ctx("alice", block_height=50))

        assert await registry.is_expired(badge_id, 50) is False
        assert await registry.is_badge_expired(badge_id, 99) is False
        assert await registry.is_badge_expired(badge_id, 100) is True
        assert await registry.is_expired(badge_id, 150) is True

        with pytest.raises(NotYetExpired):
            await registry.burn_expired(badge_id, ctx("anyone", block_height=99))
        assert await registry.get_owner(badge_id) == "alice"

        await registry.burn_expired(badge_id, ctx("anyone", block_height=100))

        assert await registry.is_burned(badge_id) is True
        assert await registry.get_owner(badge_id) is None

    @pytest.mark.parametrize("expiry_block", [0, 49, 50])
    async def test_expiry_must_be_in_the_future(self, registry, ctx, expiry_block):
        with pytest.raises(InvalidExpiry):
            await registry.mint_time_limited("event-pass", expiry_block, ctx(block_height=50))

        assert await registry.get_last_id() == 0

    async def test_time_limited_mint_validates_uri(self, registry, ctx):
        with pytest.raises(InvalidUri):
            await registry.mint_time_limited("", 10, ctx(block_height=1))

    async def test_burn_expired_requires_expiry(self, registry, ctx):
        badge_id = await registry.mint("permanent", ctx("alice"))

        with pytest.raises(NotTimeLimited):
            await registry.burn_expired(badge_id, ctx("anyone", block_height=10_000))

        assert await registry.is_expired(badge_id, 10_000) is False

    async def test_burn_expired_twice_fails(self, registry, ctx):
        badge_id = await registry.mint_time_limited("event-pass", 5, ctx(block_height=1))
        await registry.burn_expired(badge_id, ctx("sweeper", block_height=5))

        with pytest.raises(AlreadyBurned):
            await registry.burn_expired(badge_id, ctx("sweeper", block_height=6))

    async def test_burn_expired_acts_as_current_owner(self, registry, ctx):
        badge_id = await registry.mint_time_limited("event-pass", 10, ctx("alice", block_height=1))
        await registry.transfer(badge_id, "bob", ctx("alice", block_height=2))

        await registry.burn_expired(badge_id, ctx("mallory", block_height=10))

        assert await registry.get_owned_badges("bob") == []
        assert (await registry.get_stats()).total_burns == 1

    async def test_expiry_beyond_block_counter_range_fails(self, registry, ctx):
        with pytest.raises(InvalidExpiry):
            await registry.mint_time_limited("event-pass", 2**70, ctx(block_height=1))

        assert await registry.get_last_id() == 0

    async def test_stored_block_height_ahead_of_context_rejects_stale_expiry(self, registry, uow, ctx):
        # The context was resolved at block 50, then the counter moved to 100
        await BlockService(uow, lock=asyncio.Lock()).advance(100)

        with pytest.raises(InvalidExpiry):
            await registry.mint_time_limited("event-pass", 60, ctx(block_height=50))

        assert await registry.get_last_id() == 0

    async def test_burn_expired_uses_stored_block_height(self, registry, uow, ctx):
        badge_id = await registry.mint_time_limited("event-pass", 60, ctx("alice", block_height=50))
        await BlockService(uow, lock=asyncio.Lock()).advance(60)

        await registry.burn_expired(badge_id, ctx("anyone", block_height=50))

        assert await registry.is_burned(badge_id) is True

    async def test_expiry_not_recorded_when_persistence_disabled(self, registry, ctx, restore_settings):
        restore_settings.PERSIST_BADGE_EXPIRY = False

        badge_id = await registry.mint_time_limited("event-pass", 10, ctx(block_height=1))

        assert await registry.is_expired(badge_id, 20) is False
        with pytest.raises(NotTimeLimited):
            await registry.burn_expired(badge_id, ctx(block_height=20))


class TestQueries:
    """Test the read-only query, verification and statistics surface."""

    async def test_get_metadata(self, registry, ctx):
        badge_id = await registry.mint("a", ctx("alice"))

        metadata = await registry.get_metadata(badge_id)

        assert metadata.uri == "a"
        assert metadata.owner == "alice"
        assert metadata.burned is False

    @pytest.mark.parametrize("badge_id", [0, -1])
    async def test_get_metadata_invalid_id(self, registry, badge_id):
        with pytest.raises(InvalidId):
            await registry.get_metadata(badge_id)

    async def test_get_metadata_out_of_range(self, registry, ctx):
        await registry.mint("a", ctx())

        with pytest.raises(IdOutOfRange):
            await registry.get_metadata(2)

    async def test_get_metadata_of_burned_badge_reports_missing_owner(self, registry, ctx):
        badge_id = await registry.mint("a", ctx("alice"))
        await registry.burn(badge_id, ctx("alice"))

        with pytest.raises(OwnerMissing):
            await registry.get_metadata(badge_id)

    async def test_queries_on_unknown_ids_default(self, registry):
        assert await registry.get_uri(99) is None
        assert await registry.get_owner(99) is None
        assert await registry.is_burned(99) is False
        assert await registry.is_expired(99, 1_000) is False

    async def test_verify_unknown_badge(self, registry):
        verification = await registry.verify(5)

        assert verification.exists is False
        assert verification.owner is None
        assert verification.has_uri is False
        assert verification.burned is False

    async def test_verify_lifecycle(self, registry, ctx):
        badge_id = await registry.mint("a", ctx("alice"))

        verification = await registry.verify(badge_id)
        assert verification.exists is True
        assert verification.owner == "alice"
        assert verification.has_uri is True
        assert verification.burned is False

        await registry.burn(badge_id, ctx("alice"))

        verification = await registry.verify(badge_id)
        assert verification.exists is True
        assert verification.owner is None
        assert verification.has_uri is True
        assert verification.burned is True

    async def test_get_badge_detail(self, registry, ctx):
        badge_id = await registry.mint_time_limited("pass", 30, ctx("alice", block_height=10))

        detail = await registry.get_badge(badge_id, block_height=20)
        assert detail.id == badge_id
        assert detail.uri == "pass"
        assert detail.owner == "alice"
        assert detail.expiry_block == 30
        assert detail.expired is False

        assert (await registry.get_badge(badge_id, block_height=30)).expired is True

        with pytest.raises(IdOutOfRange):
            await registry.get_badge(badge_id + 1, block_height=30)

    async def test_stats_count_every_event(self, registry, ctx):
        await registry.batch_mint(["a", "b", "c"], ctx("alice"))
        await registry.transfer(1, "bob", ctx("alice"))
        await registry.transfer(1, "carol", ctx("bob"))
        await registry.burn(2, ctx("alice"))

        stats = await registry.get_stats()

        assert stats.total_mints == 3
        assert stats.total_transfers == 2
        assert stats.total_burns == 1
        assert stats.active_badges == 2

    async def test_stats_stay_zero_when_tracking_disabled(self, registry, ctx, restore_settings):
        restore_settings.TRACK_REGISTRY_STATS = False

        await registry.mint("a", ctx("alice"))
        await registry.transfer(1, "bob", ctx("alice"))
        await registry.burn(1, ctx("bob"))

        stats = await registry.get_stats()
        assert stats.total_mints == 0
        assert stats.total_burns == 0
        assert stats.total_transfers == 0
        assert stats.active_badges == 0
        # Ids still advance independently of the statistics
        assert await registry.get_last_id() == 1


class TestOutOfRangeIds:
    """Ids far beyond anything issued are reported as absent, never as storage errors."""

    HUGE_ID = 2**70

    async def test_verify_huge_id(self, registry, ctx):
        await registry.mint("a", ctx("alice"))

        verification = await registry.verify(self.HUGE_ID)

        assert verification.exists is False
        assert verification.owner is None
        assert verification.has_uri is False
        assert verification.burned is False

    async def test_queries_on_huge_id_default(self, registry):
        assert await registry.get_uri(self.HUGE_ID) is None
        assert await registry.get_owner(self.HUGE_ID) is None
        assert await registry.is_burned(self.HUGE_ID) is False
        assert await registry.is_expired(self.HUGE_ID, 10) is False

    async def test_mutations_on_huge_id_fail_cleanly(self, registry, ctx):
        with pytest.raises(BadgeNotFound):
            await registry.transfer(self.HUGE_ID, "bob", ctx("alice"))
        with pytest.raises(BadgeNotFound):
            await registry.update_uri(self.HUGE_ID, "new", ctx("alice"))
        with pytest.raises(BadgeNotFound):
            await registry.burn(self.HUGE_ID, ctx("alice"))
        with pytest.raises(NotTimeLimited):
            await registry.burn_expired(self.HUGE_ID, ctx("anyone", block_height=10))
        with pytest.raises(IdOutOfRange):
            await registry.get_metadata(self.HUGE_ID)
