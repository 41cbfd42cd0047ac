#!/usr/bin/env python3
"""
Management CLI commands for the Badge Registry.

Usage:
    python -m badge_registry.commands.management <command> [args...]

Commands:
    init-db                 - Create tables and the registry state row
    stats                   - Show registry statistics
    advance-blocks <n>      - Advance the block counter by n blocks
    sweep-expired           - Burn every badge whose expiry block has been reached
    help                    - Show this help message

Examples:
    python -m badge_registry.commands.management init-db
    python -m badge_registry.commands.management advance-blocks 10
"""

import asyncio
import sys
import logging

from badge_registry.commands.sweep_expired_badges import sweep_expired_badges
from badge_registry.core.database import AsyncSessionLocal
from badge_registry.repositories.unit_of_work import SqlAlchemyUnitOfWork
from badge_registry.services.block_service import BlockService
from badge_registry.services.registry_service import RegistryService

# Configure logging for CLI
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)


async def main():
    """Main entry point for management commands."""
    if len(sys.argv) < 2:
        print_help()
        sys.exit(1)

    command = sys.argv[1].lower()

    if command == "help" or command == "--help" or command == "-h":
        print_help()
        return

    elif command == "init-db":
        await handle_init_db()

    elif command == "stats":
        await handle_stats()

    elif command == "advance-blocks":
        await handle_advance_blocks()

    elif command == "sweep-expired":
        await handle_sweep_expired()

    else:
        print(f"Unknown command: {command}")
        print_help()
        sys.exit(1)


async def handle_init_db():
    """Handle the init-db command."""
    from badge_registry.main import init_registry

    await init_registry()
    print("✅ Registry database initialised")


async def handle_stats():
    """Handle the stats command."""
    async with AsyncSessionLocal() as session:
        registry = RegistryService(SqlAlchemyUnitOfWork(session))
        stats = await registry.get_stats()
        last_id = await registry.get_last_id()

    print("📊 Registry statistics")
    print(f"   Last id: {last_id}")
    print(f"   Total mints: {stats.total_mints}")
    print(f"   Total burns: {stats.total_burns}")
    print(f"   Total transfers: {stats.total_transfers}")
    print(f"   Active badges: {stats.active_badges}")


async def handle_advance_blocks():
    """Handle the advance-blocks command."""
    if len(sys.argv) < 3:
        print("❌ Error: Block count required")
        print("Usage: python -m badge_registry.commands.management advance-blocks <n>")
        sys.exit(1)

    try:
        count = int(sys.argv[2])
    except ValueError:
        print(f"❌ Error: Invalid block count '{sys.argv[2]}'. Must be an integer.")
        sys.exit(1)

    if count < 1:
        print("❌ Error: Block count must be at least 1")
        sys.exit(1)

    async with AsyncSessionLocal() as session:
        block_height = await BlockService(SqlAlchemyUnitOfWork(session)).advance(count)

    print(f"⏩ Block height is now {block_height}")


async def handle_sweep_expired():
    """Handle the sweep-expired command."""
    print("🔄 Sweeping expired badges...")

    try:
        results = await sweep_expired_badges()

        print("✅ Sweep completed!")
        print(f"   Block height: {results['block_height']}")
        print(f"   Expired badges: {results['checked']}")
        print(f"   Burned: {results['burned']}")
        print(f"   Failed: {results['failed']}")
        print(f"   Duration: {results['duration_seconds']:.2f}s")

        if results['errors']:
            print("⚠️  Errors encountered:")
            for error in results['errors'][:5]:  # Show first 5 errors
                print(f"   - {error}")
            if len(results['errors']) > 5:
                print(f"   ... and {len(results['errors']) - 5} more errors")

    except Exception as e:
        print(f"❌ Critical error during sweep: {e}")
        sys.exit(1)


def print_help():
    """Print help message."""
    print(__doc__)


if __name__ == "__main__":
    asyncio.run(main())
