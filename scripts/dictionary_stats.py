#!/usr/bin/env python3
"""
Print ingredient dictionary statistics.

Usage:
    python scripts/dictionary_stats.py
"""
import sys
import os
import asyncio

# Add parent directory to path so we can import modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from packages.common.config import get_settings
from packages.common.database import sessionmanager
from packages.common.ingredient_dictionary import ingredient_dictionary
from packages.common.logging_config import configure_logging


async def main():
    settings = get_settings()
    configure_logging(settings.log_level)
    await sessionmanager.init(settings.database_url)

    try:
        async with sessionmanager.session() as db:
            stats = await ingredient_dictionary.get_stats(db)
    finally:
        await sessionmanager.close()

    print("Ingredient dictionary:")
    print(f"  Entries: {stats['total_entries']}")
    print(f"  Oldest: {stats['oldest_entry'] or '-'}")
    print(f"  Newest: {stats['newest_entry'] or '-'}")


if __name__ == "__main__":
    asyncio.run(main())
