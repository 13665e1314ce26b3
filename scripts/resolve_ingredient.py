#!/usr/bin/env python3
"""
Resolve one ingredient name through the dictionary + AI pipeline.

Usage:
    python scripts/resolve_ingredient.py "<name>" [strict|fallback]

Example:
    DATABASE_URL=postgresql://... python scripts/resolve_ingredient.py "Молоко"
"""
import sys
import os
import asyncio

# Add parent directory to path so we can import modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from packages.common.config import get_settings
from packages.common.database import sessionmanager
from packages.common.logging_config import configure_logging
from packages.domain.ingredients import FailurePolicy, IngredientResolutionError
from packages.domain.ingredients.resolution_service import resolution_service


async def main():
    if len(sys.argv) < 2:
        print('Usage: python scripts/resolve_ingredient.py "<name>" [strict|fallback]')
        sys.exit(1)

    name = sys.argv[1]
    policy = FailurePolicy(sys.argv[2] if len(sys.argv) > 2 else "strict")

    settings = get_settings()
    configure_logging(settings.log_level)
    await sessionmanager.init(settings.database_url)

    try:
        async with sessionmanager.session() as db:
            result = await resolution_service.resolve(name, db, policy=policy)
    except IngredientResolutionError as e:
        print(f"❌ {type(e).__name__}: {e.message}")
        if policy is FailurePolicy.STRICT:
            print("   Please provide the missing fields manually.")
        sys.exit(2)
    finally:
        await sessionmanager.close()

    print("\nResult:")
    print(f"  Canonical: {result.canonical_name}")
    for lang, value in result.translations.items():
        print(f"  {lang.upper()}: {value}")
    print(f"  Category: {result.category.value if result.category else '-'}")
    print(f"  Unit: {result.unit.value if result.unit else '-'}")
    print(f"  Source: {result.source.value}")
    print(f"  AI cost: ${float(result.ai_cost_usd):.6f}")
    if result.requires_review:
        print("  ⚠️  Not translated - review required")


if __name__ == "__main__":
    asyncio.run(main())
