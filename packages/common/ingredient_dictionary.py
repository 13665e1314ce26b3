"""
Ingredient Dictionary - write-once translation cache

The ingredient_dictionary table maps a normalized canonical (English) name
to its translations and classification. It exists to avoid paying for the
same AI call twice.

Cache Strategy:
1. First time seeing a name → AI call → insert_or_get() stores it
2. Next time (any caller) → lookup() hit → free & instant
3. Rows are never updated or deleted

Race safety:
- insert_or_get() is INSERT ... ON CONFLICT DO NOTHING followed by a lookup,
  so concurrent first-time writers all end up returning the first committed row.
- A slower AI answer can never overwrite an earlier one.
"""
from typing import Optional, Dict, Any

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from packages.common.config import get_settings
from packages.domain.ingredients.exceptions import CacheStoreError
from packages.domain.ingredients.normalization import normalize_key
from packages.domain.ingredients.schemas import (
    DictionaryEntry,
    IngredientCategory,
    UnitType,
    TARGET_LANGUAGES,
)

logger = structlog.get_logger()


class IngredientDictionaryRepository:
    """
    Repository for the ingredient dictionary.

    Exposes lookups and an idempotent insert; there is deliberately no
    update or delete path. An optional in-process memo short-circuits
    repeated lookups of rows already seen (rows are immutable, so it can
    only ever return what the database would).
    """

    def __init__(self, memo_enabled: Optional[bool] = None):
        if memo_enabled is None:
            memo_enabled = get_settings().dictionary_memo_enabled
        self.memo_enabled = memo_enabled
        self._memo: Dict[str, DictionaryEntry] = {}

    @staticmethod
    def _row_to_entry(row) -> DictionaryEntry:
        return DictionaryEntry(
            lookup_key=row.lookup_key,
            canonical_name=row.name_en,
            translations={lang: getattr(row, f"name_{lang}") for lang in TARGET_LANGUAGES},
            category=IngredientCategory(row.category) if row.category else None,
            unit=UnitType(row.unit) if row.unit else None,
            created_at=row.created_at,
        )

    def clear_memo(self) -> None:
        self._memo.clear()

    async def lookup(
        self,
        name: str,
        db: AsyncSession,
    ) -> Optional[DictionaryEntry]:
        """
        Look up a dictionary entry by canonical name.

        Args:
            name: Canonical name in any casing/spacing ("  APPLE " finds "apple")
            db: Database session

        Returns:
            DictionaryEntry or None if not cached

        Raises:
            CacheStoreError: if the database cannot be queried
        """
        lookup_key = normalize_key(name)

        if self.memo_enabled and lookup_key in self._memo:
            logger.debug("dictionary_memo_hit", lookup_key=lookup_key)
            return self._memo[lookup_key]

        entry = await self._fetch(lookup_key, db)

        if entry is None:
            logger.debug("dictionary_miss", lookup_key=lookup_key)
            return None

        self._remember(entry)

        logger.debug("dictionary_hit",
                    lookup_key=lookup_key,
                    category=entry.category.value if entry.category else None)
        return entry

    async def _fetch(self, lookup_key: str, db: AsyncSession) -> Optional[DictionaryEntry]:
        """Read one row straight from the database, bypassing the memo"""
        query = text("""
            SELECT
                lookup_key,
                name_en,
                name_pl,
                name_ru,
                name_uk,
                category,
                unit,
                created_at
            FROM ingredient_dictionary
            WHERE lookup_key = :lookup_key
        """)

        try:
            result = await db.execute(query, {"lookup_key": lookup_key})
            row = result.fetchone()
        except SQLAlchemyError as e:
            logger.error("dictionary_lookup_failed",
                        lookup_key=lookup_key,
                        error=str(e))
            raise CacheStoreError(f"Failed to lookup dictionary: {e}") from e

        return self._row_to_entry(row) if row is not None else None

    def _remember(self, entry: DictionaryEntry) -> None:
        if self.memo_enabled:
            self._memo[entry.lookup_key] = entry

    async def insert_or_get(
        self,
        canonical_name: str,
        translations: Dict[str, str],
        db: AsyncSession,
        category: Optional[IngredientCategory] = None,
        unit: Optional[UnitType] = None,
    ) -> DictionaryEntry:
        """
        Store a new entry unless one exists, then return the authoritative row.

        Args:
            canonical_name: Canonical English name (display form)
            translations: Language code → name, must cover TARGET_LANGUAGES
            db: Database session
            category: Classification to keep with the row
            unit: Default unit to keep with the row

        Returns:
            The row that won for this key (ours, or an earlier/concurrent one)

        Raises:
            CacheStoreError: if the database cannot be written or read back
        """
        lookup_key = normalize_key(canonical_name)

        missing = [lang for lang in TARGET_LANGUAGES if not (translations.get(lang) or "").strip()]
        if missing:
            raise ValueError(f"Missing translations for {missing}")

        query = text("""
            INSERT INTO ingredient_dictionary (
                lookup_key,
                name_en,
                name_pl,
                name_ru,
                name_uk,
                category,
                unit
            ) VALUES (
                :lookup_key,
                :name_en,
                :name_pl,
                :name_ru,
                :name_uk,
                :category,
                :unit
            )
            ON CONFLICT (lookup_key) DO NOTHING
        """)

        try:
            result = await db.execute(query, {
                "lookup_key": lookup_key,
                "name_en": canonical_name.strip(),
                "name_pl": translations["pl"].strip(),
                "name_ru": translations["ru"].strip(),
                "name_uk": translations["uk"].strip(),
                "category": category.value if category else None,
                "unit": unit.value if unit else None,
            })
            created = result.rowcount > 0
        except SQLAlchemyError as e:
            logger.error("dictionary_insert_failed",
                        lookup_key=lookup_key,
                        error=str(e))
            raise CacheStoreError(f"Failed to insert into dictionary: {e}") from e

        # Always read back: the row may belong to a concurrent writer.
        # Not memoized until committed.
        entry = await self._fetch(lookup_key, db)
        if entry is None:
            logger.error("dictionary_entry_missing_after_insert", lookup_key=lookup_key)
            raise CacheStoreError(f"Dictionary entry not found after insert: {lookup_key}")

        try:
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("dictionary_commit_failed",
                        lookup_key=lookup_key,
                        error=str(e))
            raise CacheStoreError(f"Failed to commit dictionary entry: {e}") from e

        self._remember(entry)

        if created:
            logger.info("dictionary_entry_created",
                       lookup_key=lookup_key,
                       canonical_name=entry.canonical_name,
                       **entry.translations)
        else:
            logger.info("dictionary_entry_exists",
                       lookup_key=lookup_key,
                       canonical_name=entry.canonical_name)

        return entry

    async def get_stats(self, db: AsyncSession) -> Dict[str, Any]:
        """
        Get dictionary statistics for monitoring.

        Returns:
            Dictionary with total_entries, oldest_entry, newest_entry
        """
        query = text("""
            SELECT
                COUNT(*) AS total_entries,
                MIN(created_at) AS oldest_entry,
                MAX(created_at) AS newest_entry
            FROM ingredient_dictionary
        """)

        try:
            result = await db.execute(query)
            row = result.fetchone()
        except SQLAlchemyError as e:
            raise CacheStoreError(f"Failed to get dictionary stats: {e}") from e

        stats = dict(row._mapping)
        logger.info("dictionary_stats_retrieved", total_entries=stats["total_entries"])
        return stats


# Singleton instance
ingredient_dictionary = IngredientDictionaryRepository()
