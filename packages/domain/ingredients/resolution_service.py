"""
Ingredient Resolution Service - turns a free-form name into a catalog-ready result

Decision sequence per request:
1. Validate: trim, reject empty or > 100 chars
2. Explicit overrides: fields the caller supplied are used verbatim;
   if every field is supplied, stop here (source=explicit, cost 0)
3. Heuristic: Latin letters/digits/spaces/hyphens/apostrophes only → input is
   already the canonical English name, AI normalization is skipped for that field
4. Dictionary lookup on the candidate canonical name → hit: source=cached, cost 0
5. Miss → one unified AI call (normalize + translate + classify)
   - success → insert_or_get() write-through, source=ai
   - failure → STRICT: raise typed error
               FALLBACK: input text in every translation, source=fallback

Example:
- "Молоко" (empty dictionary) → AI → Milk / Mleko / Молоко / Молоко, dairy_and_eggs, liter
- "milk" afterwards → dictionary hit, no AI call

Failure policy is chosen by the caller at each call site:
- Product creation (admin catalog): STRICT, so unknown items are never mis-filed
- Filling missing translations on product update: FALLBACK, non-blocking
"""
from decimal import Decimal
from typing import Optional, Dict, Any, List

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from packages.common.ingredient_dictionary import ingredient_dictionary
from packages.domain.ingredients.exceptions import AI_FAILURES
from packages.domain.ingredients.ingredient_classifier import ingredient_classifier
from packages.domain.ingredients.normalization import clean_input, looks_canonical
from packages.domain.ingredients.schemas import (
    ClassificationResult,
    DictionaryEntry,
    ExplicitOverrides,
    FailurePolicy,
    ResolutionSource,
    TARGET_LANGUAGES,
)

logger = structlog.get_logger()


class IngredientResolutionService:
    """
    Orchestrates dictionary lookup, AI classification and override merging.

    Usage:
        service = IngredientResolutionService()
        result = await service.resolve(
            "Молоко",
            db,
            policy=FailurePolicy.STRICT,
        )
        print(result.canonical_name, result.translations, result.source)
    """

    def __init__(self, dictionary=None, classifier=None):
        """Initialize with dictionary repository and AI classifier."""
        self.dictionary = dictionary or ingredient_dictionary
        self.classifier = classifier or ingredient_classifier

    async def resolve(
        self,
        input_text: str,
        db: AsyncSession,
        overrides: Optional[ExplicitOverrides] = None,
        *,
        policy: FailurePolicy,
    ) -> ClassificationResult:
        """
        Resolve one ingredient name.

        Args:
            input_text: Name as typed, any language
            db: Database session for the dictionary
            overrides: Caller-supplied fields, used verbatim
            policy: What to do if the AI call fails

        Returns:
            ClassificationResult

        Raises:
            ValidationError: empty/oversized input; AI data invalid (STRICT)
            ExternalServiceTimeout, ExternalServiceError: AI failure (STRICT)
            CacheStoreError: dictionary unreachable (any policy)
        """
        policy = FailurePolicy(policy)
        text = clean_input(input_text)
        overrides = overrides or ExplicitOverrides()
        explicit_fields = overrides.provided_fields()

        logger.info("resolution_started",
                   input=text,
                   policy=policy.value,
                   explicit_fields=explicit_fields)

        if overrides.is_complete:
            result = ClassificationResult(
                canonical_name=overrides.name_en,
                translations={lang: overrides.translation(lang) for lang in TARGET_LANGUAGES},
                category=overrides.category,
                unit=overrides.unit,
                source=ResolutionSource.EXPLICIT,
                explicit_fields=explicit_fields,
            )
            return self._finish(text, result)

        # An explicit English name is canonical by definition
        candidate = overrides.name_en or text
        preserve_name = overrides.name_en is not None or looks_canonical(text)

        logger.debug("canonical_candidate",
                    input=text,
                    candidate=candidate,
                    ai_normalization_skipped=preserve_name)

        entry = await self.dictionary.lookup(candidate, db)
        if entry is not None:
            result = self._merge(entry, overrides, ResolutionSource.CACHED, Decimal("0"))
            return self._finish(text, result)

        try:
            classification = await self.classifier.classify(candidate, preserve_name=preserve_name)
        except AI_FAILURES as e:
            if policy is FailurePolicy.STRICT:
                logger.error("resolution_failed",
                            input=text,
                            error_type=type(e).__name__,
                            error=str(e),
                            message="Provide the missing fields manually")
                raise

            logger.warning("resolution_fallback",
                          input=text,
                          error_type=type(e).__name__,
                          error=str(e))
            return self._finish(text, self._fallback(text, overrides))

        payload = classification.payload
        canonical_name = candidate if preserve_name else payload.name_en

        entry = await self.dictionary.insert_or_get(
            canonical_name,
            payload.translations,
            db,
            category=payload.category,
            unit=payload.unit,
        )

        result = self._merge(entry, overrides, ResolutionSource.AI, classification.cost_usd)
        return self._finish(text, result)

    async def resolve_many(
        self,
        items: List[Dict[str, Any]],
        db: AsyncSession,
        *,
        policy: FailurePolicy,
    ) -> List[ClassificationResult]:
        """
        Resolve a batch of names (catalog imports).

        Processes items sequentially on one session.

        Args:
            items: Dicts with:
                - name_input: str
                - overrides: Optional[ExplicitOverrides | dict]
            db: Database session
            policy: Failure policy for every item

        Returns:
            List of ClassificationResult in input order
        """
        logger.info("batch_resolution_started", item_count=len(items), policy=FailurePolicy(policy).value)

        results = []
        total_cost = Decimal("0")

        for item in items:
            overrides = item.get("overrides")
            if isinstance(overrides, dict):
                overrides = ExplicitOverrides(**overrides)

            result = await self.resolve(item["name_input"], db, overrides, policy=policy)
            results.append(result)
            total_cost += result.ai_cost_usd

        counts = {source.value: 0 for source in ResolutionSource}
        for result in results:
            counts[result.source.value] += 1

        logger.info("batch_resolution_complete",
                   total_items=len(results),
                   cache_hits=counts["cached"],
                   ai_calls=counts["ai"],
                   fallbacks=counts["fallback"],
                   explicit=counts["explicit"],
                   total_cost_usd=float(total_cost))

        return results

    def _merge(
        self,
        entry: DictionaryEntry,
        overrides: ExplicitOverrides,
        source: ResolutionSource,
        cost: Decimal,
    ) -> ClassificationResult:
        """Field-by-field: override if supplied, else the dictionary value"""
        translations = {
            lang: overrides.translation(lang) or entry.translations[lang]
            for lang in TARGET_LANGUAGES
        }
        category = overrides.category or entry.category
        unit = overrides.unit or entry.unit

        return ClassificationResult(
            canonical_name=overrides.name_en or entry.canonical_name,
            translations=translations,
            category=category,
            unit=unit,
            source=source,
            ai_cost_usd=cost,
            # Rows written before classification was cached have no category/unit
            requires_review=category is None or unit is None,
            explicit_fields=overrides.provided_fields(),
        )

    def _fallback(self, text: str, overrides: ExplicitOverrides) -> ClassificationResult:
        """Degraded result: input text wherever nothing explicit was given"""
        return ClassificationResult(
            canonical_name=overrides.name_en or text,
            translations={
                lang: overrides.translation(lang) or text
                for lang in TARGET_LANGUAGES
            },
            category=overrides.category,
            unit=overrides.unit,
            source=ResolutionSource.FALLBACK,
            ai_cost_usd=Decimal("0"),
            requires_review=True,
            explicit_fields=overrides.provided_fields(),
        )

    def _finish(self, text: str, result: ClassificationResult) -> ClassificationResult:
        logger.info("resolution_complete",
                   input=text,
                   canonical_name=result.canonical_name,
                   category=result.category.value if result.category else None,
                   unit=result.unit.value if result.unit else None,
                   source=result.source.value,
                   requires_review=result.requires_review,
                   cost_usd=float(result.ai_cost_usd))
        return result


# Singleton instance
resolution_service = IngredientResolutionService()
