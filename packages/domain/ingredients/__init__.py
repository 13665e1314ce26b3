"""
Ingredients Module - AI-assisted ingredient naming, translation and classification

Pipeline:
1. Dictionary (cache): canonical English name → PL/RU/UK translations + category/unit
2. AI (one unified call): normalize + translate + classify, only on a dictionary miss
3. Write-through: first AI answer for a name is stored forever, never overwritten

Cache strategy:
- First time seeing a name → AI call (~$0.0003)
- Subsequent times → Dictionary hit (free, instant)

Example flow:
- "Молоко" → AI → "Milk" (Mleko / Молоко / Молоко) → dairy_and_eggs, liter
- "milk" → Dictionary hit → same translations, no AI call
- "Green Apple" → already English, name kept → AI for translations → fruits
"""

from packages.domain.ingredients.exceptions import (
    IngredientResolutionError,
    ValidationError,
    AIResponseValidationError,
    ExternalServiceTimeout,
    ExternalServiceError,
    CacheStoreError,
)
from packages.domain.ingredients.schemas import (
    ClassificationResult,
    DictionaryEntry,
    ExplicitOverrides,
    FailurePolicy,
    IngredientCategory,
    ResolutionSource,
    UnitType,
)

__all__ = [
    'IngredientResolutionError',
    'ValidationError',
    'AIResponseValidationError',
    'ExternalServiceTimeout',
    'ExternalServiceError',
    'CacheStoreError',
    'ClassificationResult',
    'DictionaryEntry',
    'ExplicitOverrides',
    'FailurePolicy',
    'IngredientCategory',
    'ResolutionSource',
    'UnitType',
]
