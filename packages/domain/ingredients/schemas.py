"""
Data schemas for ingredient resolution
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, validator

# Canonical names are English; these are the languages stored next to them.
TARGET_LANGUAGES = ("pl", "ru", "uk")


class IngredientCategory(str, Enum):
    """Catalog categories the AI may assign"""
    DAIRY_AND_EGGS = "dairy_and_eggs"
    FRUITS = "fruits"
    VEGETABLES = "vegetables"
    MEAT = "meat"
    SEAFOOD = "seafood"
    GRAINS = "grains"
    BEVERAGES = "beverages"


class UnitType(str, Enum):
    """Default purchase/stock unit of a catalog ingredient"""
    GRAM = "gram"
    KILOGRAM = "kilogram"
    LITER = "liter"
    MILLILITER = "milliliter"
    PIECE = "piece"
    BUNCH = "bunch"
    CAN = "can"
    BOTTLE = "bottle"
    PACKAGE = "package"


class ResolutionSource(str, Enum):
    """Where the resolved values came from"""
    EXPLICIT = "explicit"    # Every field supplied by the caller
    CACHED = "cached"        # Found in ingredient_dictionary
    AI = "ai"                # Fresh AI call (cost > 0)
    FALLBACK = "fallback"    # AI failed, input text substituted


class FailurePolicy(str, Enum):
    """What the pipeline does when the AI call fails"""
    STRICT = "strict"        # Raise a typed error
    FALLBACK = "fallback"    # Return input text in every translation


class DictionaryEntry(BaseModel):
    """One write-once row of the ingredient dictionary"""
    lookup_key: str = Field(..., description="Lowercase trimmed canonical name")
    canonical_name: str = Field(..., description="Canonical English name as first stored")
    translations: Dict[str, str] = Field(..., description="Language code → name")
    category: Optional[IngredientCategory] = None
    unit: Optional[UnitType] = None
    created_at: Optional[datetime] = None

    class Config:
        frozen = True


class ClassificationPayload(BaseModel):
    """
    Validated answer of one unified AI call.

    Every name must be a non-empty string and category/unit must belong
    to their enumerations; anything else fails validation.
    """
    name_en: str = Field(..., min_length=1)
    name_pl: str = Field(..., min_length=1)
    name_ru: str = Field(..., min_length=1)
    name_uk: str = Field(..., min_length=1)
    category: IngredientCategory
    unit: UnitType

    @validator("name_en", "name_pl", "name_ru", "name_uk", pre=True)
    def strip_names(cls, v):
        if not isinstance(v, str):
            raise ValueError("must be a string")
        return v.strip()

    @validator("category", "unit", pre=True)
    def normalize_tags(cls, v):
        if not isinstance(v, str):
            raise ValueError("must be a string")
        return v.strip().lower()

    @property
    def translations(self) -> Dict[str, str]:
        return {"pl": self.name_pl, "ru": self.name_ru, "uk": self.name_uk}


class ExplicitOverrides(BaseModel):
    """
    Caller-supplied values, used verbatim.

    Blank strings count as "not supplied" so form fields can be passed through as-is.
    """
    name_en: Optional[str] = None
    name_pl: Optional[str] = None
    name_ru: Optional[str] = None
    name_uk: Optional[str] = None
    category: Optional[IngredientCategory] = None
    unit: Optional[UnitType] = None

    @validator("name_en", "name_pl", "name_ru", "name_uk", "category", "unit", pre=True)
    def blank_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    def provided_fields(self) -> List[str]:
        return [name for name, value in self if value is not None]

    def translation(self, language: str) -> Optional[str]:
        return getattr(self, f"name_{language}")

    @property
    def is_complete(self) -> bool:
        return all(value is not None for _, value in self)


class ClassificationResult(BaseModel):
    """
    Outcome of one resolution, handed back to the catalog workflow.

    Not persisted here; the caller decides what to store.
    """
    canonical_name: str
    translations: Dict[str, str]
    category: Optional[IngredientCategory] = None
    unit: Optional[UnitType] = None

    source: ResolutionSource
    ai_cost_usd: Decimal = Field(default=Decimal("0"), description="Cost of AI call in USD")

    requires_review: bool = Field(default=False, description="Not translated; needs manual input")
    explicit_fields: List[str] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "canonical_name": "Milk",
                "translations": {"pl": "Mleko", "ru": "Молоко", "uk": "Молоко"},
                "category": "dairy_and_eggs",
                "unit": "liter",
                "source": "ai",
                "ai_cost_usd": 0.00021,
                "requires_review": False,
                "explicit_fields": []
            }
        }
