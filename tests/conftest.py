"""Common fixtures for ingredient dictionary tests."""
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from sqlalchemy import text

from packages.common.database import DatabaseSessionManager
from packages.common.ingredient_dictionary import IngredientDictionaryRepository
from packages.domain.ingredients.ingredient_classifier import IngredientClassifier
from packages.domain.ingredients.resolution_service import IngredientResolutionService

# SQLite stand-in for the Postgres migration (same columns and uniqueness)
CREATE_DICTIONARY_TABLE = """
    CREATE TABLE ingredient_dictionary (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        lookup_key TEXT NOT NULL UNIQUE,
        name_en TEXT NOT NULL,
        name_pl TEXT NOT NULL,
        name_ru TEXT NOT NULL,
        name_uk TEXT NOT NULL,
        category TEXT,
        unit TEXT,
        created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
"""

MILK = {
    "name_en": "Milk",
    "name_pl": "Mleko",
    "name_ru": "Молоко",
    "name_uk": "Молоко",
    "category": "dairy_and_eggs",
    "unit": "liter",
}

GREEN_APPLE = {
    "name_en": "Green Apple",
    "name_pl": "Zielone jabłko",
    "name_ru": "Зелёное яблоко",
    "name_uk": "Зелене яблуко",
    "category": "fruits",
    "unit": "kilogram",
}

ANTHROPIC_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def make_response(payload, input_tokens=250, output_tokens=40):
    """Build a Messages API response carrying payload (dict → JSON, str as-is)."""
    body = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
    return SimpleNamespace(
        content=[SimpleNamespace(type="text", text=body)],
        usage=SimpleNamespace(input_tokens=input_tokens, output_tokens=output_tokens),
    )


@pytest.fixture
async def db_manager(tmp_path):
    """File-backed SQLite database with the dictionary table."""
    manager = DatabaseSessionManager()
    await manager.init(f"sqlite+aiosqlite:///{tmp_path / 'dictionary.db'}")

    async with manager.engine.begin() as conn:
        await conn.execute(text(CREATE_DICTIONARY_TABLE))

    yield manager

    await manager.close()


@pytest.fixture
async def db(db_manager):
    """Database session."""
    async with db_manager.session() as session:
        yield session


@pytest.fixture
def mock_anthropic():
    """Create a mock AsyncAnthropic client."""
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=make_response(MILK))
    return client


@pytest.fixture
def classifier(mock_anthropic):
    """Classifier with short deadlines and the mock client."""
    return IngredientClassifier(
        api_key="test-key",
        model="test-model",
        timeout_seconds=0.2,
        max_retries=1,
        retry_backoff_seconds=0.01,
        max_tokens=200,
        client=mock_anthropic,
    )


@pytest.fixture
def dictionary():
    """Dictionary repository without the in-process memo."""
    return IngredientDictionaryRepository(memo_enabled=False)


@pytest.fixture
def service(dictionary, classifier):
    """Resolution service wired to the test dictionary and classifier."""
    return IngredientResolutionService(dictionary=dictionary, classifier=classifier)


async def count_rows(db, lookup_key=None):
    """Count dictionary rows (optionally for one key)."""
    if lookup_key is None:
        result = await db.execute(text("SELECT COUNT(*) FROM ingredient_dictionary"))
    else:
        result = await db.execute(
            text("SELECT COUNT(*) FROM ingredient_dictionary WHERE lookup_key = :k"),
            {"k": lookup_key},
        )
    return result.scalar_one()
