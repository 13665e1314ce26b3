"""
Text helpers shared by the dictionary and the resolution pipeline
"""
import re

from packages.domain.ingredients.exceptions import ValidationError

MAX_INPUT_LENGTH = 100

# Latin letters, digits, spaces, hyphens, apostrophes
_CANONICAL_PATTERN = re.compile(r"^[A-Za-z0-9' \-]+$")
_WHITESPACE = re.compile(r"\s+")


def clean_input(text: str) -> str:
    """
    Trim and collapse internal whitespace.

    Raises:
        ValidationError: if the result is empty or longer than MAX_INPUT_LENGTH
    """
    if text is None:
        raise ValidationError("Ingredient name is required")

    cleaned = _WHITESPACE.sub(" ", text).strip()

    if not cleaned:
        raise ValidationError("Ingredient name cannot be empty")
    if len(cleaned) > MAX_INPUT_LENGTH:
        raise ValidationError(
            f"Ingredient name too long ({len(cleaned)} > {MAX_INPUT_LENGTH} characters)"
        )
    return cleaned


def normalize_key(name: str) -> str:
    """Dictionary key: lowercase, trimmed, single-spaced"""
    return _WHITESPACE.sub(" ", name).strip().lower()


def looks_canonical(text: str) -> bool:
    """
    Skip-AI heuristic for the canonical name.

    True when the text is plausibly English already. Only an optimisation:
    translations and classification are still requested for such input.
    """
    return bool(_CANONICAL_PATTERN.match(text))
