"""
Ingredient Classifier - one AI call per unknown ingredient name

Uses the Claude API to do three jobs in a single request:
1. Normalize the name to canonical English ("Молоко" → "Milk")
2. Translate it to Polish, Russian and Ukrainian
3. Classify category and default unit

One call instead of three sequential ones: ~1/3 of the latency and cost,
and one failure point instead of three.

Time budget:
- Every attempt has a hard deadline (AI_TIMEOUT_SECONDS)
- Timeouts and transport errors are retried exactly once after a short backoff
- Worst case: timeout × (1 + retries) + backoff × retries (WORST_CASE_LATENCY_SECONDS)

Nothing the AI returns is trusted: the JSON is validated field by field and
out-of-enum categories/units are rejected.
"""
import asyncio
import json
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Any

import anthropic
import structlog
from pydantic import ValidationError as PydanticValidationError

from packages.common.config import get_settings
from packages.domain.ingredients.exceptions import (
    AIResponseValidationError,
    ExternalServiceError,
    ExternalServiceTimeout,
)
from packages.domain.ingredients.normalization import clean_input
from packages.domain.ingredients.schemas import (
    ClassificationPayload,
    IngredientCategory,
    UnitType,
)

logger = structlog.get_logger()

AI_TIMEOUT_SECONDS = 5.0
MAX_RETRIES = 1
RETRY_BACKOFF_SECONDS = 0.1

# HTTP statuses worth a second attempt; anything else 4xx is our fault
RETRYABLE_STATUS_CODES = {408, 409, 429, 500, 502, 503, 504, 529}


def worst_case_latency(
    timeout_seconds: float = AI_TIMEOUT_SECONDS,
    max_retries: int = MAX_RETRIES,
    backoff_seconds: float = RETRY_BACKOFF_SECONDS,
) -> float:
    """Upper bound on classify() wall-clock time"""
    return timeout_seconds * (1 + max_retries) + backoff_seconds * max_retries


WORST_CASE_LATENCY_SECONDS = worst_case_latency()


@dataclass
class AIClassification:
    """Validated AI answer plus what it cost"""
    payload: ClassificationPayload
    cost_usd: Decimal
    attempts: int


class IngredientClassifier:
    """
    AI-powered ingredient normalization, translation and classification.

    Uses Anthropic Claude API with deterministic decoding (temperature 0)
    so repeated calls for the same name stay stable.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_backoff_seconds: Optional[float] = None,
        max_tokens: Optional[int] = None,
        client: Optional[Any] = None,
    ):
        """
        Initialize ingredient classifier.

        Args:
            api_key: Anthropic API key (defaults to ANTHROPIC_API_KEY setting)
            model: Claude model name
            timeout_seconds: Hard deadline per attempt
            max_retries: Extra attempts after a timeout/transport failure
            retry_backoff_seconds: Sleep between attempts
            max_tokens: Response length cap
            client: Pre-built AsyncAnthropic-compatible client
        """
        settings = get_settings()

        self.api_key = api_key or settings.anthropic_api_key
        self.model = model or settings.ai_model
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.ai_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.ai_max_retries
        self.retry_backoff_seconds = (
            retry_backoff_seconds if retry_backoff_seconds is not None
            else settings.ai_retry_backoff_seconds
        )
        self.max_tokens = max_tokens or settings.ai_max_tokens

        if client is not None:
            self.client = client
        elif self.api_key:
            # SDK retries off: the loop in classify() is the only retry
            self.client = anthropic.AsyncAnthropic(
                api_key=self.api_key,
                timeout=self.timeout_seconds,
                max_retries=0,
            )
        else:
            logger.warning("anthropic_api_key_missing",
                          message="ANTHROPIC_API_KEY not set, AI classification will fail")
            self.client = None

        # Cost per token (Claude Haiku pricing)
        self.input_cost_per_1k = Decimal("0.0008")   # $0.80 per 1M input tokens
        self.output_cost_per_1k = Decimal("0.004")   # $4 per 1M output tokens

    @property
    def worst_case_latency(self) -> float:
        return worst_case_latency(self.timeout_seconds, self.max_retries, self.retry_backoff_seconds)

    async def classify(self, text: str, preserve_name: bool = False) -> AIClassification:
        """
        Resolve a free-form ingredient name in one AI call.

        Args:
            text: Ingredient name in any language
            preserve_name: Input is already canonical English; ask the AI to keep it

        Returns:
            AIClassification with validated payload and cost

        Raises:
            ValidationError: empty or oversized input (nothing is sent)
            AIResponseValidationError: answer unparseable or outside the enums
            ExternalServiceTimeout: every attempt hit the deadline
            ExternalServiceError: transport/HTTP failure, empty answer, no API key
        """
        text = clean_input(text)

        if self.client is None:
            raise ExternalServiceError("AI client not configured (ANTHROPIC_API_KEY missing)")

        prompt = self._build_prompt(text, preserve_name)
        attempts = 1 + self.max_retries
        last_error: Optional[Exception] = None
        timed_out = False
        response = None

        for attempt in range(1, attempts + 1):
            try:
                response = await asyncio.wait_for(
                    self.client.messages.create(
                        model=self.model,
                        max_tokens=self.max_tokens,
                        temperature=0.0,  # Deterministic for cache stability
                        messages=[
                            {
                                "role": "user",
                                "content": prompt
                            }
                        ]
                    ),
                    timeout=self.timeout_seconds,
                )
                break

            except (asyncio.TimeoutError, anthropic.APITimeoutError) as e:
                last_error = e
                timed_out = True

            except anthropic.APIConnectionError as e:
                last_error = e
                timed_out = False

            except anthropic.APIStatusError as e:
                if e.status_code not in RETRYABLE_STATUS_CODES:
                    logger.error("ai_request_rejected",
                                input=text,
                                status_code=e.status_code,
                                error=str(e))
                    raise ExternalServiceError(f"AI service returned HTTP {e.status_code}") from e
                last_error = e
                timed_out = False

            logger.warning("ai_attempt_failed",
                          input=text,
                          attempt=attempt,
                          max_attempts=attempts,
                          timed_out=timed_out,
                          error=str(last_error) or type(last_error).__name__)

            if attempt < attempts:
                await asyncio.sleep(self.retry_backoff_seconds)
        else:
            if timed_out:
                raise ExternalServiceTimeout(attempts, self.timeout_seconds) from last_error
            raise ExternalServiceError(f"AI service request failed: {last_error}") from last_error

        content = self._extract_text(response)
        payload = self._parse_response(content, text)

        cost = self._calculate_cost(response)

        logger.info("ai_classification_complete",
                   input=text,
                   name_en=payload.name_en,
                   category=payload.category.value,
                   unit=payload.unit.value,
                   attempts=attempt,
                   cost_usd=float(cost))

        return AIClassification(payload=payload, cost_usd=cost, attempts=attempt)

    def _build_prompt(self, text: str, preserve_name: bool) -> str:
        """
        Build the unified normalize + translate + classify prompt.

        Args:
            text: Cleaned ingredient name
            preserve_name: Keep the input as the English name

        Returns:
            Prompt for Claude API
        """
        categories = ", ".join(cat.value for cat in IngredientCategory)
        units = ", ".join(unit.value for unit in UnitType)

        if preserve_name:
            name_rule = f'name_en MUST be exactly "{text}" (already English, do not change it).'
        else:
            name_rule = "name_en is the common English grocery name, Title Case, singular."

        return f"""You are a food product classifier for a restaurant inventory system.

INPUT (any language): "{text}"

1. {name_rule}
2. Translate the product name to Polish (name_pl), Russian (name_ru), Ukrainian (name_uk).
3. Pick category from: {categories}
4. Pick default unit from: {units}

Return ONLY this JSON, no other text:
{{"name_en":"","name_pl":"","name_ru":"","name_uk":"","category":"","unit":""}}

Example:
Input: "Молоко"
Output: {{"name_en":"Milk","name_pl":"Mleko","name_ru":"Молоко","name_uk":"Молоко","category":"dairy_and_eggs","unit":"liter"}}

Do not invent categories or units outside the lists."""

    def _extract_text(self, response: Any) -> str:
        """Pull the completion text out of a Messages API response"""
        blocks = getattr(response, "content", None) or []
        texts = [getattr(block, "text", "") for block in blocks]
        content = "".join(t for t in texts if t).strip()

        if not content:
            logger.error("ai_empty_response", model=self.model)
            raise ExternalServiceError("AI service returned an empty response")
        return content

    def _parse_response(self, response_text: str, input_text: str) -> ClassificationPayload:
        """
        Parse and validate JSON response from Claude API.

        Args:
            response_text: Raw completion text
            input_text: Original name (for logging)

        Returns:
            ClassificationPayload

        Raises:
            AIResponseValidationError: no JSON object, or fields fail validation
        """
        candidate = response_text

        # Claude should return clean JSON, but extract it if wrapped in markdown or prose
        if "```json" in candidate:
            candidate = candidate.split("```json")[1].split("```")[0].strip()
        elif "```" in candidate:
            candidate = candidate.split("```")[1].split("```")[0].strip()

        start, end = candidate.find("{"), candidate.rfind("}")
        if start == -1 or end <= start:
            logger.error("ai_response_not_json", input=input_text, response=response_text)
            raise AIResponseValidationError("AI response contained no JSON object", response_text)

        try:
            data = json.loads(candidate[start:end + 1])
        except json.JSONDecodeError as e:
            logger.error("ai_response_parse_failed", input=input_text, response=response_text, error=str(e))
            raise AIResponseValidationError(f"AI response is not valid JSON: {e}", response_text) from e

        if not isinstance(data, dict):
            raise AIResponseValidationError("AI response JSON is not an object", response_text)

        try:
            return ClassificationPayload(**data)
        except PydanticValidationError as e:
            logger.error("ai_response_invalid",
                        input=input_text,
                        response=response_text,
                        errors=str(e))
            raise AIResponseValidationError(f"AI response failed validation: {e}", response_text) from e

    def _calculate_cost(self, response: Any) -> Decimal:
        """
        Calculate cost of AI API call from token usage.

        Returns:
            Total cost in USD
        """
        usage = getattr(response, "usage", None)
        input_tokens = getattr(usage, "input_tokens", 0) or 0
        output_tokens = getattr(usage, "output_tokens", 0) or 0

        input_cost = (Decimal(input_tokens) / 1000) * self.input_cost_per_1k
        output_cost = (Decimal(output_tokens) / 1000) * self.output_cost_per_1k
        return input_cost + output_cost


# Singleton instance
ingredient_classifier = IngredientClassifier()
