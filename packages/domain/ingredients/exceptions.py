"""
Error taxonomy for ingredient resolution

- ValidationError: bad input, or an AI answer that failed validation
- ExternalServiceTimeout: AI call exceeded its time budget after the retry
- ExternalServiceError: any other AI failure (transport, HTTP status, empty reply)
- CacheStoreError: the ingredient dictionary could not be read or written
"""


class IngredientResolutionError(Exception):
    """Base class for all resolution errors"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(IngredientResolutionError):
    """Raised for empty or oversized input"""
    pass


class AIResponseValidationError(ValidationError):
    """Raised when the AI returned unparseable or out-of-enum data"""

    def __init__(self, message: str, raw_response: str = ""):
        self.raw_response = raw_response
        super().__init__(message)


class ExternalServiceTimeout(IngredientResolutionError):
    """Raised when every AI attempt ran past its deadline"""

    def __init__(self, attempts: int, timeout_seconds: float):
        self.attempts = attempts
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"AI service timed out after {attempts} attempt(s) of {timeout_seconds}s each"
        )


class ExternalServiceError(IngredientResolutionError):
    """Raised for non-timeout AI failures"""
    pass


class CacheStoreError(IngredientResolutionError):
    """Raised when the ingredient dictionary is unreachable"""
    pass


# Failures the FALLBACK policy may convert into a degraded result.
AI_FAILURES = (ExternalServiceTimeout, ExternalServiceError, AIResponseValidationError)
