"""Failure taxonomy for model-driven generation.

Three families:
- GeneratorError: the backend could not produce text (never retried by default)
- ParseError: the model answered, but not with something we can read (retried)
- GenerationExhausted: a bounded retry budget ran out (terminal)
"""

from typing import List, Optional


class GeneratorError(Exception):
    """Base class for failures reported by a Generator backend."""

    kind = "backend-error"


class NoConnectivityError(GeneratorError):
    """The backend could not be reached."""

    kind = "no-connectivity"


class GeneratorTimeoutError(GeneratorError):
    """The backend did not answer in time."""

    kind = "timeout"


class InvalidCredentialsError(GeneratorError):
    """The backend rejected the API key."""

    kind = "invalid-credentials"


class QuotaExhaustedError(GeneratorError):
    """Billing or quota prevents further requests."""

    kind = "quota-exhausted"


class RateLimitedError(GeneratorError):
    """Too many requests were sent to the backend."""

    kind = "rate-limited"


class BackendError(GeneratorError):
    """Any other backend failure, with a human-readable detail."""

    kind = "backend-error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class GenerationCancelled(GeneratorError):
    """The caller cancelled the generation before the backend answered."""

    kind = "cancelled"


class ParseError(ValueError):
    """Model output could not be turned into the expected structure."""

    kind = "parse-error"


class NoJsonObjectFound(ParseError):
    """No `{...}` span could be located in the model output."""

    kind = "no-json-object-found"


class GenerationExhausted(Exception):
    """A bounded retry budget was used up without a valid result."""

    kind = "generation-exhausted"

    def __init__(
        self,
        task: str,
        attempts: int,
        last_response: Optional[str] = None,
        reasons: Optional[List[str]] = None,
    ):
        self.task = task
        self.attempts = attempts
        self.last_response = last_response
        self.reasons = list(reasons or [])
        message = f"{task}: no valid result after {attempts} attempt(s)"
        if self.reasons:
            message += f" (last rejection: {'; '.join(self.reasons)})"
        super().__init__(message)
