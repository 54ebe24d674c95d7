"""Tajniacy LLM core - shared infrastructure for model-driven generation.

This package is game-agnostic. It contains:
- generator: the text-generation contract and cancellation token
- errors: backend failures, parse failures and budget exhaustion
- extraction: JSON-object extraction from noisy model replies
- loop: the prompt -> extract -> parse -> validate -> retry engine
- adapters: HTTP, local and scripted generator backends
- config: backend configuration loaded from YAML
"""

from llmcore.errors import (
    BackendError,
    GenerationCancelled,
    GenerationExhausted,
    GeneratorError,
    GeneratorTimeoutError,
    InvalidCredentialsError,
    NoConnectivityError,
    NoJsonObjectFound,
    ParseError,
    QuotaExhaustedError,
    RateLimitedError,
)
from llmcore.extraction import extract_json_object, loads_lenient
from llmcore.generator import CancellationToken, Generator
from llmcore.loop import (
    FailurePolicy,
    GenerationTask,
    Rejection,
    RetryPolicy,
    generate_validated,
)

__version__ = "0.1.0"

__all__ = [
    "BackendError",
    "CancellationToken",
    "FailurePolicy",
    "GenerationCancelled",
    "GenerationExhausted",
    "GenerationTask",
    "Generator",
    "GeneratorError",
    "GeneratorTimeoutError",
    "InvalidCredentialsError",
    "NoConnectivityError",
    "NoJsonObjectFound",
    "ParseError",
    "QuotaExhaustedError",
    "RateLimitedError",
    "Rejection",
    "RetryPolicy",
    "extract_json_object",
    "generate_validated",
    "loads_lenient",
]
