"""Constrained generation loop.

Turns a nondeterministic Generator into a source of domain-valid values:

    Prompting -> Extracting -> Parsing -> Validating -> Success
                                                     -> Retry -> Prompting
                                                     -> Failure (bounded budgets only)

Each attempt produces an explicit result - ``Accepted``, ``RetryableFailure``
or ``FatalFailure`` - and a task's ``FailurePolicy`` decides which bucket an
exception falls into. Nothing here holds state between calls.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Generic, List, Optional, Tuple, Type, TypeVar, Union

from llmcore.errors import GenerationCancelled, GenerationExhausted, GeneratorError, ParseError
from llmcore.extraction import extract_json_object
from llmcore.generator import CancellationToken, Generator

logger = logging.getLogger(__name__)

T = TypeVar("T")

STAGE_GENERATE = "generate"
STAGE_EXTRACT = "extract"
STAGE_PARSE = "parse"
STAGE_VALIDATE = "validate"


@dataclass
class Rejection:
    """One rejected attempt, as surfaced to ``RetryPolicy.on_rejected``."""

    task: str
    attempt: int
    stage: str
    reasons: List[str]
    response: str
    previous_response: Optional[str] = None


@dataclass
class RetryPolicy:
    """How many attempts a task gets, and who hears about rejections.

    ``max_attempts=None`` means unbounded: the loop only ends on success or on a
    fatal error.
    """

    max_attempts: Optional[int] = None
    on_rejected: Optional[Callable[[Rejection], None]] = None

    def __post_init__(self):
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1 or None for unbounded")

    @classmethod
    def unbounded(cls, on_rejected: Optional[Callable[[Rejection], None]] = None) -> "RetryPolicy":
        return cls(max_attempts=None, on_rejected=on_rejected)

    @classmethod
    def bounded(
        cls, max_attempts: int, on_rejected: Optional[Callable[[Rejection], None]] = None
    ) -> "RetryPolicy":
        return cls(max_attempts=max_attempts, on_rejected=on_rejected)

    @property
    def is_bounded(self) -> bool:
        return self.max_attempts is not None

    def exhausted(self, attempts: int) -> bool:
        return self.max_attempts is not None and attempts >= self.max_attempts


@dataclass(frozen=True)
class FailurePolicy:
    """Declares which exceptions count as "try again" for a task.

    Exceptions raised while parsing or validating are retried when they are
    instances of ``retryable``. Generator failures are fatal unless
    ``retry_generator_errors`` is set.
    """

    retryable: Tuple[Type[BaseException], ...] = (ParseError,)
    retry_generator_errors: bool = False

    @classmethod
    def narrow(cls) -> "FailurePolicy":
        """Only declared parse failures are retried."""
        return cls(retryable=(ParseError,))

    @classmethod
    def broad(cls, retry_generator_errors: bool = False) -> "FailurePolicy":
        """Any exception raised while parsing or validating is retried."""
        return cls(retryable=(Exception,), retry_generator_errors=retry_generator_errors)

    def is_retryable(self, error: BaseException) -> bool:
        if isinstance(error, GenerationCancelled):
            return False
        if isinstance(error, GeneratorError):
            return self.retry_generator_errors
        return isinstance(error, self.retryable)


@dataclass
class GenerationTask(Generic[T]):
    """Everything the loop needs to know about one kind of generation.

    Attributes:
        name: Short label used in logs and errors.
        system_prompt: Fixed system prompt for every attempt.
        build_prompt: Builds the user prompt; receives the last rejected raw
            response (None on the first attempt).
        parse: Turns the extracted JSON span into a candidate. May raise
            ``ParseError``.
        validate: Returns a list of diagnostics, one per failed check. An empty
            list means the candidate is valid.
        failures: Retry/fatal classification for exceptions.
        max_tokens: Token limit passed to the Generator.
    """

    name: str
    system_prompt: str
    build_prompt: Callable[[Optional[str]], str]
    parse: Callable[[str], T]
    validate: Callable[[T], List[str]]
    failures: FailurePolicy = field(default_factory=FailurePolicy.narrow)
    max_tokens: int = 256


@dataclass
class Accepted(Generic[T]):
    value: T
    response: str


@dataclass
class RetryableFailure:
    rejection: Rejection


@dataclass
class FatalFailure:
    error: BaseException


AttemptResult = Union[Accepted, RetryableFailure, FatalFailure]


def run_attempt(
    generator: Generator,
    task: GenerationTask,
    attempt: int,
    last_rejected: Optional[str] = None,
    cancel: Optional[CancellationToken] = None,
) -> AttemptResult:
    """Run a single prompt -> extract -> parse -> validate pass."""

    def _reject(stage: str, reasons: List[str], response: str) -> RetryableFailure:
        return RetryableFailure(
            Rejection(
                task=task.name,
                attempt=attempt,
                stage=stage,
                reasons=reasons,
                response=response,
                previous_response=last_rejected,
            )
        )

    logger.debug(f"[{task.name}] attempt {attempt}: prompting")
    user_prompt = task.build_prompt(last_rejected)
    try:
        response = generator.generate(task.system_prompt, user_prompt, task.max_tokens, cancel)
    except GeneratorError as e:
        if task.failures.is_retryable(e):
            return _reject(STAGE_GENERATE, [f"{e.kind}: {e}"], "")
        return FatalFailure(e)

    response = response or ""

    logger.debug(f"[{task.name}] attempt {attempt}: extracting")
    try:
        span = extract_json_object(response)
    except ParseError as e:
        return _reject(STAGE_EXTRACT, [str(e)], response)

    logger.debug(f"[{task.name}] attempt {attempt}: parsing")
    try:
        candidate = task.parse(span)
    except Exception as e:
        if task.failures.is_retryable(e):
            return _reject(STAGE_PARSE, [f"Failed to parse response: {e}"], response)
        return FatalFailure(e)

    logger.debug(f"[{task.name}] attempt {attempt}: validating")
    try:
        reasons = task.validate(candidate)
    except Exception as e:
        if task.failures.is_retryable(e):
            return _reject(STAGE_VALIDATE, [f"Validation raised: {e}"], response)
        return FatalFailure(e)

    if reasons:
        return _reject(STAGE_VALIDATE, list(reasons), response)
    return Accepted(candidate, response)


def generate_validated(
    generator: Generator,
    task: GenerationTask[T],
    policy: Optional[RetryPolicy] = None,
    cancel: Optional[CancellationToken] = None,
) -> T:
    """Prompt the generator until a candidate parses and validates.

    Raises:
        GeneratorError: Backend failure the task does not retry.
        GenerationExhausted: The bounded budget ran out.
    """
    policy = policy or RetryPolicy.unbounded()
    attempt = 0
    last_rejected: Optional[str] = None
    last_rejection: Optional[Rejection] = None

    while True:
        attempt += 1
        result = run_attempt(generator, task, attempt, last_rejected, cancel)

        if isinstance(result, Accepted):
            suffix = f" (after {attempt} attempts)" if attempt > 1 else ""
            logger.info(f"[{task.name}] accepted result{suffix}")
            return result.value

        if isinstance(result, FatalFailure):
            logger.error(f"[{task.name}] attempt {attempt} failed fatally: {result.error}")
            raise result.error

        last_rejection = result.rejection
        logger.warning(
            f"[{task.name}] attempt {attempt} rejected at {last_rejection.stage}: "
            f"{'; '.join(last_rejection.reasons)}, regenerating..."
        )
        if policy.on_rejected is not None:
            policy.on_rejected(last_rejection)
        if last_rejection.response:
            last_rejected = last_rejection.response

        if policy.exhausted(attempt):
            raise GenerationExhausted(
                task.name,
                attempt,
                last_response=last_rejection.response or last_rejected,
                reasons=last_rejection.reasons,
            )
