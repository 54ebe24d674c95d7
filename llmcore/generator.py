"""Generator contract: send a system and user prompt, get text back."""

import threading
from abc import ABC, abstractmethod
from typing import Optional

from llmcore.errors import GenerationCancelled


class CancellationToken:
    """Cooperative cancellation flag shared between a caller and a Generator call.

    The generation loop never inspects it; it is handed to the backend, which
    checks it before (and, where it can, while) talking to the model.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise GenerationCancelled("Generation was cancelled by the caller")


class Generator(ABC):
    """Abstract text-generation backend.

    Implementations must not retry internally; retry policy belongs to the
    generation loop. Failures are reported as ``GeneratorError`` subclasses.
    """

    @abstractmethod
    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 256,
        cancel: Optional[CancellationToken] = None,
    ) -> str:
        """Return the model's reply to the given prompts."""
        pass


def check_generate_args(system_prompt: str, user_prompt: str, max_tokens: int) -> None:
    """Argument validation shared by all backends."""
    if system_prompt is None:
        raise TypeError("system_prompt must not be None")
    if user_prompt is None:
        raise TypeError("user_prompt must not be None")
    if max_tokens <= 0:
        raise ValueError("max_tokens must be > 0")
