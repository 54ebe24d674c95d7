"""Local model backend served by Ollama."""

import logging
from typing import Optional

import requests

from llmcore.adapters.chat_adapter import raise_for_api_error
from llmcore.errors import BackendError, GeneratorTimeoutError, NoConnectivityError
from llmcore.generator import CancellationToken, Generator, check_generate_args

logger = logging.getLogger(__name__)


class OllamaAdapter(Generator):
    """Generator calling a local Ollama server's /api/generate endpoint."""

    def __init__(
        self,
        endpoint: str = "http://localhost:11434/api/generate",
        model: str = "llama3.1",
        timeout: float = 600,
    ):
        self.endpoint = endpoint
        self.model = model
        self.timeout = timeout

    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 256,
        cancel: Optional[CancellationToken] = None,
    ) -> str:
        check_generate_args(system_prompt, user_prompt, max_tokens)
        if cancel is not None:
            cancel.raise_if_cancelled()

        payload = {
            "model": self.model,
            "system": system_prompt,
            "prompt": user_prompt,
            "stream": False,
            "options": {"num_predict": max_tokens},
        }
        try:
            response = requests.post(self.endpoint, json=payload, timeout=self.timeout)
        except requests.Timeout as e:
            raise GeneratorTimeoutError(f"Local model at {self.endpoint} timed out") from e
        except requests.ConnectionError as e:
            raise NoConnectivityError(f"Cannot reach local model at {self.endpoint}. Is Ollama running?") from e
        except requests.RequestException as e:
            raise BackendError(f"Request to {self.endpoint} failed: {e}") from e

        raise_for_api_error(response, backend=self.endpoint)

        try:
            output = response.json().get("response", "")
        except ValueError as e:
            raise BackendError(f"Local model returned invalid JSON: {response.text[:500]}") from e

        logger.debug(f"Local model {self.model} returned {len(output)} characters")
        if cancel is not None:
            cancel.raise_if_cancelled()
        return output or ""
