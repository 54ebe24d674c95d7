"""Chat-completions adapter for OpenAI-compatible APIs (DeepSeek, OpenRouter).

One HTTP request per call, never retried here. Transport failures are
reported as GeneratorError subclasses.
"""

import logging
import time
from typing import Any, Dict, Optional, Tuple

import requests

from llmcore.errors import (
    BackendError,
    GeneratorTimeoutError,
    InvalidCredentialsError,
    NoConnectivityError,
    QuotaExhaustedError,
    RateLimitedError,
)
from llmcore.generator import CancellationToken, Generator, check_generate_args

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.deepseek.com/v1/chat/completions"
DEFAULT_MODEL = "deepseek-chat"


def raise_for_api_error(response: requests.Response, backend: str = "API") -> None:
    """Map a non-2xx response to the matching GeneratorError."""
    if response.ok:
        return

    status = response.status_code
    body = response.text

    if status == 401:
        raise InvalidCredentialsError(f"{backend} rejected the API key")
    if status in (402, 403):
        raise QuotaExhaustedError(f"{backend} refused the request: quota or billing ({status})")
    if status == 429:
        raise RateLimitedError(f"{backend} rate limit exceeded")
    if status == 400:
        raise BackendError(f"Bad request sent to {backend}: {body}")
    raise BackendError(f"{backend} error ({status}): {body}")


class ChatCompletionsAdapter(Generator):
    """Generator backed by a chat-completions HTTP endpoint."""

    def __init__(
        self,
        api_key: str,
        endpoint: str = DEFAULT_ENDPOINT,
        model: str = DEFAULT_MODEL,
        timeout: float = 120,
        extra_headers: Optional[Dict[str, str]] = None,
        temperature: Optional[float] = None,
    ):
        if not endpoint or not endpoint.strip():
            raise ValueError("endpoint must not be empty")
        if not api_key or not api_key.strip():
            raise ValueError("api_key must not be empty")

        self.endpoint = endpoint
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self._session = requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )
        if extra_headers:
            self._session.headers.update(extra_headers)
        self._last_call_metadata: Optional[Dict[str, Any]] = None

        logger.info(f"Created chat adapter for model {model} at {endpoint}")

    def get_last_call_metadata(self) -> Optional[Dict[str, Any]]:
        """Get metadata from the last call."""
        return self._last_call_metadata

    def _build_payload(self, system_prompt: str, user_prompt: str, max_tokens: int) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": max_tokens,
        }
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        return payload

    def _post(self, payload: Dict[str, Any]) -> requests.Response:
        try:
            return self._session.post(self.endpoint, json=payload, timeout=self.timeout)
        except requests.Timeout as e:
            raise GeneratorTimeoutError(f"Request to {self.endpoint} timed out") from e
        except requests.ConnectionError as e:
            raise NoConnectivityError(
                f"Cannot reach {self.endpoint}. Check internet connection."
            ) from e
        except requests.RequestException as e:
            raise BackendError(f"Request to {self.endpoint} failed: {e}") from e

    def _extract_content(self, response: requests.Response) -> Tuple[str, Dict[str, Any]]:
        try:
            data = response.json()
            choices = data["choices"]
            if not choices:
                raise BackendError("API returned no choices")
            content = choices[0]["message"].get("content")
        except BackendError:
            raise
        except (ValueError, KeyError, TypeError, IndexError) as e:
            raise BackendError(
                f"Failed to parse API response: {e}. Raw response: {response.text[:500]}"
            ) from e

        usage = data.get("usage", {}) or {}
        if not content and usage.get("completion_tokens", 0) > 0:
            logger.warning(
                f"Model generated {usage.get('completion_tokens')} tokens but content is empty "
                f"(finish_reason: {choices[0].get('finish_reason')})"
            )
        return content or "", usage

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

        logger.debug(f"Calling model {self.model} with prompt length: {len(system_prompt) + len(user_prompt)}")
        start_time = time.time()

        response = self._post(self._build_payload(system_prompt, user_prompt, max_tokens))
        raise_for_api_error(response, backend=self.endpoint)
        content, usage = self._extract_content(response)

        latency_ms = (time.time() - start_time) * 1000
        self._last_call_metadata = {
            "model_id": self.model,
            "latency_ms": latency_ms,
            "input_tokens": usage.get("prompt_tokens", 0),
            "output_tokens": usage.get("completion_tokens", 0),
            "total_tokens": usage.get("total_tokens", 0),
        }
        logger.info(
            f"Model call completed. Tokens: {self._last_call_metadata['total_tokens']}, "
            f"Latency: {latency_ms:.1f}ms"
        )

        if cancel is not None:
            cancel.raise_if_cancelled()
        return content
