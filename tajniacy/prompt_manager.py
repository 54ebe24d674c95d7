"""System prompt templates, looked up by logical name."""

import logging
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol

logger = logging.getLogger(__name__)

PROMPT_NAMES = ("hint", "reaction-normal", "reaction-alt", "card-pick")


class PromptNotFoundError(LookupError):
    """A flow asked for a template that does not exist. Configuration error, never retried."""


class PromptProvider(Protocol):
    def get(self, name: str) -> str:
        ...


class PromptManager:
    """Loads ``<name>.md`` templates from a directory, with optional in-memory overrides."""

    def __init__(self, prompts_dir: Optional[Path] = None, templates: Optional[Mapping[str, str]] = None):
        self.prompts_dir = Path(prompts_dir) if prompts_dir is not None else Path(__file__).parent / "prompts"
        self._cache: Dict[str, str] = dict(templates or {})

    def get(self, name: str) -> str:
        if name in self._cache:
            return self._cache[name]

        path = self.prompts_dir / f"{name}.md"
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise PromptNotFoundError(f"Prompt template '{name}' not found at {path}") from None

        logger.debug(f"Loaded prompt '{name}' from {path} ({len(text)} chars)")
        self._cache[name] = text
        return text

    def require(self, *names: str) -> None:
        """Resolve every named template up front; raise on the first missing one."""
        for name in names or PROMPT_NAMES:
            self.get(name)
