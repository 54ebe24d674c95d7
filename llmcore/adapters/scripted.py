"""Scripted generator: replays canned replies. Used by tests and offline demos."""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union

import yaml

from llmcore.errors import BackendError
from llmcore.generator import CancellationToken, Generator, check_generate_args

logger = logging.getLogger(__name__)

Reply = Union[str, BaseException]


@dataclass
class GeneratorCall:
    system_prompt: str
    user_prompt: str
    max_tokens: int


class ScriptedGenerator(Generator):
    """Returns queued replies in order; queued exceptions are raised instead.

    With ``repeat_last=True`` the final reply is served forever once the
    queue runs dry, otherwise running out raises BackendError.
    """

    def __init__(self, replies: Iterable[Reply] = (), repeat_last: bool = False):
        self._replies: List[Reply] = list(replies)
        self.repeat_last = repeat_last
        self.calls: List[GeneratorCall] = []
        self._lock = threading.Lock()

    @classmethod
    def from_yaml(cls, path: Path) -> "ScriptedGenerator":
        """Load replies from a YAML file with a top-level ``replies`` list."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        replies = data.get("replies", [])
        if not isinstance(replies, list) or not all(isinstance(r, str) for r in replies):
            raise ValueError(f"{path}: 'replies' must be a list of strings")
        return cls(replies, repeat_last=bool(data.get("repeat_last", False)))

    def queue(self, *replies: Reply) -> None:
        self._replies.extend(replies)

    @property
    def remaining(self) -> int:
        return len(self._replies)

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

        with self._lock:
            self.calls.append(GeneratorCall(system_prompt, user_prompt, max_tokens))

            if not self._replies:
                raise BackendError("Scripted generator has no replies left")
            if len(self._replies) == 1 and self.repeat_last:
                reply = self._replies[0]
            else:
                reply = self._replies.pop(0)

        if isinstance(reply, BaseException):
            raise reply
        logger.debug(f"Scripted reply #{len(self.calls)}: {reply[:80]!r}")
        return reply
