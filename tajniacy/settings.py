"""Game settings loaded from game.yml."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

import yaml

from llmcore.loop import Rejection, RetryPolicy

logger = logging.getLogger(__name__)

FLOWS = ("hint", "pick", "reaction")


@dataclass
class GameSettings:
    max_tokens: int = 256
    hint_max_attempts: Optional[int] = None
    pick_max_attempts: Optional[int] = None
    reaction_max_attempts: Optional[int] = 5

    def __post_init__(self):
        if self.max_tokens <= 0:
            raise ValueError("max_tokens must be positive")
        for flow in FLOWS:
            value = getattr(self, f"{flow}_max_attempts")
            if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value < 1):
                raise ValueError(f"{flow}_max_attempts must be a positive integer or null")

    def policy_for(
        self, flow: str, on_rejected: Optional[Callable[[Rejection], None]] = None
    ) -> RetryPolicy:
        """Build the RetryPolicy for ``hint``, ``pick`` or ``reaction``."""
        if flow not in FLOWS:
            raise ValueError(f"Unknown flow '{flow}'. Expected one of: {', '.join(FLOWS)}")
        return RetryPolicy(max_attempts=getattr(self, f"{flow}_max_attempts"), on_rejected=on_rejected)


def load_game_settings(path: Optional[Union[str, Path]] = None) -> GameSettings:
    """Load settings; the packaged defaults apply when the file is absent."""
    path = Path(path) if path is not None else Path(__file__).parent / "inputs" / "game.yml"
    if not path.exists():
        logger.debug(f"No game settings at {path}, using defaults")
        return GameSettings()

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Game settings {path} must be a mapping")

    known = {k: v for k, v in data.items() if k in GameSettings.__dataclass_fields__}
    unknown = set(data) - set(known)
    if unknown:
        logger.warning(f"Ignoring unknown game settings: {', '.join(sorted(unknown))}")
    return GameSettings(**known)
