"""Narrative reactions to a revealed card."""

import logging
from typing import Any, Dict, Optional

from llmcore.errors import ParseError
from llmcore.extraction import loads_lenient
from llmcore.generator import CancellationToken, Generator
from llmcore.loop import FailurePolicy, GenerationTask, RetryPolicy, generate_validated

from tajniacy.cards import Card, Team
from tajniacy.hint import Hint
from tajniacy.prompt_manager import PromptProvider

logger = logging.getLogger(__name__)

REACTION_MAX_ATTEMPTS = 5


def is_proper_guess(active_team: Team, picked_card: Card) -> bool:
    """True when the picked card belongs to the team whose turn it is."""
    return Team.parse(active_team) == picked_card.team


def parse_reaction(text: str) -> Dict[str, Any]:
    """Turn a reaction span returned by ReactionGenerator into a dict."""
    data = loads_lenient(text)
    if not isinstance(data, dict):
        raise ParseError("Reaction must be a JSON object")
    return data


def _check_reaction(span: str) -> list:
    if not span.strip():
        return ["Generated reaction is empty"]
    return []


class ReactionGenerator:
    """Produces a short in-character reaction after a card is picked.

    Returns the trimmed raw JSON span; structural parsing is left to the
    caller (see ``parse_reaction``). The default budget is five attempts, after
    which ``GenerationExhausted`` is raised.
    """

    PROMPT_NORMAL = "reaction-normal"
    PROMPT_ALT = "reaction-alt"

    def __init__(
        self,
        generator: Generator,
        prompts: PromptProvider,
        policy: Optional[RetryPolicy] = None,
        max_tokens: int = 256,
    ):
        self.generator = generator
        self.prompts = {
            False: prompts.get(self.PROMPT_NORMAL),
            True: prompts.get(self.PROMPT_ALT),
        }
        self.policy = policy or RetryPolicy.bounded(REACTION_MAX_ATTEMPTS)
        self.max_tokens = max_tokens

    @staticmethod
    def build_user_prompt(hint: Hint, picked_card: Card, active_team: Team) -> str:
        proper = "true" if is_proper_guess(active_team, picked_card) else "false"
        return (
            f"_pickedCard = {picked_card.to_json()}\n"
            f"_givenHint = {hint.to_json()}\n"
            f"_properGuess = {proper}"
        )

    def generate(
        self,
        hint: Hint,
        picked_card: Card,
        active_team: Team,
        alternate_persona: bool = False,
        cancel: Optional[CancellationToken] = None,
    ) -> str:
        user_prompt = self.build_user_prompt(hint, picked_card, active_team)

        task = GenerationTask(
            name="reaction-alt" if alternate_persona else "reaction",
            system_prompt=self.prompts[bool(alternate_persona)],
            build_prompt=lambda _last_rejected: user_prompt,
            parse=str.strip,
            validate=_check_reaction,
            failures=FailurePolicy.narrow(),
            max_tokens=self.max_tokens,
        )
        return generate_validated(self.generator, task, self.policy, cancel)
