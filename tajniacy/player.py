"""LLM player: picks a card from the board for a given hint."""

import logging
from typing import List, Optional

from llmcore.errors import ParseError
from llmcore.extraction import get_ci, loads_lenient
from llmcore.generator import CancellationToken, Generator
from llmcore.loop import FailurePolicy, GenerationTask, RetryPolicy, generate_validated

from tajniacy.cards import Card, Deck
from tajniacy.hint import Hint
from tajniacy.prompt_manager import PromptProvider

logger = logging.getLogger(__name__)


def parse_pick(span: str) -> str:
    """Read the chosen word from a card-shaped reply (``{"Word": ...}``)."""
    data = loads_lenient(span)
    if not isinstance(data, dict):
        raise ParseError("Chosen card must be a JSON object")
    word = get_ci(data, "Word")
    if not isinstance(word, str) or not word.strip():
        raise ParseError("Chosen card has no 'Word'")
    return word


class LLMPlayer:
    """AI guesser using a Generator backend.

    Unlike hint generation, any exception raised while reading or checking
    the model's choice is treated as "ask again", not only declared parse
    failures. Backend failures still end the call unless
    ``retry_generator_errors`` is set.
    """

    PROMPT_NAME = "card-pick"

    def __init__(
        self,
        generator: Generator,
        prompts: PromptProvider,
        policy: Optional[RetryPolicy] = None,
        max_tokens: int = 256,
        retry_generator_errors: bool = False,
    ):
        self.generator = generator
        self.system_prompt = prompts.get(self.PROMPT_NAME)
        self.policy = policy or RetryPolicy.unbounded()
        self.max_tokens = max_tokens
        self.failures = FailurePolicy.broad(retry_generator_errors=retry_generator_errors)

    @staticmethod
    def build_user_prompt(deck: Deck, hint: Hint) -> str:
        return f"_deck = {deck.to_json()}\n_hint = {hint}\n"

    def pick_card(self, deck: Deck, hint: Hint, cancel: Optional[CancellationToken] = None) -> Card:
        """Ask the model for a card; the word must match a deck word exactly."""
        user_prompt = self.build_user_prompt(deck, hint)

        def _check(word: str) -> List[str]:
            if not deck.contains_word(word, case_sensitive=True):
                return [f"Chosen card '{word}' is not in deck"]
            return []

        task = GenerationTask(
            name="card-pick",
            system_prompt=self.system_prompt,
            build_prompt=lambda _last_rejected: user_prompt,
            parse=parse_pick,
            validate=_check,
            failures=self.failures,
            max_tokens=self.max_tokens,
        )

        word = generate_validated(self.generator, task, self.policy, cancel)
        card = deck.find(word, case_sensitive=True)
        logger.info(f"AI Player picked '{card.word}' ({card.team.value}) for hint '{hint}'")
        return card
