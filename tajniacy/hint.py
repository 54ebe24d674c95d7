"""Hints: the value object, its validity rules and the hint generation flow."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from llmcore.errors import ParseError
from llmcore.extraction import extract_json_object, get_ci, loads_lenient
from llmcore.generator import CancellationToken, Generator
from llmcore.loop import FailurePolicy, GenerationTask, RetryPolicy, generate_validated

from tajniacy.cards import Card, Deck, Team
from tajniacy.prompt_manager import PromptProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Hint:
    """A hint word, the cards it points at, and how many cards it covers."""

    word: str
    cards: Optional[Tuple[Card, ...]] = None
    similar_count: int = 0

    def __post_init__(self):
        if self.cards is not None:
            object.__setattr__(self, "cards", tuple(self.cards))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Word": self.word,
            "NOSW": self.similar_count,
            "Cards": [card.to_dict() for card in self.cards] if self.cards is not None else None,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Hint":
        if not isinstance(data, Mapping):
            raise ParseError(f"Hint must be a JSON object, got {type(data).__name__}")

        word = get_ci(data, "Word")
        if word is None:
            word = ""
        if not isinstance(word, str):
            raise ParseError("Hint 'Word' must be a string")

        count = get_ci(data, "NOSW", 0)
        if isinstance(count, bool):
            raise ParseError("Hint 'NOSW' must be an integer")
        try:
            count = int(count) if count is not None else 0
        except (TypeError, ValueError, OverflowError) as e:
            raise ParseError(f"Hint 'NOSW' must be an integer: {e}") from e

        raw_cards = get_ci(data, "Cards")
        if raw_cards is not None and not isinstance(raw_cards, list):
            raise ParseError("Hint 'Cards' must be a list or null")
        cards = tuple(Card.from_dict(c) for c in raw_cards) if raw_cards is not None else None

        return cls(word=word, cards=cards, similar_count=count)

    @classmethod
    def from_json(cls, text: str) -> "Hint":
        """Deserialize a hint from possibly noisy model output."""
        if text is None or not text.strip():
            raise ParseError("Input is null or whitespace")
        return cls.from_dict(loads_lenient(extract_json_object(text)))

    def __str__(self) -> str:
        return f"{self.word} | {self.similar_count}"


class HintHistory:
    """Append-only record of hint words used in a game. Membership ignores case."""

    def __init__(self, words: Iterable[str] = ()):
        self._words: List[str] = []
        for word in words:
            self.add(word)

    def add(self, word: str) -> None:
        if not isinstance(word, str) or not word.strip():
            raise ValueError("Hint word must be a non-empty string")
        self._words.append(word)

    def __contains__(self, word: object) -> bool:
        if not isinstance(word, str):
            return False
        lowered = word.lower()
        return any(w.lower() == lowered for w in self._words)

    def __iter__(self) -> Iterator[str]:
        return iter(self._words)

    def __len__(self) -> int:
        return len(self._words)

    def to_list(self) -> List[str]:
        return list(self._words)


def check_hint(hint: Hint, deck: Deck, team: Team, previous_hints: Iterable[str] = ()) -> List[str]:
    """Return one diagnostic per failed rule; an empty list means the hint is valid.

    Rules:
    - the word is not empty
    - the word is not a card on the board (case-insensitive)
    - every listed card is on the board (case-insensitive) and belongs to ``team``
    - the word was not used as a hint before in this game (case-insensitive)
    """
    problems = []
    word = (hint.word or "").strip()

    if not word:
        problems.append("Generated hint is empty")
    elif deck.contains_word(word, case_sensitive=False):
        problems.append(f"Generated hint '{word}' is already in deck")

    if hint.cards:
        missing = [c.word for c in hint.cards if not deck.contains_word(c.word, case_sensitive=False)]
        if missing:
            problems.append(f"Generated hint contains cards that are not in the deck: {', '.join(missing)}")

        wrong_team = []
        for c in hint.cards:
            on_board = deck.find(c.word, case_sensitive=False)
            if c.team != team or (on_board is not None and on_board.team != team):
                wrong_team.append(c.word)
        if wrong_team:
            problems.append(
                f"Generated hint has cards that do not belong to {team.value}: {', '.join(wrong_team)}"
            )

    if word:
        lowered = word.lower()
        if any(isinstance(p, str) and p.lower() == lowered for p in previous_hints):
            problems.append(f"Generated hint '{word}' already exists in previous hints")

    return problems


class HintGenerator:
    """Asks the model for a hint until one passes ``check_hint``.

    The default retry policy is unbounded. Only parse failures are retried;
    backend failures end the call.
    """

    PROMPT_NAME = "hint"

    def __init__(
        self,
        generator: Generator,
        prompts: PromptProvider,
        policy: Optional[RetryPolicy] = None,
        max_tokens: int = 256,
    ):
        self.generator = generator
        self.system_prompt = prompts.get(self.PROMPT_NAME)
        self.policy = policy or RetryPolicy.unbounded()
        self.max_tokens = max_tokens

    @staticmethod
    def build_user_prompt(
        deck: Deck,
        team: Team,
        previous_hints: Sequence[str],
        last_rejected: Optional[str] = None,
    ) -> str:
        return (
            f"_currentTeam = {team.value}\n"
            f"_deck = {deck.to_json()}\n"
            f"_previousHints = {json.dumps(list(previous_hints), ensure_ascii=False)}\n"
            f"_lastRejectedHint = {last_rejected or ''}\n"
        )

    def generate(
        self,
        deck: Deck,
        team: Team,
        previous_hints: Iterable[str] = (),
        cancel: Optional[CancellationToken] = None,
    ) -> Hint:
        """Generate a valid hint for ``team`` on ``deck``."""
        history = list(previous_hints)

        task = GenerationTask(
            name="hint",
            system_prompt=self.system_prompt,
            build_prompt=lambda last_rejected: self.build_user_prompt(deck, team, history, last_rejected),
            parse=Hint.from_json,
            validate=lambda hint: check_hint(hint, deck, team, history),
            failures=FailurePolicy.narrow(),
            max_tokens=self.max_tokens,
        )

        logger.info(f"Generating hint for {team.value}...")
        hint = generate_validated(self.generator, task, self.policy, cancel)
        logger.info(f"Hint for {team.value}: '{hint}'")
        return hint
