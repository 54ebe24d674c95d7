"""Board value objects: Team, Card and Deck."""

import json
import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from llmcore.errors import ParseError
from llmcore.extraction import get_ci, loads_lenient

logger = logging.getLogger(__name__)


class Team(Enum):
    """Card affiliation. Closed set."""

    BLUE = "Blue"
    RED = "Red"
    NEUTRAL = "Neutral"
    ASSASSIN = "Assassin"

    @classmethod
    def parse(cls, value: Union["Team", str, int]) -> "Team":
        """Accept a Team, a name in any case, or the numeric ordinal (0-3)."""
        if isinstance(value, Team):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid team: {value!r}")
        if isinstance(value, int):
            members = list(cls)
            if 0 <= value < len(members):
                return members[value]
            raise ValueError(f"Invalid team ordinal: {value}")
        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return cls.parse(int(text))
            for member in cls:
                if member.value.lower() == text.lower():
                    return member
        raise ValueError(f"Invalid team: {value!r}")

    @property
    def camel(self) -> str:
        return self.value.lower()

    def opponent(self) -> "Team":
        if self is Team.BLUE:
            return Team.RED
        if self is Team.RED:
            return Team.BLUE
        raise ValueError(f"{self.value} has no opponent")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Card:
    """One word tile. Equal (and hashed) by word and team; the vector is ignored."""

    word: str
    team: Team
    vector: Optional[Tuple[float, ...]] = field(default=None, compare=False, hash=False)

    def __post_init__(self):
        if not isinstance(self.word, str) or not self.word.strip():
            raise ValueError("Card word must be a non-empty string")
        object.__setattr__(self, "team", Team.parse(self.team))
        if self.vector is not None:
            object.__setattr__(self, "vector", tuple(float(x) for x in self.vector))

    def to_dict(self, camel_case: bool = False) -> Dict[str, Any]:
        """Serialize to a dict. PascalCase for hints, camelCase inside decks."""
        vector = list(self.vector) if self.vector is not None else None
        if camel_case:
            return {"word": self.word, "vector": vector, "team": self.team.camel}
        return {"Word": self.word, "Vector": vector, "Team": self.team.value}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Card":
        """Build a card from either naming convention. Property names are case-insensitive."""
        if not isinstance(data, Mapping):
            raise ParseError(f"Card must be a JSON object, got {type(data).__name__}")

        word = get_ci(data, "Word")
        team = get_ci(data, "Team")
        vector = get_ci(data, "Vector")
        if team is None:
            raise ParseError("Card is missing 'Team'")
        if vector is not None and not isinstance(vector, list):
            raise ParseError("Card 'Vector' must be a list of numbers or null")

        try:
            return cls(word=word, team=Team.parse(team), vector=vector)
        except (ValueError, TypeError, OverflowError) as e:
            raise ParseError(f"Invalid card: {e}") from e

    @classmethod
    def from_json(cls, text: str) -> "Card":
        return cls.from_dict(loads_lenient(text))

    def __str__(self) -> str:
        return f"Word: {self.word}\nTeam: {self.team.value}"


Vocabulary = Union[Mapping[str, Optional[Sequence[float]]], Iterable[str]]


@dataclass(frozen=True)
class Deck:
    """The 25-card board of one game."""

    cards: Tuple[Card, ...]
    starting_team: Team

    BOARD_SIZE = 25
    STARTING_TEAM_CARDS = 9  # Team that goes first gets 9
    SECOND_TEAM_CARDS = 8  # Team that goes second gets 8
    ASSASSINS = 1
    NEUTRALS = 7

    def __post_init__(self):
        object.__setattr__(self, "cards", tuple(self.cards))
        object.__setattr__(self, "starting_team", Team.parse(self.starting_team))

    @classmethod
    def from_vocabulary(
        cls,
        vocabulary: Vocabulary,
        starting_team: Optional[Team] = None,
        rng: Optional[random.Random] = None,
    ) -> "Deck":
        """Build a shuffled full deck from a word source.

        Args:
            vocabulary: Words, or a mapping of word -> embedding vector.
            starting_team: Blue or Red. Chosen with ``rng`` when omitted.
            rng: Randomness source; pass a seeded ``random.Random`` for
                reproducible decks.

        Raises:
            ValueError: Fewer than 25 distinct words, or a starting team that
                is not Blue or Red.
        """
        rng = rng or random.Random()

        if isinstance(vocabulary, Mapping):
            vectors: Mapping[str, Optional[Sequence[float]]] = vocabulary
            candidates: Iterable[str] = vocabulary.keys()
        else:
            vectors = {}
            candidates = vocabulary

        words: List[str] = []
        seen = set()
        for word in candidates:
            if not isinstance(word, str) or not word.strip():
                continue
            key = word.strip().lower()
            if key not in seen:
                seen.add(key)
                words.append(word)

        if len(words) < cls.BOARD_SIZE:
            raise ValueError(f"Need at least {cls.BOARD_SIZE} distinct words, got {len(words)}")

        if starting_team is None:
            starting_team = rng.choice([Team.BLUE, Team.RED])
        starting_team = Team.parse(starting_team)
        other_team = starting_team.opponent()

        selected = rng.sample(words, cls.BOARD_SIZE)

        assignments = (
            [starting_team] * cls.STARTING_TEAM_CARDS
            + [other_team] * cls.SECOND_TEAM_CARDS
            + [Team.ASSASSIN] * cls.ASSASSINS
            + [Team.NEUTRAL] * cls.NEUTRALS
        )
        if len(assignments) != cls.BOARD_SIZE:
            raise RuntimeError("Team assignment counts do not add up to the board size")
        rng.shuffle(assignments)

        cards = [
            Card(word=word, team=team, vector=vectors.get(word))
            for word, team in zip(selected, assignments)
        ]
        # Physical order must not follow the assignment order
        rng.shuffle(cards)

        logger.info(
            f"Deck built. Starting team: {starting_team.value}. "
            f"{starting_team.value}: {cls.STARTING_TEAM_CARDS}, {other_team.value}: {cls.SECOND_TEAM_CARDS}, "
            f"Neutral: {cls.NEUTRALS}, Assassin: {cls.ASSASSINS}"
        )
        return cls(cards=tuple(cards), starting_team=starting_team)

    @property
    def words(self) -> List[str]:
        return [card.word for card in self.cards]

    def find(self, word: str, case_sensitive: bool = True) -> Optional[Card]:
        """Return the card with the given word, or None."""
        if word is None:
            return None
        if case_sensitive:
            return next((card for card in self.cards if card.word == word), None)
        lowered = word.lower()
        return next((card for card in self.cards if card.word.lower() == lowered), None)

    def contains_word(self, word: str, case_sensitive: bool = True) -> bool:
        return self.find(word, case_sensitive) is not None

    def cards_of(self, team: Team) -> List[Card]:
        return [card for card in self.cards if card.team == team]

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __contains__(self, card: object) -> bool:
        return card in self.cards

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cards": [card.to_dict(camel_case=True) for card in self.cards],
            "startingTeam": self.starting_team.camel,
        }

    def to_json(self) -> str:
        """Compact camelCase JSON, as embedded in prompts."""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Deck":
        if not isinstance(data, Mapping):
            raise ParseError(f"Deck must be a JSON object, got {type(data).__name__}")
        cards = get_ci(data, "cards")
        starting_team = get_ci(data, "startingTeam")
        if starting_team is None:
            starting_team = get_ci(data, "starting_team")
        if not isinstance(cards, list):
            raise ParseError("Deck 'cards' must be a list")
        if starting_team is None:
            raise ParseError("Deck is missing 'startingTeam'")
        try:
            team = Team.parse(starting_team)
        except ValueError as e:
            raise ParseError(str(e)) from e
        return cls(cards=tuple(Card.from_dict(c) for c in cards), starting_team=team)

    @classmethod
    def from_json(cls, text: str) -> "Deck":
        if text is None or not text.strip():
            raise ParseError("Input is null or whitespace")
        return cls.from_dict(loads_lenient(text))

    def __str__(self) -> str:
        return "\n".join(f"Card {i}:\n{card}\n" for i, card in enumerate(self.cards, start=1))
