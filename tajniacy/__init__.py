"""Tajniacy - Codenames where hints, picks and reactions come from a language model."""

from tajniacy.cards import Card, Deck, Team
from tajniacy.hint import Hint, HintGenerator, HintHistory, check_hint
from tajniacy.player import LLMPlayer
from tajniacy.prompt_manager import PromptManager, PromptNotFoundError
from tajniacy.reaction import ReactionGenerator, is_proper_guess, parse_reaction

__version__ = "0.1.0"

__all__ = [
    "Card",
    "Deck",
    "Hint",
    "HintGenerator",
    "HintHistory",
    "LLMPlayer",
    "PromptManager",
    "PromptNotFoundError",
    "ReactionGenerator",
    "Team",
    "check_hint",
    "is_proper_guess",
    "parse_reaction",
]
