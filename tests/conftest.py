"""Shared fixtures."""

import pytest

from llmcore.adapters.scripted import ScriptedGenerator
from tajniacy.cards import Card, Deck, Team
from tajniacy.prompt_manager import PromptManager

TEMPLATES = {
    "hint": "HINT SYSTEM PROMPT",
    "reaction-normal": "REACTION SYSTEM PROMPT",
    "reaction-alt": "ALT REACTION SYSTEM PROMPT",
    "card-pick": "CARD PICK SYSTEM PROMPT",
}


@pytest.fixture
def small_deck():
    """Three-card board: kot and pies are Blue, traktor is Red."""
    return Deck(
        cards=(
            Card("kot", Team.BLUE),
            Card("pies", Team.BLUE),
            Card("traktor", Team.RED),
        ),
        starting_team=Team.BLUE,
    )


@pytest.fixture
def prompts():
    return PromptManager(templates=TEMPLATES)


@pytest.fixture
def scripted():
    return ScriptedGenerator()


@pytest.fixture
def vocabulary():
    return [f"slowo{i}" for i in range(40)]
