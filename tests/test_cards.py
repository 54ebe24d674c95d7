"""Tests for Team, Card and Deck."""

import random
from collections import Counter

import pytest

from llmcore.errors import ParseError
from tajniacy.cards import Card, Deck, Team


class TestTeam:
    """Team parsing and helpers."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Blue", Team.BLUE),
            ("red", Team.RED),
            ("NEUTRAL", Team.NEUTRAL),
            ("assassin", Team.ASSASSIN),
            (0, Team.BLUE),
            (3, Team.ASSASSIN),
            ("1", Team.RED),
            (Team.NEUTRAL, Team.NEUTRAL),
        ],
    )
    def test_parse(self, value, expected):
        assert Team.parse(value) is expected

    @pytest.mark.parametrize("value", ["purple", 4, -1, True, None, ""])
    def test_parse_rejects_unknown(self, value):
        with pytest.raises(ValueError):
            Team.parse(value)

    def test_opponent(self):
        assert Team.BLUE.opponent() is Team.RED
        assert Team.RED.opponent() is Team.BLUE
        with pytest.raises(ValueError):
            Team.NEUTRAL.opponent()


class TestCard:
    """Card identity and wire format."""

    def test_equality_ignores_vector(self):
        a = Card("kot", Team.BLUE, vector=[0.1, 0.2])
        b = Card("kot", Team.BLUE)
        assert a == b
        assert hash(a) == hash(b)

    def test_equality_uses_team(self):
        assert Card("kot", Team.BLUE) != Card("kot", Team.RED)

    def test_empty_word_rejected(self):
        with pytest.raises(ValueError):
            Card("  ", Team.BLUE)

    def test_team_given_as_name(self):
        assert Card("kot", "red").team is Team.RED

    def test_to_dict_pascal_case(self):
        card = Card("kot", Team.BLUE, vector=[1, 2])
        assert card.to_dict() == {"Word": "kot", "Vector": [1.0, 2.0], "Team": "Blue"}

    def test_to_dict_camel_case(self):
        card = Card("kot", Team.ASSASSIN)
        assert card.to_dict(camel_case=True) == {"word": "kot", "vector": None, "team": "assassin"}

    def test_from_dict_case_insensitive_properties(self):
        card = Card.from_dict({"WORD": "pies", "team": "red", "vector": None})
        assert card == Card("pies", Team.RED)

    def test_from_dict_numeric_team(self):
        assert Card.from_dict({"Word": "pies", "Team": 2}).team is Team.NEUTRAL

    def test_from_dict_missing_team(self):
        with pytest.raises(ParseError):
            Card.from_dict({"Word": "pies"})

    def test_from_dict_bad_team(self):
        with pytest.raises(ParseError):
            Card.from_dict({"Word": "pies", "Team": "green"})

    def test_from_dict_missing_word(self):
        with pytest.raises(ParseError):
            Card.from_dict({"Team": "Blue"})

    def test_from_json_tolerates_trailing_comma(self):
        card = Card.from_json('{"Word": "kot", "Team": "Blue", }')
        assert card == Card("kot", Team.BLUE)

    def test_json_round_trip_keeps_vector(self):
        card = Card("kot", Team.BLUE, vector=[0.5, -1.25])
        restored = Card.from_json(card.to_json())
        assert restored == card
        assert restored.vector == (0.5, -1.25)


class TestDeckFromVocabulary:
    """Deck construction invariants."""

    @pytest.mark.parametrize("seed", range(30))
    def test_invariants_hold_for_many_seeds(self, vocabulary, seed):
        deck = Deck.from_vocabulary(vocabulary, rng=random.Random(seed))

        assert len(deck) == 25
        assert len(set(deck.words)) == 25
        assert set(deck.words) <= set(vocabulary)

        counts = Counter(card.team for card in deck)
        starting = deck.starting_team
        assert starting in (Team.BLUE, Team.RED)
        assert counts[starting] == 9
        assert counts[starting.opponent()] == 8
        assert counts[Team.NEUTRAL] == 7
        assert counts[Team.ASSASSIN] == 1

    def test_explicit_starting_team(self, vocabulary):
        deck = Deck.from_vocabulary(vocabulary, starting_team=Team.RED, rng=random.Random(1))
        assert deck.starting_team is Team.RED
        assert len(deck.cards_of(Team.RED)) == 9
        assert len(deck.cards_of(Team.BLUE)) == 8

    def test_same_seed_same_deck(self, vocabulary):
        a = Deck.from_vocabulary(vocabulary, rng=random.Random(7))
        b = Deck.from_vocabulary(vocabulary, rng=random.Random(7))
        assert a == b
        assert a.words == b.words

    def test_order_is_shuffled(self, vocabulary):
        # Starting team cards must not all sit at the front of the board
        decks = [Deck.from_vocabulary(vocabulary, rng=random.Random(s)) for s in range(5)]
        assert any(
            [c.team for c in deck.cards[:9]] != [deck.starting_team] * 9 for deck in decks
        )

    def test_too_few_words(self):
        with pytest.raises(ValueError):
            Deck.from_vocabulary([f"w{i}" for i in range(24)])

    def test_duplicates_do_not_count(self):
        words = [f"w{i}" for i in range(24)] + ["W0", "w1"]
        with pytest.raises(ValueError):
            Deck.from_vocabulary(words)

    def test_neutral_starting_team_rejected(self, vocabulary):
        with pytest.raises(ValueError):
            Deck.from_vocabulary(vocabulary, starting_team=Team.NEUTRAL)

    def test_vectors_are_attached(self):
        vocabulary = {f"w{i}": [float(i), 1.0] for i in range(25)}
        deck = Deck.from_vocabulary(vocabulary, rng=random.Random(3))
        for card in deck:
            assert card.vector == (float(card.word[1:]), 1.0)


class TestDeck:
    """Lookups and wire format."""

    def test_find_case_sensitivity(self, small_deck):
        assert small_deck.find("kot") == Card("kot", Team.BLUE)
        assert small_deck.find("KOT") is None
        assert small_deck.find("KOT", case_sensitive=False) == Card("kot", Team.BLUE)
        assert not small_deck.contains_word("krowa", case_sensitive=False)

    def test_contains_card(self, small_deck):
        assert Card("traktor", Team.RED) in small_deck
        assert Card("traktor", Team.BLUE) not in small_deck

    def test_to_json_is_camel_case(self, small_deck):
        text = small_deck.to_json()
        assert '"startingTeam":"blue"' in text
        assert '{"word":"kot","vector":null,"team":"blue"}' in text

    def test_json_round_trip(self, vocabulary):
        deck = Deck.from_vocabulary(vocabulary, rng=random.Random(11))
        restored = Deck.from_json(deck.to_json())
        assert restored == deck
        assert restored.words == deck.words

    def test_from_dict_accepts_pascal_cards(self):
        deck = Deck.from_dict(
            {
                "starting_team": "Red",
                "cards": [{"Word": "kot", "Vector": None, "Team": "Red"}],
            }
        )
        assert deck.starting_team is Team.RED
        assert deck.cards == (Card("kot", Team.RED),)

    def test_from_json_missing_starting_team(self):
        with pytest.raises(ParseError):
            Deck.from_json('{"cards": []}')

    def test_from_json_blank(self):
        with pytest.raises(ParseError):
            Deck.from_json("   ")
