"""
Test suite for strategy decisions in ai.py.

Covers:
- Column helpers (partners, pairs, hidden cards)
- BasicStrategy: starting flips, draw choice, play priorities
- ImprovedStrategy: starting flips, draw choice, pair protection,
  replacement gain, face-down placement, endgame
- Strategy registry

Run with: pytest test_ai_decisions.py -v
"""

import random

import pytest

from golfsim.ai import (
    BasicStrategy, ImprovedStrategy, Strategy, UnknownStrategyError,
    available_strategies, count_hidden, get_column_partner_position,
    get_strategy, hidden_positions, is_card_in_pair, matches_visible_card,
    would_create_pair,
)
from golfsim.game import Card, Game


# =============================================================================
# Helpers
# =============================================================================

def make_game(strategy, num_players=2, seed=5):
    """Create a dealt game where every seat uses the given strategy class."""
    game = Game(
        num_players,
        strategies=[strategy() for _ in range(num_players)],
        rng=random.Random(seed),
        validate=False,
    )
    game.initialize()
    return game


def set_hand(player, tokens, up=(0, 1, 2, 3, 4, 5)):
    """Set player hand to the given tokens; only positions in `up` are face-up."""
    player.hand = [
        Card.from_token(token, face_up=i in up) for i, token in enumerate(tokens)
    ]


def set_discard(game, token):
    """Replace the discard pile with a single face-up card."""
    game.discard_pile.cards = [Card.from_token(token, face_up=True)]


def hold(player, token):
    """Give the player a drawn card to play."""
    player.currently_drawn_card = Card.from_token(token, face_up=True)
    return player.currently_drawn_card


# =============================================================================
# Column Helpers
# =============================================================================

class TestColumnHelpers:

    @pytest.mark.parametrize("pos,partner", [(0, 3), (1, 4), (2, 5), (3, 0), (4, 1), (5, 2)])
    def test_column_partner(self, pos, partner):
        assert get_column_partner_position(pos) == partner

    def test_hidden_positions(self):
        hand = [Card.from_token(t, face_up=i % 2 == 0)
                for i, t in enumerate(["2H", "3H", "4H", "5H", "6H", "7H"])]
        assert hidden_positions(hand) == [1, 3, 5]
        assert count_hidden(hand) == 3

    def test_pair_needs_visible_partner(self):
        hand = [Card.from_token(t, face_up=True) for t in ["9H", "3H", "4H", "9S", "6H", "7H"]]
        assert is_card_in_pair(hand, 0)
        assert is_card_in_pair(hand, 3)
        hand[3].turn_face_down()
        assert not is_card_in_pair(hand, 0)

    def test_would_create_pair(self):
        hand = [Card.from_token(t, face_up=True) for t in ["9H", "3H", "4H", "5H", "6H", "7H"]]
        assert would_create_pair(hand, Card.from_token("9C"), 3)
        assert not would_create_pair(hand, Card.from_token("9C"), 4)

    def test_matches_visible_card_ignores_face_down(self):
        hand = [Card.from_token(t, face_up=i == 0)
                for i, t in enumerate(["9H", "QH", "4H", "5H", "6H", "7H"])]
        assert matches_visible_card(hand, Card.from_token("9C"))
        assert not matches_visible_card(hand, Card.from_token("QC"))


# =============================================================================
# BasicStrategy
# =============================================================================

class TestBasicDraw:

    def setup_method(self):
        self.game = make_game(BasicStrategy)
        self.player = self.game.players[0]
        self.strategy = self.player.strategy
        set_hand(self.player, ["QH", "9H", "5H", "6H", "7H", "8H"], up=(0, 1))

    def test_flips_first_two_cards(self):
        set_hand(self.player, ["QH", "9H", "5H", "6H", "7H", "8H"], up=())
        self.strategy.flip_starting_cards(self.player)
        assert [c.face_up for c in self.player.hand] == [True, True, False, False, False, False]

    def test_takes_low_discard(self):
        set_discard(self.game, "4D")
        card = self.strategy.choose_card_to_draw(self.game, self.player)
        assert card.token == "4D"
        assert len(self.game.discard_pile) == 0

    def test_takes_discard_matching_visible_card(self):
        set_discard(self.game, "9S")
        card = self.strategy.choose_card_to_draw(self.game, self.player)
        assert card.token == "9S"

    def test_ignores_match_with_face_down_card(self):
        set_discard(self.game, "7S")
        draw_count = len(self.game.draw_pile)
        card = self.strategy.choose_card_to_draw(self.game, self.player)
        assert card.token != "7S"
        assert len(self.game.discard_pile) == 1
        assert len(self.game.draw_pile) == draw_count - 1

    def test_draws_face_down_otherwise(self):
        set_discard(self.game, "JS")
        top = self.game.draw_pile.cards[0]
        card = self.strategy.choose_card_to_draw(self.game, self.player)
        assert card is top
        assert card.face_up


class TestBasicPlay:

    def setup_method(self):
        self.game = make_game(BasicStrategy)
        self.player = self.game.players[0]
        self.strategy = self.player.strategy

    def test_pairs_with_visible_card(self):
        set_hand(self.player, ["7H", "KH", "9H", "3D", "4D", "5D"], up=(0, 1, 2))
        drawn = hold(self.player, "9S")

        discarded = self.strategy.play_card(self.game, self.player)
        assert discarded.token == "5D"
        assert self.player.hand[5] is drawn

    def test_pairs_with_visible_bottom_card(self):
        set_hand(self.player, ["3D", "4D", "5D", "7H", "KH", "9H"], up=(3, 4, 5))
        hold(self.player, "7S")

        discarded = self.strategy.play_card(self.game, self.player)
        assert discarded.token == "3D"
        assert self.player.hand[0].token == "7S"

    def test_replaces_highest_visible_card(self):
        set_hand(self.player, ["QH", "3H", "5H", "6D", "7D", "8D"], up=(0, 1, 2))
        hold(self.player, "6S")

        discarded = self.strategy.play_card(self.game, self.player)
        assert discarded.token == "QH"
        assert self.player.hand[0].token == "6S"

    def test_fills_first_face_down_slot(self):
        set_hand(self.player, ["AH", "2H", "5D", "6D", "7D", "8D"], up=(0, 1))
        hold(self.player, "7S")

        discarded = self.strategy.play_card(self.game, self.player)
        assert discarded.token == "5D"
        assert self.player.hand[2].token == "7S"

    def test_discards_high_card(self):
        set_hand(self.player, ["AH", "2H", "5D", "6D", "7D", "8D"], up=(0, 1))
        drawn = hold(self.player, "8S")

        discarded = self.strategy.play_card(self.game, self.player)
        assert discarded is drawn
        assert [c.token for c in self.player.hand] == ["AH", "2H", "5D", "6D", "7D", "8D"]

    def test_final_turn_reveals_hand(self):
        set_hand(self.player, ["AH", "2H", "5D", "6D", "7D", "8D"], up=(0,))
        self.strategy.final_turn(self.player)
        assert self.player.all_face_up()


# =============================================================================
# ImprovedStrategy
# =============================================================================

class TestImprovedDraw:

    def setup_method(self):
        self.game = make_game(ImprovedStrategy)
        self.player = self.game.players[0]
        self.strategy = self.player.strategy

    def test_flips_diagonal_corners(self):
        set_hand(self.player, ["QH", "9H", "5H", "6H", "7H", "8H"], up=())
        self.strategy.flip_starting_cards(self.player)
        assert [c.face_up for c in self.player.hand] == [True, False, False, False, False, True]

    def test_takes_discard_matching_visible_card(self):
        set_hand(self.player, ["QH", "9H", "5H", "6H", "7H", "8H"], up=(0, 5))
        set_discard(self.game, "QS")
        assert self.strategy.choose_card_to_draw(self.game, self.player).token == "QS"

    @pytest.mark.parametrize("token", ["KS", "2S", "AS"])
    def test_takes_premium_discard(self, token):
        set_hand(self.player, ["AH", "9H", "5H", "6H", "7H", "KH"], up=(0, 5))
        set_discard(self.game, token)
        assert self.strategy.choose_card_to_draw(self.game, self.player).token == token

    def test_takes_discard_beating_worst_visible(self):
        set_hand(self.player, ["QH", "9H", "5H", "6H", "7H", "3H"], up=(0, 5))
        set_discard(self.game, "8S")
        assert self.strategy.choose_card_to_draw(self.game, self.player).token == "8S"

    def test_worst_visible_ignores_pairs(self):
        # The two queens are paired, so nothing visible is worse than 8
        set_hand(self.player, ["QH", "9H", "5H", "QS", "7H", "3H"], up=(0, 3, 5))
        set_discard(self.game, "8S")
        card = self.strategy.choose_card_to_draw(self.game, self.player)
        assert card.token != "8S"
        assert len(self.game.discard_pile) == 1

    def test_takes_low_discard_late(self):
        set_hand(self.player, ["AH", "3H", "KH", "6H", "7H", "8H"], up=(0, 1, 2))
        set_discard(self.game, "4S")
        assert self.strategy.choose_card_to_draw(self.game, self.player).token == "4S"

    def test_leaves_low_discard_early(self):
        set_hand(self.player, ["AH", "3H", "5H", "6H", "7H", "8H"], up=(0, 1))
        set_discard(self.game, "4S")
        card = self.strategy.choose_card_to_draw(self.game, self.player)
        assert card.token != "4S"
        assert len(self.game.discard_pile) == 1


class TestImprovedPlay:

    def setup_method(self):
        self.game = make_game(ImprovedStrategy)
        self.player = self.game.players[0]
        self.strategy = self.player.strategy

    def test_completes_pair(self):
        set_hand(self.player, ["9H", "5H", "6H", "3D", "4D", "KD"], up=(0, 5))
        drawn = hold(self.player, "9S")

        discarded = self.strategy.play_card(self.game, self.player)
        assert discarded.token == "3D"
        assert self.player.hand[3] is drawn

    def test_does_not_break_existing_pair(self):
        # Column 0 is already a pair of 7s; the drawn 7 should go elsewhere
        set_hand(self.player, ["7H", "9H", "5H", "7D", "4D", "KD"], up=(0, 1, 3, 5))
        hold(self.player, "7S")

        discarded = self.strategy.play_card(self.game, self.player)
        assert discarded.token == "9H"
        assert self.player.hand[0].token == "7H"
        assert self.player.hand[3].token == "7D"

    def test_replaces_card_with_best_gain(self):
        set_hand(self.player, ["JH", "9D", "5D", "4D", "8D", "6H"], up=(0, 5))
        hold(self.player, "3S")

        discarded = self.strategy.play_card(self.game, self.player)
        assert discarded.token == "JH"

    def test_fills_face_down_slot_with_decent_card(self):
        set_hand(self.player, ["AH", "9D", "5D", "4D", "8D", "KH"], up=(0, 5))
        hold(self.player, "5S")

        discarded = self.strategy.play_card(self.game, self.player)
        assert discarded.token == "9D"
        assert self.player.hand[1].token == "5S"

    def test_discards_high_card_early(self):
        set_hand(self.player, ["AH", "9D", "5D", "4D", "8D", "KH"], up=(0, 5))
        drawn = hold(self.player, "9S")

        assert self.strategy.play_card(self.game, self.player) is drawn

    def test_keeps_high_card_in_endgame(self):
        set_hand(self.player, ["AH", "9D", "5D", "4D", "8D", "KH"], up=(0, 5))
        self.game.draw_pile.cards = self.game.draw_pile.cards[:5]
        hold(self.player, "9S")

        discarded = self.strategy.play_card(self.game, self.player)
        assert discarded.token == "9D"
        assert self.player.hand[1].token == "9S"


class TestImprovedHelpers:

    def setup_method(self):
        self.game = make_game(ImprovedStrategy)
        self.player = self.game.players[0]

    def test_endgame_when_few_cards_hidden(self):
        set_hand(self.player, ["AH", "9D", "5D", "4D", "8D", "KH"], up=(0, 1, 2, 3))
        assert ImprovedStrategy.is_endgame(self.game, self.player)

    def test_not_endgame_early(self):
        set_hand(self.player, ["AH", "9D", "5D", "4D", "8D", "KH"], up=(0, 5))
        assert not ImprovedStrategy.is_endgame(self.game, self.player)

    @pytest.mark.parametrize("token,good", [("KS", True), ("2S", True), ("AS", True),
                                            ("4S", True), ("5S", False), ("QS", False)])
    def test_is_good_card(self, token, good):
        assert ImprovedStrategy.is_good_card(Card.from_token(token)) is good

    def test_worst_visible_none_when_nothing_visible(self):
        set_hand(self.player, ["AH", "9D", "5D", "4D", "8D", "KH"], up=())
        assert ImprovedStrategy.find_worst_visible_card_index(self.player.hand) is None

    def test_face_down_slot_prefers_pairing_position(self):
        set_hand(self.player, ["AH", "9D", "5D", "4D", "8D", "KH"], up=(0, 5))
        card = Card.from_token("KS")
        assert ImprovedStrategy.find_best_position_for_face_down(card, self.player.hand) == 2

    def test_pair_bonus_in_replacement_gain(self):
        hand = [Card.from_token(t, face_up=True) for t in ["3H", "9D", "5D", "4D", "8D", "6H"]]
        pos, improvement = ImprovedStrategy.find_best_card_to_replace(Card.from_token("4S"), hand)
        assert pos == 0
        assert improvement == 3 - 4 + 15


# =============================================================================
# Registry
# =============================================================================

class TestRegistry:

    def test_lookup_is_case_insensitive(self):
        assert isinstance(get_strategy("BASIC"), BasicStrategy)
        assert isinstance(get_strategy("Improved"), ImprovedStrategy)

    def test_fresh_instance_each_time(self):
        assert get_strategy("basic") is not get_strategy("basic")

    def test_unknown_strategy(self):
        with pytest.raises(UnknownStrategyError):
            get_strategy("expert")
        with pytest.raises(KeyError):
            get_strategy("expert")

    def test_strategies_satisfy_protocol(self):
        assert isinstance(BasicStrategy(), Strategy)
        assert isinstance(ImprovedStrategy(), Strategy)

    def test_available_strategies(self):
        names = [entry["name"] for entry in available_strategies()]
        assert names == ["basic", "improved"]
