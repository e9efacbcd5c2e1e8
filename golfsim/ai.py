"""Pluggable decision strategies for automated Golf players."""

import logging
from typing import Optional, Protocol, runtime_checkable

from golfsim.config import config
from golfsim.constants import COLUMNS, INITIAL_FLIPS
from golfsim.game import Card, Game, GolfError, Player, Rank


# Debug logging configuration
# Set AI_DEBUG=1 environment variable to enable detailed decision logging
AI_DEBUG = config.AI_DEBUG

# Create a dedicated logger for strategy decisions
ai_logger = logging.getLogger("golf.ai")
if AI_DEBUG:
    ai_logger.setLevel(logging.DEBUG)
    # Add console handler if not already present
    if not ai_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [AI] %(message)s", datefmt="%H:%M:%S"
        ))
        ai_logger.addHandler(handler)


def ai_log(message: str):
    """Log strategy decision info when AI_DEBUG is enabled."""
    if AI_DEBUG:
        ai_logger.debug(message)


# =============================================================================
# Decision Constants
# =============================================================================

# Cards scoring at or below this are worth taking from the discard pile
LOW_CARD_THRESHOLD = 4

# Basic: drawn cards at or below this go into a face-down slot
BASIC_UNKNOWN_CARD_ESTIMATE = 7

# Improved: estimated score of a face-down card
IMPROVED_UNKNOWN_CARD_ESTIMATE = 6

# Ranks the improved strategy always takes from the discard pile (K=0, 2=-2, A=1)
PREMIUM_RANKS = frozenset({Rank.KING, Rank.TWO, Rank.ACE})

# Added to a replacement's improvement when it completes a column pair
PAIR_BONUS = 15

# Endgame: draw pile below this many cards, or this many face-down cards or fewer
ENDGAME_DRAW_PILE_SIZE = 10
ENDGAME_FACE_DOWN_COUNT = 2

# Improved takes a low discard only with 1 to this many face-down cards left
MAX_RISKY_FACE_DOWN = 3


class UnknownStrategyError(GolfError, KeyError):
    """Raised when a strategy name isn't in the registry."""
    pass


@runtime_checkable
class Strategy(Protocol):
    """
    What a player delegates its decisions to.

    Any object with these four methods can sit at the table; there is no
    base class to inherit from. Strategies only move cards: the game infers
    which pile was drawn from and handles all turn bookkeeping.
    """

    name: str

    def flip_starting_cards(self, player: Player) -> None:
        """Turn exactly two of the six dealt cards face-up."""
        ...

    def choose_card_to_draw(self, game: Game, player: Player) -> Card:
        """Remove and return one card from the draw pile or the discard pile."""
        ...

    def play_card(self, game: Game, player: Player) -> Card:
        """Place player.currently_drawn_card in the hand or not; return the discard."""
        ...

    def final_turn(self, player: Player) -> None:
        """Turn every remaining face-down card face-up."""
        ...


# =============================================================================
# Column/Pair Utility Functions
# =============================================================================

def get_column_partner_position(pos: int) -> int:
    """Get the column partner position for a given position.

    Column pairs: (0,3), (1,4), (2,5)
    """
    return pos + COLUMNS if pos < COLUMNS else pos - COLUMNS


def iter_columns(hand: list[Card]):
    """Yield (col_index, top_idx, bot_idx, top_card, bot_card) for each column."""
    for col in range(COLUMNS):
        top_idx = col
        bot_idx = col + COLUMNS
        yield col, top_idx, bot_idx, hand[top_idx], hand[bot_idx]


def hidden_positions(hand: list[Card]) -> list[int]:
    """Get indices of face-down cards."""
    return [i for i, c in enumerate(hand) if not c.face_up]


def count_hidden(hand: list[Card]) -> int:
    """Count face-down cards."""
    return sum(1 for c in hand if not c.face_up)


def is_card_in_pair(hand: list[Card], index: int) -> bool:
    """Check if the card at index already pairs with a face-up column partner."""
    partner = hand[get_column_partner_position(index)]
    return partner.face_up and partner.rank == hand[index].rank


def would_create_pair(hand: list[Card], card: Card, index: int) -> bool:
    """Check if putting card at index would pair it with a face-up column partner."""
    partner = hand[get_column_partner_position(index)]
    return partner.face_up and partner.rank == card.rank


def matches_visible_card(hand: list[Card], card: Card) -> bool:
    """Check if card shares a rank with any face-up card in the hand."""
    return any(c.face_up and c.rank == card.rank for c in hand)


def replace_card(player: Player, position: int) -> Card:
    """
    Put the drawn card at position and return the card it replaces.

    Returns:
        The replaced card, to be discarded.
    """
    old_card = player.hand[position]
    player.hand[position] = player.currently_drawn_card
    return old_card


def take_discard(game: Game) -> Card:
    return game.discard_pile.draw_from_discard()


def take_from_draw_pile(game: Game) -> Card:
    return game.draw_pile.draw_from_top()


def reveal_all(player: Player) -> None:
    """Turn every face-down card in the hand face-up."""
    for card in player.hand:
        card.turn_face_up()


# =============================================================================
# Strategies
# =============================================================================

class BasicStrategy:
    """
    A fixed decision hierarchy with no look at the game state.

    Draw: take the discard if it scores 4 or less or matches a visible card,
    otherwise draw face-down.

    Play:
        1. Complete a pair with a visible card
        2. Replace the highest visible card if the drawn card scores lower
        3. Replace a face-down card if the drawn card scores 7 or less
        4. Discard the drawn card
    """

    name = "basic"
    display_name = "Basic"
    description = (
        "Takes low or pairing discards, pairs first, then replaces its highest "
        "visible card, then fills face-down slots with cards scoring 7 or less."
    )
    starting_positions = (0, 1)

    def flip_starting_cards(self, player: Player) -> None:
        for pos in self.starting_positions[:INITIAL_FLIPS]:
            player.hand[pos].turn_face_up()

    def choose_card_to_draw(self, game: Game, player: Player) -> Card:
        top_discard = game.discard_top()
        if top_discard is not None:
            if top_discard.golf_score() <= LOW_CARD_THRESHOLD:
                ai_log(f"{self.name}: taking low discard {top_discard.token}")
                return take_discard(game)

            if matches_visible_card(player.hand, top_discard):
                ai_log(f"{self.name}: taking discard {top_discard.token} for a pair")
                return take_discard(game)

        return take_from_draw_pile(game)

    def play_card(self, game: Game, player: Player) -> Card:
        drawn = player.currently_drawn_card
        hand = player.hand

        # 1. Pair with a visible card in the same column
        for col, top_idx, bot_idx, top_card, bot_card in iter_columns(hand):
            if not top_card.face_up and not bot_card.face_up:
                continue
            if top_card.face_up and drawn.rank == top_card.rank:
                ai_log(f"{self.name}: pairing {drawn.token} in column {col}")
                return replace_card(player, bot_idx)
            if bot_card.face_up and drawn.rank == bot_card.rank:
                ai_log(f"{self.name}: pairing {drawn.token} in column {col}")
                return replace_card(player, top_idx)

        # 2. Replace the highest visible card
        highest_pos = None
        highest_score = None
        for i, card in enumerate(hand):
            if not card.face_up:
                continue
            if highest_score is None or card.golf_score() > highest_score:
                highest_score = card.golf_score()
                highest_pos = i

        if highest_pos is not None and drawn.golf_score() < highest_score:
            ai_log(f"{self.name}: {drawn.token} replaces {hand[highest_pos].token} at {highest_pos}")
            return replace_card(player, highest_pos)

        # 3. Take a chance on the first face-down card
        if drawn.golf_score() <= BASIC_UNKNOWN_CARD_ESTIMATE:
            hidden = hidden_positions(hand)
            if hidden:
                ai_log(f"{self.name}: {drawn.token} replaces face-down card at {hidden[0]}")
                return replace_card(player, hidden[0])

        # 4. Discard
        ai_log(f"{self.name}: discarding {drawn.token}")
        return drawn

    def final_turn(self, player: Player) -> None:
        reveal_all(player)


class ImprovedStrategy:
    """
    Column-aware play that protects pairs and adapts to the endgame.

    Draw: take the discard if it completes a pair, is a K/2/A, beats the
    worst unpaired visible card, or is low while only 1-3 cards are hidden.

    Play:
        1. Complete a pair without breaking an existing one
        2. Replace the unpaired visible card with the best positive gain,
           with PAIR_BONUS added when the swap itself forms a pair
        3. Put good, decent or endgame cards in a face-down slot, preferring
           one whose column partner would pair with it
        4. Discard the drawn card
    """

    name = "improved"
    display_name = "Improved"
    description = (
        "Protects existing pairs, scores replacements by net gain with a bonus "
        "for forming pairs, flips diagonal corners and fills face-down slots "
        "more eagerly in the endgame."
    )
    starting_positions = (0, 5)

    def flip_starting_cards(self, player: Player) -> None:
        # Diagonal corners: one card in each row, in different columns
        for pos in self.starting_positions[:INITIAL_FLIPS]:
            player.hand[pos].turn_face_up()

    def choose_card_to_draw(self, game: Game, player: Player) -> Card:
        top_discard = game.discard_top()
        if top_discard is not None:
            hand = player.hand

            if matches_visible_card(hand, top_discard):
                ai_log(f"{self.name}: taking discard {top_discard.token} for a pair")
                return take_discard(game)

            if top_discard.rank in PREMIUM_RANKS:
                ai_log(f"{self.name}: taking premium discard {top_discard.token}")
                return take_discard(game)

            worst_pos = self.find_worst_visible_card_index(hand)
            if worst_pos is not None and top_discard.golf_score() < hand[worst_pos].golf_score():
                ai_log(f"{self.name}: discard {top_discard.token} beats {hand[worst_pos].token}")
                return take_discard(game)

            hidden = count_hidden(hand)
            if (
                top_discard.golf_score() <= LOW_CARD_THRESHOLD
                and 0 < hidden <= MAX_RISKY_FACE_DOWN
            ):
                ai_log(f"{self.name}: taking low discard {top_discard.token} with {hidden} hidden")
                return take_discard(game)

        return take_from_draw_pile(game)

    def play_card(self, game: Game, player: Player) -> Card:
        drawn = player.currently_drawn_card
        hand = player.hand

        # 1. Complete a pair, leaving existing pairs alone
        for col, top_idx, bot_idx, top_card, bot_card in iter_columns(hand):
            already_paired = (
                top_card.face_up and bot_card.face_up and top_card.rank == bot_card.rank
            )
            if already_paired:
                continue
            if top_card.face_up and drawn.rank == top_card.rank:
                ai_log(f"{self.name}: pairing {drawn.token} in column {col}")
                return replace_card(player, bot_idx)
            if bot_card.face_up and drawn.rank == bot_card.rank:
                ai_log(f"{self.name}: pairing {drawn.token} in column {col}")
                return replace_card(player, top_idx)

        # 2. Replace an unpaired visible card for a net gain
        best_pos, improvement = self.find_best_card_to_replace(drawn, hand)
        if best_pos is not None and improvement > 0:
            ai_log(f"{self.name}: {drawn.token} replaces {hand[best_pos].token} (+{improvement})")
            return replace_card(player, best_pos)

        # 3. Fill a face-down slot
        if count_hidden(hand) > 0:
            if (
                self.is_good_card(drawn)
                or self.is_endgame(game, player)
                or drawn.golf_score() <= IMPROVED_UNKNOWN_CARD_ESTIMATE
            ):
                pos = self.find_best_position_for_face_down(drawn, hand)
                if pos is not None:
                    ai_log(f"{self.name}: {drawn.token} replaces face-down card at {pos}")
                    return replace_card(player, pos)

        # 4. Discard
        ai_log(f"{self.name}: discarding {drawn.token}")
        return drawn

    def final_turn(self, player: Player) -> None:
        reveal_all(player)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def is_endgame(game: Game, player: Player) -> bool:
        return (
            len(game.draw_pile) < ENDGAME_DRAW_PILE_SIZE
            or count_hidden(player.hand) <= ENDGAME_FACE_DOWN_COUNT
        )

    @staticmethod
    def is_good_card(card: Card) -> bool:
        """Kings, 2s and Aces are always good; otherwise 4 points or less."""
        return card.rank in PREMIUM_RANKS or card.golf_score() <= LOW_CARD_THRESHOLD

    @staticmethod
    def find_worst_visible_card_index(hand: list[Card]) -> Optional[int]:
        """
        Find the highest-scoring face-up card that isn't part of a pair.

        Returns:
            Its index, or None if every visible card is paired (or none are visible).
        """
        worst_pos = None
        worst_score = None
        for i, card in enumerate(hand):
            if not card.face_up or is_card_in_pair(hand, i):
                continue
            if worst_score is None or card.golf_score() > worst_score:
                worst_score = card.golf_score()
                worst_pos = i
        return worst_pos

    @staticmethod
    def find_best_card_to_replace(drawn: Card, hand: list[Card]) -> tuple[Optional[int], int]:
        """
        Pick the unpaired visible card whose replacement gains the most.

        The gain is the score difference, plus PAIR_BONUS when the drawn card
        would pair with the replaced card's column partner.

        Returns:
            (index, improvement), index None if nothing improves the hand.
        """
        best_pos = None
        best_improvement = 0
        for i, card in enumerate(hand):
            if not card.face_up or is_card_in_pair(hand, i):
                continue

            improvement = card.golf_score() - drawn.golf_score()
            if would_create_pair(hand, drawn, i):
                improvement += PAIR_BONUS

            if improvement > best_improvement:
                best_improvement = improvement
                best_pos = i

        return best_pos, best_improvement

    @staticmethod
    def find_best_position_for_face_down(card: Card, hand: list[Card]) -> Optional[int]:
        """
        Choose a face-down slot for card.

        Prefers the slot whose face-up column partner has the same rank;
        otherwise the first face-down slot.

        Returns:
            The position, or None if no card is face-down.
        """
        for col, top_idx, bot_idx, top_card, bot_card in iter_columns(hand):
            if top_card.face_up and not bot_card.face_up and card.rank == top_card.rank:
                return bot_idx
            if bot_card.face_up and not top_card.face_up and card.rank == bot_card.rank:
                return top_idx

        hidden = hidden_positions(hand)
        return hidden[0] if hidden else None


# =============================================================================
# Registry
# =============================================================================

STRATEGIES: dict[str, type] = {
    BasicStrategy.name: BasicStrategy,
    ImprovedStrategy.name: ImprovedStrategy,
}


def get_strategy(name: str) -> Strategy:
    """
    Build a fresh strategy instance by registry name (case-insensitive).

    Raises:
        UnknownStrategyError: If no strategy has that name.
    """
    try:
        strategy_class = STRATEGIES[name.lower()]
    except (KeyError, AttributeError):
        raise UnknownStrategyError(
            f"Unknown strategy {name!r}, choose from: {', '.join(sorted(STRATEGIES))}"
        ) from None
    return strategy_class()


def available_strategies() -> list[dict]:
    """Registry entries as dicts for listings."""
    return [
        {
            "name": cls.name,
            "display_name": cls.display_name,
            "description": cls.description,
            "starting_positions": list(cls.starting_positions),
        }
        for cls in STRATEGIES.values()
    ]
