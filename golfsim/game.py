"""
Game engine for 6-Card Golf.

This module implements the core game mechanics for the 6-Card Golf card game:
card and pile management, player hands, scoring rules, and the turn state
machine that lets pluggable strategies (see ai.py) play automated games.

6-Card Golf Rules Summary:
    - Each player has 6 cards arranged in a 2x3 grid (2 rows, 3 columns)
    - Two cards are revealed at the deal, the rest stay face-down
    - On your turn: Draw from the draw pile or discard pile, then swap or discard
    - Matching ranks in a column cancel out (score 0)
    - Game ends when one player reveals all cards, then others get one final turn
    - Lowest score wins

Card Layout:
    [0] [1] [2]   <- top row
    [3] [4] [5]   <- bottom row

    Columns: (0,3), (1,4), (2,5) - matching ranks in a column score 0

Turn Flow:
    Each call to Game.next_turn() advances exactly one phase for the current
    player (DRAW, then PLAY) and returns an immutable GameState snapshot.
"""

import random
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from golfsim.config import config
from golfsim.constants import (
    CARD_BACK,
    COLUMNS,
    DEFAULT_CARD_VALUES,
    HAND_SIZE,
    MAX_PLAYERS,
    MIN_PLAYERS,
)
from golfsim.logging_config import get_logger


# =============================================================================
# Errors
# =============================================================================

class GolfError(Exception):
    """Base class for all engine errors."""
    pass


class InvalidCardError(GolfError, ValueError):
    """Raised when a card token can't be parsed."""
    pass


class InvalidPlayerCountError(GolfError, ValueError):
    """Raised when a game is configured with an unsupported number of seats."""
    pass


class StrategyContractError(GolfError):
    """Raised when a strategy breaks the draw/play contract (fatal to that game)."""
    pass


# =============================================================================
# Cards
# =============================================================================

class Suit(Enum):
    """Card suits. Irrelevant to scoring, kept for display."""

    HEARTS = "H"
    DIAMONDS = "D"
    SPADES = "S"
    CLUBS = "C"


class Rank(Enum):
    """
    Card ranks, keyed by their token character.

    Golf scoring:
        - Two: -2 points
        - 3-9: Face value
        - Ten/Jack/Queen: 10 points
        - King: 0 points
        - Ace: 1 point
    """

    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "T"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"
    ACE = "A"


# Map Rank enum to point values (derived from constants.py as single source of truth)
RANK_VALUES: dict[Rank, int] = {rank: DEFAULT_CARD_VALUES[rank.value] for rank in Rank}

DECK_SIZE = len(Rank) * len(Suit)


@dataclass(eq=False)
class Card:
    """
    A playing card with rank, suit, and face-up state.

    Rank and suit are fixed once the card is built; only face_up changes.
    Two cards are equal when rank and suit match, whatever their visibility.

    Attributes:
        suit: The card's suit.
        rank: The card's rank.
        face_up: Whether the card is visible to all players.
    """

    suit: Suit
    rank: Rank
    face_up: bool = False

    def __setattr__(self, name: str, value: Any) -> None:
        if name in ("suit", "rank") and name in self.__dict__:
            raise AttributeError(f"Card {name} cannot be changed")
        super().__setattr__(name, value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Card):
            return NotImplemented
        return self.rank == other.rank and self.suit == other.suit

    def __hash__(self) -> int:
        return hash((self.rank, self.suit))

    def __str__(self) -> str:
        return self.token if self.face_up else "??"

    @classmethod
    def from_token(cls, token: str, face_up: bool = False) -> "Card":
        """
        Build a card from a two-character token such as "TH" or "2S".

        Raises:
            InvalidCardError: If the token is not a rank char followed by a suit char.
        """
        if not isinstance(token, str) or len(token) != 2:
            raise InvalidCardError(f"Card token must be 2 characters long: {token!r}")
        try:
            rank = Rank(token[0])
            suit = Suit(token[1])
        except ValueError as e:
            raise InvalidCardError(f"Invalid card token: {token!r}") from e
        return cls(suit, rank, face_up=face_up)

    @property
    def token(self) -> str:
        return f"{self.rank.value}{self.suit.value}"

    def golf_score(self) -> int:
        """Point value of this card on its own (pairs are handled by the hand)."""
        return RANK_VALUES[self.rank]

    def flip(self) -> "Card":
        self.face_up = not self.face_up
        return self

    def turn_face_up(self) -> "Card":
        self.face_up = True
        return self

    def turn_face_down(self) -> "Card":
        self.face_up = False
        return self

    def image_key(self) -> str:
        """Face value for presentation, or the card-back key when face-down."""
        return self.token if self.face_up else CARD_BACK

    def to_dict(self) -> dict:
        """Convert card to dictionary for JSON serialization."""
        return {
            "rank": self.rank.value,
            "suit": self.suit.value,
            "face_up": self.face_up,
        }


class CardPile:
    """
    An ordered pile of cards: either the draw pile or the discard pile.

    Both roles share one structure with different access patterns:
        - Draw pile: cards[0] is the top, drawn face-down and turned face-up.
        - Discard pile: cards[-1] is the top, always face-up.

    Each pile owns its random generator so that games stay independent, and
    reproducible when a seeded generator is passed in.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        shuffle_passes: Optional[int] = None,
    ) -> None:
        """
        Initialize an empty pile.

        Args:
            rng: Random generator used for shuffling. A fresh unseeded one if None.
            shuffle_passes: Full shuffle passes per shuffle(). Defaults to config.
        """
        self.cards: list[Card] = []
        self.rng = rng if rng is not None else random.Random()
        self.shuffle_passes = shuffle_passes if shuffle_passes is not None else config.SHUFFLE_PASSES

    def __len__(self) -> int:
        return len(self.cards)

    def setup_standard_deck(self) -> None:
        """Fill the pile with the 52 standard cards, face-down, and shuffle."""
        self.cards = [Card(suit, rank) for suit in Suit for rank in Rank]
        self.shuffle()

    def shuffle(self) -> None:
        """
        Randomize the order of the pile.

        Runs several Fisher-Yates passes (random.shuffle) over the cards with
        the pile's own generator.
        """
        for _ in range(self.shuffle_passes):
            self.rng.shuffle(self.cards)

    def draw_initial_hand(self) -> list[Card]:
        """Remove and return the first HAND_SIZE cards (used at the deal)."""
        hand = self.cards[:HAND_SIZE]
        del self.cards[:HAND_SIZE]
        return hand

    def draw_from_top(self) -> Optional[Card]:
        """
        Draw the top card of a face-down pile.

        Returns:
            The drawn Card, turned face-up, or None if the pile is empty.
        """
        if not self.cards:
            return None
        return self.cards.pop(0).turn_face_up()

    def draw_from_discard(self) -> Optional[Card]:
        """
        Draw the top card of a face-up pile.

        Returns:
            The drawn Card (always face-up), or None if the pile is empty.
        """
        if not self.cards:
            return None
        return self.cards.pop().turn_face_up()

    def insert(self, card: Card) -> None:
        """Put a card at the end of the pile (a discard)."""
        self.cards.append(card)

    def top(self) -> Optional[Card]:
        """Peek at the top of a face-down pile without removing it."""
        if self.cards:
            return self.cards[0]
        return None

    def top_discard(self) -> Optional[Card]:
        """Peek at the top of a face-up pile without removing it."""
        if self.cards:
            return self.cards[-1]
        return None

    def take_all(self) -> list[Card]:
        """Empty the pile and return everything that was in it."""
        cards, self.cards = self.cards, []
        return cards


# =============================================================================
# Players
# =============================================================================

@dataclass(frozen=True)
class VisibleScore:
    """Score of the face-up part of a hand."""
    visible_score: int
    face_down_count: int


@dataclass
class Player:
    """
    A seat at the table: a 6-card hand plus the strategy that plays it.

    The player holds at most one transient card between its own draw and
    play phases (currently_drawn_card).

    Attributes:
        strategy: Decision policy, see ai.Strategy.
        seat: 0-based position at the table.
        hand: The 2x3 grid of cards, exactly 6 once dealt.
        currently_drawn_card: Card drawn this turn, not yet played.
    """

    strategy: Any
    seat: int = 0
    hand: list[Card] = field(default_factory=list)
    currently_drawn_card: Optional[Card] = None

    @property
    def strategy_name(self) -> str:
        return getattr(self.strategy, "name", type(self.strategy).__name__)

    def draw_card(self, game: "Game") -> Card:
        """
        First step of a turn: let the strategy take a card from either pile.

        The engine works out which pile was used from the discard pile's size
        before and after the draw; strategies only move cards.

        Args:
            game: The game being played.

        Returns:
            The drawn card, now held in currently_drawn_card.

        Raises:
            StrategyContractError: If the strategy didn't draw a card.
        """
        discard_count_before = len(game.discard_pile)

        card = self.strategy.choose_card_to_draw(game, self)
        if card is None:
            raise StrategyContractError(
                f"{self.strategy_name} drew no card for seat {self.seat}"
            )
        self.currently_drawn_card = card

        if len(game.discard_pile) < discard_count_before:
            game.last_draw_source = DrawSource.DISCARD
        else:
            game.last_draw_source = DrawSource.DRAW

        return card

    def play_card(self, game: "Game") -> Optional[Card]:
        """
        Second step of a turn: let the strategy place or discard the drawn card.

        Returns:
            The card that ends up on the discard pile.
        """
        discarded = self.strategy.play_card(game, self)
        self.currently_drawn_card = None
        return discarded

    def flip_starting_cards(self) -> None:
        self.strategy.flip_starting_cards(self)

    def final_turn(self) -> None:
        self.strategy.final_turn(self)

    def all_face_up(self) -> bool:
        """Check if all of the player's cards are revealed."""
        return all(card.face_up for card in self.hand)

    def face_down_count(self) -> int:
        return sum(1 for card in self.hand if not card.face_up)

    def score_hand(self) -> int:
        """
        Score the full hand, visible or not.

        Scoring rules:
            - Each card contributes its golf score
            - Matching ranks in a column cancel out (score 0)

        Only meaningful at game end, when every card has been revealed.

        Returns:
            Total score (lower is better).
        """
        total = 0
        for col in range(COLUMNS):
            top_card = self.hand[col]
            bottom_card = self.hand[col + COLUMNS]

            if top_card.rank == bottom_card.rank:
                continue

            total += top_card.golf_score()
            total += bottom_card.golf_score()
        return total

    def score_visible_hand(self) -> VisibleScore:
        """
        Score only the face-up cards of the hand.

        A column counts as a pair only when both of its cards are face-up;
        a column with both cards face-down contributes nothing.

        Returns:
            VisibleScore with the visible total and the number of face-down cards.
        """
        visible_score = 0
        face_down_count = 0

        for col in range(COLUMNS):
            top_card = self.hand[col]
            bottom_card = self.hand[col + COLUMNS]

            if not top_card.face_up:
                face_down_count += 1
            if not bottom_card.face_up:
                face_down_count += 1

            if not top_card.face_up and not bottom_card.face_up:
                continue

            if top_card.face_up and bottom_card.face_up and top_card.rank == bottom_card.rank:
                continue

            if top_card.face_up:
                visible_score += top_card.golf_score()
            if bottom_card.face_up:
                visible_score += bottom_card.golf_score()

        return VisibleScore(visible_score=visible_score, face_down_count=face_down_count)


# =============================================================================
# Game State
# =============================================================================

class TurnPhase(str, Enum):
    """
    Phase within the current player's turn.

    Flow: DRAW -> PLAY -> (next player) DRAW
    """

    DRAW = "draw"
    PLAY = "play"


class DrawSource(str, Enum):
    """Pile the current player drew from this turn."""

    DRAW = "draw"
    DISCARD = "discard"


@dataclass(frozen=True)
class CardState:
    """Read-only view of a card for snapshots."""
    rank: str
    suit: str
    face_up: bool
    image_key: str

    @classmethod
    def from_card(cls, card: Card) -> "CardState":
        return cls(
            rank=card.rank.value,
            suit=card.suit.value,
            face_up=card.face_up,
            image_key=card.image_key(),
        )

    def to_dict(self) -> dict:
        return {
            "rank": self.rank,
            "suit": self.suit,
            "face_up": self.face_up,
            "image_key": self.image_key,
        }


@dataclass(frozen=True)
class FinalScore:
    """One entry of the final ranking."""
    seat: int
    score: int

    @property
    def player_num(self) -> int:
        return self.seat + 1

    def to_dict(self) -> dict:
        return {"seat": self.seat, "player_num": self.player_num, "score": self.score}


@dataclass(frozen=True)
class PlayerState:
    """Read-only view of one seat."""
    seat: int
    strategy: str
    hand: tuple[CardState, ...]
    score: int
    visible_score: int
    face_down_count: int
    is_current_player: bool
    currently_drawn_card: Optional[CardState]

    @property
    def player_num(self) -> int:
        return self.seat + 1

    def to_dict(self) -> dict:
        return {
            "seat": self.seat,
            "player_num": self.player_num,
            "strategy": self.strategy,
            "hand": [c.to_dict() for c in self.hand],
            "score": self.score,
            "visible_score": self.visible_score,
            "face_down_count": self.face_down_count,
            "is_current_player": self.is_current_player,
            "currently_drawn_card": (
                self.currently_drawn_card.to_dict() if self.currently_drawn_card else None
            ),
        }


@dataclass(frozen=True)
class GameState:
    """
    Snapshot of a game, returned by Game.initialize() and Game.next_turn().

    This is the only view presentation layers and harnesses get of a game.
    Piles are exposed as counts plus the top discard, never their order.
    """
    game_id: str
    players: tuple[PlayerState, ...]
    draw_pile_count: int
    discard_pile_count: int
    top_discard: Optional[CardState]
    current_player_index: int
    turn_phase: TurnPhase
    last_draw_source: Optional[DrawSource]
    currently_drawn_card: Optional[CardState]
    game_ending: bool
    is_game_over: bool
    final_scores: tuple[FinalScore, ...] = ()

    @property
    def current_player(self) -> PlayerState:
        return self.players[self.current_player_index]

    def to_dict(self) -> dict:
        """Convert snapshot to dictionary for JSON serialization."""
        return {
            "game_id": self.game_id,
            "players": [p.to_dict() for p in self.players],
            "draw_pile_count": self.draw_pile_count,
            "discard_pile_count": self.discard_pile_count,
            "top_discard": self.top_discard.to_dict() if self.top_discard else None,
            "current_player_index": self.current_player_index,
            "turn_phase": self.turn_phase.value,
            "last_draw_source": self.last_draw_source.value if self.last_draw_source else None,
            "currently_drawn_card": (
                self.currently_drawn_card.to_dict() if self.currently_drawn_card else None
            ),
            "game_ending": self.game_ending,
            "is_game_over": self.is_game_over,
            "final_scores": [s.to_dict() for s in self.final_scores],
        }


class Game:
    """
    Main game state and turn state machine for 6-Card Golf.

    The game is the only thing that mutates global state: strategies move
    cards between the piles and their own hand, and the game takes care of
    phases, turn order, reshuffling, the end-game trigger and final scoring.

    Attributes:
        players: Seats in turn order.
        draw_pile: Face-down pile, top at index 0.
        discard_pile: Face-up pile, top at the end.
        current_player_index: Seat whose turn it is.
        turn_phase: DRAW or PLAY.
        last_draw_source: Pile drawn from this turn, None before the draw.
        game_ending: Set once a player has revealed their whole hand.
        final_turns_taken: Seats that have played their final turn.
        is_game_over: Set once final scores are in.
        final_scores: Ranking by score, lowest first (ties keep seat order).
        turn_count: Phases executed so far.
        plays_since_reveal: Consecutive plays that turned no face-down card up.
    """

    def __init__(
        self,
        num_players: int,
        strategies: Optional[list[Any]] = None,
        rng: Optional[random.Random] = None,
        validate: Optional[bool] = None,
    ) -> None:
        """
        Create a game with its players and a freshly shuffled deck.

        Args:
            num_players: Number of seats, MIN_PLAYERS to MAX_PLAYERS.
            strategies: One strategy instance per seat. Basic strategy if None.
            rng: Random generator for every shuffle in this game.
            validate: Check hand sizes and the card total after each phase.
                Defaults to config.DEBUG.

        Raises:
            InvalidPlayerCountError: If num_players or the strategy list is out of range.
        """
        if (
            isinstance(num_players, bool)
            or not isinstance(num_players, int)
            or not MIN_PLAYERS <= num_players <= MAX_PLAYERS
        ):
            raise InvalidPlayerCountError(
                f"Golf needs {MIN_PLAYERS}-{MAX_PLAYERS} players, got {num_players!r}"
            )

        if strategies is None:
            # Import here to avoid circular dependency
            from golfsim.ai import BasicStrategy
            strategies = [BasicStrategy() for _ in range(num_players)]
        elif len(strategies) != num_players:
            raise InvalidPlayerCountError(
                f"Expected {num_players} strategies, got {len(strategies)}"
            )

        self.game_id = str(uuid.uuid4())
        self.rng = rng if rng is not None else random.Random()
        self.validate = config.DEBUG if validate is None else validate
        self.players = [
            Player(strategy=strategy, seat=seat) for seat, strategy in enumerate(strategies)
        ]
        self.log = get_logger("golf.game").with_context(game_id=self.game_id)
        self._initialized = False
        self._reset()

    def _reset(self) -> None:
        """Put every card back in a shuffled draw pile and clear turn state."""
        self.draw_pile = CardPile(rng=self.rng)
        self.discard_pile = CardPile(rng=self.rng)
        self.draw_pile.setup_standard_deck()

        for player in self.players:
            player.hand = []
            player.currently_drawn_card = None

        self.current_player_index = 0
        self.turn_phase = TurnPhase.DRAW
        self.last_draw_source: Optional[DrawSource] = None
        self.game_ending = False
        self.final_turns_taken: set[int] = set()
        self.is_game_over = False
        self.final_scores: list[FinalScore] = []
        self.turn_count = 0
        self.plays_since_reveal = 0

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------

    def initialize(self) -> GameState:
        """
        Deal the hands and turn the first discard face-up.

        Calling it again resets the game with a new shuffle.

        Returns:
            The initial snapshot.
        """
        if self._initialized:
            self._reset()
        self._initialized = True

        self.deal_hands()

        initial_discard = self.draw_pile.draw_from_top()
        if initial_discard:
            self.discard_pile.insert(initial_discard)

        self.turn_phase = TurnPhase.DRAW
        self.last_draw_source = None

        self.log.info(
            f"Game started: {len(self.players)} players "
            f"({', '.join(p.strategy_name for p in self.players)})"
        )
        return self.get_state()

    def deal_hands(self) -> None:
        for player in self.players:
            player.hand = self.draw_pile.draw_initial_hand()
            player.flip_starting_cards()

    # -------------------------------------------------------------------------
    # Turn State Machine
    # -------------------------------------------------------------------------

    def current_player(self) -> Player:
        return self.players[self.current_player_index]

    def next_turn(self) -> GameState:
        """
        Advance the game by one phase of the current player's turn.

        Order of checks:
            1. Game over: nothing happens.
            2. Ending and this seat already had its final turn: skip the seat.
            3. Draw pile empty: reshuffle the discard pile into it. If there is
               still nothing to draw at the start of a turn, the game ends.
            4. DRAW phase: the player draws, phase becomes PLAY.
            5. PLAY phase: the player plays, the discard goes face-up onto the
               discard pile, end-game bookkeeping runs and the turn passes on.
               A table that has revealed nothing for STALL_ROUNDS full rounds
               is ended and scored as it stands.

        Returns:
            The snapshot after this phase.
        """
        if self.is_game_over:
            return self.get_state()

        if self.game_ending and self.current_player_index in self.final_turns_taken:
            self._advance_to_next_player()
            self.turn_phase = TurnPhase.DRAW
            return self.get_state()

        self._check_and_reshuffle()

        player = self.current_player()
        if self.turn_phase == TurnPhase.DRAW:
            if not self.draw_pile:
                self.log.warning("No cards left in either pile, ending game")
                self.end_game()
                return self.get_state()
            self._draw_phase(player)
        else:
            self._play_phase(player)

        self.turn_count += 1
        return self.get_state()

    def _draw_phase(self, player: Player) -> None:
        card = player.draw_card(self)
        self.log.debug(
            f"Seat {player.seat} drew {card.token} from {self.last_draw_source.value} pile",
            extra={"seat": player.seat, "strategy": player.strategy_name},
        )
        if self.validate:
            self._validate_cards()
        self.turn_phase = TurnPhase.PLAY

    def _play_phase(self, player: Player) -> None:
        face_down_before = player.face_down_count()
        discarded = player.play_card(self)
        if discarded is None:
            raise StrategyContractError(
                f"{player.strategy_name} returned no discard for seat {player.seat}"
            )

        discarded.turn_face_up()
        self.discard_pile.insert(discarded)
        self.log.debug(
            f"Seat {player.seat} discarded {discarded.token}",
            extra={"seat": player.seat, "strategy": player.strategy_name},
        )

        if self.validate:
            self._validate_cards()

        if not self.game_ending and player.all_face_up():
            self.game_ending = True
            self.log.debug(
                f"Seat {player.seat} revealed all cards, final turns begin",
                extra={"seat": player.seat},
            )

        if self.game_ending:
            self.final_turns_taken.add(self.current_player_index)

        if player.face_down_count() < face_down_before:
            self.plays_since_reveal = 0
        else:
            self.plays_since_reveal += 1

        if self.game_ending and len(self.final_turns_taken) == len(self.players):
            self.end_game()
        elif self.is_stalled():
            self.log.warning(
                f"No card revealed in {self.plays_since_reveal} plays, ending game"
            )
            self.end_game()
        else:
            self._advance_to_next_player()

        self.turn_phase = TurnPhase.DRAW
        self.last_draw_source = None

    def is_stalled(self) -> bool:
        """
        True once STALL_ROUNDS full rounds have passed without any card being revealed.

        Face-down counts never go back up, so a table that stops revealing
        cards (e.g. seats passing low discards back and forth) would otherwise
        never reach the end-game trigger.
        """
        return self.plays_since_reveal >= config.STALL_ROUNDS * len(self.players)

    def _advance_to_next_player(self) -> None:
        self.current_player_index = (self.current_player_index + 1) % len(self.players)

    def _check_and_reshuffle(self) -> None:
        """Turn the discard pile into a new draw pile once the draw pile runs out."""
        if len(self.draw_pile) == 0 and len(self.discard_pile) > 0:
            cards = self.discard_pile.take_all()
            for card in cards:
                card.turn_face_down()
            self.draw_pile.cards = cards
            self.draw_pile.shuffle()
            self.log.debug(f"Reshuffled {len(cards)} discards into the draw pile")

    def _validate_cards(self) -> None:
        """
        Check the closed-system invariants after a phase.

        Raises:
            StrategyContractError: If a hand isn't 6 cards or cards were lost or duplicated.
        """
        for player in self.players:
            if len(player.hand) != HAND_SIZE:
                raise StrategyContractError(
                    f"Seat {player.seat} has {len(player.hand)} cards after "
                    f"{player.strategy_name} played"
                )

        seen = {id(card) for card in self._all_cards()}
        total = self.total_cards()
        if total != DECK_SIZE or len(seen) != DECK_SIZE:
            raise StrategyContractError(
                f"Card total is {total} ({len(seen)} distinct), expected {DECK_SIZE}"
            )

    # -------------------------------------------------------------------------
    # Game End
    # -------------------------------------------------------------------------

    def end_game(self) -> None:
        """
        Reveal every hand, score it and rank the seats.

        Ranking is ascending by score (lowest wins); ties keep seat order.
        """
        for player in self.players:
            player.final_turn()

        scores = [FinalScore(seat=player.seat, score=player.score_hand()) for player in self.players]
        scores.sort(key=lambda s: s.score)

        self.final_scores = scores
        self.is_game_over = True

        self.log.info(
            "Game over: "
            + ", ".join(f"seat {s.seat}={s.score}" for s in scores)
        )

    def play_to_completion(self, max_turns: Optional[int] = None) -> GameState:
        """
        Call next_turn() until the game is over.

        If the safety limit is reached first, the game is ended and scored
        as it stands.

        Args:
            max_turns: Safety limit on phases. Defaults to config.MAX_TURNS.

        Returns:
            The final snapshot.
        """
        limit = max_turns if max_turns is not None else config.MAX_TURNS
        if not self._initialized:
            self.initialize()

        steps = 0
        while not self.is_game_over:
            if steps >= limit:
                self.log.warning(f"Game did not finish within {limit} phases, ending it")
                self._return_drawn_card()
                self.end_game()
                break
            self.next_turn()
            steps += 1
        return self.get_state()

    def _return_drawn_card(self) -> None:
        """Put a card drawn but not yet played back on the discard pile."""
        player = self.current_player()
        if player.currently_drawn_card is not None:
            self.discard_pile.insert(player.currently_drawn_card.turn_face_up())
            player.currently_drawn_card = None
        self.turn_phase = TurnPhase.DRAW
        self.last_draw_source = None

    # -------------------------------------------------------------------------
    # State Queries
    # -------------------------------------------------------------------------

    def discard_top(self) -> Optional[Card]:
        """Get the top card of the discard pile (if any)."""
        return self.discard_pile.top_discard()

    def _all_cards(self) -> list[Card]:
        cards = list(self.draw_pile.cards) + list(self.discard_pile.cards)
        for player in self.players:
            cards.extend(player.hand)
            if player.currently_drawn_card is not None:
                cards.append(player.currently_drawn_card)
        return cards

    def total_cards(self) -> int:
        """Cards in both piles, every hand and any drawn card (always 52)."""
        return len(self._all_cards())

    def get_state(self) -> GameState:
        """
        Build a read-only snapshot of the game.

        Returns:
            GameState with every seat's hand and scores, pile counts, the top
            discard and the turn flags.
        """
        players = []
        for index, player in enumerate(self.players):
            visible = player.score_visible_hand() if player.hand else VisibleScore(0, 0)
            is_current = index == self.current_player_index
            drawn = player.currently_drawn_card if is_current else None
            players.append(PlayerState(
                seat=player.seat,
                strategy=player.strategy_name,
                hand=tuple(CardState.from_card(c) for c in player.hand),
                score=player.score_hand() if player.hand else 0,
                visible_score=visible.visible_score,
                face_down_count=visible.face_down_count,
                is_current_player=is_current,
                currently_drawn_card=CardState.from_card(drawn) if drawn else None,
            ))

        top = self.discard_top()
        current_drawn = self.current_player().currently_drawn_card

        return GameState(
            game_id=self.game_id,
            players=tuple(players),
            draw_pile_count=len(self.draw_pile),
            discard_pile_count=len(self.discard_pile),
            top_discard=CardState.from_card(top) if top else None,
            current_player_index=self.current_player_index,
            turn_phase=self.turn_phase,
            last_draw_source=self.last_draw_source,
            currently_drawn_card=CardState.from_card(current_drawn) if current_drawn else None,
            game_ending=self.game_ending,
            is_game_over=self.is_game_over,
            final_scores=tuple(self.final_scores),
        )
