"""
Golf Strategy Simulation Runner

Runs strategy-vs-strategy games to completion and aggregates win, tie and
score statistics. Seats are shuffled every game so that playing order
doesn't bias the comparison.

Usage:
    python -m golfsim.simulate [-n NUM_GAMES] [-s STRATEGY ...] [--seed SEED]

Examples:
    python -m golfsim.simulate -n 100 -s basic -s improved   # 100 games, Basic vs Improved
    python -m golfsim.simulate -s improved -s improved -s basic --save
    python -m golfsim.simulate --detail -s basic -s improved  # One game, turn by turn
    python -m golfsim.simulate --history                      # Past saved simulations
"""

import argparse
import random
import sys
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from golfsim.ai import STRATEGIES, available_strategies, get_strategy
from golfsim.config import config
from golfsim.constants import MAX_PLAYERS, MIN_PLAYERS
from golfsim.game import Game, InvalidPlayerCountError, TurnPhase
from golfsim.logging_config import game_id_var, get_logger, setup_logging, simulation_id_var

logger = get_logger("golf.simulate")


@dataclass
class SimulationReport:
    """
    Aggregated results of a batch of games.

    Every per-player list is indexed by configured slot (the order strategies
    were given in), never by table seat.
    """

    strategies: list[str]
    num_games: int
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    games_played: int = 0
    tied_games: int = 0
    wins: list[int] = field(default_factory=list)
    total_scores: list[int] = field(default_factory=list)
    scores: list[list[int]] = field(default_factory=list)
    seed: Optional[int] = None

    def __post_init__(self):
        n = len(self.strategies)
        if not self.wins:
            self.wins = [0] * n
        if not self.total_scores:
            self.total_scores = [0] * n
        if not self.scores:
            self.scores = [[] for _ in range(n)]

    @property
    def average_scores(self) -> list[float]:
        if self.games_played == 0:
            return [0.0] * len(self.strategies)
        return [round(total / self.games_played, 2) for total in self.total_scores]

    @property
    def progress(self) -> int:
        """Percent of requested games played."""
        if self.num_games == 0:
            return 100
        return min(100, round(self.games_played / self.num_games * 100))

    def record_game(self, scores: list[int]) -> list[int]:
        """
        Add one game's slot-ordered scores.

        Every slot sharing the lowest score gets a win; a game with more than
        one such slot also counts as tied.

        Returns:
            The winning slot indices.
        """
        for slot, score in enumerate(scores):
            self.total_scores[slot] += score
            self.scores[slot].append(score)

        min_score = min(scores)
        winners = [slot for slot, score in enumerate(scores) if score == min_score]
        if len(winners) > 1:
            self.tied_games += 1
        for slot in winners:
            self.wins[slot] += 1

        self.games_played += 1
        return winners

    def slot_label(self, slot: int) -> str:
        return f"Player {slot + 1} ({self.strategies[slot]})"

    def winner_indices(self) -> list[int]:
        """Slots with the lowest average score (lowest wins in golf)."""
        if self.games_played == 0:
            return []
        averages = self.average_scores
        best = min(averages)
        return [slot for slot, avg in enumerate(averages) if avg == best]

    def winner_text(self) -> str:
        winners = self.winner_indices()
        if not winners:
            return "No winners"
        return " & ".join(self.slot_label(slot) for slot in winners)

    def scores_by_slot(self) -> dict[str, list[int]]:
        return {self.slot_label(slot): list(s) for slot, s in enumerate(self.scores)}

    def to_dict(self) -> dict:
        """Convert report to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp,
            "strategies": list(self.strategies),
            "num_games": self.num_games,
            "games_played": self.games_played,
            "tied_games": self.tied_games,
            "wins": list(self.wins),
            "total_scores": list(self.total_scores),
            "average_scores": self.average_scores,
            "scores": [list(s) for s in self.scores],
            "seed": self.seed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SimulationReport":
        return cls(
            strategies=list(data["strategies"]),
            num_games=data["num_games"],
            timestamp=data["timestamp"],
            games_played=data["games_played"],
            tied_games=data["tied_games"],
            wins=list(data["wins"]),
            total_scores=list(data["total_scores"]),
            scores=[list(s) for s in data.get("scores", [])],
            seed=data.get("seed"),
        )

    def report(self) -> str:
        lines = [
            "=" * 50,
            "SIMULATION RESULTS",
            "=" * 50,
            f"Games played: {self.games_played}",
            f"Tied games: {self.tied_games}",
            "",
            "WIN RATES:",
        ]

        for slot in sorted(range(len(self.strategies)), key=lambda s: -self.wins[s]):
            pct = self.wins[slot] / max(1, self.games_played) * 100
            lines.append(f"  {self.slot_label(slot)}: {self.wins[slot]} wins ({pct:.1f}%)")

        lines.append("")
        lines.append("AVERAGE SCORES (lower is better):")

        averages = self.average_scores
        for slot in sorted(range(len(self.strategies)), key=lambda s: averages[s]):
            lines.append(f"  {self.slot_label(slot)}: {averages[slot]:.2f}")

        lines.append("")
        lines.append(f"Best average: {self.winner_text()}")

        return "\n".join(lines)


# =============================================================================
# Seat Assignment
# =============================================================================

def make_seat_assignment(num_players: int, rng: random.Random) -> list[int]:
    """
    Random seat order for one game.

    Returns:
        assignment[seat] = slot of the strategy sitting there.
    """
    assignment = list(range(num_players))
    rng.shuffle(assignment)
    return assignment


def invert_assignment(assignment: list[int]) -> list[int]:
    """Inverse permutation: result[slot] = seat."""
    inverse = [0] * len(assignment)
    for seat, slot in enumerate(assignment):
        inverse[slot] = seat
    return inverse


def map_scores_to_slots(seat_scores: list[int], assignment: list[int]) -> list[int]:
    """Reorder per-seat scores into configured slot order."""
    inverse = invert_assignment(assignment)
    return [seat_scores[inverse[slot]] for slot in range(len(assignment))]


def validate_strategy_names(strategy_names: list[str]) -> None:
    """
    Raises:
        InvalidPlayerCountError: If there are not 2-6 strategies.
        UnknownStrategyError: If a name isn't registered.
    """
    if not MIN_PLAYERS <= len(strategy_names) <= MAX_PLAYERS:
        raise InvalidPlayerCountError(
            f"Simulations need {MIN_PLAYERS}-{MAX_PLAYERS} strategies, got {len(strategy_names)}"
        )
    for name in strategy_names:
        get_strategy(name)


# =============================================================================
# Running Games
# =============================================================================

def run_single_game(
    strategy_names: list[str],
    rng: random.Random,
    max_turns: Optional[int] = None,
) -> list[int]:
    """
    Play one game to completion with shuffled seats.

    Args:
        strategy_names: Strategy per slot.
        rng: Drives the seat order and seeds the game's own generator.
        max_turns: Safety limit on phases, config.MAX_TURNS if None.

    Returns:
        Final scores in slot order.
    """
    num_players = len(strategy_names)
    assignment = make_seat_assignment(num_players, rng)
    strategies = [get_strategy(strategy_names[slot]) for slot in assignment]

    game = Game(num_players, strategies=strategies, rng=random.Random(rng.getrandbits(64)))
    token = game_id_var.set(game.game_id)
    try:
        game.initialize()
        game.play_to_completion(max_turns)
    finally:
        game_id_var.reset(token)

    seat_scores = [player.score_hand() for player in game.players]
    return map_scores_to_slots(seat_scores, assignment)


def run_simulation(
    strategy_names: list[str],
    num_games: Optional[int] = None,
    seed: Optional[int] = None,
    progress: Optional[Callable[[SimulationReport], None]] = None,
) -> SimulationReport:
    """
    Run many games and aggregate the results.

    Args:
        strategy_names: Strategy per slot (2-6 entries, duplicates allowed).
        num_games: Games to play, config.DEFAULT_GAMES if None.
        seed: Seed for reproducible runs.
        progress: Called with the report after every game.

    Returns:
        The finished SimulationReport.
    """
    validate_strategy_names(strategy_names)
    if num_games is None:
        num_games = config.DEFAULT_GAMES

    rng = random.Random(seed)
    report = SimulationReport(
        strategies=[name.lower() for name in strategy_names],
        num_games=num_games,
        seed=seed,
    )

    token = simulation_id_var.set(str(uuid.uuid4()))
    try:
        logger.info(f"Running {num_games} games: {' vs '.join(report.strategies)}")
        for _ in range(num_games):
            scores = run_single_game(report.strategies, rng)
            report.record_game(scores)
            if progress:
                progress(report)
        logger.info(
            f"Simulation finished: {report.games_played} games, "
            f"{report.tied_games} ties, best average {report.winner_text()}"
        )
    finally:
        simulation_id_var.reset(token)

    return report


def format_hand(cards) -> str:
    """Render a 2x3 hand as two rows of image keys."""
    keys = [c.image_key if c.face_up else "??" for c in cards]
    return f"[{' '.join(keys[:3])}] / [{' '.join(keys[3:])}]"


def run_detailed_game(strategy_names: list[str], seed: Optional[int] = None) -> Game:
    """Run a single game, printing every phase."""
    validate_strategy_names(strategy_names)
    num_players = len(strategy_names)

    print(f"\nRunning detailed game with {num_players} players...")
    print("=" * 50)

    rng = random.Random(seed)
    game = Game(
        num_players,
        strategies=[get_strategy(name) for name in strategy_names],
        rng=rng,
    )
    state = game.initialize()

    print("\nStarting hands:")
    for p in state.players:
        print(f"  Player {p.player_num} ({p.strategy}): {format_hand(p.hand)}")
    print(f"\nDiscard pile: {state.top_discard.image_key if state.top_discard else 'empty'}")
    print("-" * 50)

    turn = 0
    while not state.is_game_over:
        state = game.next_turn()
        if state.is_game_over:
            break
        acting = state.current_player
        if state.turn_phase == TurnPhase.PLAY:
            turn += 1
            drawn = state.currently_drawn_card
            print(f"\nTurn {turn}: Player {acting.player_num} ({acting.strategy})")
            print(f"  Drew {drawn.image_key} from {state.last_draw_source.value} pile")
        else:
            previous = state.players[(state.current_player_index - 1) % num_players]
            print(f"  Hand now: {format_hand(previous.hand)} (visible {previous.visible_score})")
            print(f"  Discard: {state.top_discard.image_key if state.top_discard else 'empty'}")
            if state.game_ending:
                print("  >>> Final turns in progress")

    print("\n" + "=" * 50)
    print("FINAL SCORES")
    print("=" * 50)

    for entry in state.final_scores:
        p = state.players[entry.seat]
        print(f"  Player {entry.player_num} ({p.strategy}): {entry.score} points")
        print(f"    Cards: {format_hand(p.hand)}")

    return game


# =============================================================================
# CLI
# =============================================================================

def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Simulate 6-Card Golf games between strategies",
    )
    parser.add_argument(
        "-n", "--games", type=positive_int, default=config.DEFAULT_GAMES,
        help=f"number of games to play (default {config.DEFAULT_GAMES})",
    )
    parser.add_argument(
        "-s", "--strategy", action="append", dest="strategies",
        choices=sorted(STRATEGIES),
        help="strategy for the next player slot (repeat for 2-6 players)",
    )
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    parser.add_argument("--detail", action="store_true", help="play one game turn by turn")
    parser.add_argument("--save", action="store_true", help="save the report to history")
    parser.add_argument("--history", action="store_true", help="list saved simulations")
    parser.add_argument("--clear-history", action="store_true", help="delete saved simulations")
    parser.add_argument("--plot", metavar="FILE", default=None, help="write a score box plot")
    parser.add_argument("--list", action="store_true", help="list available strategies")
    parser.add_argument("--log-level", default=config.LOG_LEVEL)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, config.ENVIRONMENT)

    if args.list:
        for entry in available_strategies():
            print(f"{entry['name']:<10} {entry['display_name']}: {entry['description']}")
        return 0

    if args.history or args.clear_history:
        from golfsim.sim_history import get_history

        history = get_history()
        if args.clear_history:
            removed = history.clear()
            print(f"Removed {removed} saved simulations")
            return 0
        for entry in history.get_recent():
            report = entry["report"]
            print(
                f"#{entry['id']} {entry['created_at']}: {' vs '.join(report.strategies)} - "
                f"{report.games_played} games, best average {report.winner_text()}"
            )
        return 0

    strategy_names = args.strategies or ["basic", "improved"]

    if args.detail:
        run_detailed_game(strategy_names, args.seed)
        return 0

    def show_progress(report: SimulationReport) -> None:
        if report.games_played % 10 == 0 or report.games_played == report.num_games:
            print(f"  {report.games_played}/{report.num_games} games ({report.progress}%)")

    report = run_simulation(strategy_names, args.games, seed=args.seed, progress=show_progress)

    print("\n")
    print(report.report())

    if args.save:
        from golfsim.sim_history import get_history

        report_id = get_history().save_report(report)
        print(f"\nSaved as simulation #{report_id}")

    if args.plot and report.games_played:
        from golfsim.score_analysis import create_ascii_box_plot, create_box_plot, print_statistics

        scores = report.scores_by_slot()
        print_statistics(scores)
        create_ascii_box_plot(scores)
        create_box_plot(scores, args.plot)

    return 0


if __name__ == "__main__":
    sys.exit(main())
