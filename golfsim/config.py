"""
Simulator settings.

Values come from the process environment, falling back to a project-level
.env file (read with python-dotenv, never overriding variables that are
already set) and then to the defaults below.

Usage:
    from golfsim.config import config
    config.SHUFFLE_PASSES
    config.card_values["K"]
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

ENV_FILE = Path(__file__).resolve().parent.parent / ".env"
if ENV_FILE.is_file():
    load_dotenv(ENV_FILE, override=False)

TRUTHY = {"1", "true", "yes", "on"}
FALSY = {"0", "false", "no", "off"}


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Read a yes/no flag; anything unrecognised means the default."""
    raw = os.environ.get(key, "").strip().lower()
    if raw in TRUTHY:
        return True
    if raw in FALSY:
        return False
    return default


def get_env_int(key: str, default: int = 0) -> int:
    """Read an integer; a missing or malformed value means the default."""
    raw = os.environ.get(key)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


# Standard points per rank character
STANDARD_CARD_POINTS: dict[str, int] = {
    "A": 1, "2": -2, "3": 3, "4": 4, "5": 5, "6": 6, "7": 7,
    "8": 8, "9": 9, "T": 10, "J": 10, "Q": 10, "K": 0,
}

# Ranks whose value is a common house variant, and the variable overriding each
CARD_POINT_ENV_VARS = {"A": "CARD_ACE", "2": "CARD_TWO", "K": "CARD_KING"}


@dataclass
class CardValues:
    """Point value of every rank, keyed by rank character."""
    points: dict[str, int] = field(default_factory=lambda: dict(STANDARD_CARD_POINTS))

    def __getitem__(self, rank: str) -> int:
        return self.points[rank]

    def to_dict(self) -> dict[str, int]:
        return dict(self.points)

    @classmethod
    def from_env(cls) -> "CardValues":
        points = dict(STANDARD_CARD_POINTS)
        for rank, var in CARD_POINT_ENV_VARS.items():
            points[rank] = get_env_int(var, points[rank])
        return cls(points)


@dataclass
class SimConfig:
    """Simulator configuration."""
    LOG_LEVEL: str = "INFO"
    # "production" switches logs to JSON lines
    ENVIRONMENT: str = "development"

    # Check hand sizes and the 52-card total after every phase
    DEBUG: bool = False
    # Per-decision strategy logging on the golf.ai logger
    AI_DEBUG: bool = False

    # Fisher-Yates passes per shuffle
    SHUFFLE_PASSES: int = 10

    DEFAULT_GAMES: int = 100
    # Full rounds without any card revealed before the game is ended
    STALL_ROUNDS: int = 50
    # Safety limit on phases per game
    MAX_TURNS: int = 10000
    HISTORY_DB: str = "simulations.db"

    card_values: CardValues = field(default_factory=CardValues)

    @classmethod
    def from_env(cls) -> "SimConfig":
        defaults = cls()
        return cls(
            LOG_LEVEL=get_env("LOG_LEVEL", defaults.LOG_LEVEL),
            ENVIRONMENT=get_env("ENVIRONMENT", defaults.ENVIRONMENT),
            DEBUG=get_env_bool("DEBUG", defaults.DEBUG),
            AI_DEBUG=get_env_bool("AI_DEBUG", defaults.AI_DEBUG),
            SHUFFLE_PASSES=max(1, get_env_int("SHUFFLE_PASSES", defaults.SHUFFLE_PASSES)),
            DEFAULT_GAMES=get_env_int("DEFAULT_GAMES", defaults.DEFAULT_GAMES),
            STALL_ROUNDS=max(1, get_env_int("STALL_ROUNDS", defaults.STALL_ROUNDS)),
            MAX_TURNS=get_env_int("MAX_TURNS", defaults.MAX_TURNS),
            HISTORY_DB=get_env("HISTORY_DB", defaults.HISTORY_DB),
            card_values=CardValues.from_env(),
        )


config = SimConfig.from_env()


def reload_config() -> SimConfig:
    """Re-read the environment into the module-level config (used by tests)."""
    global config
    config = SimConfig.from_env()
    return config
