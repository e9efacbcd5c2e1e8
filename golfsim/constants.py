"""
Card value and table constants for 6-Card Golf.

This module is the single source of truth for card point values and the
supported table size. Values are read from config.py, so they can be
overridden with environment variables (see .env.example).

Standard Golf Scoring:
    - Ace: 1 point
    - Two: -2 points (the only negative card)
    - 3-9: Face value
    - 10, Jack, Queen: 10 points
    - King: 0 points
"""

from golfsim.config import config


# =============================================================================
# Card Values - Single Source of Truth
# =============================================================================

DEFAULT_CARD_VALUES: dict[str, int] = config.card_values.to_dict()

# Image key shown for a face-down card
CARD_BACK = "RED_BACK"


# =============================================================================
# Table Constants
# =============================================================================

MIN_PLAYERS = 2
MAX_PLAYERS = 6

HAND_SIZE = 6
COLUMNS = 3

# Cards each strategy reveals at deal time
INITIAL_FLIPS = 2
