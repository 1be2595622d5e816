"""
Game constants for Camel Up (2nd Edition).

Spaces are 0-indexed internally: space 0 is printed as "space 1".
"""

from typing import Final

# Racing camel indices (used throughout for identification)
BLUE: Final[int] = 0
GREEN: Final[int] = 1
RED: Final[int] = 2
YELLOW: Final[int] = 3
PURPLE: Final[int] = 4

# The black and white crazy camels travel as one token on the track
CRAZY: Final[int] = 5

# Convenience collections
CAMELS: Final[tuple[int, ...]] = (BLUE, GREEN, RED, YELLOW, PURPLE)
CAMEL_NAMES: Final[tuple[str, ...]] = ("Blue", "Green", "Red", "Yellow", "Purple", "Crazy")
NUM_CAMELS: Final[int] = 5
ALL_TOKENS: Final[tuple[int, ...]] = CAMELS + (CRAZY,)

# Crazy die color sub-results
BLACK: Final[str] = "black"
WHITE: Final[str] = "white"
CRAZY_COLORS: Final[tuple[str, ...]] = (BLACK, WHITE)

# Board configuration
NUM_SPACES: Final[int] = 16  # Spaces 1-16 (0-indexed internally: 0-15)
START_SPACE: Final[int] = 0
START_SPACES: Final[tuple[int, ...]] = (0, 1, 2)  # Racing camels start on spaces 1-3
CRAZY_START_OFFSETS: Final[tuple[int, ...]] = (1, 2, 3)  # Crazy unit starts 1-3 spaces from the end

# Dice configuration
DICE_VALUES: Final[tuple[int, ...]] = (1, 2, 3)
NUM_CRAZY_DICE: Final[int] = 2
PYRAMID_SIZE: Final[int] = NUM_CAMELS + NUM_CRAZY_DICE

# Leg betting tiles, top of stack first
BET_TILE_VALUES: Final[tuple[int, ...]] = (5, 3, 2)
LEG_SECOND_PLACE_PAYOUT: Final[int] = 1
LEG_WRONG_BET_PENALTY: Final[int] = -1

# Rewards
ROLL_REWARD: Final[int] = 1
PYRAMID_TILE_PAYOUT: Final[int] = 1
DESERT_TILE_PAYOUT: Final[int] = 1
STARTING_COINS: Final[int] = 3

# Desert tiles
OASIS: Final[str] = "oasis"
MIRAGE: Final[str] = "mirage"
DESERT_KINDS: Final[tuple[str, ...]] = (OASIS, MIRAGE)
OASIS_EFFECT: Final[int] = 1   # +1 space forward, landing camels go on TOP
MIRAGE_EFFECT: Final[int] = -1  # -1 space backward, landing camels go on BOTTOM
DESERT_EFFECTS: Final[dict[str, int]] = {OASIS: OASIS_EFFECT, MIRAGE: MIRAGE_EFFECT}

# Game end bet scoring (first correct bettor gets 8, second gets 5, etc.)
GAME_END_BET_PAYOUTS: Final[tuple[int, ...]] = (8, 5, 3, 2, 1)
GAME_END_BET_MIN_PAYOUT: Final[int] = 1
GAME_END_BET_PENALTY: Final[int] = -1

# Players
NUM_PLAYERS: Final[int] = 4
MIN_PLAYERS: Final[int] = 2
MAX_PLAYERS: Final[int] = 8

# AI difficulties
AI_RANDOM: Final[str] = "random"
AI_BASIC: Final[str] = "basic"
AI_SMART: Final[str] = "smart"
AI_DIFFICULTIES: Final[tuple[str, ...]] = (AI_RANDOM, AI_BASIC, AI_SMART)
BASIC_TILE_THRESHOLD: Final[int] = 5

# Room codes for the host relay
ROOM_CODE_ALPHABET: Final[str] = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH: Final[int] = 4

# Agent environment
AGENT_SEAT: Final[int] = 0
INVALID_ACTION_PENALTY: Final[float] = -1.0
