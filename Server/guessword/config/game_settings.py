"""
Game Configuration Constants Module

This module defines the static game tables: round budgets per difficulty,
the scoring constants and the local fallback word pool. These are fixed
rules of the game and are intentionally not read from the environment.
"""

import json
import os
from typing import Dict, Final, List

# Round budget per difficulty (word length)
DIFFICULTY_SETTINGS: Final[Dict[int, Dict[str, int]]] = {
    3: {"time": 180, "attempts": 6},
    4: {"time": 240, "attempts": 7},
    5: {"time": 300, "attempts": 8},
}

# Scoring table per difficulty
SCORING_SETTINGS: Final[Dict[int, Dict[str, float]]] = {
    3: {"max_score": 300, "multiplier": 1.0},
    4: {"max_score": 450, "multiplier": 1.3},
    5: {"max_score": 650, "multiplier": 1.7},
}

# Indexed by attempts used - 1
ATTEMPT_MULTIPLIERS: Final[List[float]] = [1.0, 0.8, 0.6, 0.4, 0.25]
LAST_ATTEMPT_MULTIPLIER: Final[float] = 0.1

SPEED_BONUS_RATIO: Final[float] = 0.2

PARTIAL_CORRECT_POINTS: Final[int] = 15
PARTIAL_PRESENT_POINTS: Final[int] = 8
PARTIAL_SCORE_CAP_RATIO: Final[float] = 0.40

# Progress and leaderboard mode names
MODE_NAMES: Final[Dict[int, str]] = {3: "easy", 4: "medium", 5: "hard"}

# Solved words remembered per player to avoid repeats
WORD_HISTORY_MAX_SIZE: Final[int] = 1000

BACKSPACE_KEY: Final[str] = "BACKSPACE"
ENTER_KEY: Final[str] = "ENTER"


def _load_fallback_words() -> Dict[int, List[str]]:
    """
    Load the fallback word pool from fallback_words.json.

    Returns:
        Dict[int, List[str]]: Uppercase words keyed by word length

    Raises:
        FileNotFoundError: If fallback_words.json is not found
        ValueError: If the file is malformed or a pool is invalid
    """
    config_dir = os.path.dirname(os.path.abspath(__file__))
    json_file_path = os.path.join(config_dir, 'fallback_words.json')

    try:
        with open(json_file_path, 'r', encoding='utf-8') as f:
            raw_pools = json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Fallback word file not found: {json_file_path}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in fallback_words.json: {e}")

    if not isinstance(raw_pools, dict):
        raise ValueError("JSON file must contain an object of word lists keyed by length")

    pools = {}
    for length, words in raw_pools.items():
        pools[int(length)] = [word.upper() for word in words]
    return pools


# Local word pool used when the remote generator is unavailable
FALLBACK_WORDS: Final[Dict[int, List[str]]] = _load_fallback_words()


def max_attempts_for(difficulty: int) -> int:
    """Maximum number of guesses allowed at a difficulty."""
    return DIFFICULTY_SETTINGS[difficulty]["attempts"]


def time_limit_for(difficulty: int) -> int:
    """Round time budget in seconds at a difficulty."""
    return DIFFICULTY_SETTINGS[difficulty]["time"]


def validate_word_pool_integrity() -> bool:
    """
    Validates the fallback word pool against the difficulty table.

    This function checks that:
    1. Every difficulty has a non-empty pool
    2. Every word has the pool's length
    3. Only uppercase alphabetic characters are used
    4. No pool contains duplicates

    Returns:
        bool: True if the pool passes all validation checks

    Raises:
        ValueError: If any validation check fails with detailed error message
    """
    for difficulty in DIFFICULTY_SETTINGS:
        words = FALLBACK_WORDS.get(difficulty)
        if not words:
            raise ValueError(f"Fallback pool for difficulty {difficulty} is empty")

        for index, word in enumerate(words):
            if len(word) != difficulty:
                raise ValueError(f"Word at index {index} '{word}' is not {difficulty} characters long")
            if not word.isalpha() or not word.isupper():
                raise ValueError(f"Word at index {index} '{word}' is not uppercase alphabetic")

        if len(words) != len(set(words)):
            duplicates = sorted({word for word in words if words.count(word) > 1})
            raise ValueError(f"Duplicate words found in pool {difficulty}: {duplicates}")

    return True


if __name__ == "__main__":

    try:
        validate_word_pool_integrity()
        print(" Fallback word pool validation passed")
        pool_sizes = {difficulty: len(words) for difficulty, words in FALLBACK_WORDS.items()}
        print(f" Pool sizes: {pool_sizes}")
    except ValueError as config_error:
        print(f" Configuration validation failed: {config_error}")
        exit(1)
