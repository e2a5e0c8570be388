"""
Scoring Service

Computes the point value of a finished round. A round score is the sum of
two parts:

- Full word score: only for a solved round. The difficulty's maximum score
  scaled by the difficulty multiplier and by how early the word was found,
  plus a speed bonus proportional to the time left.
- Partial alphabet score: rewards discovering the target's letters, win or
  loss. Each unique target letter is worth 15 points if it was ever placed
  correctly and 8 if it was only ever present, weighted by how early that
  best verdict was first reached. The total is capped at 40% of the
  difficulty's maximum score.
"""

import logging
import math
from typing import Dict, List, Optional, Tuple
from ..config.game_settings import (
    SCORING_SETTINGS, ATTEMPT_MULTIPLIERS, LAST_ATTEMPT_MULTIPLIER, SPEED_BONUS_RATIO,
    PARTIAL_CORRECT_POINTS, PARTIAL_PRESENT_POINTS, PARTIAL_SCORE_CAP_RATIO
)
from ..models.game import GuessRecord, LetterStatus, WordScore

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Rounds to the nearest integer with halves going up (327.5 -> 328)."""
    return int(math.floor(value + 0.5))


class ScoringSystem:
    """Stateless round scoring."""

    @staticmethod
    def attempt_multiplier(attempts_used: int, max_attempts: int) -> float:
        """
        Multiplier for a win on the given 1-based attempt.

        Winning on the final allowed attempt is always worth the last-attempt
        tier, even where the table would give more.
        """
        if attempts_used >= max_attempts:
            return LAST_ATTEMPT_MULTIPLIER
        index = attempts_used - 1
        if 0 <= index < len(ATTEMPT_MULTIPLIERS):
            return ATTEMPT_MULTIPLIERS[index]
        return LAST_ATTEMPT_MULTIPLIER

    @staticmethod
    def speed_bonus(max_score: float, remaining_time: float, total_time: float) -> float:
        if total_time <= 0 or remaining_time <= 0:
            return 0.0
        max_speed_bonus = max_score * SPEED_BONUS_RATIO
        return min((remaining_time / total_time) * max_speed_bonus, max_speed_bonus)

    @staticmethod
    def partial_alphabet_score(guesses: List[GuessRecord],
                               target_word: str,
                               max_attempts: int,
                               max_score: float) -> float:
        """
        Scores letter discovery over the whole guess history.

        Args:
            guesses: Evaluated guesses in submission order
            target_word: The round's target word
            max_attempts: Attempt budget of the round
            max_score: Maximum score of the difficulty

        Returns:
            float: Uncapped contributions summed, then capped at 40% of max_score
        """
        if not target_word or not guesses:
            return 0.0

        raw_partial = 0.0
        for letter in dict.fromkeys(target_word):
            best = _earliest_best_verdict(letter, guesses)
            if best is None:
                continue
            status, attempt_index = best
            base_points = PARTIAL_CORRECT_POINTS if status == LetterStatus.CORRECT else PARTIAL_PRESENT_POINTS
            weight = (max_attempts - attempt_index + 1) / max_attempts
            raw_partial += base_points * weight

        return min(raw_partial, max_score * PARTIAL_SCORE_CAP_RATIO)

    def calculate_word_score(self,
                             difficulty: int,
                             attempts_used: int = 0,
                             max_attempts: int = 6,
                             is_solved: bool = False,
                             remaining_time: float = 0,
                             total_time: float = 0,
                             guesses: Optional[List[GuessRecord]] = None,
                             target_word: str = "") -> WordScore:
        """
        Calculates the score of a round.

        Args:
            difficulty: Word length of the round (3, 4 or 5)
            attempts_used: 1-based number of the attempt the round ended on
            max_attempts: Attempt budget of the round
            is_solved: Whether the target word was guessed
            remaining_time: Seconds left on the round timer
            total_time: Time budget of the round in seconds
            guesses: Evaluated guess history
            target_word: The round's target word

        Returns:
            WordScore with the rounded total and rounded breakdown parts
        """
        settings = SCORING_SETTINGS.get(difficulty)
        if not settings:
            logger.error("Invalid difficulty for scoring: %s", difficulty)
            return WordScore(word_score=0, breakdown={})

        max_score = settings["max_score"]

        # Full word score
        attempt_score = 0.0
        speed_bonus = 0.0
        full_word_score = 0.0
        if is_solved:
            attempt_score = max_score * settings["multiplier"] * self.attempt_multiplier(attempts_used, max_attempts)
            speed_bonus = self.speed_bonus(max_score, remaining_time, total_time)
            full_word_score = attempt_score + speed_bonus

        # Partial alphabet score
        partial_score = self.partial_alphabet_score(guesses or [], target_word, max_attempts, max_score)

        return WordScore(
            word_score=round_half_up(full_word_score + partial_score),
            breakdown={
                "attempt_score": round_half_up(attempt_score),
                "speed_bonus": round_half_up(speed_bonus),
                "full_word_score": round_half_up(full_word_score),
                "partial_alphabet_score": round_half_up(partial_score),
            }
        )


def _earliest_best_verdict(letter: str, guesses: List[GuessRecord]) -> Optional[Tuple[LetterStatus, int]]:
    """Best verdict seen for a letter and the 1-based attempt that first reached it."""
    best_status: Optional[LetterStatus] = None
    found_at = 0

    for attempt_index, guess in enumerate(guesses, start=1):
        for guessed_letter, status in zip(guess.word, guess.evaluation):
            if guessed_letter != letter or status == LetterStatus.ABSENT:
                continue
            if best_status is None or status.rank > best_status.rank:
                best_status = status
                found_at = attempt_index

    if best_status is None:
        return None
    return best_status, found_at
