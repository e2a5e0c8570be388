"""
Guess Evaluator

Implements the Wordle letter evaluation algorithm and keyboard state merging.
"""

from typing import Dict, List, Optional
from ..models.game import LetterStatus


def evaluate_guess(guess: str, target: str) -> List[LetterStatus]:
    """
    Evaluates a guess against the target word.

    Exact matches are resolved first so that a letter already placed
    correctly can never also be counted as present elsewhere.

    Args:
        guess: The guessed word
        target: The target word, same length as the guess

    Returns:
        List of LetterStatus, one per position of the guess
    """
    result: List[Optional[LetterStatus]] = [None] * len(guess)

    # Create working copies to track letter consumption
    target_chars: List[Optional[str]] = list(target)
    guess_chars: List[Optional[str]] = list(guess)

    # First pass: mark all exact position matches
    for i, letter in enumerate(guess):
        if letter == target_chars[i]:
            result[i] = LetterStatus.CORRECT
            target_chars[i] = None
            guess_chars[i] = None

    # Second pass: mark present letters, consuming one target occurrence each
    for i, letter in enumerate(guess_chars):
        if letter is None:
            continue
        if letter in target_chars:
            result[i] = LetterStatus.PRESENT
            target_chars[target_chars.index(letter)] = None
        else:
            result[i] = LetterStatus.ABSENT

    return [status for status in result if status is not None]


def merge_letter_states(letter_states: Dict[str, LetterStatus],
                        guess: str,
                        evaluation: List[LetterStatus]) -> None:
    """
    Updates keyboard letter states in place from one evaluated guess.
    A letter's state only ever moves up in precedence.
    """
    for letter, new_status in zip(guess, evaluation):
        current_status = letter_states.get(letter)
        if current_status is None or new_status.rank > current_status.rank:
            letter_states[letter] = new_status
