import itertools
from collections import Counter

from guessword.models.game import LetterStatus
from guessword.services.evaluator import evaluate_guess, merge_letter_states

C = LetterStatus.CORRECT
P = LetterStatus.PRESENT
A = LetterStatus.ABSENT


def test_exact_match_is_all_correct():
    assert evaluate_guess("CRANE", "CRANE") == [C] * 5


def test_no_shared_letters_is_all_absent():
    assert evaluate_guess("DOG", "CAT") == [A, A, A]


def test_speed_against_erase_caps_yellows():
    # ERASE has one S and two E's, no P or D
    assert evaluate_guess("SPEED", "ERASE") == [P, A, P, P, A]


def test_green_consumes_letter_before_yellow():
    # Both L's of HELLO are matched in place, so the leading L finds nothing
    assert evaluate_guess("LOLLY", "HELLO") == [A, P, C, C, A]


def test_duplicate_guess_letter_single_target_letter():
    # THEME has E at positions 2 and 4; position 4 is green, one E left for yellow
    assert evaluate_guess("EERIE", "THEME") == [P, A, A, A, C]


def test_yellow_takes_first_remaining_occurrence():
    assert evaluate_guess("ABBEY", "BABES") == [P, P, C, C, A]


def test_repeated_letter_never_over_credited():
    alphabet = "ABC"
    for length in (3, 4):
        for guess_letters in itertools.product(alphabet, repeat=length):
            guess = "".join(guess_letters)
            for target_letters in itertools.product(alphabet, repeat=length):
                target = "".join(target_letters)
                result = evaluate_guess(guess, target)

                assert len(result) == length
                assert all(status in (C, P, A) for status in result)

                credited = Counter(
                    letter for letter, status in zip(guess, result) if status != A
                )
                target_counts = Counter(target)
                for letter, count in credited.items():
                    assert count <= target_counts[letter]


def test_merge_letter_states_never_downgrades():
    states = {}
    merge_letter_states(states, "ABC", [C, P, A])
    merge_letter_states(states, "CBA", [P, A, A])

    assert states == {"A": C, "B": P, "C": P}


def test_merge_letter_states_upgrades():
    states = {"A": A}
    merge_letter_states(states, "A", [P])
    assert states["A"] == P
    merge_letter_states(states, "A", [C])
    assert states["A"] == C
