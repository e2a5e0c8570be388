"""
Achievements

Declarative achievement catalog. Each entry pairs an id with a predicate over
the finalized round and the player's updated statistics; entries are checked
after every recorded round.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List

from ..models.game import RoundResult

VOWELS = set("AEIOU")


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    points: int
    predicate: Callable[[RoundResult, Dict[str, Any]], bool]


def _won_at(difficulty: int, count: int) -> Callable[[RoundResult, Dict[str, Any]], bool]:
    return lambda result, stats: stats["distribution"][str(difficulty)]["won"] >= count


def _speed_win(difficulty: int, seconds: int) -> Callable[[RoundResult, Dict[str, Any]], bool]:
    return lambda result, stats: result.solved and result.difficulty == difficulty and result.time_taken < seconds


ACHIEVEMENTS: List[Achievement] = [
    # Gameplay
    Achievement("first_win", "First Steps", "Win your first game", 100,
                lambda result, stats: result.solved),
    Achievement("speed_demon", "Speed Demon", "Win in under 60 seconds", 500,
                lambda result, stats: result.solved and result.time_taken < 60),
    Achievement("lightning_reflexes", "Lightning Reflexes", "Win in under 30 seconds", 800,
                lambda result, stats: result.solved and result.time_taken < 30),
    Achievement("lucky_guess", "Lucky Guess", "Win on first attempt", 1000,
                lambda result, stats: result.solved and result.attempts == 1),
    Achievement("two_attempts", "Quick Thinker", "Win in 2 attempts", 400,
                lambda result, stats: result.solved and result.attempts == 2),
    Achievement("close_call", "Close Call", "Win on last attempt", 200,
                lambda result, stats: result.solved and result.attempts == result.max_attempts),
    Achievement("speed_run_easy", "Easy Speedster", "Win Easy mode in under 20s", 300, _speed_win(3, 20)),
    Achievement("speed_run_medium", "Medium Speedster", "Win Medium mode in under 40s", 400, _speed_win(4, 40)),
    Achievement("speed_run_hard", "Hard Speedster", "Win Hard mode in under 60s", 600, _speed_win(5, 60)),
    Achievement("marathon_runner", "Marathon Runner", "Play 50 games total", 300,
                lambda result, stats: stats["games_played"] >= 50),

    # Mastery
    Achievement("easy_start", "Easy Start", "Win an Easy (3-letter) game", 100, _won_at(3, 1)),
    Achievement("medium_well", "Medium Well", "Win a Medium (4-letter) game", 150, _won_at(4, 1)),
    Achievement("expert_mind", "Expert Mind", "Win a Hard (5-letter) game", 300, _won_at(5, 1)),
    Achievement("perfectionist", "Perfectionist", "Score 1000+ points in one game", 500,
                lambda result, stats: result.score >= 1000),
    Achievement("streak_master", "Streak Master", "Win 5 games in a row", 400,
                lambda result, stats: stats["win_streak"] >= 5),
    Achievement("streak_legend", "Streak Legend", "Win 10 games in a row", 800,
                lambda result, stats: stats["win_streak"] >= 10),
    Achievement("easy_master", "Easy Master", "Win 25 Easy games", 250, _won_at(3, 25)),
    Achievement("medium_master", "Medium Master", "Win 25 Medium games", 400, _won_at(4, 25)),
    Achievement("hard_master", "Hard Master", "Win 25 Hard games", 600, _won_at(5, 25)),

    # Collection
    Achievement("triple_threat", "Triple Threat", "Win in each difficulty", 250,
                lambda result, stats: all(stats["distribution"][str(d)]["won"] > 0 for d in (3, 4, 5))),
    Achievement("double_down", "Double Down", "Win 2 games back-to-back", 200,
                lambda result, stats: stats["win_streak"] >= 2),
    Achievement("centurion", "Centurion", "Play 100 games total", 600,
                lambda result, stats: stats["games_played"] >= 100),
    Achievement("vowel_master", "Vowel Master", "Use all vowels in one guess", 150,
                lambda result, stats: any(VOWELS <= set(guess) for guess in result.guesses)),
    Achievement("consonant_king", "Consonant King", "Guess a word with no vowels", 400,
                lambda result, stats: result.solved and not (VOWELS & set(result.target_word))),
    Achievement("total_points_10k", "Point Collector", "Earn 10,000 total points", 500,
                lambda result, stats: stats["total_score"] >= 10000),

    # Special
    Achievement("comeback_kid", "Comeback Kid", "Win after losing 3 in a row", 400,
                lambda result, stats: result.solved and stats["broken_loss_streak"] >= 3),
    Achievement("triple_seven", "Jackpot", "Score exactly 777 points", 777,
                lambda result, stats: result.score == 777),
]

ACHIEVEMENTS_BY_ID: Dict[str, Achievement] = {achievement.id: achievement for achievement in ACHIEVEMENTS}


def check_achievements(result: RoundResult,
                       stats: Dict[str, Any],
                       unlocked_ids: Iterable[str]) -> List[Achievement]:
    """
    Achievements newly earned by a round.

    Args:
        result: The finalized round
        stats: The player's lifetime stats, already updated with the round
        unlocked_ids: Ids the player already holds

    Returns:
        List of achievements to unlock, in catalog order
    """
    unlocked = set(unlocked_ids)
    return [
        achievement for achievement in ACHIEVEMENTS
        if achievement.id not in unlocked and achievement.predicate(result, stats)
    ]
