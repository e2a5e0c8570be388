"""
Stats Service

Records finalized rounds into each player's statistics: lifetime stats and
streaks, per-mode progress, the solved word history used to avoid repeating
words, and achievements.
"""

import logging
import threading
import time
from typing import Any, Dict, List, Optional

from ..config.game_settings import DIFFICULTY_SETTINGS, MODE_NAMES, WORD_HISTORY_MAX_SIZE
from ..models.game import RoundResult
from ..utils.game_logger import game_logger
from .achievements import check_achievements

logger = logging.getLogger(__name__)


def _default_mode_progress() -> Dict[str, int]:
    return {"games_played": 0, "games_won": 0, "total_score": 0, "avg_score": 0, "best_score": 0}


def default_player_stats() -> Dict[str, Any]:
    """Empty statistics document for a new player."""
    return {
        "stats": {
            "games_played": 0,
            "games_won": 0,
            "win_streak": 0,
            "max_streak": 0,
            "loss_streak": 0,
            "broken_loss_streak": 0,
            "total_score": 0,
            "distribution": {
                str(difficulty): {"played": 0, "won": 0} for difficulty in DIFFICULTY_SETTINGS
            },
        },
        "progress": {
            **{mode: _default_mode_progress() for mode in MODE_NAMES.values()},
            "overall": {"total_games": 0, "total_score": 0, "avg_score": 0},
        },
        "word_history": {
            "words": [],
            "current_index": 0,
            "total_solved": 0,
            "max_size": WORD_HISTORY_MAX_SIZE,
        },
        "achievements": [],
    }


class StatsService:
    """
    Persistence sink for finalized rounds.

    record_result() never raises: a failure to record is logged and the
    round that produced it is unaffected.
    """

    def __init__(self, store):
        self.store = store
        self._lock = threading.Lock()

    def get_stats(self, player_id: str) -> Dict[str, Any]:
        return self.store.load(player_id) or default_player_stats()

    def recent_words(self, player_id: str, difficulty: Optional[int] = None) -> List[str]:
        """Solved words of a player, optionally only those of one difficulty."""
        history = self.get_stats(player_id)["word_history"]
        return [
            entry["word"] for entry in history["words"]
            if difficulty is None or entry["difficulty"] == difficulty
        ]

    def record_result(self, result: RoundResult) -> List[str]:
        """
        Records a finalized round.

        Args:
            result: The round outcome

        Returns:
            List of newly unlocked achievement ids (empty on failure)
        """
        try:
            with self._lock:
                document = self.get_stats(result.player_id)
                self._update_stats(document["stats"], result)
                self._update_progress(document["progress"], result)
                if result.solved:
                    self._add_solved_word(document["word_history"], result)

                unlocked = check_achievements(result, document["stats"], document["achievements"])
                document["achievements"].extend(achievement.id for achievement in unlocked)
                self.store.save(result.player_id, document)
        except Exception:
            logger.exception("Failed to record result for player %s", result.player_id)
            return []

        for achievement in unlocked:
            game_logger.log_game_event(
                result.player_id, 'achievement_unlocked',
                achievement_id=achievement.id, points=achievement.points
            )
        return [achievement.id for achievement in unlocked]

    def _update_stats(self, stats: Dict[str, Any], result: RoundResult) -> None:
        distribution = stats["distribution"].setdefault(str(result.difficulty), {"played": 0, "won": 0})
        stats["games_played"] += 1
        distribution["played"] += 1

        if result.solved:
            stats["games_won"] += 1
            distribution["won"] += 1
            stats["win_streak"] += 1
            stats["max_streak"] = max(stats["win_streak"], stats["max_streak"])
            stats["total_score"] += result.score
            stats["broken_loss_streak"] = stats["loss_streak"]
            stats["loss_streak"] = 0
        else:
            stats["win_streak"] = 0
            stats["loss_streak"] += 1
            stats["broken_loss_streak"] = 0

    def _update_progress(self, progress: Dict[str, Any], result: RoundResult) -> None:
        mode = MODE_NAMES.get(result.difficulty)
        if not mode:
            logger.error("Invalid difficulty for progress: %s", result.difficulty)
            return

        mode_stats = progress[mode]
        mode_stats["games_played"] += 1
        mode_stats["total_score"] += result.score
        mode_stats["avg_score"] = mode_stats["total_score"] // mode_stats["games_played"]
        mode_stats["best_score"] = max(mode_stats["best_score"], result.score)
        if result.solved:
            mode_stats["games_won"] += 1

        overall = progress["overall"]
        overall["total_games"] += 1
        overall["total_score"] += result.score
        overall["avg_score"] = overall["total_score"] // overall["total_games"]

    def _add_solved_word(self, history: Dict[str, Any], result: RoundResult) -> None:
        # Circular buffer: once full, overwrite the oldest entry
        entry = {
            "word": result.target_word.upper(),
            "difficulty": result.difficulty,
            "solved_at": int(time.time() * 1000),
            "index": history["total_solved"],
        }
        if len(history["words"]) < history["max_size"]:
            history["words"].append(entry)
        else:
            history["words"][history["current_index"]] = entry
            history["current_index"] = (history["current_index"] + 1) % history["max_size"]
        history["total_solved"] += 1
