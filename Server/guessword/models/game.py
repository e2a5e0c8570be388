"""
Game Data Models

Contains all round-related data structures and enums.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class LetterStatus(Enum):
    """Per-letter verdict of an evaluated guess."""
    CORRECT = "correct"
    PRESENT = "present"
    ABSENT = "absent"

    @property
    def rank(self) -> int:
        """Precedence used when merging verdicts: correct > present > absent."""
        return _STATUS_RANK[self]


_STATUS_RANK = {
    LetterStatus.ABSENT: 0,
    LetterStatus.PRESENT: 1,
    LetterStatus.CORRECT: 2,
}


class RoundPhase(Enum):
    """Lifecycle phase of a round."""
    IDLE = "idle"
    LOADING_WORD = "loading-word"
    ACTIVE = "active"
    PAUSED = "paused"
    ENDED = "ended"


class EndReason(Enum):
    """Why a round ended."""
    WIN = "win"
    LOSS_TIMEOUT = "loss-timeout"
    LOSS_ATTEMPTS = "loss-attempts"


@dataclass
class GuessRecord:
    """A submitted guess together with its evaluation."""
    word: str
    evaluation: List[LetterStatus]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "word": self.word,
            "evaluation": [status.value for status in self.evaluation],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GuessRecord":
        return cls(
            word=data["word"],
            evaluation=[LetterStatus(status) for status in data["evaluation"]],
        )


@dataclass
class RoundState:
    """
    Server-side state of one player's round.

    session_score accumulates across rounds and is carried over by
    GameSession.reset_state(); every other field belongs to the current round.
    """
    difficulty: int = 0
    target_word: str = ""
    guesses: List[GuessRecord] = field(default_factory=list)
    current_guess: str = ""
    current_attempt: int = 0
    time_left: int = 0
    letter_states: Dict[str, LetterStatus] = field(default_factory=dict)
    is_playing: bool = False
    is_paused: bool = False
    session_score: int = 0
    game_finalized: bool = False
    end_reason: Optional[EndReason] = None
    last_score: Optional[int] = None

    def to_snapshot(self) -> Dict[str, Any]:
        """Serialize the round into a JSON-compatible resumable snapshot."""
        return {
            "difficulty": self.difficulty,
            "target_word": self.target_word,
            "guesses": [guess.to_dict() for guess in self.guesses],
            "current_guess": self.current_guess,
            "current_attempt": self.current_attempt,
            "time_left": self.time_left,
            "letter_states": {letter: status.value for letter, status in self.letter_states.items()},
            "is_playing": self.is_playing,
            "is_paused": self.is_paused,
            "session_score": self.session_score,
            "game_finalized": self.game_finalized,
            "end_reason": self.end_reason.value if self.end_reason else None,
            "last_score": self.last_score,
        }

    @classmethod
    def from_snapshot(cls, data: Dict[str, Any]) -> "RoundState":
        """Rebuild a round from a snapshot produced by to_snapshot()."""
        end_reason = data.get("end_reason")
        return cls(
            difficulty=int(data["difficulty"]),
            target_word=data["target_word"],
            guesses=[GuessRecord.from_dict(guess) for guess in data.get("guesses", [])],
            current_guess=data.get("current_guess", ""),
            current_attempt=int(data.get("current_attempt", 0)),
            time_left=int(data.get("time_left", 0)),
            letter_states={
                letter: LetterStatus(status)
                for letter, status in data.get("letter_states", {}).items()
            },
            is_playing=bool(data.get("is_playing", False)),
            is_paused=bool(data.get("is_paused", False)),
            session_score=int(data.get("session_score", 0)),
            game_finalized=bool(data.get("game_finalized", False)),
            end_reason=EndReason(end_reason) if end_reason else None,
            last_score=data.get("last_score"),
        )


@dataclass
class WordScore:
    """Score of a single round with its display breakdown."""
    word_score: int
    breakdown: Dict[str, int] = field(default_factory=dict)


@dataclass
class RoundResult:
    """Outcome of a finalized round handed to the persistence sink."""
    player_id: str
    difficulty: int
    score: int
    solved: bool
    target_word: str
    attempts: int
    max_attempts: int
    time_taken: int
    breakdown: Dict[str, int] = field(default_factory=dict)
    guesses: List[str] = field(default_factory=list)
