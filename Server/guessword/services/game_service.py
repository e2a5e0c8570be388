"""
Game Service

Contains the round state machine for a player's session and the registry
of active sessions.
"""

import functools
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from ..config.game_settings import (
    DIFFICULTY_SETTINGS, BACKSPACE_KEY, ENTER_KEY, max_attempts_for, time_limit_for
)
from ..exceptions import GuessWordError, InvalidDifficultyError, WordUnavailableError
from ..models.game import (
    EndReason, GuessRecord, RoundPhase, RoundResult, RoundState, WordScore
)
from ..utils.game_logger import game_logger
from ..utils.helpers import spawn_background
from .evaluator import evaluate_guess, merge_letter_states
from .round_timer import start_round_timer
from .scoring_service import ScoringSystem

logger = logging.getLogger(__name__)


class GameSession:
    """
    One player's game session: the current round plus the session score.

    Round lifecycle:
        idle -> loading-word -> active <-> paused -> ended(win | loss-timeout | loss-attempts)

    Collaborators:
    - word_source: fetch(difficulty) and fallback(difficulty, exclude_words)
    - persistence: record_result(result) and recent_words(player_id, difficulty)
    - snapshot_store: save/load/clear(player_id) of resumable snapshots
    - observer: render(view), signal(name) and error(message); optional

    Handlers are serialized with a re-entrant lock, so the timer thread and
    request threads never interleave inside a transition.
    """

    def __init__(self,
                 player_id: str,
                 word_source,
                 persistence,
                 snapshot_store,
                 observer=None,
                 ticker_factory: Callable = start_round_timer,
                 spawn: Callable = spawn_background,
                 tick_interval: float = 1.0,
                 scoring: Optional[ScoringSystem] = None):
        self.player_id = player_id
        self.word_source = word_source
        self.persistence = persistence
        self.snapshot_store = snapshot_store
        self.observer = observer
        self.ticker_factory = ticker_factory
        self.spawn = spawn
        self.tick_interval = tick_interval
        self.scoring = scoring or ScoringSystem()

        self.state = RoundState()
        self.last_breakdown: Dict[str, int] = {}
        self.last_activity = time.monotonic()
        self._timer = None
        self._round_id = 0
        self._loading = False
        self._lock = threading.RLock()

    # ========== STATE ==========

    @property
    def phase(self) -> RoundPhase:
        if self._loading:
            return RoundPhase.LOADING_WORD
        if self.state.end_reason is not None:
            return RoundPhase.ENDED
        if self.state.is_playing:
            return RoundPhase.PAUSED if self.state.is_paused else RoundPhase.ACTIVE
        return RoundPhase.IDLE

    @property
    def max_attempts(self) -> int:
        return max_attempts_for(self.state.difficulty) if self.state.difficulty else 0

    @property
    def accepting_input(self) -> bool:
        return self.state.is_playing and not self.state.is_paused

    def reset_state(self) -> None:
        """Clears the round, keeping the session score."""
        with self._lock:
            self._cancel_timer()
            self._round_id += 1
            self.state = RoundState(session_score=self.state.session_score)
            self.last_breakdown = {}

    # ========== LIFECYCLE ==========

    def start(self, difficulty: int) -> Dict[str, Any]:
        """
        Starts a new round.

        Args:
            difficulty: Word length, one of the configured difficulties

        Returns:
            The round view once the round is active

        Raises:
            InvalidDifficultyError: If the difficulty is not configured
            WordUnavailableError: If no target word could be produced
        """
        if difficulty not in DIFFICULTY_SETTINGS:
            raise InvalidDifficultyError(difficulty)

        with self._lock:
            self.reset_state()
            self._clear_snapshot()
            self.state.difficulty = difficulty
            self.state.time_left = time_limit_for(difficulty)

            self._loading = True
            try:
                word = self._acquire_word(difficulty)
            finally:
                self._loading = False

            self.state.target_word = word
            self.state.is_playing = True
            self._start_timer()

            game_logger.log_game_event(self.player_id, 'round_started', difficulty=difficulty)
            self._render()
            return self.view()

    def _acquire_word(self, difficulty: int) -> str:
        try:
            word = self.word_source.fetch(difficulty)
            if _is_valid_word(word, difficulty):
                return word.upper()
            logger.warning("Generated word has wrong length for difficulty %s, using fallback", difficulty)
        except Exception as e:
            logger.warning("Word fetch failed, using fallback: %s", e)

        try:
            exclude_words = self.persistence.recent_words(self.player_id, difficulty)
        except Exception:
            logger.exception("Could not load recent words for %s", self.player_id)
            exclude_words = []

        try:
            word = self.word_source.fallback(difficulty, exclude_words)
        except Exception as e:
            raise WordUnavailableError(f"No word available for difficulty {difficulty}") from e

        if not _is_valid_word(word, difficulty):
            raise WordUnavailableError(f"No word available for difficulty {difficulty}")
        return word.upper()

    def restart(self) -> Optional[Dict[str, Any]]:
        """Starts a new round at the current difficulty."""
        if not self.state.difficulty:
            return None
        return self.start(self.state.difficulty)

    def resume(self) -> bool:
        """
        Restores the saved round, if any, and restarts its timer from the
        stored time.

        A round that is already playing is never replaced.

        Returns:
            bool: True if a round was resumed
        """
        with self._lock:
            if self.state.is_playing:
                return False

            snapshot = self.snapshot_store.load(self.player_id)
            if not snapshot:
                return False

            restored = RoundState.from_snapshot(snapshot)
            if not restored.is_playing or restored.game_finalized:
                self._clear_snapshot()
                return False

            self._cancel_timer()
            self._round_id += 1
            self.state = restored
            self.last_breakdown = {}
            self._start_timer()

            game_logger.log_game_event(
                self.player_id, 'round_resumed',
                difficulty=restored.difficulty, time_left=restored.time_left,
                current_attempt=restored.current_attempt
            )
            self._render()
            return True

    def quit_to_home(self) -> None:
        """Abandons the round. An abandoned round is neither scored nor recorded."""
        with self._lock:
            was_playing = self.state.is_playing
            self.reset_state()
            self._clear_snapshot()
            if was_playing:
                game_logger.log_game_event(self.player_id, 'round_abandoned')
            self._render()

    # ========== TIMER ==========

    def _start_timer(self) -> None:
        self._cancel_timer()
        # Ticks are bound to the round that started the timer
        self._timer = self.ticker_factory(functools.partial(self.tick, self._round_id), self.tick_interval)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def tick(self, round_id: Optional[int] = None) -> None:
        """
        One second of round time. Frozen while paused.

        A tick carrying the id of a replaced round is dropped, even when it
        was already waiting on the lock while the round was replaced.
        """
        with self._lock:
            if round_id is not None and round_id != self._round_id:
                return
            if not self.accepting_input:
                return

            self.state.time_left = max(self.state.time_left - 1, 0)
            if self.state.time_left <= 0:
                self.end_game(False, EndReason.LOSS_TIMEOUT)
            else:
                self._render()

    # ========== PAUSE SYSTEM ==========

    def pause(self) -> bool:
        with self._lock:
            if not self.state.is_playing or self.state.is_paused:
                return False
            self.state.is_paused = True
            self._render()
            return True

    def resume_from_pause(self) -> bool:
        with self._lock:
            if not self.state.is_paused:
                return False
            self.state.is_paused = False
            self._render()
            return True

    # ========== INPUT ==========

    def handle_input(self, key: str) -> bool:
        """
        Handles one key press.

        BACKSPACE removes a letter, A-Z appends one while the guess is short,
        ENTER submits a full-length guess. Input outside an active, unpaused
        round is ignored.

        Returns:
            bool: True if the key changed the round
        """
        with self._lock:
            if not self.accepting_input:
                return False

            try:
                key = str(key).strip().upper()
                max_length = self.state.difficulty

                if key == BACKSPACE_KEY:
                    if not self.state.current_guess:
                        return False
                    self.state.current_guess = self.state.current_guess[:-1]
                elif key == ENTER_KEY:
                    if len(self.state.current_guess) != max_length:
                        self._signal('shake')
                        return False
                    self.submit_guess()
                    return True
                elif len(key) == 1 and 'A' <= key <= 'Z' and len(self.state.current_guess) < max_length:
                    self.state.current_guess += key
                else:
                    return False

                self._render()
                return True

            except Exception as e:
                logger.exception("Input error for player %s", self.player_id)
                self._error(f"Unexpected error handling input: {e}")
                return False

    def submit_guess(self) -> None:
        """Evaluates the buffered guess and advances or ends the round."""
        with self._lock:
            if not self.accepting_input:
                return

            guess = self.state.current_guess
            target = self.state.target_word
            if not target:
                raise GuessWordError("Target word is missing!")
            if len(guess) != self.state.difficulty:
                self._signal('shake')
                return

            evaluation = evaluate_guess(guess, target)
            self.state.guesses.append(GuessRecord(word=guess, evaluation=evaluation))
            merge_letter_states(self.state.letter_states, guess, evaluation)
            self.state.current_guess = ""

            if guess == target:
                self.end_game(True, EndReason.WIN)
                return

            self.state.current_attempt += 1
            if self.state.current_attempt >= self.max_attempts:
                self.end_game(False, EndReason.LOSS_ATTEMPTS)
            else:
                self.save_progress()
                self._render()

    # ========== END OF ROUND ==========

    def end_game(self, win: bool, reason: Optional[EndReason] = None) -> Optional[WordScore]:
        """
        Finalizes the round: stops the timer, scores the round, adds the
        score to the session and hands the result to the persistence sink.

        Only the first call for a playing round does anything.

        Returns:
            WordScore of the round, or None if no round is playing or it was
            already finalized
        """
        with self._lock:
            if self.state.game_finalized or not self.state.is_playing:
                return None
            self.state.game_finalized = True

            self.state.is_playing = False
            self.state.is_paused = False
            self.state.end_reason = reason or (EndReason.WIN if win else EndReason.LOSS_ATTEMPTS)
            self._cancel_timer()
            self._clear_snapshot()

            difficulty = self.state.difficulty
            total_time = time_limit_for(difficulty) if difficulty in DIFFICULTY_SETTINGS else 0
            attempts_used = self.state.current_attempt + 1

            score = self.scoring.calculate_word_score(
                difficulty=difficulty,
                attempts_used=attempts_used,
                max_attempts=self.max_attempts,
                is_solved=win,
                remaining_time=self.state.time_left,
                total_time=total_time,
                guesses=self.state.guesses,
                target_word=self.state.target_word,
            )

            self.state.session_score += score.word_score
            self.state.last_score = score.word_score
            self.last_breakdown = score.breakdown

            result = RoundResult(
                player_id=self.player_id,
                difficulty=difficulty,
                score=score.word_score,
                solved=win,
                target_word=self.state.target_word,
                attempts=len(self.state.guesses),
                max_attempts=self.max_attempts,
                time_taken=total_time - self.state.time_left,
                breakdown=dict(score.breakdown),
                guesses=[guess.word for guess in self.state.guesses],
            )
            self.spawn(self._record_result, result)

            game_logger.log_game_event(
                self.player_id, 'round_won' if win else 'round_lost',
                reason=self.state.end_reason.value, difficulty=difficulty,
                attempts=len(self.state.guesses), score=score.word_score,
                session_score=self.state.session_score, target_word=self.state.target_word
            )
            self._render()
            return score

    def _record_result(self, result: RoundResult) -> None:
        try:
            self.persistence.record_result(result)
        except Exception:
            logger.exception("Persistence failed for player %s", result.player_id)

    # ========== SNAPSHOTS ==========

    def save_progress(self) -> None:
        """Saves a resumable snapshot of the round."""
        try:
            self.snapshot_store.save(self.player_id, self.state.to_snapshot())
        except Exception:
            logger.exception("Could not save round snapshot for %s", self.player_id)

    def _clear_snapshot(self) -> None:
        try:
            self.snapshot_store.clear(self.player_id)
        except Exception:
            logger.exception("Could not clear round snapshot for %s", self.player_id)

    # ========== RENDERING ==========

    def view(self) -> Dict[str, Any]:
        """Everything a client needs to redraw the round."""
        state = self.state
        ended = state.end_reason is not None
        return {
            "player_id": self.player_id,
            "phase": self.phase.value,
            "difficulty": state.difficulty,
            "max_attempts": self.max_attempts,
            "rows": [guess.to_dict() for guess in state.guesses],
            "current_guess": state.current_guess,
            "current_attempt": state.current_attempt,
            "letter_states": {letter: status.value for letter, status in state.letter_states.items()},
            "time_left": state.time_left,
            "is_playing": state.is_playing,
            "is_paused": state.is_paused,
            "session_score": state.session_score,
            "last_score": state.last_score,
            "breakdown": dict(self.last_breakdown),
            "end_reason": state.end_reason.value if ended else None,
            "target_word": state.target_word if ended else None,
        }

    def _render(self) -> None:
        if self.observer is None:
            return
        try:
            self.observer.render(self.view())
        except Exception:
            logger.exception("Render notification failed for %s", self.player_id)

    def _signal(self, name: str) -> None:
        if self.observer is None:
            return
        try:
            self.observer.signal(name)
        except Exception:
            logger.exception("Signal notification failed for %s", self.player_id)

    def _error(self, message: str) -> None:
        if self.observer is None:
            return
        try:
            self.observer.error(message)
        except Exception:
            logger.exception("Error notification failed for %s", self.player_id)


def _is_valid_word(word, difficulty: int) -> bool:
    return isinstance(word, str) and len(word) == difficulty and word.isalpha()


class GameService:
    """
    Registry of game sessions, one per player.

    Builds sessions with the shared word source, persistence sink and
    snapshot store; the observer is created per player.
    """

    def __init__(self,
                 word_source,
                 persistence,
                 snapshot_store,
                 observer_factory: Optional[Callable[[str], Any]] = None,
                 **session_options):
        self.word_source = word_source
        self.persistence = persistence
        self.snapshot_store = snapshot_store
        self.observer_factory = observer_factory
        self.session_options = session_options
        self.sessions: Dict[str, GameSession] = {}
        self._lock = threading.Lock()

    def get_session(self, player_id: str) -> GameSession:
        """Returns the player's session, creating it on first use."""
        with self._lock:
            session = self.sessions.get(player_id)
            if session is None:
                observer = self.observer_factory(player_id) if self.observer_factory else None
                session = GameSession(
                    player_id,
                    word_source=self.word_source,
                    persistence=self.persistence,
                    snapshot_store=self.snapshot_store,
                    observer=observer,
                    **self.session_options
                )
                self.sessions[player_id] = session
            session.last_activity = time.monotonic()
            return session

    def evict_idle_sessions(self, max_idle_seconds: float, now: Optional[float] = None) -> int:
        """
        Forgets sessions with no playing round that have not been used for
        max_idle_seconds. Saved snapshots and statistics are kept.

        Returns:
            int: Number of sessions evicted
        """
        now = time.monotonic() if now is None else now
        with self._lock:
            idle_ids = [
                player_id for player_id, session in self.sessions.items()
                if not session.state.is_playing and now - session.last_activity >= max_idle_seconds
            ]
            for player_id in idle_ids:
                del self.sessions[player_id]

        evicted = len(idle_ids)
        if evicted:
            logger.info("Evicted %s idle sessions", evicted)
        return evicted

    def active_rounds_count(self) -> int:
        with self._lock:
            return sum(1 for session in self.sessions.values() if session.state.is_playing)
