import time

import pytest

from conftest import FakeWordSource, ManualTicker, inline_spawn, type_word
from guessword.exceptions import InvalidDifficultyError, WordUnavailableError
from guessword.models.game import EndReason, LetterStatus, RoundPhase
from guessword.services.game_service import GameService, GameSession
from guessword.services.round_timer import RoundTimer


def tick(session, seconds):
    for _ in range(seconds):
        session.tick()


def test_start_opens_active_round(make_session, ticker_factory):
    session = make_session("CAT")
    view = session.start(3)

    assert view["phase"] == "active"
    assert view["difficulty"] == 3
    assert view["max_attempts"] == 6
    assert view["time_left"] == 180
    assert view["target_word"] is None
    assert session.state.target_word == "CAT"
    assert ticker_factory.current is not None
    assert not ticker_factory.current.cancelled


def test_invalid_difficulty_is_rejected(make_session, ticker_factory):
    session = make_session("CAT")

    with pytest.raises(InvalidDifficultyError):
        session.start(7)

    assert session.phase == RoundPhase.IDLE
    assert ticker_factory.current is None


def test_typing_fills_and_trims_the_buffer(make_session):
    session = make_session("CAT")
    session.start(3)

    assert session.handle_input("c") is True
    assert session.handle_input("A") is True
    assert session.handle_input("T") is True
    assert session.handle_input("S") is False
    assert session.state.current_guess == "CAT"

    assert session.handle_input("BACKSPACE") is True
    assert session.state.current_guess == "CA"
    assert session.handle_input("1") is False
    assert session.handle_input("ESCAPE") is False
    assert session.state.current_guess == "CA"


def test_backspace_on_empty_buffer_is_ignored(make_session):
    session = make_session("CAT")
    session.start(3)

    assert session.handle_input("BACKSPACE") is False
    assert session.state.current_guess == ""


def test_short_guess_shakes_without_mutation(make_session, observer):
    session = make_session("CAT")
    session.start(3)
    session.handle_input("C")
    session.handle_input("A")

    assert session.handle_input("ENTER") is False
    assert observer.signals == ["shake"]
    assert session.state.current_guess == "CA"
    assert session.state.guesses == []
    assert session.state.current_attempt == 0


def test_two_guess_win(make_session, sink, ticker_factory, snapshot_store):
    session = make_session("CAT")
    session.start(3)

    type_word(session, "DOG")
    tick(session, 30)
    type_word(session, "CAT")

    assert session.phase == RoundPhase.ENDED
    assert session.state.end_reason == EndReason.WIN
    assert session.state.last_score == 328
    assert session.state.session_score == 328
    assert session.last_breakdown == {
        "attempt_score": 240,
        "speed_bonus": 50,
        "full_word_score": 290,
        "partial_alphabet_score": 38,
    }
    assert ticker_factory.current.cancelled
    assert snapshot_store.load("alice") is None

    assert len(sink.results) == 1
    result = sink.results[0]
    assert result.solved is True
    assert result.score == 328
    assert result.attempts == 2
    assert result.time_taken == 30
    assert result.guesses == ["DOG", "CAT"]

    view = session.view()
    assert view["target_word"] == "CAT"
    assert view["end_reason"] == "win"
    assert view["letter_states"] == {
        "D": "absent", "O": "absent", "G": "absent",
        "C": "correct", "A": "correct", "T": "correct",
    }


def test_running_out_of_attempts_loses(make_session, sink):
    session = make_session("CAT")
    session.start(3)

    for _ in range(6):
        type_word(session, "DOG")

    assert session.state.end_reason == EndReason.LOSS_ATTEMPTS
    assert session.state.is_playing is False
    assert session.state.current_attempt == 6
    assert len(session.state.guesses) == 6

    result = sink.results[0]
    assert result.solved is False
    assert result.score == 0
    assert result.attempts == 6


def test_loss_keeps_partial_credit(make_session, sink):
    session = make_session("BIRD")
    session.start(4)

    for _ in range(7):
        type_word(session, "BARN")

    assert session.state.end_reason == EndReason.LOSS_ATTEMPTS
    assert session.last_breakdown["full_word_score"] == 0
    assert sink.results[0].score == 30


def test_timer_runs_out(make_session, sink, ticker_factory):
    session = make_session("CAT")
    session.start(3)

    tick(session, 179)
    assert session.state.time_left == 1
    assert session.state.is_playing

    session.tick()

    assert session.state.time_left == 0
    assert session.state.end_reason == EndReason.LOSS_TIMEOUT
    assert ticker_factory.current.cancelled
    assert sink.results[0].score == 0
    assert sink.results[0].time_taken == 180


def test_late_tick_after_end_is_ignored(make_session, sink, ticker_factory):
    session = make_session("CAT")
    session.start(3)
    type_word(session, "CAT")
    stale_tick = ticker_factory.current.callback

    stale_tick()

    assert session.state.time_left == 180
    assert len(sink.results) == 1


def test_pause_freezes_time_and_input(make_session):
    session = make_session("CAT")
    session.start(3)
    session.handle_input("C")
    tick(session, 5)

    assert session.pause() is True
    assert session.pause() is False
    assert session.phase == RoundPhase.PAUSED

    tick(session, 10)
    assert session.handle_input("A") is False
    session.submit_guess()

    assert session.state.time_left == 175
    assert session.state.current_guess == "C"
    assert session.state.guesses == []
    assert session.state.current_attempt == 0

    assert session.resume_from_pause() is True
    assert session.resume_from_pause() is False
    session.tick()
    assert session.state.time_left == 174


def test_input_ignored_without_round(make_session):
    session = make_session("CAT")

    assert session.handle_input("C") is False
    assert session.pause() is False
    assert session.state.current_guess == ""


def test_end_game_runs_once(make_session, sink):
    session = make_session("CAT")
    session.start(3)
    type_word(session, "CAT")
    score = session.state.session_score

    assert session.end_game(False, EndReason.LOSS_TIMEOUT) is None
    assert session.state.session_score == score
    assert session.state.end_reason == EndReason.WIN
    assert len(sink.results) == 1


def test_miss_saves_resumable_snapshot(make_session, snapshot_store):
    session = make_session("CAT")
    session.start(3)
    type_word(session, "DOG")

    snapshot = snapshot_store.load("alice")
    assert snapshot["target_word"] == "CAT"
    assert snapshot["current_attempt"] == 1
    assert snapshot["guesses"] == [{"word": "DOG", "evaluation": ["absent", "absent", "absent"]}]
    assert snapshot["is_playing"] is True


def test_resumed_round_scores_like_uninterrupted(make_session, sink, ticker_factory):
    session = make_session("CAT")
    session.start(3)
    tick(session, 30)
    type_word(session, "DOG")
    first_ticker = ticker_factory.current

    restored = make_session()
    assert restored.resume() is True
    assert ticker_factory.current is not first_ticker
    assert restored.state.time_left == 150
    assert restored.state.current_attempt == 1
    assert restored.phase == RoundPhase.ACTIVE

    type_word(restored, "CAT")

    assert restored.state.last_score == 328
    assert sink.results[-1].attempts == 2


def test_resume_without_snapshot(make_session):
    session = make_session("CAT")
    assert session.resume() is False
    assert session.phase == RoundPhase.IDLE


def test_finished_round_cannot_be_resumed(make_session, snapshot_store):
    session = make_session("CAT")
    session.start(3)
    type_word(session, "DOG")
    stale = snapshot_store.load("alice")
    type_word(session, "CAT")

    stale["game_finalized"] = True
    snapshot_store.save("alice", stale)

    assert make_session().resume() is False
    assert snapshot_store.load("alice") is None


def test_quit_abandons_round_without_scoring(make_session, sink, snapshot_store, ticker_factory):
    session = make_session("CAT", "DOG")
    session.start(3)
    type_word(session, "CAT")
    won = session.state.session_score

    session.start(3)
    type_word(session, "CAT")
    session.quit_to_home()

    assert session.phase == RoundPhase.IDLE
    assert session.state.session_score == won
    assert ticker_factory.current.cancelled
    assert snapshot_store.load("alice") is None
    assert len(sink.results) == 1


def test_session_score_accumulates(make_session):
    session = make_session("CAT", "DOG")
    session.start(3)
    type_word(session, "CAT")
    first = session.state.last_score

    view = session.restart()
    assert view["session_score"] == first
    assert view["last_score"] is None

    type_word(session, "DOG")
    assert session.state.session_score == first + session.state.last_score


def test_restart_needs_previous_round(make_session):
    assert make_session("CAT").restart() is None


def test_fetch_failure_uses_fallback_without_recent_words(make_session, sink):
    sink.recent = ["CAT"]
    session = make_session(fallback_word="bat")

    session.start(3)

    assert session.state.target_word == "BAT"
    assert session.word_source.fallback_calls == [(3, ["CAT"])]


def test_wrong_length_word_uses_fallback(make_session):
    session = make_session("HORSE", fallback_word="BAT")
    session.start(3)
    assert session.state.target_word == "BAT"


def test_no_word_available(make_session, ticker_factory):
    session = make_session()

    with pytest.raises(WordUnavailableError):
        session.start(3)

    assert session.state.is_playing is False
    assert session.phase == RoundPhase.IDLE
    assert ticker_factory.current is None


def test_persistence_failure_does_not_break_round(make_session, sink):
    def broken_record(result):
        raise RuntimeError("database down")

    sink.record_result = broken_record
    session = make_session("CAT")
    session.start(3)
    type_word(session, "CAT")

    assert session.state.end_reason == EndReason.WIN
    assert session.state.session_score > 0


def test_letter_states_never_downgrade_during_play(make_session):
    session = make_session("CAT")
    session.start(3)
    type_word(session, "CAB")
    type_word(session, "ACE")

    assert session.state.letter_states["C"] == LetterStatus.CORRECT
    assert session.state.letter_states["A"] == LetterStatus.CORRECT
    assert session.state.letter_states["E"] == LetterStatus.ABSENT


def test_observer_sees_renders(make_session, observer):
    session = make_session("CAT")
    session.start(3)
    session.handle_input("C")

    assert observer.views[-1]["current_guess"] == "C"
    assert observer.views[-1]["phase"] == "active"




def test_resume_does_not_replace_playing_round(make_session):
    session = make_session("CAT")
    session.start(3)
    type_word(session, "DOG")
    tick(session, 100)
    session.handle_input("C")

    assert session.resume() is False
    assert session.state.time_left == 80
    assert session.state.current_guess == "C"
    assert session.state.current_attempt == 1


def test_stale_tick_from_replaced_round_is_dropped(make_session, ticker_factory):
    session = make_session("CAT", "DOG")
    session.start(3)
    old_tick = ticker_factory.current.callback

    session.start(3)
    old_tick()

    assert session.state.target_word == "DOG"
    assert session.state.time_left == 180
    ticker_factory.current.callback()
    assert session.state.time_left == 179


def test_tick_waiting_on_lock_skips_replaced_round(sink, snapshot_store):
    tickers = []

    def first_real_then_manual(callback, interval):
        if tickers:
            ticker = ManualTicker(callback, interval)
        else:
            ticker = RoundTimer(callback, 0.02).start()
        tickers.append(ticker)
        return ticker

    session = GameSession(
        "alice",
        word_source=FakeWordSource("CAT", "DOG"),
        persistence=sink,
        snapshot_store=snapshot_store,
        ticker_factory=first_real_then_manual,
        spawn=inline_spawn,
    )
    session.start(3)

    with session._lock:
        # The running timer fires and blocks on the lock meanwhile
        time.sleep(0.2)
        session.start(3)
    tickers[0]._thread.join(timeout=1)

    assert not tickers[0]._thread.is_alive()
    assert session.state.target_word == "DOG"
    assert session.state.time_left == 180


def test_end_game_without_round_is_ignored(make_session, sink):
    session = make_session("CAT")
    assert session.end_game(True) is None

    session.start(3)
    session.quit_to_home()
    assert session.end_game(True) is None

    assert sink.results == []
    assert session.state.session_score == 0
    assert session.state.end_reason is None


def test_game_service_keeps_one_session_per_player(word_source, sink, snapshot_store, ticker_factory):
    observers = []

    def observer_factory(player_id):
        observers.append(player_id)
        return None

    word_source.words = ["CAT"]
    service = GameService(
        word_source, sink, snapshot_store,
        observer_factory=observer_factory,
        ticker_factory=ticker_factory,
    )

    session = service.get_session("alice")
    assert service.get_session("alice") is session
    assert observers == ["alice"]

    session.start(3)
    assert service.active_rounds_count() == 1


def test_idle_sessions_are_evicted(word_source, sink, snapshot_store, ticker_factory):
    word_source.words = ["CAT"]
    service = GameService(word_source, sink, snapshot_store, ticker_factory=ticker_factory)
    snapshot_store.save("bob", {"difficulty": 3, "target_word": "SUN", "is_playing": True})

    service.get_session("bob")
    playing = service.get_session("alice")
    playing.start(3)

    assert service.evict_idle_sessions(1800) == 0

    later = time.monotonic() + 3600
    assert service.evict_idle_sessions(1800, now=later) == 1
    assert "bob" not in service.sessions
    assert service.sessions["alice"] is playing
    assert not ticker_factory.current.cancelled
    assert snapshot_store.load("bob")["target_word"] == "SUN"
