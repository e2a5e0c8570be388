from guessword.models.game import RoundResult
from guessword.services.achievements import ACHIEVEMENTS_BY_ID, check_achievements
from guessword.services.stats_service import StatsService, default_player_stats
from guessword.services.stores import MemoryStatsStore


def make_result(solved=True, difficulty=3, score=300, word="CAT", attempts=2,
                max_attempts=6, time_taken=90, guesses=None, player_id="alice"):
    return RoundResult(
        player_id=player_id,
        difficulty=difficulty,
        score=score,
        solved=solved,
        target_word=word,
        attempts=attempts,
        max_attempts=max_attempts,
        time_taken=time_taken,
        guesses=guesses if guesses is not None else ["DOG", word],
    )


def test_new_player_has_empty_stats(stats_service):
    document = stats_service.get_stats("nobody")

    assert document == default_player_stats()
    assert document["stats"]["distribution"]["4"] == {"played": 0, "won": 0}


def test_win_updates_stats_and_progress(stats_service):
    stats_service.record_result(make_result(score=328))

    document = stats_service.get_stats("alice")
    stats = document["stats"]
    assert stats["games_played"] == 1
    assert stats["games_won"] == 1
    assert stats["win_streak"] == 1
    assert stats["max_streak"] == 1
    assert stats["total_score"] == 328
    assert stats["distribution"]["3"] == {"played": 1, "won": 1}

    easy = document["progress"]["easy"]
    assert easy["games_played"] == 1
    assert easy["games_won"] == 1
    assert easy["best_score"] == 328
    assert easy["avg_score"] == 328
    assert document["progress"]["overall"]["total_games"] == 1


def test_loss_breaks_streak_and_only_counts_in_progress(stats_service):
    stats_service.record_result(make_result(score=300))
    stats_service.record_result(make_result(solved=False, score=45, word="DOG"))

    document = stats_service.get_stats("alice")
    stats = document["stats"]
    assert stats["games_played"] == 2
    assert stats["win_streak"] == 0
    assert stats["max_streak"] == 1
    assert stats["loss_streak"] == 1
    assert stats["total_score"] == 300

    easy = document["progress"]["easy"]
    assert easy["total_score"] == 345
    assert easy["avg_score"] == 172
    assert easy["best_score"] == 300


def test_solved_words_are_remembered_per_difficulty(stats_service):
    stats_service.record_result(make_result(word="CAT"))
    stats_service.record_result(make_result(difficulty=4, word="BIRD", max_attempts=7))
    stats_service.record_result(make_result(solved=False, word="DOG"))

    assert stats_service.recent_words("alice") == ["CAT", "BIRD"]
    assert stats_service.recent_words("alice", 3) == ["CAT"]
    assert stats_service.recent_words("alice", 5) == []


def test_word_history_wraps_when_full():
    store = MemoryStatsStore()
    document = default_player_stats()
    document["word_history"]["max_size"] = 2
    store.save("alice", document)
    service = StatsService(store)

    for word in ("CAT", "DOG", "SUN"):
        service.record_result(make_result(word=word))

    history = service.get_stats("alice")["word_history"]
    assert [entry["word"] for entry in history["words"]] == ["SUN", "DOG"]
    assert history["current_index"] == 1
    assert history["total_solved"] == 3


def test_achievements_unlock_once(stats_service):
    first = stats_service.record_result(make_result(attempts=1, guesses=["CAT"], time_taken=15))

    assert "first_win" in first
    assert "lucky_guess" in first
    assert "speed_run_easy" in first
    assert "easy_start" in first
    assert "medium_well" not in first

    second = stats_service.record_result(make_result(attempts=1, guesses=["CAT"], time_taken=15))
    assert "first_win" not in second
    assert "double_down" in second

    unlocked = stats_service.get_stats("alice")["achievements"]
    assert unlocked.count("first_win") == 1


def test_comeback_after_three_losses(stats_service):
    for _ in range(3):
        stats_service.record_result(make_result(solved=False, score=0))

    unlocked = stats_service.record_result(make_result())

    assert "comeback_kid" in unlocked
    assert stats_service.get_stats("alice")["stats"]["loss_streak"] == 0


def test_word_achievements():
    stats = default_player_stats()["stats"]

    vowels = make_result(solved=False, guesses=["AUDIO", "EERIE"], word="CRANE", difficulty=5)
    assert ACHIEVEMENTS_BY_ID["vowel_master"].predicate(vowels, stats) is False

    all_vowels = make_result(solved=False, guesses=["AEIOU"], word="CRANE", difficulty=5)
    assert ACHIEVEMENTS_BY_ID["vowel_master"].predicate(all_vowels, stats) is True

    no_vowels = make_result(word="SKY")
    assert ACHIEVEMENTS_BY_ID["consonant_king"].predicate(no_vowels, stats) is True


def test_check_achievements_skips_held_ids():
    stats = default_player_stats()["stats"]
    earned = check_achievements(make_result(), stats, ["first_win"])
    assert "first_win" not in [achievement.id for achievement in earned]


def test_record_failure_is_swallowed():
    class BrokenStore:
        def load(self, player_id):
            return None

        def save(self, player_id, document):
            raise RuntimeError("disk full")

    service = StatsService(BrokenStore())
    assert service.record_result(make_result()) == []
