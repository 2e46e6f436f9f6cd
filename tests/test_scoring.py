"""Tests for feedback classification, scoring and the practice state machine."""
import pytest

from scoring import (
    AWAITING_INPUT,
    COMPLETED,
    IDLE,
    FeedbackStatus,
    PracticeSession,
    PracticeStats,
    ScoringConfig,
    classify_similarity,
    compute_score,
    is_mastered,
)
from settings import UserSettings

TEA = {"id": "s1", "chinese": "我喜欢喝茶。", "pinyin": "wǒ xǐhuān hē chá", "english": "I like to drink tea."}
TODAY = {
    "id": "s2",
    "chinese": "今天我和妈妈去大市场。",
    "pinyin": "jīntiān wǒ hé māma qù dà shìchǎng",
    "english": "We are going to the big market with my mother today.",
}


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.mark.parametrize("similarity, status", [
    (1.0, FeedbackStatus.CORRECT),
    (0.8, FeedbackStatus.CORRECT),
    (0.79, FeedbackStatus.PARTIAL),
    (0.4, FeedbackStatus.PARTIAL),
    (0.39, FeedbackStatus.INCORRECT),
    (0.0, FeedbackStatus.INCORRECT),
])
def test_classify_thresholds(similarity, status):
    assert classify_similarity(similarity) == status


def test_classify_uses_config():
    config = ScoringConfig(correct_threshold=0.9, partial_threshold=0.5)
    assert classify_similarity(0.85, config) == FeedbackStatus.PARTIAL
    assert classify_similarity(0.45, config) == FeedbackStatus.INCORRECT


def test_compute_score_example():
    score = compute_score(0.9, 2)
    assert score.accuracy_score == 81
    assert score.time_score == 10
    assert score.total_points == 91


def test_time_score_drops_per_step_and_floors_at_one():
    assert compute_score(1.0, 3).time_score == 9
    assert compute_score(1.0, 7).time_score == 8
    assert compute_score(1.0, 300).time_score == 1
    assert compute_score(1.0, 6, time_weight=6).time_score == 6
    assert compute_score(1.0, 60, time_weight=0).time_score == 10


def test_accuracy_rounds_half_up():
    # 0.25 * 90 = 22.5
    assert compute_score(0.25, 0).accuracy_score == 23


def test_time_step_and_weight_divisor_are_independent():
    slower_steps = ScoringConfig(time_step_seconds=6)
    assert compute_score(1.0, 6, config=slower_steps).time_score == 9
    heavier_weight = ScoringConfig(time_weight_divisor=1)
    assert compute_score(1.0, 3, config=heavier_weight).time_score == 7


def test_mastery_is_strictly_above_threshold():
    assert is_mastered(0.95)
    assert not is_mastered(0.9)


def test_practice_stats():
    stats = PracticeStats(total_words=4)
    stats.record(2.0, mastered=True)
    stats.record(4.0, mastered=False)
    assert stats.completed == 2
    assert stats.accuracy_percent == 50
    assert stats.mastery_percent == 25
    assert stats.to_dict()["avgTime"] == 3.0


def test_practice_stats_avg_time_rounds_half_up():
    stats = PracticeStats()
    stats.record(0.25, mastered=False)
    assert stats.to_dict()["avgTime"] == 0.3


def test_practice_stats_empty():
    stats = PracticeStats()
    assert stats.accuracy_percent == 0
    assert stats.mastery_percent == 0


def test_session_flow():
    clock = FakeClock()
    session = PracticeSession("abc", clock=clock)
    assert session.state == IDLE

    session.show(TEA)
    assert session.state == AWAITING_INPUT

    assert session.update_input("dog") == "incorrect"
    assert session.update_input("I like drink tea") == "correct"
    assert session.update_input("   ") == AWAITING_INPUT
    assert session.similarity is None

    session.update_input("I like to drink tea")
    clock.now += 4
    awarded = session.submit()
    assert awarded.accuracy_score == 90
    assert awarded.time_score == 9
    assert session.score == 99
    assert session.submit() is None
    assert session.stats.completed == 1

    session.advance()
    assert session.state == COMPLETED
    with pytest.raises(ValueError):
        session.update_input("again")


def test_partial_answer_earns_nothing():
    session = PracticeSession("abc", clock=FakeClock())
    session.show(TEA)
    assert session.update_input("I like tea") == "partial"
    assert session.submit() is None
    assert session.claim_attempt() is None
    assert session.score == 0


def test_temporal_conflict_demotes_to_partial():
    session = PracticeSession("abc", clock=FakeClock())
    session.show(TODAY)
    assert session.update_input("We are going to the big market with my mother tomorrow") == "partial"


def test_exact_answer_naming_two_days_is_correct():
    session = PracticeSession("abc", clock=FakeClock())
    english = "I am not going today, I am going tomorrow."
    session.show({"id": "s2", "chinese": "我今天不去，我明天去。", "english": english})
    assert session.update_input(english) == "correct"
    assert session.similarity == 1.0
    assert session.submit() is not None
    assert session.claim_attempt() is True


def test_strictness_comes_from_settings():
    strict = PracticeSession("a", settings=UserSettings(match_strictness="strict"), clock=FakeClock())
    strict.show(TEA)
    assert strict.update_input("I like drink tea") == "partial"


def test_claim_attempt_once_per_sentence():
    session = PracticeSession("abc", clock=FakeClock())
    session.show(TEA)
    session.update_input("xyz qqq zzz www")
    assert session.claim_attempt() is False
    assert session.claim_attempt() is None
    session.show(TODAY)
    session.update_input("We are going to the big market with my mother today")
    assert session.claim_attempt() is True


def test_update_before_any_sentence_raises():
    with pytest.raises(ValueError):
        PracticeSession("abc").update_input("hello")


def test_only_latest_request_is_accepted():
    session = PracticeSession("abc", clock=FakeClock())
    first = session.begin_request()
    second = session.begin_request()
    assert not session.accept_sentence(first, TEA)
    assert session.sentence is None
    assert session.accept_sentence(second, TODAY)
    assert session.sentence == TODAY
