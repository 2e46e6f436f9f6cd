"""Feedback states, point scoring, mastery and the per-sentence practice state machine."""
import math
import time
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel

from log import get_logger
from settings import UserSettings
from similarity import check_similarity, has_temporal_conflict

logger = get_logger("tingli.scoring")


class ScoringConfig(BaseModel):
    correct_threshold: float = 0.8
    partial_threshold: float = 0.4
    accuracy_points: int = 90
    max_time_points: float = 10
    min_time_points: float = 1
    time_step_seconds: float = 3
    time_weight_divisor: float = 3
    time_weight: float = 3
    mastery_threshold: float = 0.9


DEFAULT_SCORING = ScoringConfig()


class FeedbackStatus(str, Enum):
    CORRECT = "correct"
    PARTIAL = "partial"
    INCORRECT = "incorrect"


# Session states besides the three feedback values
IDLE = "idle"
AWAITING_INPUT = "awaiting_input"
COMPLETED = "completed"


class ScoreBreakdown(BaseModel):
    similarity: float
    elapsed_seconds: float
    accuracy_score: int
    time_score: float
    total_points: float


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def classify_similarity(similarity: float, config: ScoringConfig = DEFAULT_SCORING) -> FeedbackStatus:
    if similarity >= config.correct_threshold:
        return FeedbackStatus.CORRECT
    if similarity >= config.partial_threshold:
        return FeedbackStatus.PARTIAL
    return FeedbackStatus.INCORRECT


def compute_score(
    similarity: float,
    elapsed_seconds: float,
    time_weight: Optional[float] = None,
    config: ScoringConfig = DEFAULT_SCORING,
) -> ScoreBreakdown:
    """Accuracy dominates (0-90 points); speed adds 1-10 points, front-loaded.

    s=0.9 answered after 2s with time_weight 3 gives 81 + 10 = 91.
    """
    if time_weight is None:
        time_weight = config.time_weight
    steps = math.floor(elapsed_seconds / config.time_step_seconds)
    time_score = max(
        config.min_time_points,
        config.max_time_points - steps * (time_weight / config.time_weight_divisor),
    )
    accuracy_score = _round_half_up(similarity * config.accuracy_points)
    return ScoreBreakdown(
        similarity=similarity,
        elapsed_seconds=elapsed_seconds,
        accuracy_score=accuracy_score,
        time_score=time_score,
        total_points=accuracy_score + time_score,
    )


def is_mastered(similarity: float, config: ScoringConfig = DEFAULT_SCORING) -> bool:
    return similarity > config.mastery_threshold


class PracticeStats:
    """Running totals for one practice session."""

    def __init__(self, total_words: int = 0):
        self.completed = 0
        self.mastered_words = 0
        self.total_words = total_words
        self.avg_time = 0.0

    def record(self, elapsed_seconds: float, mastered: bool):
        self.completed += 1
        if mastered:
            self.mastered_words += 1
        self.avg_time = (self.avg_time * (self.completed - 1) + elapsed_seconds) / self.completed

    @property
    def accuracy_percent(self) -> int:
        if not self.completed:
            return 0
        return _round_half_up(100 * self.mastered_words / self.completed)

    @property
    def mastery_percent(self) -> int:
        return min(100, _round_half_up(100 * self.mastered_words / max(self.total_words, 1)))

    def to_dict(self) -> dict:
        return {
            "completed": self.completed,
            "accuracy": self.accuracy_percent,
            "avgTime": _round_half_up(self.avg_time * 10) / 10,
            "masteryPercent": self.mastery_percent,
            "masteredWords": self.mastered_words,
            "totalWords": self.total_words,
        }


class PracticeSession:
    """State machine for one learner working through generated sentences.

    idle -> awaiting_input when a sentence is shown. Every input change
    recomputes the feedback from scratch (correct / partial / incorrect, or
    awaiting_input again for blank input). advance() completes the item;
    the next shown sentence starts over at awaiting_input.

    Sentence requests are numbered: only the response to the most recent
    request may replace the displayed sentence.
    """

    def __init__(
        self,
        session_id: str,
        settings: Optional[UserSettings] = None,
        config: ScoringConfig = DEFAULT_SCORING,
        total_words: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.session_id = session_id
        self.settings = settings or UserSettings()
        self.config = config
        self.clock = clock
        self.state = IDLE
        self.sentence: Optional[dict] = None
        self.user_input = ""
        self.similarity: Optional[float] = None
        self.shown_at: Optional[float] = None
        self.awarded: Optional[ScoreBreakdown] = None
        self.attempt_recorded = False
        self.score = 0.0
        self.stats = PracticeStats(total_words)
        self._latest_request = 0

    def begin_request(self) -> int:
        self._latest_request += 1
        return self._latest_request

    def accept_sentence(self, request_id: int, sentence: dict) -> bool:
        if request_id != self._latest_request:
            logger.info(
                "Ignoring superseded sentence",
                extra={"component": "practice", "session_id": self.session_id},
            )
            return False
        self.show(sentence)
        return True

    def show(self, sentence: dict):
        self.sentence = sentence
        self.user_input = ""
        self.similarity = None
        self.awarded = None
        self.attempt_recorded = False
        self.shown_at = self.clock()
        self.state = AWAITING_INPUT

    @property
    def feedback(self) -> Optional[FeedbackStatus]:
        if self.state in (IDLE, AWAITING_INPUT, COMPLETED):
            return None
        return FeedbackStatus(self.state)

    def update_input(self, text: str) -> str:
        if self.sentence is None or self.state == COMPLETED:
            raise ValueError(f"No sentence awaiting input (state={self.state})")
        self.user_input = text
        if not text.strip():
            self.similarity = None
            self.state = AWAITING_INPUT
            return self.state

        reference = self.sentence.get("english", "")
        self.similarity = check_similarity(text, reference, self.settings.match_strictness)
        status = classify_similarity(self.similarity, self.config)
        if status == FeedbackStatus.CORRECT and has_temporal_conflict(text, reference):
            status = FeedbackStatus.PARTIAL
        self.state = status.value
        return self.state

    def submit(self) -> Optional[ScoreBreakdown]:
        """Award points for a correct answer, at most once per sentence."""
        if self.feedback != FeedbackStatus.CORRECT or self.awarded is not None:
            return None
        elapsed = max(0.0, self.clock() - self.shown_at)
        self.awarded = compute_score(self.similarity, elapsed, self.settings.time_weight, self.config)
        self.score += self.awarded.total_points
        self.stats.record(elapsed, is_mastered(self.similarity, self.config))
        return self.awarded

    def claim_attempt(self) -> Optional[bool]:
        """Outcome to record against the sentence's words, at most once per sentence.

        Partial and unanswered sentences record nothing.
        """
        if self.attempt_recorded or self.feedback not in (FeedbackStatus.CORRECT, FeedbackStatus.INCORRECT):
            return None
        self.attempt_recorded = True
        return self.feedback == FeedbackStatus.CORRECT

    def advance(self):
        if self.sentence is None:
            raise ValueError("No sentence to complete")
        self.state = COMPLETED

    def to_dict(self) -> dict:
        return {
            "sessionId": self.session_id,
            "state": self.state,
            "sentence": self.sentence,
            "similarity": self.similarity,
            "score": self.score,
            "stats": self.stats.to_dict(),
        }
