"""Per-difficulty sentence cache and the practice session registry.

The sentence cache holds pre-generated sentences so a request can be served
without waiting on the model. Entries expire after an hour, a random entry is
removed on each read so sentences do not repeat, and each tier holds at most
SENTENCE_CACHE_MAX entries.
"""
import os
import time
import random
import hashlib
from typing import Callable, Dict, List, Optional, Tuple
from collections import OrderedDict

from log import get_logger
from models import DIFFICULTIES
from scoring import DEFAULT_SCORING, PracticeSession, ScoringConfig
from settings import UserSettings

logger = get_logger("tingli.cache")

# --- Sentence Cache ---
SENTENCE_CACHE_MAX = 10
SENTENCE_CACHE_TTL = 3600  # 1h


class SentenceCache:

    def __init__(self, max_size: int = SENTENCE_CACHE_MAX, ttl: float = SENTENCE_CACHE_TTL,
                 clock: Callable[[], float] = time.time, rng: Optional[random.Random] = None):
        self.max_size = max_size
        self.ttl = ttl
        self.clock = clock
        self.rng = rng or random.Random()
        self._tiers: Dict[str, List[Tuple[float, dict]]] = {d: [] for d in DIFFICULTIES}

    def _prune(self, difficulty: str):
        cutoff = self.clock() - self.ttl
        entries = self._tiers.setdefault(difficulty, [])
        fresh = [(ts, s) for ts, s in entries if ts >= cutoff]
        if len(fresh) != len(entries):
            logger.info(
                "Expired cached sentences",
                extra={"component": "cache", "difficulty": difficulty, "count": len(entries) - len(fresh)},
            )
        self._tiers[difficulty] = fresh

    def put(self, difficulty: str, sentence: dict) -> bool:
        """Store a sentence unless the tier is full or already holds the same chinese."""
        self._prune(difficulty)
        entries = self._tiers[difficulty]
        if len(entries) >= self.max_size:
            return False
        if any(s["chinese"] == sentence["chinese"] for _, s in entries):
            return False
        entries.append((self.clock(), dict(sentence)))
        return True

    def pop(self, difficulty: str) -> Optional[dict]:
        self._prune(difficulty)
        entries = self._tiers[difficulty]
        if not entries:
            return None
        _, sentence = entries.pop(self.rng.randrange(len(entries)))
        return sentence

    def size(self, difficulty: str) -> int:
        self._prune(difficulty)
        return len(self._tiers[difficulty])

    def needs_fill(self, difficulty: str) -> bool:
        return self.size(difficulty) < self.max_size

    def stats(self) -> dict:
        return {
            "tiers": {d: self.size(d) for d in self._tiers},
            "max": self.max_size,
            "ttl_hours": self.ttl / 3600,
        }


# --- Practice Sessions ---
SESSION_TTL = int(os.environ.get("TINGLI_SESSION_TTL", str(3600 * 4)))


def new_session_id() -> str:
    raw = f"{time.time_ns()}|{random.random()}"
    return hashlib.sha256(raw.encode()).hexdigest()[:20]


class SessionRegistry:
    """Live practice sessions, dropped after SESSION_TTL seconds without use."""

    def __init__(self, ttl: float = SESSION_TTL, clock: Callable[[], float] = time.time):
        self.ttl = ttl
        self.clock = clock
        self._sessions: "OrderedDict[str, Tuple[float, PracticeSession]]" = OrderedDict()

    def create(self, settings: UserSettings, total_words: int = 0,
               config: ScoringConfig = DEFAULT_SCORING) -> PracticeSession:
        self.cleanup()
        session = PracticeSession(new_session_id(), settings=settings, config=config, total_words=total_words)
        self._sessions[session.session_id] = (self.clock(), session)
        logger.info("Started practice session", extra={"component": "practice", "session_id": session.session_id})
        return session

    def get(self, session_id: str) -> Optional[PracticeSession]:
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        ts, session = entry
        if self.clock() - ts > self.ttl:
            self._sessions.pop(session_id, None)
            return None
        self._sessions[session_id] = (self.clock(), session)
        self._sessions.move_to_end(session_id)
        return session

    def cleanup(self):
        cutoff = self.clock() - self.ttl
        stale_ids = [sid for sid, (ts, _) in self._sessions.items() if ts < cutoff]
        for sid in stale_ids:
            self._sessions.pop(sid, None)
