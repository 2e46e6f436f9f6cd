"""Sentence pipeline: cache, word selection, model call, validation, fallback.

A request never fails because the model did: any generation or validation
problem is logged and answered with a pre-vetted sentence from the tier's
fallback pool, tagged fromFallback.
"""
import re as _re
import time
import random
import hashlib
from typing import Awaitable, Callable, Dict, List, Optional

from log import get_logger
from cache import SentenceCache
from llm import SentenceGenerationError, generate_sentence, generate_sentence_with_word
from models import COMMON_CHINESE_CHARS, DIFFICULTIES, FALLBACK_SENTENCES, WORD_TEMPLATES
from pinyin import display_pinyin, pinyin_for_chinese

logger = get_logger("tingli.sentences")

MAX_SELECTED_WORDS = 10
MAX_UNKNOWN_RATIO = {"intermediate": 0.2, "advanced": 0.35}

SentenceSource = Callable[[List[dict], str], Awaitable[dict]]
WordSource = Callable[[str, str], Awaitable[dict]]


class NoActiveVocabulary(Exception):
    """The learner has no active words to build a sentence from."""


# --- Validation ---

UNNATURAL_PATTERNS = [
    ("请你好", "Incorrect greeting structure"),
    ("谢谢你好", "Incorrect greeting combination"),
    ("谢谢好", "Incorrect greeting structure"),
    ("吗你好", "Incorrect particle usage with greeting"),
    ("呢你好", "Incorrect particle usage with greeting"),
    ("吧你好", "Incorrect particle usage with greeting"),
    ("我是去", "Incorrect verb structure"),
    ("他是看", "Incorrect verb structure"),
    ("你是来", "Incorrect verb structure"),
    ("你吧好", "Incorrect particle usage"),
    ("你好吧", "Incorrect particle usage"),
    ("你呢好", "Incorrect particle usage"),
    ("你吗好", "Incorrect particle usage"),
    ("你好你好", "Redundant greeting"),
    ("早上早上", "Redundant greeting"),
    ("晚上晚上", "Redundant time reference"),
    ("请我", "Incorrect pronoun-verb ordering"),
    ("请他们", "Incorrect pronoun-verb ordering"),
    ("你请", "Incorrect pronoun-verb combination"),
    ("李友李", "Incorrect name structure"),
    ("王朋王", "Incorrect name structure"),
]

CONJUNCTIONS = ("所以", "因为", "但是", "虽然")
NON_LEARNABLE_OBJECTS = ("像", "蛋糕", "衣服", "鞋子", "筷子", "汤", "水", "菜", "饭")
BAD_VERB_OBJECT = ("吃水", "喝饭", "看音乐", "听电影")
NON_FOOD_ITEMS = ("书", "桌子", "椅子", "手机", "电脑", "衣服")

_PUNCT_RE = _re.compile(r"[,.?!，。？！]")
_COVERAGE_STRIP_RE = _re.compile(r"[\s,.?!;:，。？！、；：“”\"'‘’（）()]")
_REPEAT_RE = _re.compile(r"(.)\1{2,}")


def validate_sentence(chinese: str) -> Optional[str]:
    """Return the reason a sentence reads unnaturally, or None when it passes."""
    for pattern, reason in UNNATURAL_PATTERNS:
        if pattern in chinese:
            return reason

    bare_len = len(_PUNCT_RE.sub("", chinese))
    if bare_len < 3:
        return "Sentence is too short"

    repeat = _REPEAT_RE.search(chinese)
    if repeat:
        return f"Repeated character: {repeat.group(1)}"

    if chinese.endswith(("的。", "的?", "的？")):
        return "Incorrect particle usage at sentence end"

    for conjunction in CONJUNCTIONS:
        if chinese.endswith((conjunction + "。", conjunction + "？", conjunction + "！")):
            return f"Incomplete sentence ending with conjunction {conjunction}"
        if bare_len < 6 and conjunction in chinese:
            return f"Sentence too short for conjunction {conjunction}"

    for obj in NON_LEARNABLE_OBJECTS:
        if "学习" + obj in chinese:
            return f"Inappropriate object for 学习: {obj}"

    for pair in BAD_VERB_OBJECT:
        if pair in chinese:
            return "Inappropriate verb-object combination"

    for verb in ("吃", "喝"):
        for item in NON_FOOD_ITEMS:
            if verb + item in chinese:
                return f"Inappropriate verb-object combination: {verb}{item}"

    return None


def check_vocabulary_coverage(chinese: str, vocabulary: List[dict], difficulty: str) -> Optional[str]:
    """Check the sentence sticks to characters the learner knows.

    Beginner sentences may only use vocabulary characters plus the common
    allowlist; intermediate and advanced tolerate a share of unknown ones.
    """
    chars = list(dict.fromkeys(_COVERAGE_STRIP_RE.sub("", chinese)))
    if not chars:
        return "Sentence has no characters"
    known = set("".join(w["chinese"] for w in vocabulary)) | COMMON_CHINESE_CHARS
    unknown = [c for c in chars if c not in known]

    if difficulty in MAX_UNKNOWN_RATIO:
        ratio = len(unknown) / len(chars)
        if ratio > MAX_UNKNOWN_RATIO[difficulty]:
            return f"{difficulty} sentence has too many unknown characters ({ratio:.2f})"
        return None
    if unknown:
        return "Beginner sentences must only use vocabulary from the list"
    return None


# --- Word Selection ---

def select_words(words: List[dict], usage: Dict[int, dict], count: int = MAX_SELECTED_WORDS,
                 now: Optional[float] = None, rng: Optional[random.Random] = None) -> List[dict]:
    """Pick up to count words, favouring those used least and least recently.

    Never-used words score 0 and always come first; ties are broken randomly.
    """
    now = time.time() if now is None else now
    rng = rng or random
    shuffled = list(words)
    rng.shuffle(shuffled)

    def score(word):
        stats = usage.get(word["id"])
        if not stats or not stats["uses"]:
            return 0.0
        hours_since = max(0.0, (now - stats["last_used"]) / 3600)
        return (stats["uses"] + 1) / (hours_since + 0.1)

    shuffled.sort(key=score)
    return shuffled[:count]


# --- Fallback ---

def new_sentence_id(chinese: str) -> str:
    raw = f"{chinese}|{time.time_ns()}|{random.random()}"
    return hashlib.sha256(raw.encode()).hexdigest()[:16]


def fallback_sentence(difficulty: str, rng: Optional[random.Random] = None) -> dict:
    rng = rng or random
    pool = FALLBACK_SENTENCES.get(difficulty) or FALLBACK_SENTENCES["beginner"]
    picked = rng.choice(pool)
    return {
        **picked,
        "id": new_sentence_id(picked["chinese"]),
        "difficulty": difficulty if difficulty in DIFFICULTIES else "beginner",
        "fromFallback": True,
    }


def fallback_sentence_for_word(word: str, difficulty: str, english: Optional[str] = None,
                               rng: Optional[random.Random] = None) -> dict:
    rng = rng or random
    template = rng.choice(WORD_TEMPLATES)
    chinese = template["template"].format(word=word)
    return {
        "id": new_sentence_id(chinese),
        "chinese": chinese,
        "pinyin": template["pinyin"].format(word=pinyin_for_chinese(word)),
        "english": template["english"].format(word=english or word),
        "difficulty": difficulty,
        "fromFallback": True,
    }


# --- Generator ---

class SentenceGenerator:
    """Serves practice sentences for a vocabulary list.

    sentence_source and word_source default to the Ollama-backed functions
    in llm; tests pass plain coroutines instead.
    """

    def __init__(self, cache: Optional[SentenceCache] = None,
                 sentence_source: Optional[SentenceSource] = None,
                 word_source: Optional[WordSource] = None,
                 rng: Optional[random.Random] = None,
                 clock: Callable[[], float] = time.time):
        self.cache = cache or SentenceCache()
        self.sentence_source = sentence_source or generate_sentence
        self.word_source = word_source or generate_sentence_with_word
        self.rng = rng or random.Random()
        self.clock = clock
        self.usage: Dict[int, dict] = {}
        self.filling = False

    def _record_usage(self, words: List[dict]):
        now = self.clock()
        for word in words:
            stats = self.usage.setdefault(word["id"], {"uses": 0, "last_used": 0.0})
            stats["uses"] += 1
            stats["last_used"] = now

    @staticmethod
    def _finish(sentence: dict, difficulty: str) -> dict:
        chinese = sentence["chinese"]
        pinyin = display_pinyin(sentence.get("pinyin") or "") or pinyin_for_chinese(chinese)
        return {
            "id": new_sentence_id(chinese),
            "chinese": chinese,
            "pinyin": pinyin,
            "english": sentence["english"],
            "difficulty": difficulty,
        }

    async def _generate_fresh(self, active: List[dict], difficulty: str) -> dict:
        selected = select_words(active, self.usage, now=self.clock(), rng=self.rng)
        self._record_usage(selected)
        sentence = await self.sentence_source(selected, difficulty)

        reason = validate_sentence(sentence["chinese"])
        if reason is None:
            reason = check_vocabulary_coverage(sentence["chinese"], active, difficulty)
        if reason is not None:
            raise SentenceGenerationError(f"Rejected sentence {sentence['chinese']}: {reason}")
        return self._finish(sentence, difficulty)

    async def generate(self, vocabulary: List[dict], difficulty: str = "beginner") -> dict:
        active = [w for w in vocabulary if w.get("active", True)]
        if not active:
            raise NoActiveVocabulary("No active vocabulary words. Add or activate some words first.")

        cached = self.cache.pop(difficulty)
        if cached is not None:
            return {**cached, "fromCache": True}

        try:
            return await self._generate_fresh(active, difficulty)
        except (SentenceGenerationError, KeyError, ValueError) as e:
            logger.warning(
                "Sentence generation failed, using fallback",
                extra={"component": "sentences", "difficulty": difficulty, "reason": str(e)},
            )
            return fallback_sentence(difficulty, self.rng)
        except Exception:
            logger.exception(
                "Unexpected sentence generation error, using fallback",
                extra={"component": "sentences", "difficulty": difficulty},
            )
            return fallback_sentence(difficulty, self.rng)

    async def generate_for_word(self, word: str, difficulty: str = "beginner",
                                english: Optional[str] = None) -> dict:
        try:
            sentence = await self.word_source(word, difficulty)
            if word not in sentence["chinese"]:
                raise SentenceGenerationError("Generated sentence does not contain the word")
            reason = validate_sentence(sentence["chinese"])
            if reason is not None:
                raise SentenceGenerationError(f"Rejected sentence {sentence['chinese']}: {reason}")
            return self._finish(sentence, difficulty)
        except (SentenceGenerationError, KeyError, ValueError) as e:
            logger.warning(
                "Word sentence generation failed, using template",
                extra={"component": "sentences", "word": word, "reason": str(e)},
            )
            return fallback_sentence_for_word(word, difficulty, english, self.rng)
        except Exception:
            logger.exception(
                "Unexpected word sentence error, using template",
                extra={"component": "sentences", "word": word},
            )
            return fallback_sentence_for_word(word, difficulty, english, self.rng)

    async def fill_cache(self, vocabulary: List[dict]) -> int:
        """Generate one sentence for each tier below its cap. Returns how many were cached."""
        active = [w for w in vocabulary if w.get("active", True)]
        if not active or self.filling:
            return 0
        added = 0
        self.filling = True
        try:
            for difficulty in DIFFICULTIES:
                if not self.cache.needs_fill(difficulty):
                    continue
                try:
                    sentence = await self._generate_fresh(active, difficulty)
                except (SentenceGenerationError, KeyError, ValueError) as e:
                    logger.warning(
                        "Cache fill failed",
                        extra={"component": "cache", "difficulty": difficulty, "reason": str(e)},
                    )
                    continue
                except Exception:
                    logger.exception(
                        "Unexpected cache fill error",
                        extra={"component": "cache", "difficulty": difficulty},
                    )
                    continue
                if self.cache.put(difficulty, sentence):
                    added += 1
        finally:
            self.filling = False
        if added:
            logger.info("Refilled sentence cache", extra={"component": "cache", "count": added})
        return added
