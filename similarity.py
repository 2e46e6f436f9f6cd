"""Answer similarity between a learner translation and the reference English sentence."""
import re as _re
from typing import List, Literal

from rapidfuzz.distance import Levenshtein

MatchLevel = Literal["lenient", "moderate", "strict"]

STRICTNESS_FACTORS = {
    "lenient": 1.3,
    "moderate": 1.0,
    "strict": 0.8,
}

# Answers shorter than this must match exactly
SHORT_ANSWER_LEN = 5

_PUNCT_RE = _re.compile(r"[.,/#!$%^&*;:{}=\-_`~()]")
_SPACES_RE = _re.compile(r"\s{2,}")

# Words that flip the meaning of a sentence even when the rest matches
_TEMPORAL_WORDS = frozenset({"today", "tomorrow", "yesterday"})


def levenshtein_distance(a: str, b: str) -> int:
    return Levenshtein.distance(a, b)


def normalize_string(text: str) -> str:
    text = _PUNCT_RE.sub("", (text or "").lower())
    return _SPACES_RE.sub(" ", text).strip()


def _keyword_similarity(s1: str, s2: str) -> float:
    words1 = s1.split(" ")
    words2 = [w for w in s2.split(" ") if len(w) >= 3]
    match_count = 0
    for word1 in words1:
        if len(word1) < 3:
            continue
        if any(word1 == word2 or levenshtein_distance(word1, word2) <= 1 for word2 in words2):
            match_count += 1
    return match_count / len(words1) if words1 else 0.0


def check_similarity(user_input: str, reference: str, match_level: MatchLevel = "moderate") -> float:
    """Similarity in [0, 1] between the learner answer and the reference.

    Case and punctuation are ignored. Short answers (under 5 characters) only
    score on an exact match. The edit-distance ratio is scaled by the
    strictness factor and capped at 1; lenient mode also credits shared
    keywords and keeps whichever score is higher.
    """
    s1 = normalize_string(user_input)
    s2 = normalize_string(reference)

    if not s1 or not s2:
        return 0.0

    if len(s1) < SHORT_ANSWER_LEN or len(s2) < SHORT_ANSWER_LEN:
        return 1.0 if s1 == s2 else 0.0

    distance = levenshtein_distance(s1, s2)
    similarity = 1 - distance / max(len(s1), len(s2))
    similarity = min(1.0, similarity * STRICTNESS_FACTORS.get(match_level, 1.0))

    if match_level == "lenient":
        similarity = max(similarity, _keyword_similarity(s1, s2))

    return similarity


def has_temporal_conflict(user_input: str, reference: str) -> bool:
    """True when both sentences name a day but not the same set of days."""
    user_days = _TEMPORAL_WORDS.intersection(normalize_string(user_input).split(" "))
    ref_days = _TEMPORAL_WORDS.intersection(normalize_string(reference).split(" "))
    return bool(user_days) and bool(ref_days) and user_days != ref_days


def compare_word_by_word(reference: str, user_input: str) -> dict:
    """Mark which words of each sentence found a counterpart in the other.

    Exact matches are looked for within one position of the same index first;
    remaining words of 3+ letters are then paired with any sufficiently
    similar unmatched word.
    """
    correct_words = normalize_string(reference).split(" ")
    user_words = normalize_string(user_input).split(" ")
    correct_elems: List[dict] = [{"word": w, "matched": False} for w in correct_words]
    user_elems: List[dict] = [{"word": w, "matched": False} for w in user_words]

    for i, user_word in enumerate(user_words):
        if len(user_word) < 2:
            continue
        for j in range(max(0, i - 1), min(len(correct_words) - 1, i + 1) + 1):
            if user_word == correct_words[j] and not correct_elems[j]["matched"]:
                user_elems[i]["matched"] = True
                correct_elems[j]["matched"] = True
                break

    for i, user_word in enumerate(user_words):
        if len(user_word) < 3 or user_elems[i]["matched"]:
            continue
        for j, correct_word in enumerate(correct_words):
            if len(correct_word) < 3 or correct_elems[j]["matched"]:
                continue
            distance = levenshtein_distance(user_word, correct_word)
            if 1 - distance / max(len(user_word), len(correct_word)) > 0.75:
                user_elems[i]["matched"] = True
                correct_elems[j]["matched"] = True
                break

    return {"correctWordElements": correct_elems, "userWordElements": user_elems}
