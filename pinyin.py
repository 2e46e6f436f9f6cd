"""Pinyin tone conversion: numeric ("ni3 hao3") to tone marks ("nǐ hǎo") and back."""
import re as _re
import unicodedata
from typing import Optional

from pypinyin import pinyin, Style as PinyinStyle

# Marks for tones 1-4, indexed by tone - 1
TONE_MARKS = {
    "a": "āáǎà",
    "e": "ēéěè",
    "i": "īíǐì",
    "o": "ōóǒò",
    "u": "ūúǔù",
    "ü": "ǖǘǚǜ",
}

_TONE_MARKED_RE = _re.compile("[āáǎàēéěèīíǐìōóǒòūúǔùǖǘǚǜĀÁǍÀĒÉĚÈĪÍǏÌŌÓǑÒŪÚǓÙǕǗǙǛ]")
_SYLLABLE_RE = _re.compile(r"([a-zA-ZüÜ]+)([1-5])?")
_NUMERIC_RE = _re.compile(r"[a-zA-ZüÜ]+[1-5]")
_COMBINING_RE = _re.compile(r"[\u0300-\u036f]")


def tone_vowel_index(letters: str) -> int:
    """Index of the vowel that carries the tone mark, or -1 if there is none.

    a beats e, e beats "ou" (mark the o), otherwise the vowel furthest right.
    """
    lower = letters.lower().replace("v", "ü")
    if "a" in lower:
        return lower.index("a")
    if "e" in lower:
        return lower.index("e")
    if "ou" in lower:
        return lower.index("ou")
    return max(lower.rfind(vowel) for vowel in "aeiouü")


def _mark_syllable(letters: str, tone: int) -> str:
    letters = letters.replace("v", "ü").replace("V", "Ü")
    idx = tone_vowel_index(letters)
    if idx < 0:
        return letters
    vowel = letters[idx]
    marked = TONE_MARKS[vowel.lower()][tone - 1]
    if vowel.isupper():
        marked = marked.upper()
    return letters[:idx] + marked + letters[idx + 1:]


def _convert_syllable(syllable: str) -> str:
    match = _SYLLABLE_RE.search(syllable)
    if not match:
        return syllable
    letters, digit = match.group(1), match.group(2)
    if not digit:
        return letters
    tone = int(digit)
    if tone == 5:
        return letters
    return _mark_syllable(letters, tone)


def convert_numeric_pinyin_to_tonal(numeric_pinyin: Optional[str]) -> str:
    """Convert numeric pinyin to tone-marked pinyin.

    Input that already carries a tone mark anywhere is returned unchanged, so
    the conversion is idempotent. Syllables are split on single spaces and
    rejoined the same way. Never raises: anything unrecognised passes through.

        >>> convert_numeric_pinyin_to_tonal("ni3 hao3")
        'nǐ hǎo'
    """
    if not numeric_pinyin:
        return ""
    if _TONE_MARKED_RE.search(numeric_pinyin):
        return numeric_pinyin
    return " ".join(_convert_syllable(s) for s in numeric_pinyin.split(" "))


def normalize_pinyin(text: Optional[str]) -> str:
    """Strip tone marks for tone-insensitive comparison ("nǐ hǎo" -> "ni hao")."""
    if not text:
        return ""
    return _COMBINING_RE.sub("", unicodedata.normalize("NFD", text))


def is_numeric_pinyin(text: Optional[str]) -> bool:
    return bool(text) and bool(_NUMERIC_RE.search(text))


def display_pinyin(text: Optional[str]) -> str:
    """Pinyin as it should be shown to the learner."""
    if not text:
        return ""
    if is_numeric_pinyin(text):
        return convert_numeric_pinyin_to_tonal(text)
    return text


def pinyin_for_chinese(text: str) -> str:
    result = pinyin(text, style=PinyinStyle.TONE)
    return " ".join(p[0] for p in result)
