"""LLM interaction (Ollama): sentence generation prompts, synonym checks, JSON parsing."""
import os
import json
import re as _re
import random
import datetime
from typing import Optional, List

from log import get_logger

logger = get_logger("tingli.llm")

import httpx

from similarity import levenshtein_distance

# --- Config ---
OLLAMA_URL = os.environ.get("TINGLI_OLLAMA_URL", "http://localhost:11434")
OLLAMA_MODEL = os.environ.get("TINGLI_OLLAMA_MODEL", "qwen2.5:14b-instruct-q3_K_M")
OLLAMA_TIMEOUT = int(os.environ.get("TINGLI_OLLAMA_TIMEOUT", "60"))


class SentenceGenerationError(Exception):
    """The model did not produce a usable sentence."""


DIFFICULTY_GUIDE = {
    "beginner": "Use simple sentence structures with basic subject-verb patterns. Include 3-5 words.",
    "intermediate": "Use more complex grammar with some compounds and basic conjunctions. Include 5-8 words.",
    "advanced": "Use sophisticated grammar and sentence structures. Include 8-10 words or more.",
}

_SEASONS = ["winter", "winter", "spring", "spring", "spring", "summer",
            "summer", "summer", "autumn", "autumn", "autumn", "winter"]


def sentence_patterns(now: Optional[datetime.datetime] = None) -> List[str]:
    """Sentence shapes to ask for, one picked per request for variety."""
    now = now or datetime.datetime.now()
    day_time = "morning" if now.hour < 12 else "afternoon" if now.hour < 18 else "evening"
    return [
        "Create a question using 吗, 呢, or 吧.",
        "Create an imperative statement (a command or request).",
        "Create a comparison between two things.",
        "Create an if/then conditional statement.",
        "Create a sentence expressing an opinion or preference.",
        "Create a time-based sentence about a daily routine.",
        "Create a descriptive sentence about weather, food, or a place.",
        "Create a cause and effect relationship sentence.",
        "Create a sentence about future plans or intentions.",
        "Create a sentence with a location expression.",
        f"Create a sentence about {day_time} activities.",
        f"Create a sentence mentioning it's {now.strftime('%A')}.",
        f"Create a seasonal sentence about {_SEASONS[now.month - 1]}.",
        "Create a sentence with a negative statement (using 不 or 没).",
        "Create a sentence about wanting or needing something.",
        "Create a sentence with emotional expression (happy, sad, tired, etc).",
    ]


# --- Helpers ---

def parse_json_object(text: str) -> Optional[dict]:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        match = _re.search(r'\{.*\}', text, _re.DOTALL)
        if not match:
            return None
        try:
            return json.loads(match.group())
        except json.JSONDecodeError:
            return None


def _parse_sentence(text: Optional[str], difficulty: str) -> dict:
    if text is None:
        raise SentenceGenerationError("LLM API error")
    parsed = parse_json_object(text)
    if not isinstance(parsed, dict):
        parsed = {}
    chinese = str(parsed.get("chinese", "")).strip()
    english = str(parsed.get("english", "")).strip()
    if not chinese or not english:
        raise SentenceGenerationError("Model response is missing chinese/english fields")
    return {
        "chinese": chinese,
        "pinyin": str(parsed.get("pinyin", "")).strip(),
        "english": english,
        "difficulty": difficulty,
    }


async def ollama_chat(messages: list, model: str = None, temperature: float = 0.7,
                      num_predict: int = 512, timeout: int = None) -> Optional[str]:
    """Call Ollama chat API and return the content string, or None on a non-200 reply."""
    if model is None:
        model = OLLAMA_MODEL
    async with httpx.AsyncClient(timeout=timeout or OLLAMA_TIMEOUT) as client:
        resp = await client.post(
            f"{OLLAMA_URL}/api/chat",
            json={
                "model": model,
                "messages": messages,
                "stream": False,
                "format": "json",
                "options": {"temperature": temperature, "num_predict": num_predict},
            },
        )
    if resp.status_code != 200:
        logger.warning("Ollama returned an error", extra={"component": "ollama", "status_code": resp.status_code})
        return None
    return resp.json().get("message", {}).get("content", "")


async def generate_sentence(vocabulary: List[dict], difficulty: str = "beginner") -> dict:
    """Ask the model for a Mandarin sentence built from the given vocabulary.

    Returns {chinese, pinyin, english, difficulty}. Raises
    SentenceGenerationError on transport failure or an unusable reply.
    """
    if not vocabulary:
        raise SentenceGenerationError("No vocabulary provided")

    chinese_words = ", ".join(w["chinese"] for w in vocabulary)
    system_msg = f"""You are a Mandarin Chinese language teacher creating practice sentences for students.
Generate a grammatically correct Mandarin sentence using ONLY the vocabulary words provided.
{DIFFICULTY_GUIDE.get(difficulty, DIFFICULTY_GUIDE["beginner"])}
Vary the sentence structure: questions, requests, comparisons, conditionals, opinions, time expressions, negatives.
Provide the sentence in Chinese characters, pinyin (with proper tone marks), and an English translation.
Common connecting words like 的 or 是 may be used only if they are in the vocabulary list.
Return ONLY valid JSON: {{"chinese": "...", "pinyin": "...", "english": "..."}}"""

    prompt = f"""Vocabulary words (in Chinese): {chinese_words}.
Difficulty level: {difficulty}.

For this specific request: {random.choice(sentence_patterns())}

Generate a sentence using only these words. Make it sound natural and conversational."""

    try:
        text = await ollama_chat(
            [{"role": "system", "content": system_msg}, {"role": "user", "content": prompt}],
        )
    except httpx.HTTPError as e:
        raise SentenceGenerationError(f"Ollama request failed: {e}") from e
    return _parse_sentence(text, difficulty)


async def generate_sentence_with_word(word: str, difficulty: str = "beginner") -> dict:
    if not word or not word.strip():
        raise SentenceGenerationError("No word provided")

    system_msg = f"""You are a Mandarin Chinese language teacher creating example sentences.
Generate a grammatically correct Mandarin sentence that includes the word "{word}".
{DIFFICULTY_GUIDE.get(difficulty, DIFFICULTY_GUIDE["beginner"])}
Provide the sentence in Chinese characters, pinyin (with proper tone marks), and an English translation.
Return ONLY valid JSON: {{"chinese": "...", "pinyin": "...", "english": "..."}}"""

    prompt = f"""Create a natural, grammatically correct sentence in Mandarin that includes the word "{word}".
Difficulty level: {difficulty}.

For this specific request: {random.choice(sentence_patterns())}"""

    try:
        text = await ollama_chat(
            [{"role": "system", "content": system_msg}, {"role": "user", "content": prompt}],
        )
    except httpx.HTTPError as e:
        raise SentenceGenerationError(f"Ollama request failed: {e}") from e
    sentence = _parse_sentence(text, difficulty)
    if word not in sentence["chinese"]:
        raise SentenceGenerationError("Generated sentence does not contain the specified word")
    return sentence


def _edit_similarity(word1: str, word2: str) -> float:
    longest = max(len(word1), len(word2))
    if not longest:
        return 1.0
    return 1 - levenshtein_distance(word1.lower(), word2.lower()) / longest


async def check_synonyms(word1: str, word2: str) -> dict:
    """Ask the model whether two English phrases mean the same thing.

    Falls back to plain edit-distance similarity when the model is unavailable.
    """
    system_msg = """You are a language learning assistant checking whether two English words or phrases
are synonyms or equivalent in meaning in the context of translation.
"pretty"/"beautiful" and "eat"/"have a meal" are equivalent; "apple"/"banana" are not.
Return JSON only: {"areSynonyms": true|false, "confidence": 0.0-1.0}"""
    prompt = f'Are these two words/phrases synonyms or equivalent in meaning: "{word1}" and "{word2}"?'

    try:
        text = await ollama_chat(
            [{"role": "system", "content": system_msg}, {"role": "user", "content": prompt}],
            temperature=0.1, num_predict=64,
        )
        parsed = parse_json_object(text) if text else None
        if isinstance(parsed, dict) and "areSynonyms" in parsed:
            return {
                "areSynonyms": bool(parsed["areSynonyms"]),
                "confidence": float(parsed.get("confidence", 0)),
            }
        logger.warning("Unusable synonym check reply", extra={"component": "ollama"})
    except (httpx.HTTPError, ValueError, TypeError):
        logger.exception("Synonym check failed", extra={"component": "ollama"})

    similarity = _edit_similarity(word1, word2)
    return {"areSynonyms": similarity > 0.8, "confidence": similarity}


async def check_ollama_connectivity() -> bool:
    try:
        async with httpx.AsyncClient(timeout=10) as client:
            resp = await client.get(f"{OLLAMA_URL}/api/tags")
            return resp.status_code == 200
    except httpx.HTTPError:
        logger.warning("Ollama not reachable", extra={"component": "ollama"})
        return False
