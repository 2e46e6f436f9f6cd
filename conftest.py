"""Shared fixtures for the Tingli test suite."""
import os

# Importing backend builds a default app; keep it off the on-disk database.
os.environ.setdefault("TINGLI_BACKEND", "memory")

import pytest
from fastapi.testclient import TestClient

from cache import SentenceCache, SessionRegistry
from llm import SentenceGenerationError
from sentences import SentenceGenerator
from store import MemoryVocabularyStore

SAMPLE_WORDS = [
    {"chinese": "我", "pinyin": "wo3", "english": "I"},
    {"chinese": "喜欢", "pinyin": "xi3 huan1", "english": "to like"},
    {"chinese": "喝", "pinyin": "he1", "english": "to drink"},
    {"chinese": "茶", "pinyin": "cha2", "english": "tea"},
]

LIKE_TEA = {"chinese": "我喜欢喝茶。", "pinyin": "wo3 xi3 huan1 he1 cha2", "english": "I like to drink tea."}


class FakeSource:
    """Stands in for the model: returns queued sentences, or raises once the queue is empty."""

    def __init__(self, *sentences):
        self.sentences = list(sentences)
        self.calls = []

    async def __call__(self, vocabulary, difficulty):
        self.calls.append((vocabulary, difficulty))
        if not self.sentences:
            raise SentenceGenerationError("model offline")
        return dict(self.sentences.pop(0))


@pytest.fixture()
def store():
    s = MemoryVocabularyStore()
    s.add_words(SAMPLE_WORDS)
    return s


@pytest.fixture()
def make_client(store):
    """Build a TestClient around an app whose model calls are canned."""
    import backend

    def _make(sentence_source=None, word_source=None):
        generator = SentenceGenerator(
            cache=SentenceCache(),
            sentence_source=sentence_source or FakeSource(),
            word_source=word_source or FakeSource(),
        )
        app = backend.create_app(store=store, generator=generator, sessions=SessionRegistry())
        return TestClient(app)

    return _make
