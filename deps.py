"""FastAPI dependencies giving route handlers the app's store, generator and sessions."""
from fastapi import Request

from cache import SessionRegistry
from sentences import SentenceGenerator
from store import VocabularyStore


def get_store(request: Request) -> VocabularyStore:
    return request.app.state.store


def get_generator(request: Request) -> SentenceGenerator:
    return request.app.state.generator


def get_sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions
