"""Tingli — Mandarin listening practice backend.

Run with: uvicorn backend:app --port 8848
"""
from typing import Optional

from fastapi import FastAPI

from log import get_logger
from cache import SessionRegistry
from routes import router
from sentences import SentenceGenerator
from store import VocabularyStore, create_store

logger = get_logger("tingli.backend")


def create_app(
    store: Optional[VocabularyStore] = None,
    generator: Optional[SentenceGenerator] = None,
    sessions: Optional[SessionRegistry] = None,
) -> FastAPI:
    app = FastAPI(title="Tingli", summary="Mandarin listening practice")
    app.state.store = store if store is not None else create_store()
    app.state.generator = generator if generator is not None else SentenceGenerator()
    app.state.sessions = sessions if sessions is not None else SessionRegistry()
    app.include_router(router)
    logger.info(
        "App ready",
        extra={"component": "startup", "detail": type(app.state.store).__name__},
    )
    return app


app = create_app()
