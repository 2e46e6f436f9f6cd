"""Vocabulary list and per-word proficiency routes."""
from fastapi import APIRouter, Depends, HTTPException

from log import get_logger
from deps import get_store
from models import AddWordsRequest, DeleteByChineseRequest, ProficiencyUpdate, WordUpdate
from store import VocabularyStore

logger = get_logger("tingli.vocab")

router = APIRouter()


@router.get("/api/vocabulary/words", tags=["Vocabulary"], summary="List all vocabulary words")
async def list_words(store: VocabularyStore = Depends(get_store)):
    return store.list_words()


@router.post("/api/vocabulary/words", tags=["Vocabulary"], summary="Add a batch of words")
async def add_words(req: AddWordsRequest, store: VocabularyStore = Depends(get_store)):
    if not req.words:
        raise HTTPException(400, "No words provided")
    added = store.add_words([w.model_dump() for w in req.words])
    skipped = len(req.words) - len(added)
    logger.info("Added vocabulary", extra={"component": "vocab", "count": len(added)})
    return {"added": added, "skipped": skipped}


@router.delete("/api/vocabulary/words", tags=["Vocabulary"], summary="Delete every word")
async def delete_all_words(store: VocabularyStore = Depends(get_store)):
    deleted = store.delete_all()
    logger.info("Cleared vocabulary", extra={"component": "vocab", "count": deleted})
    return {"deleted": deleted}


# Registered before /{word_id} so "by-chinese" is not parsed as an id
@router.delete("/api/vocabulary/words/by-chinese", tags=["Vocabulary"], summary="Delete a word by its characters")
async def delete_by_chinese(req: DeleteByChineseRequest, store: VocabularyStore = Depends(get_store)):
    if not store.delete_by_chinese(req.chinese.strip()):
        raise HTTPException(404, "Word not found")
    return {"ok": True}


@router.get("/api/vocabulary/words/{word_id}", tags=["Vocabulary"], summary="Get one word")
async def get_word(word_id: int, store: VocabularyStore = Depends(get_store)):
    word = store.get_word(word_id)
    if word is None:
        raise HTTPException(404, "Word not found")
    return word


@router.patch("/api/vocabulary/words/{word_id}", tags=["Vocabulary"], summary="Edit or (de)activate a word")
async def update_word(word_id: int, req: WordUpdate, store: VocabularyStore = Depends(get_store)):
    updates = req.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(400, "Nothing to update")
    if "chinese" in updates:
        clash = [w for w in store.list_words() if w["chinese"] == updates["chinese"].strip() and w["id"] != word_id]
        if clash:
            raise HTTPException(409, "Another word already uses these characters")
    word = store.update_word(word_id, updates)
    if word is None:
        raise HTTPException(404, "Word not found")
    return word


@router.delete("/api/vocabulary/words/{word_id}", tags=["Vocabulary"], summary="Delete one word")
async def delete_word(word_id: int, store: VocabularyStore = Depends(get_store)):
    if not store.delete_word(word_id):
        raise HTTPException(404, "Word not found")
    return {"ok": True}


@router.patch("/api/vocabulary/proficiency/{word_id}", tags=["Vocabulary"], summary="Record a practice attempt")
async def update_proficiency(word_id: int, req: ProficiencyUpdate, store: VocabularyStore = Depends(get_store)):
    proficiency = store.record_attempt(word_id, req.isCorrect)
    if proficiency is None:
        raise HTTPException(404, "Word not found")
    return proficiency


@router.get("/api/vocabulary/full-proficiency", tags=["Vocabulary"], summary="Words with proficiency counts")
async def full_proficiency(store: VocabularyStore = Depends(get_store)):
    return store.list_with_proficiency()
