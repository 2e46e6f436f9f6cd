"""API route handlers for Tingli: health, pinyin, settings, speech, plus the feature routers."""
from fastapi import APIRouter, Depends, HTTPException

from log import get_logger

logger = get_logger("tingli.routes")

from deps import get_generator, get_store
from llm import OLLAMA_MODEL, check_ollama_connectivity
from models import PinyinRequest, SpeechPlanRequest
from pinyin import convert_numeric_pinyin_to_tonal, is_numeric_pinyin, normalize_pinyin
from sentences import SentenceGenerator
from settings import merge_settings
from speech import select_voice
from store import VocabularyStore

from vocab_routes import router as vocab_router
from sentence_routes import router as sentence_router
from practice_routes import router as practice_router

router = APIRouter()
router.include_router(vocab_router)
router.include_router(sentence_router)
router.include_router(practice_router)

MAX_INPUT_LEN = 500


@router.get("/api/health", tags=["System"], summary="Service health")
async def health(
    store: VocabularyStore = Depends(get_store),
    generator: SentenceGenerator = Depends(get_generator),
):
    ollama_ok = await check_ollama_connectivity()
    return {
        "status": "ok" if ollama_ok else "degraded",
        "ollama": ollama_ok,
        "model": OLLAMA_MODEL,
        "backend": type(store).__name__,
        "sentence_cache": generator.cache.stats(),
    }


@router.post("/api/pinyin/convert", tags=["Pinyin"], summary="Numbered pinyin to tone marks")
async def convert_pinyin(req: PinyinRequest):
    if len(req.text) > MAX_INPUT_LEN:
        raise HTTPException(400, f"Input too long (max {MAX_INPUT_LEN} characters)")
    return {
        "input": req.text,
        "pinyin": convert_numeric_pinyin_to_tonal(req.text),
        "plain": normalize_pinyin(req.text),
        "numeric": is_numeric_pinyin(req.text),
    }


@router.get("/api/settings", tags=["Settings"], summary="Current learner settings")
async def get_settings(store: VocabularyStore = Depends(get_store)):
    return store.load_settings().model_dump()


@router.put("/api/settings", tags=["Settings"], summary="Update learner settings")
async def put_settings(updates: dict, store: VocabularyStore = Depends(get_store)):
    try:
        settings = merge_settings(store.load_settings(), updates)
    except ValueError as e:
        raise HTTPException(400, f"Invalid settings: {e}")
    store.save_settings(settings)
    logger.info("Saved settings", extra={"component": "settings", "detail": sorted(updates)})
    return settings.model_dump()


@router.post("/api/speech/plan", tags=["Speech"], summary="Pick voice, language and rate for playback")
async def speech_plan(req: SpeechPlanRequest, store: VocabularyStore = Depends(get_store)):
    return select_voice(req.voices, store.load_settings(), req.text).model_dump()
