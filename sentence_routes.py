"""Sentence generation and synonym-check routes."""
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from log import get_logger
from cache import SessionRegistry
from deps import get_generator, get_sessions, get_store
from llm import check_synonyms
from models import DIFFICULTIES, GenerateSentenceRequest, SynonymCheckRequest, WordSentenceRequest
from sentences import NoActiveVocabulary, SentenceGenerator
from store import VocabularyStore

logger = get_logger("tingli.sentence_routes")

router = APIRouter()

MAX_INPUT_LEN = 500


def schedule_cache_fill(background_tasks: BackgroundTasks, generator: SentenceGenerator, vocabulary: list):
    if any(generator.cache.needs_fill(d) for d in DIFFICULTIES):
        background_tasks.add_task(generator.fill_cache, vocabulary)


@router.post("/api/sentence/generate", tags=["Sentences"], summary="Generate a practice sentence")
async def generate(
    req: GenerateSentenceRequest,
    background_tasks: BackgroundTasks,
    store: VocabularyStore = Depends(get_store),
    generator: SentenceGenerator = Depends(get_generator),
    sessions: SessionRegistry = Depends(get_sessions),
):
    session = None
    if req.session_id:
        session = sessions.get(req.session_id)
        if session is None:
            raise HTTPException(404, "Practice session not found")

    difficulty = req.difficulty or store.load_settings().difficulty
    vocabulary = store.active_words()
    request_id = session.begin_request() if session else None

    try:
        sentence = await generator.generate(vocabulary, difficulty)
    except NoActiveVocabulary as e:
        raise HTTPException(400, str(e))

    schedule_cache_fill(background_tasks, generator, vocabulary)
    if session is not None and not session.accept_sentence(request_id, sentence):
        logger.info("Discarded superseded sentence", extra={"component": "sentence", "session_id": req.session_id})
        return {**sentence, "superseded": True}
    return sentence


@router.post("/api/sentence/generate/word", tags=["Sentences"], summary="Generate a sentence around one word")
async def generate_for_word(
    req: WordSentenceRequest,
    store: VocabularyStore = Depends(get_store),
    generator: SentenceGenerator = Depends(get_generator),
):
    word = req.word.strip()
    if not word:
        raise HTTPException(400, "Word is required")
    if len(word) > MAX_INPUT_LEN:
        raise HTTPException(400, f"Input too long (max {MAX_INPUT_LEN} characters)")

    known = next((w for w in store.list_words() if w["chinese"] == word), None)
    return await generator.generate_for_word(word, req.difficulty, known["english"] if known else None)


@router.post("/api/synonym-check", tags=["Sentences"], summary="Check whether two English phrases match")
async def synonym_check(req: SynonymCheckRequest):
    if not req.word1.strip() or not req.word2.strip():
        raise HTTPException(400, "Both words are required")
    if len(req.word1) > MAX_INPUT_LEN or len(req.word2) > MAX_INPUT_LEN:
        raise HTTPException(400, f"Input too long (max {MAX_INPUT_LEN} characters)")
    return await check_synonyms(req.word1.strip(), req.word2.strip())
