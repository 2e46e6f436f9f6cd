"""Practice session routes: start, type an answer, submit, move to the next sentence."""
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from log import get_logger
from cache import SessionRegistry
from deps import get_generator, get_sessions, get_store
from models import PracticeInputRequest, PracticeNextRequest, PracticeSessionRequest
from scoring import PracticeSession
from sentence_routes import schedule_cache_fill
from sentences import NoActiveVocabulary, SentenceGenerator
from similarity import compare_word_by_word
from store import VocabularyStore

logger = get_logger("tingli.practice")

router = APIRouter()


def _require_session(sessions: SessionRegistry, session_id: str) -> PracticeSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(404, "Practice session not found")
    return session


@router.post("/api/practice/session", tags=["Practice"], summary="Start a practice session")
async def start_session(
    store: VocabularyStore = Depends(get_store),
    sessions: SessionRegistry = Depends(get_sessions),
):
    session = sessions.create(store.load_settings(), total_words=len(store.active_words()))
    return session.to_dict()


@router.post("/api/practice/input", tags=["Practice"], summary="Grade the answer typed so far")
async def practice_input(req: PracticeInputRequest, sessions: SessionRegistry = Depends(get_sessions)):
    session = _require_session(sessions, req.session_id)
    if not session.sentence or session.sentence.get("id") != req.sentence_id:
        raise HTTPException(409, "Sentence is no longer current")
    try:
        state = session.update_input(req.answer)
    except ValueError as e:
        raise HTTPException(409, str(e))

    result = session.to_dict()
    result["feedback"] = state
    if req.answer.strip():
        result["comparison"] = compare_word_by_word(session.sentence["english"], req.answer)
    return result


@router.post("/api/practice/submit", tags=["Practice"], summary="Submit the current answer for points")
async def practice_submit(
    req: PracticeSessionRequest,
    store: VocabularyStore = Depends(get_store),
    sessions: SessionRegistry = Depends(get_sessions),
):
    session = _require_session(sessions, req.session_id)
    if session.sentence is None:
        raise HTTPException(409, "No sentence to submit")

    awarded = session.submit()
    outcome = session.claim_attempt()
    if outcome is not None:
        words = store.words_in_sentence(session.sentence["chinese"])
        for word in words:
            store.record_attempt(word["id"], outcome)
        logger.info("Recorded attempt", extra={"component": "practice", "count": len(words)})

    return {
        "awarded": awarded.model_dump() if awarded else None,
        "session": session.to_dict(),
    }


@router.post("/api/practice/next", tags=["Practice"], summary="Complete the current sentence and fetch the next")
async def practice_next(
    req: PracticeNextRequest,
    background_tasks: BackgroundTasks,
    store: VocabularyStore = Depends(get_store),
    generator: SentenceGenerator = Depends(get_generator),
    sessions: SessionRegistry = Depends(get_sessions),
):
    session = _require_session(sessions, req.session_id)
    if session.sentence is not None:
        session.advance()

    difficulty = req.difficulty or session.settings.difficulty
    vocabulary = store.active_words()
    request_id = session.begin_request()
    try:
        sentence = await generator.generate(vocabulary, difficulty)
    except NoActiveVocabulary as e:
        raise HTTPException(400, str(e))

    schedule_cache_fill(background_tasks, generator, vocabulary)
    accepted = session.accept_sentence(request_id, sentence)
    return {"sentence": sentence, "accepted": accepted, "session": session.to_dict()}
