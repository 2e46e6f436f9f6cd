"""Speech playback planning: which voice, language and rate to use for a sentence."""
from typing import Callable, List, Optional

from pydantic import BaseModel

from log import get_logger
from models import VoicePayload
from settings import DEFAULT_LANG, UserSettings

logger = get_logger("tingli.speech")

MANDARIN_LANG_CODES = ("zh-CN", "zh-TW", "zh-HK", "zh")
MIN_RATE = 0.1
MAX_RATE = 10.0


class SpeechSynthesisError(Exception):
    """The synthesizer could not play the utterance."""


class SpeechPlan(BaseModel):
    text: str = ""
    voice_uri: Optional[str] = None
    lang: str = DEFAULT_LANG
    rate: float = 1.0
    auto_replay: bool = False


class SpeechResult(BaseModel):
    played: bool
    plan: SpeechPlan
    error: Optional[str] = None


def clamp_rate(rate: float) -> float:
    return max(MIN_RATE, min(MAX_RATE, rate))


def is_mandarin_voice(voice: VoicePayload) -> bool:
    return any(code in voice.lang for code in MANDARIN_LANG_CODES)


def select_voice(voices: List[VoicePayload], settings: Optional[UserSettings] = None, text: str = "") -> SpeechPlan:
    """Saved voice if still installed, then the first Mandarin voice,
    then the explicit language override, then zh-CN with no voice."""
    settings = settings or UserSettings()
    rate = clamp_rate(settings.speech_rate)

    if settings.voice_uri:
        for voice in voices:
            if voice.voice_uri == settings.voice_uri:
                return SpeechPlan(text=text, voice_uri=voice.voice_uri, lang=voice.lang or DEFAULT_LANG,
                                  rate=rate, auto_replay=settings.auto_replay)

    for voice in voices:
        if is_mandarin_voice(voice):
            return SpeechPlan(text=text, voice_uri=voice.voice_uri, lang=voice.lang,
                              rate=rate, auto_replay=settings.auto_replay)

    return SpeechPlan(text=text, lang=settings.voice_lang or DEFAULT_LANG,
                      rate=rate, auto_replay=settings.auto_replay)


def speak(text: str, synthesizer: Callable[[SpeechPlan], None], voices: List[VoicePayload],
          settings: Optional[UserSettings] = None) -> SpeechResult:
    """Plan and play an utterance. Synthesis failures never interrupt practice."""
    plan = select_voice(voices, settings, text)
    try:
        synthesizer(plan)
    except SpeechSynthesisError as e:
        logger.warning("Speech synthesis failed", extra={"component": "speech", "reason": str(e)})
        return SpeechResult(played=False, plan=plan, error=str(e))
    return SpeechResult(played=True, plan=plan)
