"""Learner preferences, injected into the practice flow and speech planning.

Keys:
    theme             "light" | "dark" | "system" (client rendering only)
    voice_uri         saved speech-synthesis voice, tried first when speaking
    voice_lang        explicit language override used when no Mandarin voice exists
    speech_rate       playback rate, 0.1-10
    auto_replay       replay the sentence audio when a new sentence is shown
    difficulty        sentence tier requested by default
    match_strictness  "lenient" | "moderate" | "strict" answer matching
    time_weight       how hard slow answers are penalised (3 = one point per 3s)
"""
from typing import Literal, Optional

from pydantic import BaseModel, Field

from models import Difficulty
from similarity import MatchLevel

DEFAULT_LANG = "zh-CN"


class UserSettings(BaseModel):
    theme: Literal["light", "dark", "system"] = "system"
    voice_uri: Optional[str] = None
    voice_lang: Optional[str] = None
    speech_rate: float = Field(default=1.0, ge=0.1, le=10)
    auto_replay: bool = False
    difficulty: Difficulty = "beginner"
    match_strictness: MatchLevel = "moderate"
    time_weight: float = Field(default=3, ge=0)


def merge_settings(current: UserSettings, updates: dict) -> UserSettings:
    """Apply a partial update, validating the merged result."""
    return UserSettings.model_validate({**current.model_dump(), **updates})
