"""Tests for voice selection and non-blocking speech playback."""
from models import VoicePayload
from settings import UserSettings
from speech import SpeechSynthesisError, select_voice, speak

ENGLISH = VoicePayload(voice_uri="en-1", name="Samantha", lang="en-US")
TAIWAN = VoicePayload(voice_uri="zh-tw-1", name="Mei-Jia", lang="zh-TW")
MAINLAND = VoicePayload(voice_uri="zh-cn-1", name="Ting-Ting", lang="zh-CN")


def test_saved_voice_wins_when_available():
    plan = select_voice([TAIWAN, MAINLAND], UserSettings(voice_uri="zh-cn-1"))
    assert plan.voice_uri == "zh-cn-1"
    assert plan.lang == "zh-CN"


def test_first_mandarin_voice_when_saved_voice_missing():
    plan = select_voice([ENGLISH, TAIWAN, MAINLAND], UserSettings(voice_uri="gone"))
    assert plan.voice_uri == "zh-tw-1"


def test_language_override_without_mandarin_voices():
    plan = select_voice([ENGLISH], UserSettings(voice_lang="zh-HK"))
    assert plan.voice_uri is None
    assert plan.lang == "zh-HK"


def test_default_language():
    plan = select_voice([], None, "你好")
    assert plan.lang == "zh-CN"
    assert plan.text == "你好"
    assert plan.rate == 1.0


def test_rate_and_replay_come_from_settings():
    plan = select_voice([MAINLAND], UserSettings(speech_rate=0.5, auto_replay=True))
    assert plan.rate == 0.5
    assert plan.auto_replay is True


def test_speak_plays():
    played = []
    result = speak("你好", played.append, [MAINLAND])
    assert result.played is True
    assert played[0].text == "你好"
    assert played[0].voice_uri == "zh-cn-1"


def test_speak_failure_is_reported_not_raised():
    def broken(plan):
        raise SpeechSynthesisError("audio device busy")

    result = speak("你好", broken, [MAINLAND])
    assert result.played is False
    assert result.error == "audio device busy"
