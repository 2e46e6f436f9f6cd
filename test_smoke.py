"""E2E smoke test — hits the main practice flow on a running server.

Skipped unless TINGLI_URL points at one, e.g. TINGLI_URL=http://localhost:8848
"""
import os
import pytest
import requests

BASE = os.getenv("TINGLI_URL")
HEADERS = {"Content-Type": "application/json"}

pytestmark = pytest.mark.skipif(not BASE, reason="TINGLI_URL not set")


def test_health():
    r = requests.get(f"{BASE}/api/health", headers=HEADERS)
    assert r.status_code == 200
    d = r.json()
    assert d["status"] in ("ok", "degraded")
    assert "sentence_cache" in d


def test_pinyin():
    r = requests.post(f"{BASE}/api/pinyin/convert", headers=HEADERS, json={"text": "zhong1 wen2"})
    assert r.status_code == 200
    assert r.json()["pinyin"] == "zhōng wén"


def test_practice_round():
    requests.post(f"{BASE}/api/vocabulary/words", headers=HEADERS, json={"words": [
        {"chinese": "我", "pinyin": "wo3", "english": "I"},
        {"chinese": "喜欢", "pinyin": "xi3 huan1", "english": "to like"},
        {"chinese": "茶", "pinyin": "cha2", "english": "tea"},
    ]})
    session = requests.post(f"{BASE}/api/practice/session", headers=HEADERS).json()
    r = requests.post(f"{BASE}/api/practice/next", headers=HEADERS,
                      json={"session_id": session["sessionId"]}, timeout=120)
    assert r.status_code == 200
    sentence = r.json()["sentence"]
    assert sentence["chinese"]
    assert sentence["english"]

    r = requests.post(f"{BASE}/api/practice/input", headers=HEADERS, json={
        "session_id": session["sessionId"],
        "sentence_id": sentence["id"],
        "answer": sentence["english"],
    })
    assert r.json()["feedback"] == "correct"
