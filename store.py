"""Vocabulary store: the learner's word list, per-word proficiency and saved settings.

Two interchangeable backends share the VocabularyStore interface:
MemoryVocabularyStore (tests, local development) and SQLiteVocabularyStore.
TINGLI_BACKEND picks one at startup ("sqlite" by default, or "memory").
"""
import os
import json
import time
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from log import get_logger
from pinyin import display_pinyin
from settings import UserSettings

logger = get_logger("tingli.store")

# --- Config ---
DB_PATH = Path(os.environ.get("TINGLI_DB_PATH", Path(__file__).parent / "tingli.db"))
BACKEND = os.environ.get("TINGLI_BACKEND", "sqlite")

WORD_FIELDS = ("chinese", "pinyin", "english", "active")


def _clean_word(payload: dict) -> dict:
    return {
        "chinese": payload["chinese"].strip(),
        "pinyin": display_pinyin(payload.get("pinyin", "").strip()),
        "english": payload.get("english", "").strip(),
        "active": bool(payload.get("active", True)),
    }


def _empty_proficiency(word_id: int) -> dict:
    return {"wordId": word_id, "correctCount": 0, "attemptCount": 0, "lastPracticed": 0}


class VocabularyStore(ABC):

    @abstractmethod
    def list_words(self) -> List[dict]: ...

    @abstractmethod
    def get_word(self, word_id: int) -> Optional[dict]: ...

    @abstractmethod
    def add_words(self, words: Iterable[dict]) -> List[dict]:
        """Add words, skipping any whose chinese is already stored. Returns the new rows."""

    @abstractmethod
    def update_word(self, word_id: int, updates: dict) -> Optional[dict]: ...

    @abstractmethod
    def delete_word(self, word_id: int) -> bool: ...

    @abstractmethod
    def delete_by_chinese(self, chinese: str) -> bool: ...

    @abstractmethod
    def delete_all(self) -> int: ...

    @abstractmethod
    def get_proficiency(self, word_id: int) -> dict: ...

    @abstractmethod
    def record_attempt(self, word_id: int, is_correct: bool, now: Optional[float] = None) -> Optional[dict]: ...

    @abstractmethod
    def reset_proficiency(self, word_id: int) -> None: ...

    @abstractmethod
    def load_settings(self) -> UserSettings: ...

    @abstractmethod
    def save_settings(self, settings: UserSettings) -> None: ...

    def active_words(self) -> List[dict]:
        return [w for w in self.list_words() if w["active"]]

    def list_with_proficiency(self) -> List[dict]:
        return [{**w, **self.get_proficiency(w["id"])} for w in self.list_words()]

    def words_in_sentence(self, chinese: str) -> List[dict]:
        return [w for w in self.list_words() if w["chinese"] and w["chinese"] in chinese]


class MemoryVocabularyStore(VocabularyStore):
    """In-process store; nothing survives a restart."""

    def __init__(self):
        self._words: Dict[int, dict] = {}
        self._proficiency: Dict[int, dict] = {}
        self._settings = UserSettings()
        self._next_id = 1

    def list_words(self) -> List[dict]:
        return [dict(w) for w in self._words.values()]

    def get_word(self, word_id: int) -> Optional[dict]:
        word = self._words.get(word_id)
        return dict(word) if word else None

    def add_words(self, words: Iterable[dict]) -> List[dict]:
        existing = {w["chinese"] for w in self._words.values()}
        added = []
        for payload in words:
            word = _clean_word(payload)
            if not word["chinese"] or word["chinese"] in existing:
                continue
            word["id"] = self._next_id
            self._next_id += 1
            self._words[word["id"]] = word
            existing.add(word["chinese"])
            added.append(dict(word))
        return added

    def update_word(self, word_id: int, updates: dict) -> Optional[dict]:
        word = self._words.get(word_id)
        if word is None:
            return None
        merged = _clean_word({**word, **{k: v for k, v in updates.items() if k in WORD_FIELDS}})
        word.update(merged)
        return dict(word)

    def delete_word(self, word_id: int) -> bool:
        self._proficiency.pop(word_id, None)
        return self._words.pop(word_id, None) is not None

    def delete_by_chinese(self, chinese: str) -> bool:
        ids = [wid for wid, w in self._words.items() if w["chinese"] == chinese]
        for wid in ids:
            self.delete_word(wid)
        return bool(ids)

    def delete_all(self) -> int:
        count = len(self._words)
        self._words.clear()
        self._proficiency.clear()
        return count

    def get_proficiency(self, word_id: int) -> dict:
        return dict(self._proficiency.get(word_id) or _empty_proficiency(word_id))

    def record_attempt(self, word_id: int, is_correct: bool, now: Optional[float] = None) -> Optional[dict]:
        if word_id not in self._words:
            return None
        prof = self._proficiency.setdefault(word_id, _empty_proficiency(word_id))
        prof["attemptCount"] += 1
        if is_correct:
            prof["correctCount"] += 1
        prof["lastPracticed"] = now if now is not None else time.time()
        return dict(prof)

    def reset_proficiency(self, word_id: int) -> None:
        self._proficiency.pop(word_id, None)

    def load_settings(self) -> UserSettings:
        return self._settings.model_copy()

    def save_settings(self, settings: UserSettings) -> None:
        self._settings = settings.model_copy()


class SQLiteVocabularyStore(VocabularyStore):

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path or DB_PATH)
        self.init_db()

    def get_db(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def init_db(self):
        conn = self.get_db()
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS vocabulary (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                chinese TEXT UNIQUE NOT NULL,
                pinyin TEXT NOT NULL,
                english TEXT NOT NULL,
                active INTEGER NOT NULL DEFAULT 1
            );
            CREATE TABLE IF NOT EXISTS word_proficiency (
                word_id INTEGER PRIMARY KEY,
                correct_count INTEGER NOT NULL DEFAULT 0,
                attempt_count INTEGER NOT NULL DEFAULT 0,
                last_practiced REAL NOT NULL DEFAULT 0,
                FOREIGN KEY (word_id) REFERENCES vocabulary(id)
            );
            CREATE TABLE IF NOT EXISTS user_data (
                data_key TEXT PRIMARY KEY,
                data_json TEXT NOT NULL,
                updated_at REAL NOT NULL
            );
        """)
        conn.close()

    @staticmethod
    def _row_to_word(row) -> dict:
        return {
            "id": row["id"],
            "chinese": row["chinese"],
            "pinyin": row["pinyin"],
            "english": row["english"],
            "active": bool(row["active"]),
        }

    def list_words(self) -> List[dict]:
        conn = self.get_db()
        try:
            rows = conn.execute("SELECT * FROM vocabulary ORDER BY id").fetchall()
            return [self._row_to_word(r) for r in rows]
        finally:
            conn.close()

    def get_word(self, word_id: int) -> Optional[dict]:
        conn = self.get_db()
        try:
            row = conn.execute("SELECT * FROM vocabulary WHERE id = ?", (word_id,)).fetchone()
            return self._row_to_word(row) if row else None
        finally:
            conn.close()

    def add_words(self, words: Iterable[dict]) -> List[dict]:
        conn = self.get_db()
        added = []
        try:
            for payload in words:
                word = _clean_word(payload)
                if not word["chinese"]:
                    continue
                cursor = conn.execute(
                    "INSERT OR IGNORE INTO vocabulary (chinese, pinyin, english, active) VALUES (?, ?, ?, ?)",
                    (word["chinese"], word["pinyin"], word["english"], int(word["active"])),
                )
                if cursor.rowcount:
                    added.append({"id": cursor.lastrowid, **word})
            conn.commit()
            return added
        finally:
            conn.close()

    def update_word(self, word_id: int, updates: dict) -> Optional[dict]:
        current = self.get_word(word_id)
        if current is None:
            return None
        merged = _clean_word({**current, **{k: v for k, v in updates.items() if k in WORD_FIELDS}})
        conn = self.get_db()
        try:
            conn.execute(
                "UPDATE vocabulary SET chinese = ?, pinyin = ?, english = ?, active = ? WHERE id = ?",
                (merged["chinese"], merged["pinyin"], merged["english"], int(merged["active"]), word_id),
            )
            conn.commit()
        finally:
            conn.close()
        return {"id": word_id, **merged}

    def delete_word(self, word_id: int) -> bool:
        conn = self.get_db()
        try:
            conn.execute("DELETE FROM word_proficiency WHERE word_id = ?", (word_id,))
            cursor = conn.execute("DELETE FROM vocabulary WHERE id = ?", (word_id,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def delete_by_chinese(self, chinese: str) -> bool:
        conn = self.get_db()
        try:
            conn.execute(
                "DELETE FROM word_proficiency WHERE word_id IN (SELECT id FROM vocabulary WHERE chinese = ?)",
                (chinese,),
            )
            cursor = conn.execute("DELETE FROM vocabulary WHERE chinese = ?", (chinese,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def delete_all(self) -> int:
        conn = self.get_db()
        try:
            conn.execute("DELETE FROM word_proficiency")
            cursor = conn.execute("DELETE FROM vocabulary")
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()

    def get_proficiency(self, word_id: int) -> dict:
        conn = self.get_db()
        try:
            row = conn.execute(
                "SELECT * FROM word_proficiency WHERE word_id = ?", (word_id,)
            ).fetchone()
        finally:
            conn.close()
        if not row:
            return _empty_proficiency(word_id)
        return {
            "wordId": word_id,
            "correctCount": row["correct_count"],
            "attemptCount": row["attempt_count"],
            "lastPracticed": row["last_practiced"],
        }

    def record_attempt(self, word_id: int, is_correct: bool, now: Optional[float] = None) -> Optional[dict]:
        if self.get_word(word_id) is None:
            return None
        conn = self.get_db()
        try:
            conn.execute(
                "INSERT INTO word_proficiency (word_id, correct_count, attempt_count, last_practiced) "
                "VALUES (?, ?, 1, ?) "
                "ON CONFLICT(word_id) DO UPDATE SET "
                "correct_count = correct_count + excluded.correct_count, "
                "attempt_count = attempt_count + 1, "
                "last_practiced = excluded.last_practiced",
                (word_id, 1 if is_correct else 0, now if now is not None else time.time()),
            )
            conn.commit()
        finally:
            conn.close()
        return self.get_proficiency(word_id)

    def reset_proficiency(self, word_id: int) -> None:
        conn = self.get_db()
        try:
            conn.execute("DELETE FROM word_proficiency WHERE word_id = ?", (word_id,))
            conn.commit()
        finally:
            conn.close()

    def load_settings(self) -> UserSettings:
        conn = self.get_db()
        try:
            row = conn.execute(
                "SELECT data_json FROM user_data WHERE data_key = 'settings'"
            ).fetchone()
        finally:
            conn.close()
        if not row:
            return UserSettings()
        try:
            return UserSettings.model_validate(json.loads(row["data_json"]))
        except ValueError:
            logger.exception("Stored settings are invalid, using defaults", extra={"component": "store"})
            return UserSettings()

    def save_settings(self, settings: UserSettings) -> None:
        conn = self.get_db()
        try:
            conn.execute(
                "INSERT INTO user_data (data_key, data_json, updated_at) VALUES ('settings', ?, ?) "
                "ON CONFLICT(data_key) DO UPDATE SET data_json = excluded.data_json, updated_at = excluded.updated_at",
                (settings.model_dump_json(), time.time()),
            )
            conn.commit()
        finally:
            conn.close()


def create_store(backend: Optional[str] = None, db_path: Optional[Path] = None) -> VocabularyStore:
    backend = backend or BACKEND
    if backend == "memory":
        logger.info("Using in-memory vocabulary store", extra={"component": "store"})
        return MemoryVocabularyStore()
    if backend == "sqlite":
        return SQLiteVocabularyStore(db_path)
    raise ValueError(f"Unknown vocabulary backend: {backend}")
