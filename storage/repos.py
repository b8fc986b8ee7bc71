#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from domain.models import InterruptionRecord, Phase, Task, TimerSettings, TimerState
from storage.db import Database

logger = logging.getLogger(__name__)


def _now_ts() -> int:
    return int(time.time())


class Persistence(Protocol):
    """Named values plus opaque blobs. Reads return None when absent."""

    def get_int(self, key: str) -> Optional[int]: ...
    def get_bool(self, key: str) -> Optional[bool]: ...
    def get_string(self, key: str) -> Optional[str]: ...
    def get_double(self, key: str) -> Optional[float]: ...
    def set(self, key: str, value: Any) -> None: ...
    def remove(self, key: str) -> None: ...
    def get_blob(self, key: str) -> Optional[bytes]: ...
    def set_blob(self, key: str, data: bytes) -> None: ...


class AppStateRepo:
    """SQLite-backed Persistence. Writes are best effort."""

    def __init__(self, db: Database):
        self.db = db

    def get(self, key: str) -> Optional[str]:
        row = self.db.conn.execute(
            "SELECT value FROM app_state WHERE key=?",
            (key,),
        ).fetchone()
        return row["value"] if row else None

    def get_string(self, key: str) -> Optional[str]:
        return self.get(key)

    def get_int(self, key: str) -> Optional[int]:
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return int(float(raw))
        except ValueError:
            return None

    def get_double(self, key: str) -> Optional[float]:
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return float(raw)
        except ValueError:
            return None

    def get_bool(self, key: str) -> Optional[bool]:
        raw = self.get(key)
        if raw is None:
            return None
        return raw.strip().lower() in ("1", "true", "yes", "on")

    def set(self, key: str, value: Any) -> None:
        if isinstance(value, bool):
            value = "1" if value else "0"
        try:
            self.db.conn.execute(
                """
                INSERT INTO app_state(key, value) VALUES(?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
                """,
                (key, str(value)),
            )
            self.db.conn.commit()
        except sqlite3.Error:
            logger.warning("could not persist %s", key, exc_info=True)

    def remove(self, key: str) -> None:
        try:
            self.db.conn.execute("DELETE FROM app_state WHERE key=?", (key,))
            self.db.conn.commit()
        except sqlite3.Error:
            logger.warning("could not remove %s", key, exc_info=True)

    def get_blob(self, key: str) -> Optional[bytes]:
        row = self.db.conn.execute(
            "SELECT data FROM app_blobs WHERE key=?",
            (key,),
        ).fetchone()
        return bytes(row["data"]) if row else None

    def set_blob(self, key: str, data: bytes) -> None:
        try:
            self.db.conn.execute(
                """
                INSERT INTO app_blobs(key, data, updated_at) VALUES(?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET data=excluded.data, updated_at=excluded.updated_at
                """,
                (key, sqlite3.Binary(data), _now_ts()),
            )
            self.db.conn.commit()
        except sqlite3.Error:
            logger.warning("could not persist blob %s", key, exc_info=True)


# ---- timer ----
K_WORK = "pomodoro_work_duration"
K_BREAK = "pomodoro_break_duration"
K_LONG_BREAK = "pomodoro_long_break_duration"
K_CYCLES = "pomodoro_cycle_count"
K_SOUND_ENABLED = "pomodoro_sound_enabled"
K_COMPLETION_SOUND = "pomodoro_completion_sound"
K_SEPARATE_SOUNDS = "pomodoro_separate_start_end_sounds"
K_START_SOUND = "pomodoro_start_sound"
K_VOLUME = "pomodoro_sound_volume"

K_REMAINING = "pomodoro_remaining_seconds"
K_PHASE = "pomodoro_current_phase"
K_SESSIONS = "pomodoro_session_count"
K_PHASE_START = "pomodoro_phase_start_time"
K_PAUSED_AT = "pomodoro_paused_at"
K_PAUSED_TOTAL = "pomodoro_total_paused_duration"
K_ACCUMULATED = "pomodoro_accumulated_work_time"
K_INTERRUPTIONS = "pomodoro_interruption_records"


def _load_json_blob(store: Persistence, key: str) -> Any:
    data = store.get_blob(key)
    if data is None:
        return None
    try:
        return json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        logger.warning("ignoring unreadable blob %s", key)
        return None


def _dump_json(value: Any) -> bytes:
    return json.dumps(value, ensure_ascii=False).encode("utf-8")


class TimerStateStore:
    """Maps PhaseEngine state and settings onto Persistence keys."""

    def __init__(self, store: Persistence):
        self.store = store

    def load_settings(self, defaults: TimerSettings) -> TimerSettings:
        s = self.store

        def pick(value, fallback):
            return fallback if value is None else value

        return TimerSettings(
            work_duration=pick(s.get_int(K_WORK), defaults.work_duration),
            break_duration=pick(s.get_int(K_BREAK), defaults.break_duration),
            long_break_duration=pick(s.get_int(K_LONG_BREAK), defaults.long_break_duration),
            cycles_until_long_break=pick(s.get_int(K_CYCLES), defaults.cycles_until_long_break),
            sound_enabled=pick(s.get_bool(K_SOUND_ENABLED), defaults.sound_enabled),
            completion_sound=pick(s.get_string(K_COMPLETION_SOUND), defaults.completion_sound),
            separate_start_end_sounds=pick(
                s.get_bool(K_SEPARATE_SOUNDS), defaults.separate_start_end_sounds
            ),
            start_sound=pick(s.get_string(K_START_SOUND), defaults.start_sound),
            sound_volume=pick(s.get_double(K_VOLUME), defaults.sound_volume),
        )

    def save_settings(self, settings: TimerSettings) -> None:
        s = self.store
        s.set(K_WORK, settings.work_duration)
        s.set(K_BREAK, settings.break_duration)
        s.set(K_LONG_BREAK, settings.long_break_duration)
        s.set(K_CYCLES, settings.cycles_until_long_break)
        s.set(K_SOUND_ENABLED, settings.sound_enabled)
        s.set(K_COMPLETION_SOUND, settings.completion_sound)
        s.set(K_SEPARATE_SOUNDS, settings.separate_start_end_sounds)
        s.set(K_START_SOUND, settings.start_sound)
        s.set(K_VOLUME, settings.sound_volume)

    def load_timer_state(self, defaults: TimerState) -> TimerState:
        s = self.store
        st = TimerState(
            phase=defaults.phase,
            remaining_seconds=defaults.remaining_seconds,
            session_count=defaults.session_count,
        )
        remaining = s.get_int(K_REMAINING)
        if remaining is not None:
            st.remaining_seconds = remaining
        phase = Phase.from_raw(s.get_string(K_PHASE))
        if phase is not None:
            st.phase = phase
        sessions = s.get_int(K_SESSIONS)
        if sessions is not None:
            st.session_count = max(0, sessions)
        st.phase_start_time = s.get_double(K_PHASE_START)
        st.paused_at = s.get_double(K_PAUSED_AT)
        paused_total = s.get_double(K_PAUSED_TOTAL)
        if paused_total is not None:
            st.total_paused_duration = max(0.0, paused_total)
        return st

    def save_timer_state(self, state: TimerState, accumulation: Dict[str, int]) -> None:
        s = self.store
        s.set(K_REMAINING, state.remaining_seconds)
        s.set(K_PHASE, state.phase.value)
        s.set(K_SESSIONS, state.session_count)
        if state.phase_start_time is not None:
            s.set(K_PHASE_START, state.phase_start_time)
        else:
            s.remove(K_PHASE_START)
        if state.paused_at is not None:
            s.set(K_PAUSED_AT, state.paused_at)
        else:
            s.remove(K_PAUSED_AT)
        s.set(K_PAUSED_TOTAL, state.total_paused_duration)
        s.set_blob(K_ACCUMULATED, _dump_json(accumulation))

    def load_accumulation(self) -> Dict[str, int]:
        raw = _load_json_blob(self.store, K_ACCUMULATED)
        if not isinstance(raw, dict):
            return {}
        out: Dict[str, int] = {}
        for k, v in raw.items():
            try:
                out[str(k)] = int(v)
            except (TypeError, ValueError):
                continue
        return out

    def load_interruption_records(self) -> List[InterruptionRecord]:
        raw = _load_json_blob(self.store, K_INTERRUPTIONS)
        if not isinstance(raw, list):
            return []
        try:
            return [InterruptionRecord.from_dict(d) for d in raw]
        except (KeyError, TypeError, ValueError):
            logger.warning("interruption log unreadable, starting empty")
            return []

    def save_interruption_records(self, records: List[InterruptionRecord]) -> None:
        self.store.set_blob(K_INTERRUPTIONS, _dump_json([r.to_dict() for r in records]))


# ---- tasks ----
class TaskListStore:
    """The whole task list as one JSON document on disk."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> List[Task]:
        if not self.path.exists():
            return []
        try:
            doc = json.loads(self.path.read_text(encoding="utf-8"))
            return [Task.from_dict(d) for d in doc.get("tasks", [])]
        except (OSError, ValueError, KeyError, TypeError, AttributeError):
            logger.warning("task list at %s unreadable, starting empty", self.path)
            return []

    def save(self, tasks: List[Task], last_modified: Optional[float] = None) -> None:
        doc = {
            "tasks": [t.to_dict() for t in tasks],
            "lastModified": last_modified if last_modified is not None else time.time(),
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(doc, ensure_ascii=False, indent=2), encoding="utf-8")
            tmp.replace(self.path)
        except OSError:
            logger.warning("could not save task list to %s", self.path, exc_info=True)
