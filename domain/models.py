# -*- coding: utf-8 -*-

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, Optional


class Priority(IntEnum):
    LOW = 1  # !
    MEDIUM = 2  # !!
    HIGH = 3  # !!!

    @property
    def symbol(self) -> str:
        return "!" * int(self)

    @classmethod
    def from_raw(cls, raw: Any) -> "Priority":
        try:
            return cls(int(raw))
        except (TypeError, ValueError):
            return cls.MEDIUM


class Phase(str, Enum):
    WORK = "work"
    BREAK = "break"
    LONG_BREAK = "longBreak"

    @classmethod
    def from_raw(cls, raw: Optional[str]) -> Optional["Phase"]:
        if not raw:
            return None
        try:
            return cls(raw)
        except ValueError:
            return None


class TaskUpdateSource(str, Enum):
    STARTED = "started"
    SKIPPED = "skipped"
    COMPLETED = "completed"


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Task:
    title: str
    priority: Priority = Priority.MEDIUM
    completed: bool = False
    pomodoro_count: int = 0
    parent_id: Optional[str] = None
    indent_level: int = 0
    id: str = field(default_factory=_new_id)
    created_at: float = field(default_factory=time.time)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "priority": int(self.priority),
            "isCompleted": self.completed,
            "pomodoros": self.pomodoro_count,
            "createdAt": self.created_at,
            "parentId": self.parent_id,
            "indentLevel": self.indent_level,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Task":
        return cls(
            id=str(d["id"]),
            title=str(d.get("title") or ""),
            priority=Priority.from_raw(d.get("priority")),
            completed=bool(d.get("isCompleted", False)),
            pomodoro_count=max(0, int(d.get("pomodoros") or 0)),
            created_at=float(d.get("createdAt") or time.time()),
            parent_id=d.get("parentId") or None,
            indent_level=max(0, int(d.get("indentLevel") or 0)),
        )


@dataclass(frozen=True)
class TimerSettings:
    work_duration: int = 25 * 60
    break_duration: int = 5 * 60
    long_break_duration: int = 15 * 60
    cycles_until_long_break: int = 4
    # sound settings are stored but never interpreted by the engine
    sound_enabled: bool = True
    completion_sound: str = "Glass"
    separate_start_end_sounds: bool = False
    start_sound: str = "Ping"
    sound_volume: float = 1.0

    def duration_for(self, phase: Phase) -> int:
        if phase == Phase.WORK:
            return self.work_duration
        if phase == Phase.BREAK:
            return self.break_duration
        return self.long_break_duration


@dataclass
class TimerState:
    phase: Phase = Phase.WORK
    remaining_seconds: int = 25 * 60
    is_running: bool = False
    session_count: int = 0
    phase_start_time: Optional[float] = None
    paused_at: Optional[float] = None
    total_paused_duration: float = 0.0


@dataclass(frozen=True)
class InterruptionRecord:
    start_time: float
    end_time: float
    duration_seconds: int
    interruption_type: Optional[str] = None
    selected_action: Optional[str] = None
    id: str = field(default_factory=_new_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "durationSeconds": self.duration_seconds,
            "interruptionType": self.interruption_type,
            "selectedAction": self.selected_action,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "InterruptionRecord":
        return cls(
            id=str(d.get("id") or _new_id()),
            start_time=float(d["startTime"]),
            end_time=float(d["endTime"]),
            duration_seconds=max(0, int(d["durationSeconds"])),
            interruption_type=d.get("interruptionType"),
            selected_action=d.get("selectedAction"),
        )


# ---- events ----
@dataclass(frozen=True)
class TaskUpdated:
    task: Task
    source: TaskUpdateSource
    elapsed_pomodoros: Optional[float] = None


@dataclass(frozen=True)
class InterruptionEnded:
    start_time: float
    end_time: float
    duration_seconds: int
    interruption_type: str
    selected_action: str


@dataclass(frozen=True)
class PomodoroProgress:
    task_id: str
    elapsed_pomodoros: float
