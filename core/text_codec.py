# -*- coding: utf-8 -*-

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from core import ordering
from domain.models import Priority, Task

TAB = "\t"
POMODORO_MARK = "🍅"


@dataclass(frozen=True)
class CodecConfig:
    # accept "- item", "* item" and "1. item" in addition to checkboxes
    allow_list_format: bool = False
    indent_style: str = "spaces"  # spaces | tab
    indent_spaces: int = 2

    @property
    def indent_unit(self) -> str:
        if self.indent_style == "tab":
            return TAB
        return " " * (self.indent_spaces if self.indent_spaces > 0 else 2)


@dataclass(frozen=True)
class ParsedLine:
    title: str
    priority: Priority
    completed: bool
    level: int
    pomodoro_count: int = 0


class TextHierarchyCodec:
    """
    Markdown-checkbox text <-> task hierarchy.

        - [ ] Write report !!!
          - [x] Collect numbers (2🍅)
          - [ ] Draft

    Decoding infers nesting from indentation (tab, or the smallest run of
    leading spaces); unrecognised lines are skipped.
    """

    _checked = re.compile(r"^- \[[xX]\]")
    _unchecked = re.compile(r"^- \[ \]")
    _bullet = re.compile(r"^[-*] ")
    _numbered = re.compile(r"^\d+\.\s+")
    _pomodoros = re.compile(r"\s*\((\d+)" + POMODORO_MARK + r"\)$")

    def __init__(self, cfg: Optional[CodecConfig] = None):
        self.cfg = cfg or CodecConfig()

    # ---------- indentation ----------
    @staticmethod
    def detect_indent_unit(text: str) -> Tuple[str, int]:
        """("tab", 1) if any line starts with a tab, else ("spaces", n)."""
        lines = text.splitlines()
        if any(line.startswith(TAB) for line in lines):
            return "tab", 1
        runs = [len(line) - len(line.lstrip(" ")) for line in lines]
        runs = [n for n in runs if n > 0]
        return "spaces", (min(runs) if runs else 2)

    @staticmethod
    def indent_level_of(line: str, unit: Tuple[str, int]) -> int:
        kind, width = unit
        if kind == "tab":
            return len(line) - len(line.lstrip(TAB))
        spaces = len(line) - len(line.lstrip(" "))
        return spaces // width if width > 0 else 0

    # ---------- decode ----------
    def parse_line(self, line: str, unit: Tuple[str, int]) -> Optional[ParsedLine]:
        stripped = line.strip()
        if not stripped:
            return None

        completed = False
        m = self._checked.match(stripped)
        if m:
            title = stripped[m.end():].strip()
            completed = True
        elif self._unchecked.match(stripped):
            title = stripped[5:].strip()
        elif self._bullet.match(stripped):
            if not self.cfg.allow_list_format:
                return None
            title = stripped[2:].strip()
        else:
            m = self._numbered.match(stripped)
            if m is None or not self.cfg.allow_list_format:
                return None
            title = stripped[m.end():].strip()

        pomodoros = 0
        m = self._pomodoros.search(title)
        if m:
            pomodoros = int(m.group(1))
            title = title[: m.start()]

        priority = Priority.MEDIUM
        for marker, pr in ((" !!!", Priority.HIGH), (" !!", Priority.MEDIUM), (" !", Priority.LOW)):
            if title.endswith(marker):
                priority = pr
                title = title[: -len(marker)]
                break

        title = title.strip()
        if not title:
            return None
        return ParsedLine(
            title=title,
            priority=priority,
            completed=completed,
            level=self.indent_level_of(line, unit),
            pomodoro_count=pomodoros,
        )

    def decode(self, text: str) -> List[Task]:
        """
        Parse text into new tasks in hierarchy order with parent links set.
        Actual indent levels are contiguous (parent + 1) whatever the
        source indentation looked like.
        """
        if not text:
            return []
        unit = self.detect_indent_unit(text)

        tasks: List[Task] = []
        # (source level, task)
        stack: List[Tuple[int, Task]] = []
        for line in text.splitlines():
            item = self.parse_line(line, unit)
            if item is None:
                continue

            while stack and stack[-1][0] >= item.level:
                stack.pop()
            parent = stack[-1][1] if stack else None

            task = Task(
                title=item.title,
                priority=item.priority,
                completed=item.completed,
                pomodoro_count=item.pomodoro_count,
                parent_id=parent.id if parent else None,
                indent_level=parent.indent_level + 1 if parent else 0,
            )
            tasks.append(task)
            stack.append((item.level, task))
        return tasks

    # ---------- encode ----------
    def encode_line(self, task: Task) -> str:
        indent = self.cfg.indent_unit * task.indent_level
        box = "[x]" if task.completed else "[ ]"
        priority = f" {task.priority.symbol}" if task.is_root else ""
        pomodoros = f" ({task.pomodoro_count}{POMODORO_MARK})" if task.pomodoro_count > 0 else ""
        return f"{indent}- {box} {task.title}{priority}{pomodoros}"

    def encode(self, tasks: List[Task]) -> str:
        return "\n".join(self.encode_line(t) for t in ordering.hierarchy_order(tasks))
