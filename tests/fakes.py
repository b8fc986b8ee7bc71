# tests/fakes.py

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Type

from core.events import EventBus


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, start: float = 0.0):
        self.t = float(start)

    def now(self) -> float:
        return self.t

    def advance(self, seconds: float) -> float:
        self.t += seconds
        return self.t

    def set(self, t: float) -> None:
        self.t = float(t)


class FakeTicker:
    """Records start/stop; tests call fire() or engine.tick() themselves."""

    def __init__(self):
        self.callback: Optional[Callable[[], None]] = None
        self.starts = 0
        self.stops = 0

    @property
    def is_active(self) -> bool:
        return self.callback is not None

    def start(self, callback: Callable[[], None]) -> None:
        self.callback = callback
        self.starts += 1

    def stop(self) -> None:
        self.callback = None
        self.stops += 1

    def fire(self) -> None:
        if self.callback is not None:
            self.callback()


class MemoryPersistence:
    """Dict-backed Persistence with the same typed getters as AppStateRepo."""

    def __init__(self):
        self.values: Dict[str, Any] = {}
        self.blobs: Dict[str, bytes] = {}

    def get_int(self, key: str) -> Optional[int]:
        v = self.values.get(key)
        return None if v is None else int(v)

    def get_bool(self, key: str) -> Optional[bool]:
        v = self.values.get(key)
        return None if v is None else bool(v)

    def get_string(self, key: str) -> Optional[str]:
        v = self.values.get(key)
        return None if v is None else str(v)

    def get_double(self, key: str) -> Optional[float]:
        v = self.values.get(key)
        return None if v is None else float(v)

    def set(self, key: str, value: Any) -> None:
        self.values[key] = value

    def remove(self, key: str) -> None:
        self.values.pop(key, None)

    def get_blob(self, key: str) -> Optional[bytes]:
        return self.blobs.get(key)

    def set_blob(self, key: str, data: bytes) -> None:
        self.blobs[key] = data


class FakeClipboard:
    def __init__(self, text: Optional[str] = None):
        self.text = text

    def get_text(self) -> Optional[str]:
        return self.text

    def set_text(self, text: str) -> None:
        self.text = text


class RecordingSink:
    """Collects every published event of the given types, in order."""

    def __init__(self, bus: EventBus, *event_types: Type):
        self.events: List[Any] = []
        for et in event_types:
            bus.subscribe(et, self.events.append)

    def of(self, event_type: Type) -> List[Any]:
        return [e for e in self.events if isinstance(e, event_type)]

    def clear(self) -> None:
        self.events.clear()
