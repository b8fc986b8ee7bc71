# -*- coding: utf-8 -*-

import logging
from typing import Any, Callable, Dict, List, Type

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class EventBus:
    """
    Injectable publish/subscribe channel owned by the composing application.
    Engines publish domain events (TaskUpdated, InterruptionEnded,
    PomodoroProgress); the UI and services subscribe.
    """

    def __init__(self):
        self._handlers: Dict[Type, List[Handler]] = {}

    def subscribe(self, event_type: Type, handler: Handler) -> Callable[[], None]:
        self._handlers.setdefault(event_type, []).append(handler)

        def _unsubscribe() -> None:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

        return _unsubscribe

    def publish(self, event: Any) -> None:
        # copy: handlers may unsubscribe while being notified
        for handler in list(self._handlers.get(type(event), [])):
            try:
                handler(event)
            except Exception:
                logger.exception("event handler failed for %s", type(event).__name__)
