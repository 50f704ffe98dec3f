"""
Lotus — lotus/bus.py
Event bus for session notifications (event drawn, fallback used, option resolved).
==================================================================================
Version:     0.3
Stack:       Python 3.12 | Pydantic v2 | bespoke pub-sub

Architecture notes
------------------
- Notices are Pydantic v2 models. data must remain flat + JSON-serializable.
- Pass the bus instance at construction. There is no global bus.
- Wildcard key "*" receives every notice, after the key's own handlers.
- Handlers are matched by equality, so a bound method read twice from the
  same object unsubscribes cleanly.
- A failing handler is logged and skipped; delivery continues.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# ============================================================
# CANONICAL NOTICE KEYS
# ============================================================

EVT_EVENT_GENERATED = "lotus.event_generated"
EVT_FALLBACK_USED = "lotus.fallback_used"
EVT_OPTION_RESOLVED = "lotus.option_resolved"
WILDCARD = "*"

class GameNotice(BaseModel):
    """Notification envelope. source is the player's name."""
    event_key: str
    source: str
    data: Dict[str, Any] = Field(default_factory=dict)

HandlerFn = Callable[[GameNotice], None]

class EventBus:
    def __init__(self) -> None:
        self._subscribers: Dict[str, List[HandlerFn]] = {}

    def subscribe(self, event_key: str, handler: HandlerFn) -> None:
        handlers = self._subscribers.setdefault(event_key, [])
        if handler not in handlers:
            handlers.append(handler)

    def unsubscribe(self, event_key: str, handler: HandlerFn) -> None:
        handlers = [h for h in self._subscribers.get(event_key, []) if h != handler]
        if handlers:
            self._subscribers[event_key] = handlers
        else:
            self._subscribers.pop(event_key, None)

    def handler_count(self, event_key: str) -> int:
        return len(self._subscribers.get(event_key, []))

    def emit(self, notice: GameNotice) -> None:
        handlers = list(self._subscribers.get(notice.event_key, []))
        if notice.event_key != WILDCARD:
            handlers += self._subscribers.get(WILDCARD, [])
        for handler in handlers:
            try:
                handler(notice)
            except Exception:  # noqa: BLE001
                logger.exception("Handler error on '%s'", notice.event_key)
