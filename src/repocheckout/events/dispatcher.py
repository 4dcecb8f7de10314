from __future__ import annotations

import logging
from typing import Any

from repocheckout.events.observer import EventObserver
from repocheckout.events.types import EVENT_TYPE_MAP, Event

logger = logging.getLogger(__name__)


class EventDispatcher:
    """Builds checkout events by name and hands each one to every observer.

    Satisfies the ``EventEmitter`` protocol the retry helper and the git
    command manager accept, so neither needs to know the event classes.
    """

    def __init__(self, observers: list[EventObserver] | None = None) -> None:
        self._observers: list[EventObserver] = list(observers or [])

    @property
    def observers(self) -> list[EventObserver]:
        return list(self._observers)

    def add_observer(self, observer: EventObserver) -> None:
        self._observers.append(observer)

    def emit(self, event_type: str, **data: Any) -> Event | None:
        event_cls = EVENT_TYPE_MAP.get(event_type)
        if event_cls is None:
            logger.debug("Ignoring unknown event type %s", event_type)
            return None
        event = event_cls(**data)
        for observer in self._observers:
            observer.on_event(event)
        return event
