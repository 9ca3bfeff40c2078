"""
eosim.events — Time-Ordered Event Queue
========================================

Scheduled state changes ("at 12:05 point the Maui gimbal at ISS").

    Event       time, type, payload, optional inline handler
    EventQueue  ascending ``(time, sequence)`` order; handlers by type

Dispatch
--------
``process(now, universe)`` fires every event with ``time ≤ now`` from the
head of the queue.  The event's own handler wins over the handler
registered for its type; types are matched case-insensitively.  Each fired
event is removed.  A due event with no handler at all raises
:class:`~eosim.errors.MissingHandlerError` and stays at the head.
"""

import bisect
import itertools
import logging
import time as _time
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Callable, Optional

from .errors import InvalidInputError, MissingHandlerError
from .julian import JulianDate, TimeStandard

logger = logging.getLogger(__name__)

Handler = Callable[[Any, "Event"], None]

_sequence = itertools.count()


def _type_name(value) -> str:
    return type(value).__name__


def _instant_key(time: JulianDate) -> tuple:
    tai = time.to_standard(TimeStandard.TAI)
    return tai.day_number, tai.seconds_of_day


class Event:
    """One scheduled occurrence.

    Parameters
    ----------
    time : JulianDate, datetime or ISO-8601 str — when the event is due
    type : str — handler registry key
    payload : any — handler input
    handler : callable(universe, event), optional — overrides the registry
    once : bool — informational; every fired event leaves the queue
    id : str, optional — defaults to ``evt_{epoch-ms}_{sequence}``
    """

    def __init__(self, time, type: Optional[str] = None, payload: Any = None,
                 handler: Optional[Handler] = None, once: bool = True,
                 id: Optional[str] = None):
        if time is None:
            raise InvalidInputError("an event needs a time")
        if not isinstance(time, (JulianDate, datetime, str)):
            raise InvalidInputError(
                f"event time must be a JulianDate, datetime or ISO-8601 string, "
                f"got {_type_name(time)}")
        if handler is not None and not callable(handler):
            raise InvalidInputError("event handler must be callable")
        self.time = JulianDate.coerce(time)
        self.type = str(type) if type is not None else None
        self.payload = payload
        self.handler = handler
        self.once = bool(once)
        self.fired = False
        self.sequence = next(_sequence)
        self.id = id or f"evt_{int(_time.time() * 1000)}_{self.sequence}"

    @classmethod
    def from_mapping(cls, fields: Mapping) -> "Event":
        return cls(fields.get("time"), fields.get("type"), fields.get("payload"),
                   fields.get("handler"), fields.get("once", True), fields.get("id"))

    @property
    def key(self) -> tuple:
        return _instant_key(self.time) + (self.sequence,)

    def __repr__(self):
        return f"Event({self.id!r}, type={self.type!r}, time={self.time!r})"


def _normalize_type(event_type) -> str:
    if not event_type:
        raise InvalidInputError("event type is required")
    return str(event_type).lower()


class EventQueue:
    """Events kept in ascending ``(time, sequence)`` order."""

    def __init__(self):
        self._events: list[Event] = []
        self._keys: list[tuple] = []
        self._handlers: dict[str, Handler] = {}

    # ── Handler registry ─────────────────────────────────────────────────

    def register_handler(self, event_type: str, handler: Handler) -> None:
        key = _normalize_type(event_type)
        if not callable(handler):
            raise InvalidInputError("handler must be callable")
        self._handlers[key] = handler

    def unregister_handler(self, event_type: str) -> bool:
        return self._handlers.pop(_normalize_type(event_type), None) is not None

    def get_handler(self, event_type: str) -> Optional[Handler]:
        return self._handlers.get(_normalize_type(event_type))

    # ── Queue ────────────────────────────────────────────────────────────

    def add(self, event) -> str:
        """Insert an :class:`Event` (or a mapping of its fields); returns its id."""
        if isinstance(event, Mapping):
            event = Event.from_mapping(event)
        elif not isinstance(event, Event):
            raise InvalidInputError(f"cannot schedule {_type_name(event)}")
        key = event.key
        index = bisect.bisect_right(self._keys, key)
        self._keys.insert(index, key)
        self._events.insert(index, event)
        return event.id

    def remove(self, event_id: str) -> bool:
        for index, event in enumerate(self._events):
            if event.id == event_id:
                del self._events[index]
                del self._keys[index]
                return True
        return False

    def clear(self) -> None:
        self._events.clear()
        self._keys.clear()

    def size(self) -> int:
        return len(self._events)

    def __len__(self):
        return len(self._events)

    def __iter__(self):
        return iter(tuple(self._events))

    def peek(self) -> Optional[Event]:
        return self._events[0] if self._events else None

    def _discard(self, event: Event) -> None:
        # handlers may add or remove events, so locate by identity
        for index, queued in enumerate(self._events):
            if queued is event:
                del self._events[index]
                del self._keys[index]
                return

    def _resolve(self, event: Event) -> Optional[Handler]:
        if event.handler is not None:
            return event.handler
        if not event.type:
            return None
        return self._handlers.get(event.type.lower())

    def process(self, current_time: JulianDate, universe=None) -> int:
        """Fire every due event in order; returns how many fired."""
        if not isinstance(current_time, JulianDate):
            raise InvalidInputError("current time must be a JulianDate")
        now = _instant_key(current_time)
        fired = 0
        while self._events and self._keys[0][:2] <= now:
            event = self._events[0]
            handler = self._resolve(event)
            if handler is None:
                raise MissingHandlerError(event.type)
            logger.debug("Firing %r", event)
            handler(universe, event)
            event.fired = True
            self._discard(event)
            fired += 1
        return fired
