"""
Event bus for interpreter lifecycle and host input.

The system publishes an event when it is reset, loads a program, starts or
stops running, faults, receives a key transition, or finishes a cycle that
changed the display. Events are published from the execution thread and
from the host input thread, so the history and counters are lock-guarded;
handlers run on whichever thread published the event.
"""

import logging
import threading
import time
from collections import Counter, defaultdict, deque
from typing import Dict, List, Callable, Any, Optional
from enum import Enum, auto

from ..constants import MAX_EVENT_HISTORY

logger = logging.getLogger("Chip8Interpreter.EventManager")

class EventPriority(Enum):
    """Handler priority; higher priorities run first."""
    LOW = auto()
    NORMAL = auto()
    HIGH = auto()
    CRITICAL = auto()

class EventType(Enum):
    """Types of interpreter events."""
    # Lifecycle
    SYSTEM_RESET = auto()
    PROGRAM_LOADED = auto()
    SYSTEM_START = auto()
    SYSTEM_STOP = auto()

    # Faults
    CPU_FAULT = auto()

    # Host input
    KEY_DOWN = auto()
    KEY_UP = auto()

    # Display
    DISPLAY_UPDATE = auto()

    CUSTOM = auto()

class Event:
    """
    A published event.

    A handler may set `handled` to stop lower-priority handlers from
    seeing the event.
    """

    def __init__(self, event_type: EventType, source: str,
                 payload: Optional[Dict[str, Any]] = None):
        self.type = event_type
        self.source = source
        self.payload = payload or {}
        self.timestamp = time.time()
        self.handled = False

    def __repr__(self) -> str:
        return f"Event({self.type.name}, source={self.source}, payload={self.payload})"

EventHandler = Callable[[Event], None]

class EventManager:
    """
    Publishes events to prioritized handlers and keeps a bounded history
    plus a running count per event type.
    """

    def __init__(self, max_history: int = MAX_EVENT_HISTORY):
        """
        Initialize event manager.

        Args:
            max_history: Number of events kept in history
        """
        self._handlers: Dict[EventType, Dict[EventPriority, List[EventHandler]]] = defaultdict(
            lambda: defaultdict(list)
        )
        self._history = deque(maxlen=max_history)
        self._counts = Counter()
        self._lock = threading.Lock()

    def register_handler(self, event_type: EventType,
                         handler: EventHandler,
                         priority: EventPriority = EventPriority.NORMAL) -> None:
        """
        Register a handler for one event type.

        Args:
            event_type: Type of event to handle
            handler: Called with the event
            priority: Handler priority
        """
        self._handlers[event_type][priority].append(handler)
        logger.debug(f"Handler registered for {event_type.name} ({priority.name})")

    def trigger_event(self, event: Event) -> bool:
        """
        Record an event and pass it to its handlers, highest priority first.

        A handler that raises is logged and skipped; the remaining handlers
        still run.

        Args:
            event: Event to publish

        Returns:
            True if at least one handler ran without raising
        """
        with self._lock:
            self._history.append(event)
            self._counts[event.type] += 1

        handled = False
        by_priority = self._handlers.get(event.type, {})
        for priority in sorted(by_priority, key=lambda p: p.value, reverse=True):
            for handler in list(by_priority[priority]):
                try:
                    handler(event)
                    handled = True
                except Exception as e:
                    logger.error(f"Handler for {event.type.name} raised: {e}")
                if event.handled:
                    return handled

        return handled

    def create_event(self, event_type: EventType, source: str,
                     payload: Optional[Dict[str, Any]] = None) -> Event:
        """
        Build and publish an event.

        Args:
            event_type: Type of event
            source: Publishing component ("system", "cpu", "input")
            payload: Event data

        Returns:
            The published event
        """
        event = Event(event_type, source, payload)
        self.trigger_event(event)
        return event

    def get_event_history(self, event_type: Optional[EventType] = None) -> List[Event]:
        """
        Get recent events, oldest first.

        Args:
            event_type: Only events of this type (None for all)

        Returns:
            List of events
        """
        with self._lock:
            history = list(self._history)
        if event_type is None:
            return history
        return [e for e in history if e.type == event_type]

    def count(self, event_type: EventType) -> int:
        """Number of events of this type published so far, including ones
        no longer in history."""
        with self._lock:
            return self._counts[event_type]

    def register_logger(self, event_types: List[EventType],
                        log_level: int = logging.INFO) -> None:
        """
        Log every event of the given types.

        Args:
            event_types: Event types to log
            log_level: Logging level for the messages
        """
        def log_event(event: Event) -> None:
            logger.log(log_level, f"Event: {event!r}")

        for event_type in event_types:
            self.register_handler(event_type, log_event, EventPriority.LOW)
