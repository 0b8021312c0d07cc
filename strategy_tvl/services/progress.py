"""Ordered progress log shared by one pipeline run."""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressEvent:
    timestamp: datetime
    message: str

    def format(self) -> str:
        return f"{self.timestamp.strftime('%H:%M:%S')}: {self.message}"


Subscriber = Callable[[ProgressEvent], None]


class ProgressLog:
    """Append-only stream of progress lines.

    Every line is kept for replay, mirrored to the ``logging`` tree and
    pushed to subscribers in emission order.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock
        self._events: list[ProgressEvent] = []
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber, replay: bool = False) -> None:
        """Register a callback; with ``replay`` it first receives past events."""
        if replay:
            for event in self._events:
                self._deliver(callback, event)
        self._subscribers.append(callback)

    def emit(self, message: str, level: int = logging.INFO) -> ProgressEvent:
        event = ProgressEvent(self._clock(), message)
        self._events.append(event)
        logger.log(level, "%s", message)
        for callback in self._subscribers:
            self._deliver(callback, event)
        return event

    def warning(self, message: str) -> ProgressEvent:
        return self.emit(message, logging.WARNING)

    @staticmethod
    def _deliver(callback: Subscriber, event: ProgressEvent) -> None:
        try:
            callback(event)
        except Exception as e:
            logger.error("Progress subscriber failed: %s", e)

    @property
    def events(self) -> tuple[ProgressEvent, ...]:
        return tuple(self._events)

    def lines(self) -> list[str]:
        return [event.format() for event in self._events]
