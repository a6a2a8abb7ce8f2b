"""Events emitted by a recognition capability during a session."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from common.schemas import ErrorKind, ResultBatch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Activated:
    pass


@dataclass(frozen=True)
class ResultBatchReceived:
    batch: ResultBatch


@dataclass(frozen=True)
class RecognitionFailed:
    kind: ErrorKind
    detail: Optional[str] = None


@dataclass(frozen=True)
class Ended:
    pass


RecognitionEvent = Union[Activated, ResultBatchReceived, RecognitionFailed, Ended]
EventListener = Callable[[RecognitionEvent], None]


class EventDispatcher:
    """Fans recognition events out to registered listeners, in order."""

    def __init__(self) -> None:
        self._listeners: list[EventListener] = []

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def emit(self, event: RecognitionEvent) -> None:
        if not isinstance(event, (Activated, ResultBatchReceived, RecognitionFailed, Ended)):
            raise TypeError(f"Unknown recognition event: {event!r}")
        for listener in list(self._listeners):
            listener(event)

    def __len__(self) -> int:
        return len(self._listeners)


# Browser speech-recognition error codes, as reported by host capabilities.
_ERROR_CODES: dict[str, ErrorKind] = {
    "no-speech": ErrorKind.no_speech,
    "not-allowed": ErrorKind.activation_failed,
    "service-not-allowed": ErrorKind.activation_failed,
    "audio-capture": ErrorKind.activation_failed,
    "language-not-supported": ErrorKind.unsupported,
}


def classify_error_code(code: str, message: str | None = None) -> RecognitionFailed:
    """Map a raw capability error code onto the error taxonomy."""
    kind = _ERROR_CODES.get(code, ErrorKind.other)
    detail = message or (code if kind is ErrorKind.other else None)
    return RecognitionFailed(kind=kind, detail=detail)
