from __future__ import annotations

import functools
import logging
from typing import Callable, Optional

from common.config import RecognitionSettings
from common.schemas import (
    ErrorKind,
    Notification,
    RecognitionError,
    SessionSnapshot,
    SessionState,
)
from recognizer.aggregator import TranscriptAggregator
from recognizer.capability import UNSUPPORTED, RecognitionCapability, RecognitionHandle
from recognizer.events import (
    Activated,
    Ended,
    RecognitionEvent,
    RecognitionFailed,
    ResultBatchReceived,
)

logger = logging.getLogger(__name__)

SessionListener = Callable[[Notification, SessionSnapshot], None]


class SessionController:
    """Owns a single recognition session: idle -> active -> terminating -> idle.

    ``start`` and ``stop`` return immediately. Completion is observed through
    the notifications delivered to subscribers, driven by capability events.
    """

    def __init__(
        self,
        capability: RecognitionCapability,
        settings: RecognitionSettings | None = None,
        aggregator: TranscriptAggregator | None = None,
    ) -> None:
        self._capability = capability
        self._settings = settings or RecognitionSettings()
        self._aggregator = aggregator or TranscriptAggregator()
        self._state = SessionState.idle
        self._handle: Optional[RecognitionHandle] = None
        self._last_error: Optional[RecognitionError] = None
        self._listeners: list[SessionListener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def last_error(self) -> Optional[RecognitionError]:
        return self._last_error

    @property
    def snapshot(self) -> SessionSnapshot:
        transcript = self._aggregator.snapshot
        return SessionSnapshot(
            state=self._state,
            final_text=transcript.final_text,
            interim_text=transcript.interim_text,
            last_error=self._last_error,
        )

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start(self) -> None:
        if self._state is not SessionState.idle:
            logger.debug("start() ignored in state %s", self._state.value)
            return

        self._last_error = None
        self._aggregator.reset()
        self._state = SessionState.active
        logger.info("Activating recognition (language=%s)", self._settings.language)

        try:
            result = self._capability.activate(
                self._settings.language,
                self._settings.continuous,
                self._settings.interim_results,
                self._settings.max_alternatives,
            )
        except Exception as exc:
            logger.exception("Recognition activation failed")
            self._last_error = RecognitionError(
                kind=ErrorKind.activation_failed,
                detail=str(exc) or type(exc).__name__,
            )
            self._state = SessionState.idle
            self._notify(Notification.session_error)
            return

        if result is UNSUPPORTED:
            logger.warning("Speech recognition is not supported on this host")
            self._last_error = RecognitionError(kind=ErrorKind.unsupported)
            self._state = SessionState.idle
            self._notify(Notification.session_error)
            return

        self._handle = result
        result.subscribe(functools.partial(self._on_event, result))

    def stop(self) -> None:
        if self._state is not SessionState.active:
            logger.debug("stop() ignored in state %s", self._state.value)
            return

        self._state = SessionState.terminating
        logger.info("Deactivating recognition")
        self._handle.deactivate()

    def _on_event(self, handle: RecognitionHandle, event: RecognitionEvent) -> None:
        if handle is not self._handle:
            logger.debug("Ignoring %s from a finished session", type(event).__name__)
            return

        if isinstance(event, Activated):
            logger.info("Recognition session started")
            self._notify(Notification.session_started)
        elif isinstance(event, ResultBatchReceived):
            self._aggregator.on_result_batch(event.batch)
            self._notify(Notification.transcript_updated)
        elif isinstance(event, RecognitionFailed):
            logger.warning("Recognition error: %s (%s)", event.kind.value, event.detail)
            self._last_error = RecognitionError(kind=event.kind, detail=event.detail)
            self._aggregator.clear_interim()
            self._finish()
            self._notify(Notification.session_error)
        elif isinstance(event, Ended):
            logger.info("Recognition session ended")
            self._finish()
            self._notify(Notification.session_ended)
        else:
            raise TypeError(f"Unknown recognition event: {event!r}")

    def _finish(self) -> None:
        self._handle = None
        self._state = SessionState.idle

    def _notify(self, notification: Notification) -> None:
        snapshot = self.snapshot
        for listener in list(self._listeners):
            try:
                listener(notification, snapshot)
            except Exception:
                logger.exception("Session listener failed on %s", notification.value)
