"""Recognition capability backed by a remote recognizer over a WebSocket."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Union

import websockets
from pydantic import TypeAdapter, ValidationError

from common.config import RecognitionSettings
from common.schemas import (
    ActivatedFrame,
    ActivateRequest,
    DeactivateRequest,
    EndFrame,
    ErrorFrame,
    ErrorKind,
    RecognizerFrame,
    ResultFrame,
)
from recognizer.capability import UNSUPPORTED, Unsupported
from recognizer.events import (
    Activated,
    Ended,
    EventDispatcher,
    EventListener,
    RecognitionEvent,
    RecognitionFailed,
    ResultBatchReceived,
    classify_error_code,
)

logger = logging.getLogger(__name__)

_frame_adapter: TypeAdapter = TypeAdapter(RecognizerFrame)


def parse_frame(message: Union[str, bytes]) -> Optional[RecognitionEvent]:
    """Translate one upstream frame into an event, or None if it is malformed."""
    try:
        frame = _frame_adapter.validate_json(message)
        if isinstance(frame, ResultFrame):
            return ResultBatchReceived(batch=frame.to_batch())
    except ValidationError as exc:
        logger.warning("Dropping malformed recognizer frame: %s", exc)
        return None

    if isinstance(frame, ActivatedFrame):
        return Activated()
    if isinstance(frame, ErrorFrame):
        return classify_error_code(frame.code, frame.message)
    if isinstance(frame, EndFrame):
        return Ended()
    return None


class RemoteRecognitionHandle:
    """One session against the upstream recognizer.

    The connection is opened in a background task; everything the recognizer
    reports comes back through subscribed listeners. A terminal event
    (RecognitionFailed or Ended) is emitted exactly once.
    """

    def __init__(self, url: str, request: ActivateRequest, open_timeout: float = 10.0) -> None:
        self._url = url
        self._request = request
        self._open_timeout = open_timeout
        self._dispatcher = EventDispatcher()
        self._ws = None  # websockets client connection
        self._task: asyncio.Task | None = None
        self._deactivate_task: asyncio.Task | None = None
        self._stop_requested = False
        self._finished = False

    def subscribe(self, listener: EventListener) -> None:
        self._dispatcher.subscribe(listener)

    def open(self) -> None:
        self._task = asyncio.get_running_loop().create_task(self._run())

    def deactivate(self) -> None:
        if self._stop_requested or self._finished:
            return
        self._stop_requested = True
        # Still connecting: _run sends the request once the socket is open.
        if self._ws is not None:
            self._deactivate_task = asyncio.get_running_loop().create_task(
                self._send_deactivate(self._ws)
            )

    async def wait_closed(self) -> None:
        if self._task is not None:
            await self._task

    async def _send_deactivate(self, ws) -> None:
        try:
            await ws.send(DeactivateRequest().model_dump_json())
        except websockets.ConnectionClosed:
            logger.debug("Recognizer connection already closed; deactivate not sent")

    async def _run(self) -> None:
        try:
            ws = await websockets.connect(self._url, open_timeout=self._open_timeout)
        except (OSError, asyncio.TimeoutError, websockets.InvalidURI, websockets.InvalidHandshake) as exc:
            logger.warning("Could not reach recognizer at %s: %s", self._url, exc)
            self._emit(RecognitionFailed(
                kind=ErrorKind.activation_failed,
                detail=str(exc) or type(exc).__name__,
            ))
            return

        self._ws = ws
        try:
            await ws.send(self._request.model_dump_json())
            if self._stop_requested:
                await ws.send(DeactivateRequest().model_dump_json())

            async for message in ws:
                event = parse_frame(message)
                if event is None:
                    continue
                self._emit(event)
                if self._finished:
                    break
        except websockets.ConnectionClosed:
            logger.info("Recognizer connection closed: %s", self._url)
        finally:
            self._ws = None
            await ws.close()

        # The recognizer may hang up without an end frame.
        self._emit(Ended())

    def _emit(self, event: RecognitionEvent) -> None:
        if self._finished:
            return
        if isinstance(event, (RecognitionFailed, Ended)):
            self._finished = True
        self._dispatcher.emit(event)


class RemoteRecognitionCapability:
    def __init__(self, settings: RecognitionSettings | None = None) -> None:
        self._settings = settings or RecognitionSettings()

    def activate(
        self,
        language: str,
        continuous: bool,
        interim_results: bool,
        max_alternatives: int,
    ) -> Union[RemoteRecognitionHandle, Unsupported]:
        if not self._settings.ws_url:
            return UNSUPPORTED

        request = ActivateRequest(
            language=language,
            continuous=continuous,
            interim_results=interim_results,
            max_alternatives=max_alternatives,
        )
        handle = RemoteRecognitionHandle(
            self._settings.ws_url,
            request,
            open_timeout=self._settings.open_timeout_s,
        )
        handle.open()
        logger.info("Connecting to recognizer at %s", self._settings.ws_url)
        return handle
