from __future__ import annotations

import asyncio
import logging

from common.config import RecognitionSettings
from recognizer.capability import RecognitionCapability
from recognizer.controller import SessionController

logger = logging.getLogger(__name__)


class SessionManager:
    """Hands out one SessionController per connected client."""

    def __init__(
        self,
        capability: RecognitionCapability,
        settings: RecognitionSettings | None = None,
        max_sessions: int = 10,
    ) -> None:
        self.capability = capability
        self._settings = settings or RecognitionSettings()
        self._max = max_sessions
        self._sessions: dict[str, SessionController] = {}
        self._lock = asyncio.Lock()

    async def create(self, client_id: str) -> SessionController:
        async with self._lock:
            if len(self._sessions) >= self._max:
                raise RuntimeError(f"Max sessions ({self._max}) reached")
            if client_id in self._sessions:
                raise RuntimeError(f"Session {client_id} already exists")
            controller = SessionController(self.capability, settings=self._settings)
            self._sessions[client_id] = controller
            logger.info("Session created: %s (%d active)", client_id, len(self._sessions))
            return controller

    async def remove(self, client_id: str) -> None:
        async with self._lock:
            controller = self._sessions.pop(client_id, None)
            if controller is not None:
                controller.stop()
            logger.info("Session removed: %s (%d active)", client_id, len(self._sessions))

    def get(self, client_id: str) -> SessionController | None:
        return self._sessions.get(client_id)

    @property
    def active_count(self) -> int:
        return len(self._sessions)
