"""Contract between the session controller and a host recognition capability.

A capability is activated once per session and hands back a handle. The
handle reports progress only through events (see ``recognizer.events``);
``activate`` and ``deactivate`` never block waiting for the recognizer.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal, Protocol, Union

from recognizer.events import EventListener


class _Unsupported(Enum):
    token = "unsupported"

    def __repr__(self) -> str:
        return "UNSUPPORTED"


UNSUPPORTED = _Unsupported.token
Unsupported = Literal[_Unsupported.token]


class RecognitionHandle(Protocol):
    def subscribe(self, listener: EventListener) -> None:
        """Register for Activated / ResultBatchReceived / RecognitionFailed / Ended."""
        ...

    def deactivate(self) -> None:
        """Request a graceful stop; completion is signalled with Ended."""
        ...


class RecognitionCapability(Protocol):
    def activate(
        self,
        language: str,
        continuous: bool,
        interim_results: bool,
        max_alternatives: int,
    ) -> Union[RecognitionHandle, Unsupported]:
        ...
