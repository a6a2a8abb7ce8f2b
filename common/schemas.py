from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


# --- Recognition results ---

class ResultChunk(BaseModel):
    index: int = Field(ge=0)
    text: str
    is_final: bool = False


class ResultBatch(BaseModel):
    start_index: int = Field(ge=0)
    chunks: list[ResultChunk] = []

    @model_validator(mode="after")
    def _check_contiguous(self) -> "ResultBatch":
        for offset, chunk in enumerate(self.chunks):
            if chunk.index != self.start_index + offset:
                raise ValueError(
                    f"chunk index {chunk.index} does not follow start_index "
                    f"{self.start_index} at position {offset}"
                )
        return self


# --- Session state ---

class SessionState(str, Enum):
    idle = "idle"
    active = "active"
    terminating = "terminating"


class ErrorKind(str, Enum):
    unsupported = "unsupported"
    no_speech = "no_speech"
    activation_failed = "activation_failed"
    other = "other"


class RecognitionError(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    detail: Optional[str] = None


class TranscriptSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    final_text: str = ""
    interim_text: str = ""


class SessionSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: SessionState = SessionState.idle
    final_text: str = ""
    interim_text: str = ""
    last_error: Optional[RecognitionError] = None


class Notification(str, Enum):
    session_started = "session_started"
    transcript_updated = "transcript_updated"
    session_error = "session_error"
    session_ended = "session_ended"


# --- WebSocket messages: gateway ↔ upstream recognizer ---

class ActivateRequest(BaseModel):
    type: Literal["activate"] = "activate"
    language: str
    continuous: bool = True
    interim_results: bool = True
    max_alternatives: int = 1


class DeactivateRequest(BaseModel):
    type: Literal["deactivate"] = "deactivate"


class ActivatedFrame(BaseModel):
    type: Literal["activated"] = "activated"


class ResultFrame(BaseModel):
    type: Literal["result"] = "result"
    start_index: int = Field(ge=0)
    chunks: list[ResultChunk] = []

    def to_batch(self) -> ResultBatch:
        return ResultBatch(start_index=self.start_index, chunks=self.chunks)


class ErrorFrame(BaseModel):
    type: Literal["error"] = "error"
    code: str
    message: Optional[str] = None


class EndFrame(BaseModel):
    type: Literal["end"] = "end"


RecognizerFrame = Annotated[
    Union[ActivatedFrame, ResultFrame, ErrorFrame, EndFrame],
    Field(discriminator="type"),
]


# --- WebSocket messages: client ↔ gateway ---

class ClientMessageType(str, Enum):
    start = "start"
    stop = "stop"


class ClientMessage(BaseModel):
    type: ClientMessageType


class ServerMessageType(str, Enum):
    snapshot = "snapshot"
    error = "error"


class SnapshotMessage(BaseModel):
    type: ServerMessageType = ServerMessageType.snapshot
    notification: Optional[Notification] = None
    snapshot: SessionSnapshot


class ErrorMessage(BaseModel):
    type: ServerMessageType = ServerMessageType.error
    detail: str
