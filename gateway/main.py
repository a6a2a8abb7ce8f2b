from __future__ import annotations

import asyncio
import logging
import uuid

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ValidationError

from common.config import GatewaySettings, RecognitionSettings
from common.schemas import (
    ClientMessage,
    ClientMessageType,
    ErrorMessage,
    Notification,
    SessionSnapshot,
    SnapshotMessage,
)
from gateway.session import SessionManager
from recognizer.remote import RemoteRecognitionCapability

logger = logging.getLogger(__name__)

settings = GatewaySettings()
recognition_settings = RecognitionSettings()
app = FastAPI(title="Live Transcriber Gateway")
manager = SessionManager(
    RemoteRecognitionCapability(recognition_settings),
    settings=recognition_settings,
    max_sessions=settings.max_sessions,
)


@app.get("/health")
async def health():
    return {"status": "ok", "active_sessions": manager.active_count}


@app.websocket("/transcribe")
async def transcribe_endpoint(ws: WebSocket):
    await ws.accept()
    client_id = uuid.uuid4().hex
    created = False
    try:
        controller = await manager.create(client_id)
        created = True

        # Controller callbacks run on this loop; the sender task drains them in order.
        outbox: asyncio.Queue[BaseModel] = asyncio.Queue()

        def on_notification(notification: Notification, snapshot: SessionSnapshot) -> None:
            outbox.put_nowait(SnapshotMessage(notification=notification, snapshot=snapshot))

        unsubscribe = controller.subscribe(on_notification)
        outbox.put_nowait(SnapshotMessage(snapshot=controller.snapshot))
        sender = asyncio.create_task(_send_outbox(outbox, ws, client_id))

        try:
            while True:
                message = await ws.receive()
                if message.get("type") == "websocket.disconnect":
                    logger.info("Client disconnected: %s", client_id)
                    break
                if message.get("text") is None:
                    outbox.put_nowait(ErrorMessage(detail="Expected a text frame"))
                    continue

                try:
                    msg = ClientMessage.model_validate_json(message["text"])
                except ValidationError:
                    outbox.put_nowait(ErrorMessage(detail="Expected start or stop message"))
                    continue

                if msg.type == ClientMessageType.start:
                    controller.start()
                elif msg.type == ClientMessageType.stop:
                    controller.stop()
        finally:
            unsubscribe()
            sender.cancel()
            try:
                await sender
            except asyncio.CancelledError:
                pass

    except WebSocketDisconnect:
        logger.info("Client disconnected: %s", client_id)
    except RuntimeError as exc:
        logger.warning("Session error: %s", exc)
        await ws.send_text(ErrorMessage(detail=str(exc)).model_dump_json())
        await ws.close()
    except Exception:
        logger.exception("Unexpected error in transcribe endpoint")
    finally:
        if created:
            await manager.remove(client_id)


async def _send_outbox(outbox: asyncio.Queue, ws: WebSocket, client_id: str):
    """Forward queued snapshot and error messages to the client."""
    try:
        while True:
            message = await outbox.get()
            await ws.send_text(message.model_dump_json())
    except Exception:
        logger.exception("Send error for %s", client_id)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
