import asyncio
import json

from fastapi import APIRouter, Request, WebSocket

from constants import OUTBOX_MAX_SIZE
from dispatcher import ClientSession, Dispatcher
from logging_config import get_logger
from schemas.messages import HealthResponse

logger = get_logger(__name__)

chat_router = APIRouter(tags=["chat"])


async def pump_outbox(websocket: WebSocket, outbox: asyncio.Queue, session: ClientSession):
    """Writer task: the only place that awaits on outbound sends."""
    try:
        while True:
            payload = await outbox.get()
            await websocket.send_text(json.dumps(payload))
    except Exception as e:
        # Socket went away; the reader loop sees the disconnect and cleans up
        logger.debug(f"Stopped writing to {session}: {e}")


@chat_router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Protocol endpoint. Every frame is a JSON object with a ``type`` field."""
    dispatcher: Dispatcher = websocket.app.state.dispatcher
    peer = f"{websocket.client.host}:{websocket.client.port}" if websocket.client else None

    await websocket.accept()
    logger.info(f"WebSocket connection accepted from {peer}")

    outbox: asyncio.Queue = asyncio.Queue(maxsize=OUTBOX_MAX_SIZE)
    session = ClientSession(outbox.put_nowait, peer)
    writer = asyncio.create_task(pump_outbox(websocket, outbox, session))

    message_count = 0
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"WebSocket disconnected normally for {session}")
                break
            data = message.get("text")
            if data is None:
                data = message.get("bytes")
            if data is None:
                continue
            message_count += 1
            logger.debug(f"Received frame #{message_count} from {session}")
            dispatcher.dispatch(session, data)
    except Exception as e:
        logger.error(f"WebSocket error for {session}: {e}", exc_info=True)
    finally:
        dispatcher.close(session)
        writer.cancel()
        try:
            await writer
        except asyncio.CancelledError:
            pass
        try:
            await websocket.close()
        except Exception as e:
            logger.debug(f"Error closing WebSocket: {e}")


@chat_router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    return HealthResponse(status="ok", online_count=request.app.state.chat_backend.online_count)
