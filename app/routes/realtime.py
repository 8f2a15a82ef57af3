import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from fastapi.concurrency import run_in_threadpool

from app.database import new_session
from app.models.user import User
from app.notifications.channels import connection_manager
from app.utils.token import user_id_from_token

logger = logging.getLogger(__name__)

router = APIRouter()


def _load_active_user(user_id: int):
    with new_session() as session:
        user = session.get(User, user_id)
        if not user or not user.is_active:
            return None
        return user.id


async def _forward(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        message = await queue.get()
        await websocket.send_json(message)


@router.websocket("/ws")
async def order_updates(websocket: WebSocket, token: str | None = None):
    user_id = user_id_from_token(token) if token else None
    if user_id is not None:
        user_id = await run_in_threadpool(_load_active_user, user_id)

    if user_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    # subscribe before accepting so nothing pushed after the handshake is lost
    queue = await connection_manager.connect(user_id)
    await websocket.accept()
    sender = asyncio.create_task(_forward(websocket, queue))

    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        connection_manager.disconnect(user_id, queue)
        sender.cancel()
        try:
            await sender
        except asyncio.CancelledError:
            pass
        except Exception:
            # send_json failed before the client went away
            logger.warning("Push loop for user %s stopped on error", user_id, exc_info=True)
