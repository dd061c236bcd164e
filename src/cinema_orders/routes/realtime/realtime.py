import asyncio
import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_orders.core.config import settings
from cinema_orders.core.security import decode_access_token, load_active_user
from cinema_orders.db.session import get_db
from cinema_orders.services.notifier import (
    TABLES,
    ChangeKind,
    ChangeNotifier,
    Subscription,
    get_notifier,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    # client messages (pings) are ignored
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


async def relay(websocket: WebSocket, sub: Subscription, heartbeat: float) -> None:
    """Forward refresh signals until the client goes away."""
    receiver = asyncio.ensure_future(_wait_for_disconnect(websocket))
    try:
        while True:
            waiter = asyncio.ensure_future(sub.wait(timeout=heartbeat))
            done, _ = await asyncio.wait(
                {receiver, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
            if receiver in done:
                waiter.cancel()
                return
            signal = waiter.result()
            if signal is None:
                await websocket.send_json({"type": "heartbeat", "timestamp": time.time()})
            else:
                await websocket.send_json({
                    "type": "refresh",
                    "table": signal.table,
                    "event": signal.kind.value,
                })
    finally:
        receiver.cancel()


@router.websocket("/realtime/{table}")
async def realtime_feed(
    websocket: WebSocket,
    table: str,
    event: str = "*",
    token: Optional[str] = None,
    notifier: ChangeNotifier = Depends(get_notifier),
    db: AsyncSession = Depends(get_db),
):
    try:
        user = await load_active_user(db, decode_access_token(token or ""))
        kind = ChangeKind(event)
    except (HTTPException, ValueError):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    finally:
        # no further queries on this socket
        await db.close()
    user_id = user.id
    if table not in TABLES:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    try:
        async with notifier.subscribe(table, kind) as sub:
            await websocket.send_json(
                {"type": "subscribed", "table": table, "event": kind.value}
            )
            await relay(websocket, sub, settings.REALTIME_HEARTBEAT_SECONDS)
    except WebSocketDisconnect:
        logger.info("Realtime client %s disconnected from %s", user_id, table)
