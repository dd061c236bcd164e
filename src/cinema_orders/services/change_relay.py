"""Carries change events between processes over Redis pub/sub.

Each API worker runs a RedisChangeRelay: events published locally are
pushed to the channel, and events from other workers (or from Celery
tasks through ``broadcast_change``) are delivered to local subscribers.
Without REDIS_URL the notifier stays process-local.
"""
import asyncio
import json
import logging
import uuid
from typing import Optional, Tuple

import redis
import redis.asyncio as aioredis
from redis.exceptions import RedisError

from cinema_orders.core.config import settings
from cinema_orders.services.notifier import ChangeEvent, ChangeKind, ChangeNotifier

logger = logging.getLogger(__name__)

CHANNEL = "cinema_orders:changes"


def encode_event(event: ChangeEvent, origin: str) -> str:
    return json.dumps({
        "origin": origin,
        "table": event.table,
        "kind": event.kind.value,
        "record_id": event.record_id,
    })


def decode_event(raw) -> Tuple[str, ChangeEvent]:
    if isinstance(raw, bytes):
        raw = raw.decode()
    data = json.loads(raw)
    event = ChangeEvent(
        table=data["table"],
        kind=ChangeKind(data["kind"]),
        record_id=data.get("record_id"),
    )
    return data.get("origin", ""), event


def broadcast_change(table: str, kind, record_id: Optional[int] = None) -> int:
    """Publish from a process without a running relay, e.g. a Celery worker.

    Returns the number of Redis subscribers reached, 0 when Redis is not
    configured or unreachable.
    """
    if not settings.REDIS_URL:
        return 0
    event = ChangeEvent(table=table, kind=ChangeKind(kind), record_id=record_id)
    client = redis.Redis.from_url(settings.REDIS_URL)
    try:
        return client.publish(CHANNEL, encode_event(event, "worker"))
    except RedisError as e:
        logger.warning("Could not broadcast %s/%s: %s", table, event.kind.value, e)
        return 0
    finally:
        client.close()


class RedisChangeRelay:
    def __init__(self, notifier: ChangeNotifier, url: str, channel: str = CHANNEL):
        self.notifier = notifier
        self.url = url
        self.channel = channel
        self.origin = uuid.uuid4().hex
        self._client: Optional[aioredis.Redis] = None
        self._outbox: asyncio.Queue = asyncio.Queue()
        self._tasks = []

    def forward(self, event: ChangeEvent) -> None:
        self._outbox.put_nowait(encode_event(event, self.origin))

    def handle_message(self, message: dict) -> bool:
        """Deliver a pub/sub message locally unless this relay sent it."""
        if message.get("type") != "message":
            return False
        try:
            origin, event = decode_event(message["data"])
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Dropping malformed change message: %s", e)
            return False
        if origin == self.origin:
            return False
        self.notifier.deliver(event)
        return True

    async def start(self) -> None:
        self._client = aioredis.from_url(self.url, decode_responses=True)
        self.notifier.forward = self.forward
        self._tasks = [
            asyncio.create_task(self._send_loop()),
            asyncio.create_task(self._listen_loop()),
        ]
        logger.info("Change relay %s started on %s", self.origin, self.channel)

    async def stop(self) -> None:
        self.notifier.forward = None
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        logger.info("Change relay %s stopped", self.origin)

    async def _send_loop(self) -> None:
        while True:
            payload = await self._outbox.get()
            try:
                await self._client.publish(self.channel, payload)
            except RedisError as e:
                logger.error("Could not forward change to %s: %s", self.channel, e)

    async def _listen_loop(self) -> None:
        while True:
            pubsub = self._client.pubsub()
            try:
                await pubsub.subscribe(self.channel)
                async for message in pubsub.listen():
                    self.handle_message(message)
            except RedisError as e:
                logger.error("Change relay lost %s, reconnecting: %s", self.channel, e)
                await asyncio.sleep(1)
            finally:
                await pubsub.aclose()
