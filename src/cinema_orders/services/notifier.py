"""In-process change feed.

Subscribers get refresh signals, not payloads: a signal tells a view that
something in a table changed and it should re-query. Each subscription
keeps at most one pending signal, so bursts collapse into one refresh.
Other processes are reached through services/change_relay.py.
"""
import asyncio
import enum
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Optional, Set

logger = logging.getLogger(__name__)


TABLES = ("orders", "shows", "seats", "movies", "snacks")


class ChangeKind(str, enum.Enum):
    insert = "insert"
    update = "update"
    delete = "delete"
    any = "*"


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    kind: ChangeKind
    record_id: Optional[int] = None


class Subscription:
    def __init__(self, table: str, kind: ChangeKind = ChangeKind.any):
        self.table = table
        self.kind = kind
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        self.closed = False

    def matches(self, event: ChangeEvent) -> bool:
        if event.table != self.table:
            return False
        return self.kind == ChangeKind.any or self.kind == event.kind

    def offer(self, event: ChangeEvent) -> bool:
        """Queue a refresh signal; False if one is already pending."""
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            return False
        return True

    @property
    def pending(self) -> bool:
        return not self._queue.empty()

    async def wait(self, timeout: Optional[float] = None) -> Optional[ChangeEvent]:
        """Next signal, or None when the timeout elapses first."""
        try:
            return await asyncio.wait_for(self._queue.get(), timeout)
        except asyncio.TimeoutError:
            return None

    def __aiter__(self):
        return self

    async def __anext__(self) -> ChangeEvent:
        if self.closed:
            raise StopAsyncIteration
        return await self._queue.get()


class ChangeNotifier:
    """Fans change events out to the subscriptions of this process.

    ``forward``, when set, is called with every locally published event so
    a relay can pass it on to other processes; events arriving from a relay
    go through ``deliver`` and are not forwarded again.
    """

    def __init__(self, forward: Optional[Callable[[ChangeEvent], None]] = None):
        self._subscriptions: Set[Subscription] = set()
        self.forward = forward

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def deliver(self, event: ChangeEvent) -> int:
        """Hand an event to matching local subscriptions. Never blocks.

        Returns the number of subscriptions that got a new signal.
        """
        delivered = 0
        for sub in list(self._subscriptions):
            if sub.matches(event) and sub.offer(event):
                delivered += 1
        logger.debug(
            "Delivered %s/%s id=%s to %d subscriber(s)",
            event.table, event.kind.value, event.record_id, delivered,
        )
        return delivered

    def publish(self, table: str, kind, record_id: Optional[int] = None) -> int:
        event = ChangeEvent(table=table, kind=ChangeKind(kind), record_id=record_id)
        delivered = self.deliver(event)
        if self.forward is not None:
            self.forward(event)
        return delivered

    @asynccontextmanager
    async def subscribe(
        self, table: str, kind=ChangeKind.any
    ) -> AsyncIterator[Subscription]:
        if table not in TABLES:
            raise ValueError(f"Unknown table: {table}")
        sub = Subscription(table, ChangeKind(kind))
        self._subscriptions.add(sub)
        logger.info(
            "Subscribed to %s/%s (total: %d)", table, sub.kind.value, len(self._subscriptions)
        )
        try:
            yield sub
        finally:
            sub.closed = True
            self._subscriptions.discard(sub)
            logger.info(
                "Unsubscribed from %s/%s (remaining: %d)",
                table, sub.kind.value, len(self._subscriptions),
            )


notifier = ChangeNotifier()


def get_notifier() -> ChangeNotifier:
    return notifier
