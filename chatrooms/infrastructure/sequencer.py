# chatrooms/infrastructure/sequencer.py
import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import AsyncIterator, Dict, Optional


class SendSlot:
    def __init__(self, sequencer: "RoomSequencer", chatroom_id: int):
        self._sequencer = sequencer
        self._chatroom_id = chatroom_id
        self.sent_at: Optional[datetime] = None

    def stamp(self, now: Optional[datetime] = None) -> datetime:
        """Pick the send time, never earlier than the room's previous one."""
        now = now or datetime.now(UTC)
        last = self._sequencer.last_sent_at.get(self._chatroom_id)
        self.sent_at = max(now, last) if last is not None else now
        return self.sent_at

    def commit(self) -> None:
        if self.sent_at is not None:
            self._sequencer.last_sent_at[self._chatroom_id] = self.sent_at


class RoomSequencer:
    """Serializes sends per chatroom within this process.

    Holding a room's slot covers picking sent_at, persisting the message and
    handing it to the delivery hub, so persist order, sent_at order and push
    order agree for that room.

    _locks and last_sent_at keep one entry per room ever written to and are
    never pruned, so they grow with the number of rooms and nothing else.
    """

    def __init__(self) -> None:
        self._locks: Dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)
        self.last_sent_at: Dict[int, datetime] = {}

    @asynccontextmanager
    async def slot(self, chatroom_id: int) -> AsyncIterator[SendSlot]:
        async with self._locks[chatroom_id]:
            yield SendSlot(self, chatroom_id)
