# chatrooms/infrastructure/delivery_hub.py
import asyncio
import itertools
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol

from chatrooms.domain.errors import DeliveryError
from chatrooms.infrastructure import schemas


class Channel(Protocol):
    """The slice of a WebSocket the hub needs."""

    async def send_json(self, data: Any) -> None: ...

    async def close(self, code: int = 1000) -> None: ...


class ConnectionState(Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass(frozen=True)
class ConnectionHandle:
    user_id: int
    connection_id: int


class LiveConnection:
    def __init__(
        self,
        handle: ConnectionHandle,
        channel: Channel,
        logger: logging.Logger,
        send_timeout: float,
        outbox_size: int,
        on_failure: Callable[[ConnectionHandle], object],
    ):
        self.handle = handle
        self.channel = channel
        self.logger = logger
        self.send_timeout = send_timeout
        self.outbox: asyncio.Queue = asyncio.Queue(maxsize=outbox_size)
        self.state = ConnectionState.CONNECTING
        self._on_failure = on_failure
        self._writer: Optional[asyncio.Task] = None

    def open(self) -> None:
        if self.state is not ConnectionState.CONNECTING:
            raise RuntimeError(f"Cannot open connection in state {self.state.value}")
        self.state = ConnectionState.OPEN
        self._writer = asyncio.get_running_loop().create_task(self._drain())

    def push(self, payload: dict) -> None:
        if self.state is not ConnectionState.OPEN:
            raise DeliveryError(f"Connection {self.handle} is {self.state.value}")
        try:
            self.outbox.put_nowait(payload)
        except asyncio.QueueFull as e:
            raise DeliveryError(f"Outbox full for connection {self.handle}") from e

    async def _drain(self) -> None:
        while True:
            payload = await self.outbox.get()
            try:
                await asyncio.wait_for(
                    self.channel.send_json(payload), timeout=self.send_timeout
                )
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.logger.warning(
                    f"Push to user {self.handle.user_id} failed, closing connection: {e!r}"
                )
                self.state = ConnectionState.CLOSING
                self._on_failure(self.handle)
                await self.close(code=1011)
                return

    async def close(self, code: int = 1000) -> None:
        if self.state is ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSING
        writer = self._writer
        if writer is not None and writer is not asyncio.current_task():
            writer.cancel()
            await asyncio.wait([writer])
        try:
            await self.channel.close(code=code)
        except Exception as e:
            # peer already went away
            self.logger.debug(f"Close of connection {self.handle} ignored: {e!r}")
        self.state = ConnectionState.CLOSED


class LiveDeliveryHub:
    """Registry of open live connections, keyed by user id.

    register/unregister/broadcast may be called from any task; the registry
    lock is never held across an await. Pushes are best-effort: nothing here
    raises into the caller of broadcast.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        send_timeout: float = 5.0,
        outbox_size: int = 100,
    ):
        self.logger = logger or logging.getLogger("ChatAPI.hub")
        self.send_timeout = send_timeout
        self.outbox_size = outbox_size
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._connections: Dict[int, Dict[int, LiveConnection]] = {}

    def register(self, user_id: int, channel: Channel) -> ConnectionHandle:
        with self._lock:
            handle = ConnectionHandle(user_id=user_id, connection_id=next(self._ids))
            connection = LiveConnection(
                handle,
                channel,
                self.logger,
                self.send_timeout,
                self.outbox_size,
                self._discard,
            )
            self._connections.setdefault(user_id, {})[handle.connection_id] = connection
        connection.open()
        self.logger.info(
            f"User {user_id} connected ({self.connection_count()} open connections)"
        )
        return connection.handle

    async def unregister(self, handle: ConnectionHandle) -> None:
        connection = self._discard(handle)
        if connection is None:
            return
        await connection.close()
        self.logger.info(
            f"User {handle.user_id} disconnected ({self.connection_count()} open connections)"
        )

    def _discard(self, handle: ConnectionHandle) -> Optional[LiveConnection]:
        with self._lock:
            user_connections = self._connections.get(handle.user_id)
            if not user_connections:
                return None
            connection = user_connections.pop(handle.connection_id, None)
            if not user_connections:
                del self._connections[handle.user_id]
            return connection

    def broadcast(
        self,
        chatroom_id: int,
        message: schemas.Message,
        member_user_ids: Iterable[int],
    ) -> int:
        """Queue message for every open connection of the given members.

        Returns the number of connections the message was queued on.
        """
        payload = {
            "type": "message_created",
            "chatroom_id": chatroom_id,
            "message": message.model_dump(mode="json"),
        }
        with self._lock:
            targets = [
                connection
                for user_id in set(member_user_ids)
                for connection in self._connections.get(user_id, {}).values()
            ]

        delivered = 0
        for connection in targets:
            try:
                connection.push(payload)
                delivered += 1
            except DeliveryError as e:
                self.logger.warning(f"Dropped push of message {message.id}: {e.message}")
        self.logger.debug(
            f"Message {message.id} queued on {delivered}/{len(targets)} connections "
            f"for chatroom {chatroom_id}"
        )
        return delivered

    def send_to(self, handle: ConnectionHandle, payload: dict) -> bool:
        """Queue a reply for one connection, behind any pending pushes."""
        with self._lock:
            connection = self._connections.get(handle.user_id, {}).get(
                handle.connection_id
            )
        if connection is None:
            return False
        try:
            connection.push(payload)
        except DeliveryError as e:
            self.logger.warning(f"Dropped reply to user {handle.user_id}: {e.message}")
            return False
        return True

    def is_online(self, user_id: int) -> bool:
        with self._lock:
            return bool(self._connections.get(user_id))

    def online_user_ids(self, candidates: Iterable[int]) -> List[int]:
        with self._lock:
            return [user_id for user_id in candidates if self._connections.get(user_id)]

    def connection_count(self) -> int:
        with self._lock:
            return sum(len(conns) for conns in self._connections.values())

    def state_of(self, handle: ConnectionHandle) -> ConnectionState:
        with self._lock:
            connection = self._connections.get(handle.user_id, {}).get(
                handle.connection_id
            )
        return connection.state if connection else ConnectionState.CLOSED

    async def teardown(self) -> None:
        with self._lock:
            connections = [
                connection
                for user_connections in self._connections.values()
                for connection in user_connections.values()
            ]
            self._connections.clear()
        for connection in connections:
            await connection.close(code=1001)
        if connections:
            self.logger.info(f"Closed {len(connections)} live connections on shutdown")
