"""
Connection Registry component.

Tracks live WebSocket sessions. Each session owns an outbound queue drained by
a single writer task, a heartbeat task, and the inbound read loop that runs
for as long as the client stays connected.
"""

import asyncio
import threading
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from git_monitor.models.session import SessionInfo, SessionState
from git_monitor.utils.logging import get_logger, log_session_event
from git_monitor.utils.metrics import emit_metric


logger = get_logger(__name__)

GREETING = "Connected to Git Monitor WebSocket"
PING = "ping"
PONG = "pong"


class Session:
    """
    One WebSocket client, from accept to disconnect.

    State machine: ACCEPTED -> ACTIVE -> CLOSED.
    """

    def __init__(
        self,
        session_id: str,
        websocket: WebSocket,
        heartbeat_interval: float = 20.0,
        queue_size: int = 256,
        on_close: Optional[Callable[[str], object]] = None,
    ):
        """
        Initialize a session for an already accepted WebSocket.

        Args:
            session_id: Unique session ID
            websocket: Accepted WebSocket transport
            heartbeat_interval: Seconds between "ping" heartbeats
            queue_size: Maximum number of queued outbound messages
            on_close: Called with the session ID once the session is closed
        """
        self.session_id = session_id
        self.websocket = websocket
        self.heartbeat_interval = heartbeat_interval
        self.state = SessionState.ACCEPTED
        self.connected_at = datetime.now(timezone.utc)
        self.messages_sent = 0

        self._started = time.monotonic()
        self._outbound: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self._on_close = on_close
        self._forward_task: Optional[asyncio.Task] = None
        self._heartbeat_task: Optional[asyncio.Task] = None
        self.logger = get_logger(__name__, session_id=session_id)

    @property
    def is_closed(self) -> bool:
        return self.state == SessionState.CLOSED

    def info(self) -> SessionInfo:
        return SessionInfo(
            session_id=self.session_id,
            state=self.state,
            connected_at=self.connected_at,
            elapsed_seconds=round(time.monotonic() - self._started, 3),
            messages_sent=self.messages_sent,
        )

    def enqueue(self, text: str) -> bool:
        """
        Queue a text frame for delivery without blocking.

        Args:
            text: Frame payload

        Returns:
            False if the session is closed or its queue is full
        """
        if self.is_closed:
            return False

        try:
            self._outbound.put_nowait(text)
        except asyncio.QueueFull:
            self.logger.warning("Outbound queue full, dropping message")
            return False
        return True

    async def run(self) -> None:
        """
        Serve the session until the client goes away.

        Sends the greeting, starts the forward and heartbeat tasks, then reads
        inbound frames. Always ends CLOSED and deregistered.
        """
        try:
            await self.websocket.send_text(GREETING)
            self.messages_sent += 1

            self.state = SessionState.ACTIVE
            log_session_event(self.logger, self.session_id, self.state.value)

            self._forward_task = asyncio.create_task(self._forward_all())
            self._heartbeat_task = asyncio.create_task(self._heartbeat())

            await self._read_inbound()
        except Exception as e:
            self.logger.warning(f"WebSocket error for {self.session_id}: {e}")
        finally:
            await self.close()

    async def close(self, code: Optional[int] = None) -> None:
        """
        Deregister this session and cancel its background tasks.

        The session leaves the registry before the first await, even if this
        call is later interrupted by cancellation.

        Args:
            code: If given, also close the transport with this close code
        """
        if self.is_closed:
            return
        self.state = SessionState.CLOSED

        if self._on_close is not None:
            self._on_close(self.session_id)

        duration = time.monotonic() - self._started
        log_session_event(
            self.logger,
            self.session_id,
            self.state.value,
            messages_sent=self.messages_sent,
        )
        emit_metric("websocket_session_duration_seconds", round(duration, 3))

        current = asyncio.current_task()
        tasks = [
            task for task in (self._forward_task, self._heartbeat_task)
            if task is not None and task is not current
        ]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        if code is not None and self.websocket.application_state == WebSocketState.CONNECTED:
            try:
                await self.websocket.close(code=code)
            except Exception as e:
                self.logger.debug(f"Close handshake failed for {self.session_id}: {e}")

    async def _read_inbound(self) -> None:
        while True:
            message = await self.websocket.receive()

            if message["type"] == "websocket.disconnect":
                return

            text = message.get("text")
            if text is None:
                self.logger.debug(f"Ignoring binary frame from {self.session_id}")
                continue

            self._handle_text(text)

    def _handle_text(self, text: str) -> None:
        if text == PONG:
            self.logger.debug(f"Received pong from {self.session_id}")
        elif text == PING:
            self.enqueue(PONG)
        else:
            self.logger.info(f"Received message from {self.session_id}: {text}")

    async def _forward_all(self) -> None:
        """Single writer: drain the outbound queue in order."""
        while True:
            text = await self._outbound.get()
            try:
                await self.websocket.send_text(text)
            except Exception as e:
                self.logger.warning(f"Error sending to {self.session_id}: {e}")
                await self._abort_transport()
                return
            self.messages_sent += 1

    async def _heartbeat(self) -> None:
        # A full queue only skips this ping; a failed send closes the session
        while not self.is_closed:
            await asyncio.sleep(self.heartbeat_interval)
            if not self.enqueue(PING) and not self.is_closed:
                self.logger.debug(f"Skipped heartbeat for {self.session_id}: outbound queue full")

    async def _abort_transport(self) -> None:
        # Ends the inbound read loop, which then runs close()
        try:
            await self.websocket.close(code=1011)
        except Exception as e:
            self.logger.debug(f"Abort after send failure raised for {self.session_id}: {e}")


class ConnectionRegistry:
    """
    Registry of live sessions.

    The session map is guarded by a lock so it can be inserted into, removed
    from and iterated concurrently.
    """

    def __init__(self, heartbeat_interval: float = 20.0, queue_size: int = 256):
        self.heartbeat_interval = heartbeat_interval
        self.queue_size = queue_size
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def register(self, websocket: WebSocket) -> Session:
        """
        Create and register a session for an accepted WebSocket.

        Args:
            websocket: Accepted WebSocket transport

        Returns:
            The new session, in ACCEPTED state
        """
        with self._lock:
            session_id = uuid.uuid4().hex
            while session_id in self._sessions:
                session_id = uuid.uuid4().hex

            session = Session(
                session_id,
                websocket,
                heartbeat_interval=self.heartbeat_interval,
                queue_size=self.queue_size,
                on_close=self.unregister,
            )
            self._sessions[session_id] = session

        log_session_event(logger, session_id, session.state.value)
        return session

    def unregister(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.pop(session_id, None)

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def sessions(self) -> List[Session]:
        """Snapshot of the registered sessions."""
        with self._lock:
            return list(self._sessions.values())

    def count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def list_info(self) -> List[SessionInfo]:
        return [session.info() for session in self.sessions()]

    async def close_all(self, code: int = 1001) -> None:
        """Close every session; used at shutdown."""
        sessions = self.sessions()
        if sessions:
            logger.info(f"Closing {len(sessions)} WebSocket session(s)")
        await asyncio.gather(
            *(session.close(code=code) for session in sessions),
            return_exceptions=True,
        )
