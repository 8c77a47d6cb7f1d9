"""Server-Sent Events sessions for the legacy ``/sse`` transport.

Each session emits an ``endpoint`` event naming the POST URL, a ``hello``
message, and then a heartbeat comment on a fixed interval until the client
disconnects. Wire encoding is left to ``sse_starlette``.
"""

import asyncio
import contextlib
import json
import secrets
import time
from loguru import logger
from sse_starlette.sse import ServerSentEvent
from tl.azure_devops_mcp_web import __version__
from tl.azure_devops_mcp_web.config import DEFAULT_HEARTBEAT_INTERVAL
from tl.azure_devops_mcp_web.dispatcher import JSONRPC_VERSION, SERVER_ID
from typing import Any, AsyncIterator, Dict, List, Optional


SSE_HEADERS = {
    'Cache-Control': 'no-cache, no-store, must-revalidate',
    'Connection': 'keep-alive',
    'X-Accel-Buffering': 'no',
}
MESSAGE_ENDPOINT = '/message'


def epoch_ms() -> int:
    return int(time.time() * 1000)


class SseSession:
    """One open event stream and its pending events."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        self.opened_at = time.time()
        self.heartbeat_task: Optional['asyncio.Task[None]'] = None
        self._events: 'asyncio.Queue[ServerSentEvent]' = asyncio.Queue()

    def send(self, event: ServerSentEvent) -> None:
        self._events.put_nowait(event)

    async def next_event(self) -> ServerSentEvent:
        return await self._events.get()


class SseSessionManager:
    """Creates SSE sessions and tracks the ones still open."""

    def __init__(self, heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL) -> None:
        self.heartbeat_interval = heartbeat_interval
        self._sessions: Dict[str, SseSession] = {}

    def active_sessions(self) -> List[str]:
        return list(self._sessions)

    def get(self, session_id: str) -> Optional[SseSession]:
        return self._sessions.get(session_id)

    @staticmethod
    def hello_message(session_id: str) -> Dict[str, Any]:
        return {
            'jsonrpc': JSONRPC_VERSION,
            'method': 'hello',
            'params': {
                'sessionId': session_id,
                'serverName': SERVER_ID,
                'serverVersion': __version__,
            },
            'id': f'hello-{epoch_ms()}',
        }

    @contextlib.asynccontextmanager
    async def session(self) -> AsyncIterator[SseSession]:
        """Open a session; the heartbeat stops and the session is dropped on exit.

        Exit covers a normal return, an error and task cancellation on client
        disconnect alike.
        """
        session = SseSession(secrets.token_urlsafe(16))
        session.send(
            ServerSentEvent(
                data=f'{MESSAGE_ENDPOINT}?sessionId={session.session_id}', event='endpoint'
            )
        )
        session.send(
            ServerSentEvent(data=json.dumps(self.hello_message(session.session_id)), event='message')
        )

        session.heartbeat_task = asyncio.create_task(self._heartbeat(session))
        self._sessions[session.session_id] = session
        logger.info(f'SSE session opened: {session.session_id}')
        try:
            yield session
        finally:
            session.heartbeat_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await session.heartbeat_task
            self._sessions.pop(session.session_id, None)
            logger.info(f'SSE session closed: {session.session_id}')

    async def _heartbeat(self, session: SseSession) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            session.send(ServerSentEvent(comment=f'heartbeat {epoch_ms()}'))

    async def event_stream(self) -> AsyncIterator[ServerSentEvent]:
        """Yield the events of a new session until the consumer stops iterating."""
        async with self.session() as session:
            while True:
                yield await session.next_event()
