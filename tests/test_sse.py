import asyncio
import json
import pytest
from tl.azure_devops_mcp_web import __version__
from tl.azure_devops_mcp_web.sse import SseSessionManager


@pytest.mark.asyncio
async def test_session_announces_endpoint_then_hello():
    manager = SseSessionManager(heartbeat_interval=10)

    async with manager.session() as session:
        endpoint = await session.next_event()
        hello = await session.next_event()

    assert endpoint.event == 'endpoint'
    assert endpoint.data == f'/message?sessionId={session.session_id}'
    assert hello.event == 'message'
    message = json.loads(hello.data)
    assert message['jsonrpc'] == '2.0'
    assert message['method'] == 'hello'
    assert message['id'].startswith('hello-')
    assert message['params'] == {
        'sessionId': session.session_id,
        'serverName': 'azure-devops-mcp-pat',
        'serverVersion': __version__,
    }


@pytest.mark.asyncio
async def test_heartbeat_is_emitted_and_cancelled_on_exit():
    manager = SseSessionManager(heartbeat_interval=0.01)

    async with manager.session() as session:
        assert manager.active_sessions() == [session.session_id]
        assert manager.get(session.session_id) is session
        await session.next_event()
        await session.next_event()
        heartbeat = await asyncio.wait_for(session.next_event(), timeout=1)

    assert heartbeat.comment.startswith('heartbeat ')
    assert heartbeat.comment[len('heartbeat '):].isdigit()
    assert heartbeat.event is None
    assert session.heartbeat_task.cancelled()
    assert manager.active_sessions() == []


@pytest.mark.asyncio
async def test_session_cleaned_up_when_body_raises():
    manager = SseSessionManager(heartbeat_interval=0.01)

    with pytest.raises(RuntimeError):
        async with manager.session() as session:
            raise RuntimeError('client went away')

    assert session.heartbeat_task.done()
    assert manager.get(session.session_id) is None


@pytest.mark.asyncio
async def test_closing_event_stream_releases_session():
    manager = SseSessionManager(heartbeat_interval=0.01)
    stream = manager.event_stream()

    first = await stream.__anext__()
    assert first.event == 'endpoint'
    assert len(manager.active_sessions()) == 1

    await stream.aclose()
    assert manager.active_sessions() == []


@pytest.mark.asyncio
async def test_session_ids_are_unique():
    manager = SseSessionManager(heartbeat_interval=10)

    async with manager.session() as first, manager.session() as second:
        assert first.session_id != second.session_id
        assert len(manager.active_sessions()) == 2
