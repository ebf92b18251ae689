# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
import base64

import pytest

from realtime_fakes import (
    FakeConnector,
    FakeSource,
    FakeTransport,
    GatedConnector,
    frame,
    make_client,
    next_of,
    wait_until,
)
from realtime_translator.audio.queues import BackpressurePolicy
from realtime_translator.config import AppConfig, ConfigError
from realtime_translator.pipelines.capture import stream_source
from realtime_translator.protocol.events import (
    ApiError,
    Disconnected,
    Reconnecting,
    SessionCreated,
    SessionReady,
    TextDelta,
)
from realtime_translator.session.client import SessionClient
from realtime_translator.session.errors import (
    ReconnectExhausted,
    SessionClosedError,
    SessionConnectionError,
    SessionTimeoutError,
)
from realtime_translator.session.state import SessionState


# ---------------------------------------------------------------------
# Connect
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_connect_reaches_ready_and_sends_session_config_first():
    transport = FakeTransport(session_id="sess_abc")
    connector = FakeConnector([transport])
    client = make_client(connector)
    sub = client.subscribe()

    await client.connect()

    assert client.state is SessionState.READY
    assert client.session_id == "sess_abc"
    assert transport.sent_types() == ["session.update"]

    url, headers = connector.calls[0]
    assert url == "ws://fake/realtime"
    assert headers["Authorization"] == "Bearer sk-test"
    assert headers["OpenAI-Beta"] == "realtime=v1"

    first, second = await sub.next(timeout=1), await sub.next(timeout=1)
    assert isinstance(first, SessionCreated)
    assert isinstance(second, SessionReady)
    assert second.session_id == "sess_abc"

    await client.stop()


@pytest.mark.asyncio
async def test_open_failure_is_retried():
    healthy = FakeTransport(session_id="sess_2")
    connector = FakeConnector([OSError("refused"), healthy])
    client = make_client(connector)
    sub = client.subscribe()

    await client.connect()

    assert client.state is SessionState.READY
    assert client.session_id == "sess_2"
    assert client.attempt == 0
    assert len(connector.calls) == 2
    retry = await next_of(sub, Reconnecting)
    assert retry.attempt == 1
    assert "refused" in retry.reason

    await client.stop()


@pytest.mark.asyncio
async def test_open_failure_gives_up_when_budget_is_spent():
    connector = FakeConnector([])
    client = make_client(connector, max_attempts=2)

    with pytest.raises(ReconnectExhausted) as excinfo:
        await client.connect()

    assert isinstance(excinfo.value.__cause__, SessionConnectionError)
    assert len(connector.calls) == 3
    assert client.state is SessionState.TERMINATED


@pytest.mark.asyncio
async def test_initialization_timeout():
    transport = FakeTransport(on_session_update="ignore")
    client = make_client(
        FakeConnector([transport]),
        max_attempts=0,
        connect_timeout_s=0.05,
    )

    with pytest.raises(ReconnectExhausted) as excinfo:
        await client.connect()

    assert isinstance(excinfo.value.__cause__, SessionTimeoutError)
    assert client.state is SessionState.TERMINATED
    assert transport.close_calls == 1


@pytest.mark.asyncio
async def test_initialization_timeout_is_retried():
    slow = FakeTransport(on_session_update="ignore")
    connector = FakeConnector([slow, FakeTransport()])
    client = make_client(connector, connect_timeout_s=0.05)

    await client.connect()

    assert client.state is SessionState.READY
    assert slow.close_calls == 1
    assert len(connector.calls) == 2

    await client.stop()


@pytest.mark.asyncio
async def test_transport_closes_twice_during_connect_then_succeeds():
    doomed = [
        FakeTransport(on_session_update="close"),
        FakeTransport(on_session_update="close"),
    ]
    last = FakeTransport(on_session_update="ignore", session_id="sess_3")
    connector = FakeConnector([*doomed, last])
    client = make_client(connector, base_delay_ms=20)
    sub = client.subscribe()

    connecting = asyncio.create_task(client.connect())

    for attempt, seq in ((1, 1), (2, 2)):
        await wait_until(
            lambda a=attempt: client.state is SessionState.RECONNECTING and client.attempt == a
        )
        assert await client.send_audio(frame(10 + seq)) is False
        assert await client.queue_audio(frame(seq)) is True

    await wait_until(
        lambda: client.state is SessionState.INITIALIZING and len(connector.opened) == 3
    )
    assert await client.send_audio(frame(13)) is False
    assert await client.queue_audio(frame(3)) is True
    last.push({"type": "session.created", "session": {"id": "sess_3"}})
    await connecting

    events = sub.drain_nowait()
    reconnecting = [e for e in events if isinstance(e, Reconnecting)]
    ready = [e for e in events if isinstance(e, SessionReady)]

    assert [e.attempt for e in reconnecting] == [1, 2]
    assert len(ready) == 1
    assert client.state is SessionState.READY
    assert client.attempt == 0
    assert len(connector.calls) == 3

    await wait_until(lambda: client.pending_frames == 0)
    for transport in doomed:
        assert transport.sent_types() == ["session.update"]
    assert [base64.b64decode(a)[0] for a in last.sent_audio()] == [1, 2, 3]

    await client.stop()


@pytest.mark.asyncio
async def test_connect_gives_up_when_budget_is_spent():
    connector = FakeConnector([
        FakeTransport(on_session_update="close"),
        FakeTransport(on_session_update="close"),
    ])
    client = make_client(connector, max_attempts=1)

    with pytest.raises(ReconnectExhausted):
        await client.connect()

    assert client.state is SessionState.TERMINATED


# ---------------------------------------------------------------------
# Sending
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_audio_before_ready_never_reaches_the_wire():
    transport = FakeTransport(on_session_update="ignore")
    client = make_client(FakeConnector([transport]))

    assert await client.send_audio(frame(1)) is False
    assert await client.commit_audio() is False
    assert await client.create_response() is False

    connecting = asyncio.create_task(client.connect())
    await wait_until(lambda: client.state is SessionState.INITIALIZING)

    assert await client.send_audio(frame(2)) is False
    assert transport.sent_types() == ["session.update"]

    transport.push({"type": "session.created", "session": {"id": "sess_late"}})
    await connecting

    assert await client.send_audio(frame(3)) is True
    assert transport.sent_types() == ["session.update", "input_audio_buffer.append"]

    await client.stop()


@pytest.mark.asyncio
async def test_twenty_thousand_bytes_become_three_frames_then_commit():
    transport = FakeTransport()
    client = make_client(FakeConnector([transport]))
    await client.connect()

    data = bytes(i % 256 for i in range(20_000))
    source = FakeSource([data[:4096], data[4096:5000], data[5000:17_000], data[17_000:]])

    stats = await stream_source(source, client)
    assert await client.commit_audio() is True

    sent = [base64.b64decode(a) for a in transport.sent_audio()]
    assert [len(s) for s in sent] == [8192, 8192, 20_000 - 2 * 8192]
    assert b"".join(sent) == data
    assert transport.sent_types()[-1] == "input_audio_buffer.commit"
    assert stats.frames_cut == 3
    assert stats.frames_accepted == 3

    await client.stop()


@pytest.mark.asyncio
async def test_create_response_uses_session_modalities_by_default():
    transport = FakeTransport()
    client = make_client(FakeConnector([transport]))
    await client.connect()

    assert await client.create_response() is True
    assert await client.create_response(modalities=("text", "audio")) is True

    responses = [m for m in transport.sent if m["type"] == "response.create"]
    assert [r["response"]["modalities"] for r in responses] == [["text"], ["text", "audio"]]

    await client.stop()


@pytest.mark.asyncio
async def test_drop_newest_when_pending_queue_full():
    client = make_client(
        FakeConnector([]),
        pending_max_frames=2,
        backpressure=BackpressurePolicy.DROP_NEWEST,
    )

    results = [await client.queue_audio(frame(i)) for i in range(1, 4)]

    assert results == [True, True, False]
    assert client.pending_frames == 2


@pytest.mark.asyncio
async def test_block_policy_waits_until_stop():
    client = make_client(
        FakeConnector([]),
        pending_max_frames=1,
        backpressure=BackpressurePolicy.BLOCK,
    )
    assert await client.queue_audio(frame(1)) is True

    blocked = asyncio.create_task(client.queue_audio(frame(2)))
    await asyncio.sleep(0.01)
    assert not blocked.done()

    await client.stop()
    assert await asyncio.wait_for(blocked, timeout=1) is False


@pytest.mark.asyncio
async def test_pending_frames_flushed_in_order_on_ready():
    transport = FakeTransport(on_session_update="ignore")
    client = make_client(FakeConnector([transport]))

    for i in (1, 2, 3):
        assert await client.queue_audio(frame(i)) is True
    assert client.pending_frames == 3

    connecting = asyncio.create_task(client.connect())
    await wait_until(lambda: client.state is SessionState.INITIALIZING)
    transport.push({"type": "session.created", "session": {"id": "s"}})
    await connecting

    await wait_until(lambda: client.pending_frames == 0)
    sent = [base64.b64decode(a)[0] for a in transport.sent_audio()]
    assert sent == [1, 2, 3]

    await client.stop()


# ---------------------------------------------------------------------
# Inbound handling
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_api_error_is_published_and_session_stays_open():
    transport = FakeTransport()
    client = make_client(FakeConnector([transport]))
    sub = client.subscribe()
    await client.connect()

    transport.push({"type": "error", "error": {"code": "rate_limited", "message": "slow down"}})
    err = await next_of(sub, ApiError)

    assert err.code == "rate_limited"
    assert client.state is SessionState.READY
    assert transport.close_calls == 0

    await client.stop()


@pytest.mark.asyncio
async def test_malformed_frame_is_skipped():
    transport = FakeTransport()
    client = make_client(FakeConnector([transport]))
    sub = client.subscribe()
    await client.connect()

    transport.push("{this is not json")
    transport.push({"type": "response.text.delta", "delta": "Hello"})

    delta = await next_of(sub, TextDelta)
    assert delta.text == "Hello"
    assert client.state is SessionState.READY

    await client.stop()


# ---------------------------------------------------------------------
# Reconnect
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_attempt_counter_resets_after_ready():
    first = FakeTransport(session_id="s1")
    last = FakeTransport(session_id="s4")
    connector = FakeConnector([
        first,
        FakeTransport(on_session_update="close"),
        FakeTransport(on_session_update="close"),
        last,
        FakeTransport(session_id="s5"),
    ])
    client = make_client(connector)
    sub = client.subscribe()
    await client.connect()
    await next_of(sub, SessionReady)

    first.drop()
    attempts = [(await next_of(sub, Reconnecting)).attempt for _ in range(3)]
    assert attempts == [1, 2, 3]
    ready = await next_of(sub, SessionReady)
    assert ready.session_id == "s4"
    assert client.attempt == 0

    last.drop()
    again = await next_of(sub, Reconnecting)
    assert again.attempt == 1
    await next_of(sub, SessionReady)

    await client.stop()


@pytest.mark.asyncio
async def test_exhaustion_publishes_terminal_disconnect():
    first = FakeTransport()
    connector = FakeConnector([
        first,
        FakeTransport(on_session_update="close"),
        FakeTransport(on_session_update="close"),
    ])
    client = make_client(connector, max_attempts=2)
    sub = client.subscribe()
    await client.connect()

    first.drop()
    gone = await next_of(sub, Disconnected)

    assert gone.exhausted is True
    assert gone.attempts == 2
    assert client.state is SessionState.TERMINATED
    assert await sub.next(timeout=1) is None

    # Already terminated: stop is a no-op
    await client.stop()
    assert client.state is SessionState.TERMINATED


@pytest.mark.asyncio
async def test_frames_queued_across_reconnect_keep_their_order():
    first = FakeTransport()
    second = FakeTransport()
    client = make_client(FakeConnector([first, second]))
    sub = client.subscribe()
    await client.connect()
    await next_of(sub, SessionReady)

    first.drop()
    for i in (1, 2, 3):
        assert await client.queue_audio(frame(i)) is True

    await next_of(sub, SessionReady)
    await wait_until(lambda: client.pending_frames == 0)

    assert [base64.b64decode(a)[0] for a in second.sent_audio()] == [1, 2, 3]
    assert first.sent_audio() == []

    await client.stop()


# ---------------------------------------------------------------------
# Stop
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_stop_is_idempotent_and_closes_transport_once():
    transport = FakeTransport()
    client = make_client(FakeConnector([transport]))
    sub = client.subscribe()
    await client.connect()

    await client.stop()
    await client.stop()

    assert transport.close_calls == 1
    assert client.state is SessionState.TERMINATED
    assert await client.send_audio(frame(1)) is False
    assert await client.queue_audio(frame(2)) is False

    gone = await next_of(sub, Disconnected)
    assert gone.reason == "stopped"
    assert gone.exhausted is False
    assert await sub.next(timeout=1) is None

    with pytest.raises(SessionClosedError):
        await client.connect()


@pytest.mark.asyncio
async def test_stop_cancels_reconnect_wait():
    first = FakeTransport()
    connector = FakeConnector([first, FakeTransport()])
    client = make_client(connector, base_delay_ms=10_000)
    sub = client.subscribe()
    await client.connect()

    first.drop()
    await next_of(sub, Reconnecting)
    assert client.state is SessionState.RECONNECTING

    await asyncio.wait_for(client.stop(), timeout=1)

    assert client.state is SessionState.TERMINATED
    assert len(connector.calls) == 1
    gone = await next_of(sub, Disconnected)
    assert gone.reason == "stopped"


@pytest.mark.asyncio
async def test_stop_while_reconnect_is_opening_abandons_the_open():
    first = FakeTransport()
    second = FakeTransport()
    connector = GatedConnector([first, second], gated_call=2)
    client = make_client(connector)
    sub = client.subscribe()
    await client.connect()

    first.drop()
    await next_of(sub, Reconnecting)
    await wait_until(lambda: connector.waiting)

    await asyncio.wait_for(client.stop(), timeout=1)
    connector.gate.set()
    await asyncio.sleep(0.01)

    assert client.state is SessionState.TERMINATED
    assert connector.opened == [first]
    assert second.sent == []


@pytest.mark.asyncio
async def test_transport_opened_while_stopping_is_closed():
    first = FakeTransport()
    second = FakeTransport()
    connector = GatedConnector([first, second], gated_call=2, finish_on_cancel=True)
    client = make_client(connector)
    sub = client.subscribe()
    await client.connect()

    first.drop()
    await next_of(sub, Reconnecting)
    await wait_until(lambda: connector.waiting)

    await asyncio.wait_for(client.stop(), timeout=1)

    assert client.state is SessionState.TERMINATED
    assert connector.opened == [first, second]
    assert second.close_calls == 1
    assert second.sent == []


@pytest.mark.asyncio
async def test_stop_during_connect():
    transport = FakeTransport(on_session_update="ignore")
    client = make_client(FakeConnector([transport]), connect_timeout_s=5)

    connecting = asyncio.create_task(client.connect())
    await wait_until(lambda: client.state is SessionState.INITIALIZING)
    await client.stop()

    with pytest.raises(SessionClosedError):
        await connecting
    assert transport.close_calls == 1
    assert client.state is SessionState.TERMINATED


@pytest.mark.asyncio
async def test_subscribe_after_stop_is_closed():
    client = make_client(FakeConnector([]))
    await client.stop()

    sub = client.subscribe()
    assert await sub.next(timeout=1) is None


# ---------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_from_config_uses_configured_url_and_key():
    transport = FakeTransport()
    connector = FakeConnector([transport])
    config = AppConfig(
        openai_api_key="sk-from-env",
        realtime_url="ws://override/realtime",
        instructions="Translate to English.",
    )

    client = SessionClient.from_config(config, transport_factory=connector)
    await client.connect()

    url, headers = connector.calls[0]
    assert url == "ws://override/realtime"
    assert headers["Authorization"] == "Bearer sk-from-env"
    assert transport.sent[0]["session"]["instructions"] == "Translate to English."

    await client.stop()


def test_from_config_requires_api_key():
    with pytest.raises(ConfigError):
        SessionClient.from_config(AppConfig(openai_api_key=None))
