"""
Realtime translation session client.

Owns (exclusively):
- the WebSocket transport handle
- the SessionState machine and the reconnect attempt counter
- the bounded pending-frame queue
- the subscriber list for event delivery

State machine:

    DISCONNECTED --connect()--> CONNECTING --open--> CONNECTED
    CONNECTED --send session.update--> INITIALIZING
    INITIALIZING --session.created--> READY          (attempt reset to 0)
    CONNECTING/CONNECTED/INITIALIZING/READY --transport lost-->
        should_retry(attempt + 1) ? RECONNECTING --delay--> CONNECTING
                                  : TERMINATED (Disconnected event)
    any --stop()--> TERMINATED                      (absorbing)

Concurrency model:
- One reader task per connection decodes and dispatches inbound frames.
  Dispatch only calls put_nowait on subscriber queues, never blocks.
- All writes go through a single asyncio.Lock (single-writer discipline),
  so audio frames reach the transport in call order.
- One supervisor task per session watches the reader and drives reconnects.
  The reconnect wait is a wait on the stop event, so stop() cancels it.

Non-responsibilities:
- No audio capture, transcoding or playback
- No frame cutting (ChunkBuffer belongs to the producer pipeline)
- No presentation of events
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Mapping,
    Protocol,
    Tuple,
    TypeVar,
    assert_never,
)

from websockets.asyncio.client import connect as ws_connect

from realtime_translator.audio.frames import AudioFrame
from realtime_translator.audio.queues import BackpressurePolicy, PendingFrameQueue
from realtime_translator.config import AppConfig
from realtime_translator.observability.logger import log_event
from realtime_translator.protocol.codec import CodecError, MessageCodec
from realtime_translator.protocol.commands import (
    AppendAudio,
    Command,
    CommitAudio,
    CreateResponse,
    SessionConfig,
    SessionSettings,
)
from realtime_translator.protocol.events import (
    ApiError,
    AudioDelta,
    Disconnected,
    Event,
    EventType,
    InboundEvent,
    InputTranscriptDone,
    Reconnecting,
    ResponseComplete,
    SessionCreated,
    SessionReady,
    SessionUpdated,
    TextDelta,
    TranscriptDelta,
    TranscriptDone,
    TranslationDone,
)
from realtime_translator.session.errors import (
    ReconnectExhausted,
    SessionClosedError,
    SessionConnectionError,
    SessionTimeoutError,
    TransportClosedError,
)
from realtime_translator.session.reconnect import ReconnectPolicy
from realtime_translator.session.state import SessionState
from realtime_translator.session.subscription import EventSubscription
from realtime_translator.spec import (
    CONNECT_TIMEOUT_S,
    PENDING_QUEUE_MAX_FRAMES,
    REALTIME_BETA_HEADER,
    WS_MAX_MESSAGE_BYTES,
)

T = TypeVar("T")


class Transport(Protocol):
    """The subset of a websockets ClientConnection the session uses."""

    async def send(self, message: str) -> None: ...

    async def close(self) -> None: ...

    def __aiter__(self) -> AsyncIterator[str | bytes]: ...


TransportFactory = Callable[[str, Mapping[str, str]], Awaitable[Transport]]


async def open_websocket(url: str, headers: Mapping[str, str]) -> Transport:
    """Default transport factory: websockets asyncio client."""
    return await ws_connect(
        url,
        additional_headers=dict(headers),
        max_size=WS_MAX_MESSAGE_BYTES,
    )


def _now_ms() -> int:
    return int(time.time() * 1000)


class SessionClient:
    """
    One client == one translation session (possibly spanning several
    transport connections through reconnects).
    """

    def __init__(
        self,
        *,
        api_key: str,
        url: str,
        settings: SessionSettings | None = None,
        policy: ReconnectPolicy | None = None,
        connect_timeout_s: float = CONNECT_TIMEOUT_S,
        pending_max_frames: int = PENDING_QUEUE_MAX_FRAMES,
        backpressure: BackpressurePolicy = BackpressurePolicy.DROP_OLDEST,
        codec: MessageCodec | None = None,
        transport_factory: TransportFactory = open_websocket,
    ) -> None:
        if connect_timeout_s <= 0:
            raise ValueError("connect_timeout_s must be > 0")

        self._api_key = api_key
        self._url = url
        self._settings = settings if settings is not None else SessionSettings()
        self._policy = policy if policy is not None else ReconnectPolicy()
        self._connect_timeout_s = connect_timeout_s
        self._codec = codec if codec is not None else MessageCodec()
        self._transport_factory = transport_factory

        self._state: SessionState = SessionState.DISCONNECTED
        self._attempt: int = 0
        self._session_id: str | None = None

        self._ws: Transport | None = None
        self._recv_task: asyncio.Task[str] | None = None
        self._supervisor_task: asyncio.Task[None] | None = None
        self._flush_task: asyncio.Task[None] | None = None

        self._ready = asyncio.Event()
        self._stop_event = asyncio.Event()
        self._space = asyncio.Event()
        self._space.set()
        self._write_lock = asyncio.Lock()
        self._stopped: bool = False
        self._exhausted: bool = False

        self._pending = PendingFrameQueue(
            max_frames=pending_max_frames,
            policy=backpressure,
        )
        self._subscribers: list[EventSubscription] = []

    # -------------------------------------------------------------------------
    # Construction helpers
    # -------------------------------------------------------------------------

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        *,
        settings: SessionSettings | None = None,
        transport_factory: TransportFactory = open_websocket,
    ) -> SessionClient:
        """
        Build a client from AppConfig.

        Raises:
            ConfigError if the API key is missing.
            ValueError if the backpressure policy name is unknown.
        """
        if settings is None:
            settings = SessionSettings(instructions=config.instructions)
        return cls(
            api_key=config.require_api_key(),
            url=config.resolved_realtime_url,
            settings=settings,
            policy=ReconnectPolicy(
                base_delay_ms=config.reconnect_base_delay_ms,
                max_attempts=config.reconnect_max_attempts,
            ),
            connect_timeout_s=config.connect_timeout_s,
            pending_max_frames=config.pending_queue_max_frames,
            backpressure=BackpressurePolicy.parse(config.backpressure_policy),
            transport_factory=transport_factory,
        )

    # -------------------------------------------------------------------------
    # Read-only views
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def attempt(self) -> int:
        """Consecutive reconnect attempts since the last READY."""
        return self._attempt

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def is_ready(self) -> bool:
        return self._state is SessionState.READY

    @property
    def pending_frames(self) -> int:
        return len(self._pending)

    def log_context(self) -> dict[str, Any]:
        """Standard logging context for this session."""
        return {
            "session_id": self._session_id,
            "state": self._state.value,
            "attempt": self._attempt,
        }

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def subscribe(self) -> EventSubscription:
        """
        Register a new consumer.

        Subscribers only see events published after they subscribe.
        Subscribing to a terminated session yields a closed stream.
        """
        sub = EventSubscription()
        if self._state is SessionState.TERMINATED:
            sub.close()
            return sub
        self._subscribers.append(sub)
        return sub

    def _publish(self, event: Event) -> None:
        for sub in self._subscribers:
            sub.publish(event)

    def _close_subscriptions(self) -> None:
        for sub in self._subscribers:
            sub.close()
        self._subscribers.clear()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        """
        Establish the session and return once READY.

        Any failure to reach READY runs reconnect evaluation, as a loss
        after READY does.

        Raises:
            ReconnectExhausted (chained to the first failure) if the retry
                budget ran out before READY.
            SessionClosedError if stop() was called before or during connect.
        """
        if self._stopped:
            raise SessionClosedError("session was stopped")

        if self._state is not SessionState.DISCONNECTED:
            log_event({
                "event_type": "connect_ignored",
                **self.log_context(),
            }, level="warning")
            return

        try:
            await self._establish()
        except (SessionConnectionError, SessionTimeoutError) as e:
            # Any failure before READY is a connection loss
            if not await self._reconnect(reason=str(e)):
                if self._exhausted:
                    raise ReconnectExhausted(
                        f"gave up after {self._attempt} reconnect attempts: {e}"
                    ) from e
                raise SessionClosedError("session stopped while reconnecting") from e

        self._supervisor_task = asyncio.create_task(self._supervise())

    async def stop(self) -> None:
        """
        Force TERMINATED and release the transport.

        Idempotent. Safe to call concurrently with an in-flight connect(),
        reconnect wait, or send.
        """
        if self._stopped:
            return
        self._stopped = True
        self._stop_event.set()
        self._space.set()  # release producers blocked on backpressure

        self._set_state(SessionState.TERMINATED, reason="stopped")

        current = asyncio.current_task()
        for task in (self._supervisor_task, self._flush_task):
            if task is not None and task is not current and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._supervisor_task = None
        self._flush_task = None

        await self._drop_connection()
        self._discard_pending(reason="stopped")

        self._publish(
            Disconnected(
                event_type=EventType.DISCONNECTED,
                ts_ms=_now_ms(),
                reason="stopped",
                attempts=self._attempt,
                exhausted=False,
            )
        )
        self._close_subscriptions()

    # -------------------------------------------------------------------------
    # Outbound operations
    # -------------------------------------------------------------------------

    async def send_audio(self, frame: AudioFrame) -> bool:
        """
        Send one frame now.

        Only accepted while READY; otherwise the frame is logged and
        dropped. Frames are written in call order; anything already in
        the pending queue goes first.

        Returns:
            True if the frame was written to the transport.
        """
        if self._state is not SessionState.READY:
            self._log_drop(frame, reason="not_ready")
            return False

        async with self._write_lock:
            if self._state is not SessionState.READY:
                self._log_drop(frame, reason="not_ready")
                return False
            if not await self._flush_pending_locked():
                self._log_drop(frame, reason="send_failed")
                return False
            if not await self._transmit_locked(frame):
                self._log_drop(frame, reason="send_failed")
                return False
            return True

    async def queue_audio(self, frame: AudioFrame) -> bool:
        """
        Producer path: send when READY, otherwise hold in the bounded
        pending queue until the next READY.

        Full-queue behavior follows the configured BackpressurePolicy;
        BLOCK waits here until space frees up or the session stops.

        Returns:
            True if the frame was accepted (sent or queued).
        """
        while True:
            if self._stopped:
                self._log_drop(frame, reason="terminated")
                return False

            oldest_before = self._pending.drops.oldest
            if self._pending.enqueue(frame):
                if self._pending.drops.oldest > oldest_before:
                    log_event({
                        "event_type": "audio_frame_dropped",
                        "reason": "pending_full_drop_oldest",
                        **self._pending.snapshot(),
                        **self.log_context(),
                    }, level="warning")
                break

            if self._pending.policy is not BackpressurePolicy.BLOCK:
                self._log_drop(frame, reason="pending_full_drop_newest")
                return False

            self._space.clear()
            await self._space.wait()

        if self._state is SessionState.READY:
            async with self._write_lock:
                await self._flush_pending_locked()
        return True

    async def commit_audio(self) -> bool:
        """
        input_audio_buffer.commit. No-op unless READY.

        Pending frames are flushed first so the commit covers them.
        """
        return await self._send_control(CommitAudio(), name="commit_audio")

    async def create_response(self, modalities: Tuple[str, ...] | None = None) -> bool:
        """response.create. No-op unless READY."""
        command = CreateResponse(
            modalities=modalities if modalities is not None else self._settings.modalities
        )
        return await self._send_control(command, name="create_response")

    async def _send_control(self, command: Command, *, name: str) -> bool:
        if self._state is not SessionState.READY:
            log_event({
                "event_type": "command_skipped",
                "command": name,
                "reason": "not_ready",
                **self.log_context(),
            })
            return False

        async with self._write_lock:
            if self._state is not SessionState.READY:
                return False
            if not await self._flush_pending_locked():
                return False
            try:
                await self._write_locked(command)
            except SessionConnectionError as e:
                log_event({
                    "event_type": "command_send_failed",
                    "command": name,
                    "error": str(e),
                    **self.log_context(),
                }, level="warning")
                return False
        return True

    # -------------------------------------------------------------------------
    # Write path (caller holds self._write_lock)
    # -------------------------------------------------------------------------

    async def _write_locked(self, command: Command) -> None:
        ws = self._ws
        if ws is None:
            raise SessionConnectionError("no open transport")
        payload = self._codec.encode(command)
        try:
            await ws.send(payload)
        except Exception as e:  # pylint: disable=broad-exception-caught
            raise SessionConnectionError(f"send failed: {e!r}") from e

    async def _transmit_locked(self, frame: AudioFrame) -> bool:
        try:
            await self._write_locked(AppendAudio.from_pcm(frame.pcm_bytes))
        except SessionConnectionError as e:
            log_event({
                "event_type": "audio_send_failed",
                "sequence_num": frame.sequence_num,
                "error": str(e),
                **self.log_context(),
            }, level="warning")
            return False
        return True

    async def _flush_pending_locked(self) -> bool:
        """
        Send queued frames in FIFO order while READY.

        A frame that fails to send goes back to the head of the queue so
        ordering survives the reconnect that follows.
        """
        while self._state is SessionState.READY:
            frame = self._pending.dequeue()
            if frame is None:
                return True
            self._space.set()
            if not await self._transmit_locked(frame):
                self._pending.push_front(frame)
                return False
        return self._pending.is_empty()

    async def _flush_after_ready(self) -> None:
        async with self._write_lock:
            flushed = len(self._pending)
            if flushed and await self._flush_pending_locked():
                log_event({
                    "event_type": "pending_frames_flushed",
                    "frames": flushed,
                    **self.log_context(),
                })

    # -------------------------------------------------------------------------
    # Connection management
    # -------------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "OpenAI-Beta": REALTIME_BETA_HEADER,
        }

    async def _race_stop(
        self,
        aw: Awaitable[T],
        *,
        timeout: float,
        discard: Callable[[T], Awaitable[None]],
    ) -> T:
        """
        Await `aw` unless stop() or the timeout comes first.

        If `aw` loses, or this call is cancelled, `aw` is cancelled and
        awaited before returning. A result it produced anyway is handed to
        `discard`.

        Raises:
            SessionClosedError if stop() won.
            asyncio.TimeoutError if the timeout won.
        """
        async def _run() -> T:
            return await aw

        task = asyncio.create_task(_run())
        stopper = asyncio.create_task(self._stop_event.wait())
        done: set[asyncio.Future[Any]] = set()
        try:
            done, _ = await asyncio.wait(
                {task, stopper},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
            if task in done:
                return task.result()
        finally:
            stopper.cancel()
            if task not in done:
                await self._abandon(task, discard)

        if stopper in done:
            raise SessionClosedError("session stopped")
        raise asyncio.TimeoutError()

    async def _abandon(
        self,
        task: asyncio.Task[T],
        discard: Callable[[T], Awaitable[None]],
    ) -> None:
        task.cancel()
        try:
            result = await task
        except (asyncio.CancelledError, Exception):  # pylint: disable=broad-exception-caught
            return
        # Finished before the cancel landed
        await discard(result)

    async def _establish(self) -> None:
        """
        Run one CONNECTING -> READY sequence.

        On success the state is READY and a reader task is running.

        Raises:
            SessionConnectionError / TransportClosedError / SessionTimeoutError
            SessionClosedError if stop() intervened.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._connect_timeout_s
        self._ready.clear()
        self._set_state(SessionState.CONNECTING)

        try:
            ws = await self._race_stop(
                self._transport_factory(self._url, self._headers()),
                timeout=self._connect_timeout_s,
                discard=self._close_transport,
            )
        except SessionClosedError:
            raise
        except asyncio.TimeoutError as e:
            self._set_state(SessionState.DISCONNECTED, reason="connect_timeout")
            raise SessionTimeoutError(
                f"transport did not open within {self._connect_timeout_s}s"
            ) from e
        except Exception as e:  # pylint: disable=broad-exception-caught
            self._set_state(SessionState.DISCONNECTED, reason="connect_failed")
            raise SessionConnectionError(f"transport open failed: {e!r}") from e

        if self._stopped:
            await self._close_transport(ws)
            raise SessionClosedError("session stopped while connecting")

        self._ws = ws
        self._set_state(SessionState.CONNECTED)

        async with self._write_lock:
            try:
                await self._write_locked(SessionConfig(settings=self._settings))
            except SessionConnectionError as e:
                await self._drop_connection()
                self._set_state(SessionState.DISCONNECTED, reason="session_config_failed")
                raise TransportClosedError(str(e)) from e

        self._set_state(SessionState.INITIALIZING)
        recv_task = asyncio.create_task(self._recv_loop(ws))
        self._recv_task = recv_task

        remaining = max(0.0, deadline - loop.time())
        ready_waiter = asyncio.create_task(self._ready.wait())
        stop_waiter = asyncio.create_task(self._stop_event.wait())
        try:
            done, _ = await asyncio.wait(
                {ready_waiter, recv_task, stop_waiter},
                timeout=remaining,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            ready_waiter.cancel()
            stop_waiter.cancel()

        if self._stopped:
            raise SessionClosedError("session stopped while initializing")

        if self._ready.is_set():
            return

        await self._drop_connection()
        if recv_task in done:
            reason = recv_task.result() if not recv_task.cancelled() else "cancelled"
            self._set_state(SessionState.DISCONNECTED, reason=reason)
            raise TransportClosedError(f"transport closed during initialization: {reason}")

        self._set_state(SessionState.DISCONNECTED, reason="initialization_timeout")
        raise SessionTimeoutError(
            f"session.created not received within {self._connect_timeout_s}s"
        )

    async def _supervise(self) -> None:
        """
        Watch the active reader; on transport loss run reconnect evaluation.
        """
        while not self._stopped:
            recv_task = self._recv_task
            if recv_task is None:
                return
            await asyncio.wait({recv_task})
            if self._stopped:
                return
            reason = recv_task.result() if not recv_task.cancelled() else "cancelled"

            log_event({
                "event_type": "transport_lost",
                "reason": reason,
                **self.log_context(),
            }, level="warning")
            await self._drop_connection()
            self._set_state(SessionState.DISCONNECTED, reason=reason)

            if not await self._reconnect(reason=reason):
                return

    async def _reconnect(self, *, reason: str) -> bool:
        """
        Retry until READY, budget exhaustion, or stop().

        Returns:
            True once READY again; False if terminated or stopped.
        """
        while True:
            if self._stopped:
                return False

            attempt = self._attempt + 1
            if not self._policy.should_retry(attempt):
                await self._terminate(reason=reason)
                return False

            self._attempt = attempt
            delay_ms = self._policy.next_delay_ms(attempt)
            self._set_state(
                SessionState.RECONNECTING,
                reason=reason,
                delay_ms=delay_ms,
            )
            self._publish(
                Reconnecting(
                    event_type=EventType.RECONNECTING,
                    ts_ms=_now_ms(),
                    attempt=attempt,
                    delay_ms=delay_ms,
                    reason=reason,
                )
            )

            if await self._wait_for_stop(delay_ms / 1000.0):
                return False

            try:
                await self._establish()
                return True
            except SessionClosedError:
                return False
            except (SessionConnectionError, SessionTimeoutError) as e:
                reason = str(e)
                log_event({
                    "event_type": "reconnect_attempt_failed",
                    "error": reason,
                    **self.log_context(),
                }, level="warning")

    async def _wait_for_stop(self, seconds: float) -> bool:
        """
        Cancellable reconnect timer.

        Returns True if stop() fired before the delay elapsed.
        """
        if self._stop_event.is_set():
            return True
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    async def _terminate(self, *, reason: str) -> None:
        """Reconnect budget exhausted: TERMINATED plus terminal Disconnected."""
        self._stopped = True
        self._exhausted = True
        self._stop_event.set()
        self._space.set()

        self._set_state(SessionState.TERMINATED, reason="reconnect_exhausted")
        log_event({
            "event_type": "reconnect_exhausted",
            "last_error": reason,
            "max_attempts": self._policy.max_attempts,
            **self.log_context(),
        }, level="error")

        await self._drop_connection()
        self._discard_pending(reason="reconnect_exhausted")

        self._publish(
            Disconnected(
                event_type=EventType.DISCONNECTED,
                ts_ms=_now_ms(),
                reason=reason,
                attempts=self._attempt,
                exhausted=True,
            )
        )
        self._close_subscriptions()

    async def _drop_connection(self) -> None:
        ws = self._ws
        self._ws = None
        self._ready.clear()

        rt = self._recv_task
        self._recv_task = None
        if rt is not None and not rt.done() and rt is not asyncio.current_task():
            rt.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await rt

        if ws is not None:
            await self._close_transport(ws)

    async def _close_transport(self, ws: Transport) -> None:
        try:
            await ws.close()
        except Exception as e:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "transport_close_failed",
                "error": repr(e),
                **self.log_context(),
            }, level="warning")

    def _discard_pending(self, *, reason: str) -> None:
        dropped = self._pending.clear()
        if dropped:
            log_event({
                "event_type": "pending_frames_discarded",
                "frames": dropped,
                "reason": reason,
                **self.log_context(),
            }, level="warning")

    # -------------------------------------------------------------------------
    # Inbound path
    # -------------------------------------------------------------------------

    async def _recv_loop(self, ws: Transport) -> str:
        """
        Read frames until the transport ends.

        Returns:
            A short reason string describing why the connection ended.
            Never raises (except CancelledError before the first await).
        """
        try:
            async for raw in ws:
                self._handle_raw(raw)
        except asyncio.CancelledError:
            return "cancelled"
        except Exception as e:  # pylint: disable=broad-exception-caught
            return f"recv_failed: {e!r}"
        return "closed_by_peer"

    def _handle_raw(self, raw: str | bytes) -> None:
        try:
            events = self._codec.decode(raw)
        except CodecError as e:
            log_event({
                "event_type": "codec_error",
                "error": str(e),
                **self.log_context(),
            }, level="warning")
            return

        for event in events:
            self._dispatch(event)

    def _dispatch(self, event: InboundEvent) -> None:
        if isinstance(event, SessionCreated):
            self._on_session_created(event)
        elif isinstance(event, ApiError):
            log_event({
                "event_type": "api_error",
                "code": event.code,
                "error_type": event.error_type,
                "message": event.message,
                **self.log_context(),
            }, level="warning")
            self._publish(event)
        elif isinstance(
            event,
            (
                SessionUpdated,
                TextDelta,
                TranscriptDelta,
                TranscriptDone,
                InputTranscriptDone,
                TranslationDone,
                AudioDelta,
                ResponseComplete,
            ),
        ):
            self._publish(event)
        else:
            assert_never(event)

    def _on_session_created(self, event: SessionCreated) -> None:
        self._publish(event)

        if self._state is not SessionState.INITIALIZING:
            log_event({
                "event_type": "session_created_ignored",
                "remote_session_id": event.session_id,
                **self.log_context(),
            })
            return

        self._session_id = event.session_id
        self._attempt = 0
        self._set_state(SessionState.READY)
        self._ready.set()
        self._publish(
            SessionReady(
                event_type=EventType.SESSION_READY,
                ts_ms=_now_ms(),
                session_id=event.session_id,
            )
        )

        if not self._pending.is_empty():
            self._flush_task = asyncio.create_task(self._flush_after_ready())

    # -------------------------------------------------------------------------
    # Observability helpers
    # -------------------------------------------------------------------------

    def _set_state(self, new: SessionState, **context: Any) -> None:
        prev = self._state
        if prev is SessionState.TERMINATED:
            return
        self._state = new
        log_event({
            "event_type": "session_state_transition",
            "from": prev.value,
            "to": new.value,
            **context,
            **self.log_context(),
        }, level="debug" if new is prev else "info")

    def _log_drop(self, frame: AudioFrame, *, reason: str) -> None:
        log_event({
            "event_type": "audio_frame_dropped",
            "sequence_num": frame.sequence_num,
            "bytes": len(frame.pcm_bytes),
            "reason": reason,
            **self.log_context(),
        }, level="debug" if reason == "not_ready" else "warning")
