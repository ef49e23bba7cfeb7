"""
Live session engine shared by the listen, speak and agent WebSocket endpoints.

One session owns one WebSocket connection and four cooperating tasks:

- writer: the only task that writes to the socket; it drains a FIFO of
  ``(frame, future)`` pairs so concurrent senders never interleave frames,
  and each sender learns the outcome of its own write through the future.
- receiver: reads frames, decodes them into events and queues them for the
  dispatcher in arrival order.
- dispatcher: hands events to the caller's sink one at a time.
- keepalive: enqueues ``{"type": "KeepAlive"}`` every ``keepalive_interval``.

The event queue is bounded by ``max_pending_events``. When it is full the
receiver waits, which stops socket reads and lets TCP flow control slow the
server down; nothing is dropped.
"""

import asyncio
import uuid
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Type, Union

from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode
from pydantic import BaseModel
from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK, InvalidHandshake, InvalidURI

from src.deepgram_client.config import ClientConfig
from src.deepgram_client.errors import ArgumentError, RequestTimeoutError, WebSocketError
from src.deepgram_client.event_handler import EventSink, deliver
from src.deepgram_client.events import (
    AudioEvent,
    ConnectedEvent,
    DecodeErrorEvent,
    DisconnectedEvent,
    ErrorEvent,
    EventRegistry,
    LiveEvent,
    UnhandledEvent,
    decode_text_frame,
)
from src.deepgram_client.messages import (
    ClientMessage,
    Close,
    Command,
    Frame,
    KeepAlive,
    encode_frame,
)
from src.deepgram_client.utils import build_query_params, to_options
from src.deepgram_client.version import __version__
from src.enums.monitoring import SpanAttr
from src.enums.session_state import SessionKind, SessionState
from utils.ml_logging import get_logger

logger = get_logger(__name__)

KEEPALIVE_INTERVAL = 30.0
DEFAULT_MAX_PENDING_EVENTS = 1000
CLOSE_FRAME_TIMEOUT = 5.0

_STOP = object()


class LiveSession:
    """
    Base class for one duplex session. Subclasses declare the endpoint, the
    inbound vocabulary and the accepted outbound commands.
    """

    kind: ClassVar[SessionKind]
    events: ClassVar[EventRegistry]
    close_message: ClassVar[Type[ClientMessage]] = Close
    accepted_messages: ClassVar[Tuple[Type[ClientMessage], ...]] = (KeepAlive,)
    accepts_audio: ClassVar[bool] = False
    forwards_audio: ClassVar[bool] = False
    uses_query_options: ClassVar[bool] = True

    def __init__(
        self,
        config: ClientConfig,
        sink: EventSink,
        options: Union[Mapping[str, Any], BaseModel, None] = None,
        *,
        keepalive_interval: float = KEEPALIVE_INTERVAL,
        max_pending_events: int = DEFAULT_MAX_PENDING_EVENTS,
    ) -> None:
        if not isinstance(config, ClientConfig):
            raise ArgumentError("Invalid config", "ClientConfig", type(config).__name__)
        if sink is None or not callable(sink):
            raise ArgumentError("An event sink is required", "callable", type(sink).__name__)
        if keepalive_interval <= 0:
            raise ArgumentError("keepalive_interval must be positive", "> 0", str(keepalive_interval))
        if max_pending_events < 1:
            raise ArgumentError("max_pending_events must be at least 1", ">= 1", str(max_pending_events))

        self.config = config
        self.sink = sink
        self.options: Dict[str, Any] = to_options(options)
        self.keepalive_interval = float(keepalive_interval)
        self.session_id = str(uuid.uuid4())
        self.state = SessionState.IDLE
        self.close_reason: Optional[str] = None

        self._ws = None
        self._outbox: asyncio.Queue = asyncio.Queue()
        self._events: asyncio.Queue = asyncio.Queue()
        self._event_slots = asyncio.Semaphore(max_pending_events)
        self._writer_task: Optional[asyncio.Task] = None
        self._receiver_task: Optional[asyncio.Task] = None
        self._dispatcher_task: Optional[asyncio.Task] = None
        self._keepalive_task: Optional[asyncio.Task] = None
        self._close_started = False
        self._terminated = False
        self._closed = asyncio.Event()
        self._tracer = trace.get_tracer(__name__)

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #
    @property
    def url(self) -> str:
        params = build_query_params(self.options) if self.uses_query_options else None
        return self.config.websocket_url(self.kind.value, params)

    @property
    def headers(self) -> Dict[str, str]:
        return self.config.websocket_headers()

    @property
    def is_connected(self) -> bool:
        return self.state.is_open

    @property
    def _log_extra(self) -> Dict[str, str]:
        return {"session_id": self.session_id}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.session_id}, state={self.state})"

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #
    async def start(self) -> "LiveSession":
        """
        Perform the handshake and start the session tasks.

        Returns:
            LiveSession: ``self``, connected.

        Raises:
            WebSocketError: If the session was already started or the handshake failed.
            RequestTimeoutError: If the handshake exceeded ``config.timeout``.
        """
        if self.state is not SessionState.IDLE:
            raise WebSocketError(f"Session is {self.state}; create a new session to reconnect")

        self.state = SessionState.CONNECTING
        url = self.url
        logger.info(f"Connecting {self.kind} session to {url}", extra=self._log_extra)

        with self._tracer.start_as_current_span(
            f"deepgram.{self.kind}.connect", kind=SpanKind.CLIENT
        ) as span:
            span.set_attribute(SpanAttr.SESSION_ID.value, self.session_id)
            span.set_attribute(SpanAttr.SESSION_KIND.value, self.kind.value)
            span.set_attribute(SpanAttr.PEER_SERVICE.value, "deepgram")
            span.set_attribute(SpanAttr.SERVICE_VERSION.value, __version__)
            try:
                self._ws = await connect(
                    url,
                    additional_headers=self.headers,
                    open_timeout=self.config.timeout,
                )
            except Exception as e:
                error = self._handshake_error(e)
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(error)))
                self.state = SessionState.CLOSED
                self.close_reason = str(error)
                self._closed.set()
                logger.error(f"Failed to connect {self.kind} session: {error}", extra=self._log_extra)
                raise error from e

            if self._close_started:
                span.set_status(Status(StatusCode.ERROR, "closed during handshake"))
                await self._discard_socket()
                logger.info(f"{self.kind} session closed during handshake", extra=self._log_extra)
                raise WebSocketError("Session closed during handshake", reason=self.close_reason)

        self._writer_task = asyncio.create_task(
            self._writer_loop(), name=f"{self.kind}-writer-{self.session_id}"
        )
        self._dispatcher_task = asyncio.create_task(
            self._dispatch_loop(), name=f"{self.kind}-dispatcher-{self.session_id}"
        )

        # Queued before the state flips so no caller command can overtake them
        initial = [self._enqueue(frame) for frame in self._initial_frames()]
        self.state = SessionState.CONNECTED
        await self._emit(ConnectedEvent(url=url))

        self._receiver_task = asyncio.create_task(
            self._receive_loop(), name=f"{self.kind}-receiver-{self.session_id}"
        )
        self._keepalive_task = asyncio.create_task(
            self._keepalive_loop(), name=f"{self.kind}-keepalive-{self.session_id}"
        )

        try:
            for future in initial:
                await future
        except WebSocketError as e:
            logger.error(f"Initial frame rejected on {self.kind} session: {e}", extra=self._log_extra)
            await self._terminate(f"initial frame failed: {e}", code=None, initiator="transport")
            raise

        logger.keyinfo(f"{self.kind} session {self.session_id} connected", extra=self._log_extra)
        return self

    async def close(self, reason: str = "client closed") -> None:
        """
        Close the session. Safe to call any number of times.

        Cancels the keepalive first, sends the endpoint's close frame on a best
        effort basis, closes the socket and delivers one ``DisconnectedEvent``.
        """
        if self._close_started or self.state.is_terminal:
            return
        self._close_started = True

        if self.state in (SessionState.IDLE, SessionState.CONNECTING):
            # nothing was delivered yet; start() drops a socket that arrives late
            self.state = SessionState.CLOSED
            self.close_reason = reason
            self._closed.set()
            return

        self._cancel_keepalive()
        was_connected = self.state is SessionState.CONNECTED
        self.state = SessionState.CLOSING
        logger.info(f"Closing {self.kind} session: {reason}", extra=self._log_extra)

        if was_connected:
            try:
                future = self._enqueue(encode_frame(self.close_message()))
                await asyncio.wait_for(future, timeout=min(self.config.timeout, CLOSE_FRAME_TIMEOUT))
            except (WebSocketError, asyncio.TimeoutError) as e:
                logger.warning(
                    f"Could not send {self.close_message.__name__} frame: {e}", extra=self._log_extra
                )

        await self._terminate(reason, code=1000, initiator="client")

    async def wait_closed(self) -> None:
        """Wait until the terminal event has been delivered."""
        await self._closed.wait()

    async def __aenter__(self) -> "LiveSession":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ------------------------------------------------------------------ #
    # Commands
    # ------------------------------------------------------------------ #
    async def send(self, command: Command) -> None:
        """
        Write one command as a single frame.

        Raises:
            ArgumentError: If this endpoint does not accept the command.
            WebSocketError: If the session is not connected or the write failed.
        """
        self._check_command(command)
        if not self.is_connected:
            raise WebSocketError(f"Cannot send on a {self.state} {self.kind} session")
        await self._write(encode_frame(command))

    async def keep_alive(self) -> None:
        await self.send(KeepAlive())

    def _check_command(self, command: Command) -> None:
        if isinstance(command, (bytes, bytearray, memoryview)):
            if not self.accepts_audio:
                raise ArgumentError(f"{self.kind} sessions do not accept audio", "text command", "audio bytes")
            return
        if isinstance(command, ClientMessage):
            if not isinstance(command, self.accepted_messages):
                expected = ", ".join(cls.__name__ for cls in self.accepted_messages)
                raise ArgumentError(f"Command not accepted by {self.kind} sessions", expected, type(command).__name__)
            return
        raise ArgumentError("Unsupported command", "audio bytes or ClientMessage", type(command).__name__)

    def _initial_frames(self) -> List[Frame]:
        return []

    # ------------------------------------------------------------------ #
    # Writer
    # ------------------------------------------------------------------ #
    def _enqueue(self, frame: Frame) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        self._outbox.put_nowait((frame, future))
        return future

    async def _write(self, frame: Frame) -> None:
        await self._enqueue(frame)

    async def _writer_loop(self) -> None:
        while True:
            frame, future = await self._outbox.get()
            if future.done():
                # sender gave up (cancelled) before its turn
                continue
            try:
                await self._ws.send(frame)
            except ConnectionClosed as e:
                code, reason = _close_details(e)
                future.set_exception(WebSocketError("Connection closed while sending", reason=reason, code=code))
            except Exception as e:
                logger.error(f"Failed to send frame: {e}", extra=self._log_extra)
                future.set_exception(WebSocketError("Failed to send frame", reason=str(e)))
            else:
                future.set_result(None)
            finally:
                if not future.done():
                    future.set_exception(WebSocketError("Session closed before the frame was sent"))

    def _fail_pending(self, reason: str) -> None:
        while not self._outbox.empty():
            _, future = self._outbox.get_nowait()
            if not future.done():
                future.set_exception(WebSocketError("Session closed before the frame was sent", reason=reason))

    # ------------------------------------------------------------------ #
    # Receiver / dispatcher
    # ------------------------------------------------------------------ #
    async def _receive_loop(self) -> None:
        reason, code, initiator = "connection closed", None, "server"
        try:
            while True:
                message = await self._ws.recv()
                event = self._decode(message)
                if event is not None:
                    await self._emit(event)
        except ConnectionClosed as e:
            code, close_reason = _close_details(e)
            if isinstance(e, ConnectionClosedOK):
                reason = close_reason or "normal closure"
            else:
                reason = close_reason or "abnormal closure"
                initiator = "transport"
        except Exception as e:
            logger.error(f"Receive loop failed: {e}", exc_info=True, extra=self._log_extra)
            reason, initiator = f"network error: {e}", "transport"

        if self.state is SessionState.CLOSING:
            # close() owns the teardown
            return
        logger.info(f"{self.kind} session disconnected by {initiator}: {reason}", extra=self._log_extra)
        await self._terminate(reason, code=code, initiator=initiator)

    def _decode(self, message: Union[str, bytes]) -> Optional[LiveEvent]:
        if isinstance(message, (bytes, bytearray, memoryview)):
            if self.forwards_audio:
                return AudioEvent(data=bytes(message))
            logger.debug(f"Ignoring {len(message)} byte binary frame", extra=self._log_extra)
            return None

        event = decode_text_frame(message, self.events)
        if isinstance(event, DecodeErrorEvent):
            logger.error(f"Failed to parse WebSocket message: {event.error}", extra=self._log_extra)
        elif isinstance(event, ErrorEvent):
            logger.warning(f"Server error event: {event.text}", extra=self._log_extra)
        elif isinstance(event, UnhandledEvent):
            logger.debug(f"Unhandled message type: {event.payload_type}", extra=self._log_extra)
        return event

    async def _emit(self, event: LiveEvent) -> None:
        await self._event_slots.acquire()
        self._events.put_nowait((event, True))

    async def _dispatch_loop(self) -> None:
        try:
            while True:
                event, counted = await self._events.get()
                if event is _STOP:
                    break
                try:
                    await deliver(self.sink, event)
                except Exception as e:
                    logger.error(f"Event sink failed on {event.type}: {e}", exc_info=True, extra=self._log_extra)
                finally:
                    if counted:
                        self._event_slots.release()
        finally:
            self._closed.set()

    # ------------------------------------------------------------------ #
    # Teardown
    # ------------------------------------------------------------------ #
    def _cancel_keepalive(self) -> None:
        if self._keepalive_task and not self._keepalive_task.done():
            self._keepalive_task.cancel()
        self._keepalive_task = None

    async def _keepalive_loop(self) -> None:
        frame = encode_frame(KeepAlive())
        while self.is_connected:
            await asyncio.sleep(self.keepalive_interval)
            if not self.is_connected:
                break
            try:
                await self._write(frame)
                logger.debug("KeepAlive sent", extra=self._log_extra)
            except WebSocketError as e:
                logger.warning(f"KeepAlive failed, stopping keepalive: {e}", extra=self._log_extra)
                break

    async def _terminate(self, reason: str, code: Optional[int], initiator: str) -> None:
        if self._terminated:
            return
        self._terminated = True
        self._cancel_keepalive()
        self.state = SessionState.CLOSED
        self.close_reason = reason

        current = asyncio.current_task()
        stopping = [
            task
            for task in (self._receiver_task, self._writer_task)
            if task is not None and task is not current and not task.done()
        ]
        for task in stopping:
            task.cancel()
        if stopping:
            await asyncio.gather(*stopping, return_exceptions=True)
        self._fail_pending(reason)
        await self._discard_socket()

        self._events.put_nowait((DisconnectedEvent(reason=reason, code=code, initiator=initiator), False))
        self._events.put_nowait((_STOP, False))
        logger.keyinfo(f"{self.kind} session {self.session_id} closed ({initiator}): {reason}", extra=self._log_extra)

        if self._dispatcher_task is not None and self._dispatcher_task is not current:
            await asyncio.gather(self._dispatcher_task, return_exceptions=True)

    async def _discard_socket(self) -> None:
        if self._ws is None:
            return
        try:
            await self._ws.close()
        except Exception as e:
            logger.debug(f"Ignoring error while closing socket: {e}", extra=self._log_extra)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _handshake_error(self, exc: Exception) -> Exception:
        if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
            return RequestTimeoutError(f"Timed out connecting to {self.kind} endpoint", timeout=self.config.timeout)
        if isinstance(exc, (InvalidHandshake, InvalidURI, OSError)):
            return WebSocketError(f"Failed to connect to {self.kind} endpoint", reason=str(exc))
        return WebSocketError(f"Failed to connect to {self.kind} endpoint", reason=repr(exc))


def _close_details(exc: ConnectionClosed) -> Tuple[Optional[int], Optional[str]]:
    close_frame = exc.rcvd or exc.sent
    if close_frame is None:
        return None, None
    return close_frame.code, close_frame.reason or None
