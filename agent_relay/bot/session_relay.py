"""
Session relay between one client transport and one agent connection.

This module provides the SessionRelay class, which owns everything that lives for the
duration of one client connection: the upstream agent connection, the output buffer
that paces agent audio towards the client, the keep-alive task, and the cleanup logic
that tears both sides down when either one goes away.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from agent_relay.bot.agent_connection import AgentConnection, AgentEvent
from agent_relay.bot.deepgram_agent import DeepgramAgentClient
from agent_relay.bot.output_buffer import OutputBuffer
from agent_relay.config.constants import (
    DEFAULT_FLUSH_WINDOW_MS,
    DEFAULT_KEEPALIVE_INTERVAL,
    LOGGER_NAME,
)
from agent_relay.config.settings import AgentConfig, Settings
from agent_relay.models.agent_schemas import AgentErrorEvent, ConversationTextEvent
from agent_relay.models.conversation import SessionState
from agent_relay.transports.base import ClientTransport

logger = logging.getLogger(LOGGER_NAME)


class SessionRelay:
    """
    Relay for one client session.

    This class handles:
    - Opening the agent connection and sending the configuration once it is ready
    - Forwarding client audio upstream unchanged, once the upstream is ready
    - Coalescing agent audio into one client write per flush window
    - Surfacing transcripts, interruptions and errors to the client transport
    - Tearing everything down exactly once, whichever side ends the session

    All writes to the client go through a single lock so that flushes triggered by
    the window timer and by arriving audio reach the client in upstream order.
    """

    def __init__(
        self,
        transport: ClientTransport,
        connection: AgentConnection,
        config: AgentConfig,
        session_uuid: Optional[str] = None,
        keepalive_interval: float = DEFAULT_KEEPALIVE_INTERVAL,
        flush_window: float = DEFAULT_FLUSH_WINDOW_MS / 1000.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.transport = transport
        self.connection = connection
        self.config = config
        self.session_uuid = session_uuid
        self.keepalive_interval = keepalive_interval
        self.state = SessionState.CREATED
        self.output_buffer = OutputBuffer(flush_window, clock)
        self.dropped_audio_bytes = 0

        self._keepalive_task: Optional[asyncio.Task] = None
        self._flush_timer: Optional[asyncio.TimerHandle] = None
        self._flush_task: Optional[asyncio.Task] = None
        self._start_task: Optional[asyncio.Task] = None
        self._write_lock = asyncio.Lock()
        self._closed = asyncio.Event()
        self._cleanup_started = False

        connection.on(AgentEvent.WELCOME, self.on_upstream_ready)
        connection.on(AgentEvent.SETTINGS_APPLIED, self._on_settings_applied)
        connection.on(AgentEvent.AUDIO, self.on_upstream_audio)
        connection.on(AgentEvent.AGENT_AUDIO_DONE, self.on_utterance_done)
        connection.on(AgentEvent.CONVERSATION_TEXT, self._on_conversation_text)
        connection.on(AgentEvent.USER_STARTED_SPEAKING, self.on_user_started_speaking)
        connection.on(AgentEvent.ERROR, self._on_agent_error)
        connection.on(AgentEvent.CLOSE, self.on_upstream_closed)
        connection.on(AgentEvent.UNHANDLED, self._on_unhandled)

    @property
    def closed(self) -> bool:
        return self.state is SessionState.CLOSED

    async def start(self) -> None:
        """Open the upstream connection; everything after that is event driven."""
        if self.state is not SessionState.CREATED:
            logger.warning(f"Session {self.session_uuid} already started (state: {self.state.value})")
            return

        self.state = SessionState.UPSTREAM_CONNECTING
        logger.info(f"Opening agent connection for session: {self.session_uuid}")
        if not await self.connection.connect():
            await self.on_upstream_error("Failed to connect to agent service")

    def start_in_background(self) -> asyncio.Task:
        """
        Run start() as a task owned by the relay.

        Lets a client read loop keep reading while the agent connection is being
        opened. cleanup() cancels the task if it is still connecting.
        """
        if self._start_task is None:
            self._start_task = asyncio.create_task(self.start())
        return self._start_task

    async def on_upstream_ready(self) -> None:
        """Send the configuration snapshot and start the keep-alive, once per session."""
        if self.state is not SessionState.UPSTREAM_CONNECTING:
            logger.debug(f"Ignoring agent welcome in state {self.state.value}")
            return

        logger.info(f"Configuring agent for session: {self.session_uuid}")
        await self.connection.configure(self.config.to_settings_message())
        self.state = SessionState.UPSTREAM_READY
        self._keepalive_task = asyncio.create_task(self._keepalive_loop())

    async def _on_settings_applied(self) -> None:
        logger.info(f"Agent settings applied for session: {self.session_uuid}")

    async def _keepalive_loop(self) -> None:
        while not self.state.is_terminal:
            await asyncio.sleep(self.keepalive_interval)
            if self.state.is_terminal:
                break
            try:
                await self.connection.keep_alive()
            except Exception as e:
                logger.warning(f"Keep-alive failed for session {self.session_uuid}: {e}")

    async def forward_client_audio(self, audio: bytes) -> None:
        """
        Send client audio upstream unmodified.

        Audio that arrives before the agent is ready (or after teardown started) is
        dropped, not queued.
        """
        if not self.state.accepts_audio:
            self.dropped_audio_bytes += len(audio)
            logger.debug(
                f"Dropping {len(audio)} bytes of client audio in state {self.state.value}"
            )
            return
        self.state = SessionState.STREAMING
        await self.connection.send(audio)

    async def on_upstream_audio(self, audio: bytes) -> None:
        """Buffer agent audio and flush it once the window has elapsed."""
        if self.state.is_terminal:
            return
        # Agent audio ahead of Welcome is buffered but must not open the session for client audio
        if self.state.accepts_audio:
            self.state = SessionState.STREAMING

        if self.output_buffer.append(audio):
            self._arm_flush_timer()
        if self.output_buffer.window_elapsed():
            await self.flush()

    async def on_utterance_done(self) -> None:
        """Flush the rest of the utterance immediately."""
        logger.debug(f"Agent audio done for session: {self.session_uuid}")
        await self.flush()

    async def _on_conversation_text(self, event: ConversationTextEvent) -> None:
        await self.on_transcript(event.role, event.content, event.is_final)

    async def on_transcript(self, role: str, text: str, is_final: bool) -> None:
        if self.state.is_terminal:
            return
        await self._client_write(self.transport.send_transcript, role, text, is_final)

    async def on_user_started_speaking(self) -> None:
        if self.state.is_terminal:
            return
        await self._client_write(self.transport.send_interruption)

    async def _on_agent_error(self, error: AgentErrorEvent) -> None:
        await self.on_upstream_error(error.error_message)

    async def _on_unhandled(self, payload: dict) -> None:
        logger.debug(f"Unhandled agent event for session {self.session_uuid}: {payload.get('type')}")

    async def on_upstream_error(self, message: str) -> None:
        """Report an upstream failure to the client and tear the session down."""
        if self.state.is_terminal:
            return
        logger.error(f"Agent error for session {self.session_uuid}: {message}")
        if self.transport.supports_error_frames:
            try:
                async with self._write_lock:
                    await self.transport.send_error(message)
            except Exception as e:
                logger.warning(f"Could not send error to client: {e}")
        await self.cleanup("agent error")

    async def on_upstream_closed(self) -> None:
        await self.cleanup("agent connection closed")

    def _arm_flush_timer(self) -> None:
        self._disarm_flush_timer()
        loop = asyncio.get_running_loop()
        self._flush_timer = loop.call_later(self.output_buffer.window, self._on_flush_timer)

    def _disarm_flush_timer(self) -> None:
        if self._flush_timer is not None:
            self._flush_timer.cancel()
            self._flush_timer = None

    def _on_flush_timer(self) -> None:
        self._flush_timer = None
        if self.state.is_terminal:
            return
        self._flush_task = asyncio.create_task(self.flush())

    async def flush(self) -> None:
        """Write everything buffered to the client; a failed write ends the session."""
        try:
            await self._write_buffer()
        except Exception as e:
            logger.warning(f"Client write failed for session {self.session_uuid}: {e}")
            await self.cleanup("client write failed")

    async def _write_buffer(self) -> None:
        async with self._write_lock:
            self._disarm_flush_timer()
            audio = self.output_buffer.drain()
            if audio:
                await self.transport.send_audio(audio)

    async def _client_write(self, send: Callable[..., Awaitable[None]], *args) -> None:
        try:
            async with self._write_lock:
                await send(*args)
        except Exception as e:
            logger.warning(f"Client write failed for session {self.session_uuid}: {e}")
            await self.cleanup("client write failed")

    async def cleanup(self, reason: str = "") -> None:
        """
        Tear the session down.

        Idempotent: only the first call has any effect. Errors while flushing or
        closing either side are logged and never raised.
        """
        if self._cleanup_started:
            return
        self._cleanup_started = True
        self.state = SessionState.CLOSING
        logger.info(
            f"Cleaning up session {self.session_uuid}" + (f" ({reason})" if reason else "")
        )

        current = asyncio.current_task()
        for task in (self._start_task, self._keepalive_task, self._flush_task):
            if task is not None and task is not current and not task.done():
                task.cancel()
        self._keepalive_task = None
        self._flush_task = None
        self._disarm_flush_timer()

        try:
            await self._write_buffer()
        except Exception as e:
            logger.warning(f"Could not flush pending audio for session {self.session_uuid}: {e}")

        try:
            await self.transport.close()
        except Exception as e:
            logger.warning(f"Error closing client transport for session {self.session_uuid}: {e}")

        try:
            await self.connection.disconnect()
        except Exception as e:
            logger.warning(f"Error disconnecting agent for session {self.session_uuid}: {e}")

        self.state = SessionState.CLOSED
        self._closed.set()
        logger.info(
            f"Session {self.session_uuid} closed"
            + (f", dropped {self.dropped_audio_bytes} bytes of early audio" if self.dropped_audio_bytes else "")
        )

    async def wait_closed(self) -> None:
        await self._closed.wait()


async def run_until_closed(pump: Awaitable[None], closed: Awaitable[None]) -> None:
    """
    Run a client receive loop until it ends or the session closes.

    Whichever finishes first cancels the other, so a session torn down from the
    upstream side does not leave the client read loop waiting forever.

    Args:
        pump: Coroutine reading from the client and feeding the relay
        closed: Awaitable that completes when the session has closed
    """
    pump_task = asyncio.ensure_future(pump)
    closed_task = asyncio.ensure_future(closed)
    try:
        await asyncio.wait({pump_task, closed_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (pump_task, closed_task):
            if not task.done():
                task.cancel()
        await asyncio.gather(pump_task, closed_task, return_exceptions=True)
    if not pump_task.cancelled() and pump_task.exception() is not None:
        logger.error(f"Client receive loop failed: {pump_task.exception()}")


async def close_session(relay: SessionRelay, reason: str) -> None:
    """
    Run relay.cleanup() to completion, even from a task that is being cancelled.

    Cleanup runs in its own task behind asyncio.shield. If the caller is cancelled
    (server shutdown, or the ASGI server dropping the connection task) it keeps
    waiting for cleanup to finish and re-raises the cancellation afterwards.
    """
    cleanup = asyncio.ensure_future(relay.cleanup(reason))
    cancelled = False
    while not cleanup.done():
        try:
            await asyncio.shield(cleanup)
        except asyncio.CancelledError:
            cancelled = True
    if cancelled:
        raise asyncio.CancelledError()


class SessionRelayFactory:
    """Builds a SessionRelay (and its agent connection) from the process settings."""

    def __init__(
        self,
        settings: Settings,
        connection_factory: Optional[Callable[[], AgentConnection]] = None,
    ):
        self.settings = settings
        self.connection_factory = connection_factory or self._deepgram_connection

    def _deepgram_connection(self) -> AgentConnection:
        return DeepgramAgentClient(self.settings.api_key, self.settings.agent_url)

    def create(self, transport: ClientTransport, session_uuid: Optional[str] = None) -> SessionRelay:
        return SessionRelay(
            transport,
            self.connection_factory(),
            self.settings.agent,
            session_uuid=session_uuid,
            keepalive_interval=self.settings.keepalive_interval,
            flush_window=self.settings.flush_window,
        )
