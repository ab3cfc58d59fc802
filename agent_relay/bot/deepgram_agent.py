import asyncio
import json
import logging
import time
import traceback
from typing import Optional

import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedError, ConnectionClosedOK

from agent_relay.bot.agent_connection import AgentConnection, AgentEvent
from agent_relay.config.constants import (
    AGENT_MESSAGE_AGENT_AUDIO_DONE,
    AGENT_MESSAGE_CONVERSATION_TEXT,
    AGENT_MESSAGE_ERROR,
    AGENT_MESSAGE_SETTINGS_APPLIED,
    AGENT_MESSAGE_USER_STARTED_SPEAKING,
    AGENT_MESSAGE_WELCOME,
    DEFAULT_AGENT_URL,
    LOGGER_NAME,
)
from agent_relay.models.agent_schemas import (
    AgentErrorEvent,
    AgentSettingsMessage,
    ConversationTextEvent,
    KeepAliveMessage,
)

logger = logging.getLogger(LOGGER_NAME)

CONNECTION_TIMEOUT = 30  # seconds

# WebSocket configuration for low latency
WS_MAX_SIZE = 16 * 1024 * 1024  # 16MB - large enough for audio chunks
WS_MAX_QUEUE = 32

# JSON message types that map onto a dedicated event
EVENT_BY_MESSAGE_TYPE = {
    AGENT_MESSAGE_WELCOME: AgentEvent.WELCOME,
    AGENT_MESSAGE_SETTINGS_APPLIED: AgentEvent.SETTINGS_APPLIED,
    AGENT_MESSAGE_CONVERSATION_TEXT: AgentEvent.CONVERSATION_TEXT,
    AGENT_MESSAGE_AGENT_AUDIO_DONE: AgentEvent.AGENT_AUDIO_DONE,
    AGENT_MESSAGE_USER_STARTED_SPEAKING: AgentEvent.USER_STARTED_SPEAKING,
    AGENT_MESSAGE_ERROR: AgentEvent.ERROR,
}


class DeepgramAgentClient(AgentConnection):
    """
    Client for the Deepgram Voice Agent API over WebSocket.

    Binary frames from the agent are audio; text frames are JSON events. There is no
    reconnection: once the socket closes the client emits CLOSE and stays closed.
    """

    def __init__(self, api_key: str, url: str = DEFAULT_AGENT_URL):
        super().__init__()
        self.api_key = api_key
        self.url = url
        self.ws = None
        self._recv_task: Optional[asyncio.Task] = None
        self._connection_active = False
        self._is_closing = False
        self._close_emitted = False

    @property
    def is_open(self) -> bool:
        return self._connection_active and not self._is_closing

    async def connect(self) -> bool:
        """
        Connect to the agent endpoint and start the receive loop.

        Returns:
            bool: True if connection was successful, False otherwise
        """
        if self._is_closing:
            logger.warning("Cannot connect - client is closing")
            return False

        headers = {"Authorization": f"Token {self.api_key}"}

        try:
            logger.info(f"Connecting to Deepgram agent at {self.url}")
            connection_start = time.time()
            self.ws = await asyncio.wait_for(
                websockets.connect(
                    self.url,
                    max_size=WS_MAX_SIZE,
                    max_queue=WS_MAX_QUEUE,
                    compression=None,
                    additional_headers=headers,
                ),
                timeout=CONNECTION_TIMEOUT,
            )
            connection_time = time.time() - connection_start
            logger.debug(f"WebSocket connection established in {connection_time:.2f} seconds")
        except asyncio.TimeoutError:
            logger.error(f"Timeout while connecting to Deepgram agent (after {CONNECTION_TIMEOUT}s)")
            return False
        except Exception as e:
            logger.error(f"Failed to connect to Deepgram agent: {e}")
            logger.debug(f"Connection error details: {traceback.format_exc()}")
            return False

        self._connection_active = True
        logger.info("Deepgram agent WebSocket opened")
        await self.emit(AgentEvent.OPEN)
        self._recv_task = asyncio.create_task(self._recv_loop())
        return True

    async def configure(self, settings: AgentSettingsMessage) -> None:
        await self._send_json(settings.model_dump_json())
        logger.info("Deepgram agent configured")

    async def send(self, audio: bytes) -> None:
        if not self.is_open or self.ws is None:
            logger.debug("Cannot send audio - connection not active")
            return
        await self.ws.send(audio)

    async def keep_alive(self) -> None:
        await self._send_json(KeepAliveMessage().model_dump_json())

    async def _send_json(self, payload: str) -> None:
        if not self.is_open or self.ws is None:
            logger.warning("Cannot send message - connection not active")
            return
        await self.ws.send(payload)

    async def _recv_loop(self) -> None:
        """
        Receive frames until the socket closes and dispatch them as events.

        Emits exactly one CLOSE event when the loop exits, whatever the reason.
        """
        try:
            async for message in self.ws:
                if isinstance(message, bytes):
                    await self.emit(AgentEvent.AUDIO, message)
                else:
                    await self._dispatch_text(message)
                if self._is_closing:
                    break
        except ConnectionClosedOK:
            logger.info("Deepgram agent WebSocket closed normally")
        except ConnectionClosedError as e:
            logger.warning(f"Deepgram agent WebSocket closed unexpectedly: {e}")
        except asyncio.CancelledError:
            logger.debug("Receive loop cancelled")
            raise
        except Exception as e:
            logger.error(f"Error in receive loop: {e}")
            logger.debug(f"Receive loop error details: {traceback.format_exc()}")
        finally:
            self._connection_active = False
            if not self._close_emitted:
                self._close_emitted = True
                logger.info("Deepgram agent WebSocket closed")
                await self.emit(AgentEvent.CLOSE)

    async def _dispatch_text(self, message: str) -> None:
        try:
            data = json.loads(message)
        except json.JSONDecodeError:
            logger.warning(f"Received invalid JSON: {message[:100]}...")
            return
        if not isinstance(data, dict):
            logger.warning(f"Received non-object JSON message: {message[:100]}...")
            return

        message_type = data.get("type")
        event = EVENT_BY_MESSAGE_TYPE.get(message_type, AgentEvent.UNHANDLED)

        if event is AgentEvent.CONVERSATION_TEXT:
            await self.emit(event, ConversationTextEvent.from_payload(data))
        elif event is AgentEvent.ERROR:
            error = AgentErrorEvent(
                description=data.get("description"),
                message=data.get("message"),
                code=None if data.get("code") is None else str(data.get("code")),
            )
            logger.error(f"Deepgram agent error: {error.error_message}")
            await self.emit(event, error)
        elif event is AgentEvent.UNHANDLED:
            logger.debug(f"Received message of type: {message_type or 'unknown'}")
            await self.emit(event, data)
        else:
            await self.emit(event)

    async def disconnect(self) -> None:
        """
        Close the WebSocket connection.

        The receive loop is cancelled unless disconnect is being called from inside
        it (an event handler tearing the session down), in which case the loop exits
        on its own once the handler returns.
        """
        if self._is_closing:
            return
        logger.info("Closing Deepgram agent client")
        self._is_closing = True

        current = asyncio.current_task()
        if self._recv_task and self._recv_task is not current and not self._recv_task.done():
            logger.debug("Cancelling receive task")
            self._recv_task.cancel()

        if self.ws is not None:
            try:
                await self.ws.close()
            except ConnectionClosed:
                pass
        self._connection_active = False
