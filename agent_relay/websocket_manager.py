"""
WebSocket connection manager for the framed client protocol.

This module implements the server side of the JSON-framed relay protocol,
providing the infrastructure to:
- Accept and manage client WebSocket connections
- Route incoming frames to the appropriate handler functions
- Tear the session down when either the client or the agent side goes away

Malformed frames (invalid JSON, failed validation, unknown types) are logged and
dropped; they never end the session.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict

from fastapi import WebSocket, WebSocketDisconnect

from agent_relay.bot.session_relay import SessionRelayFactory, close_session, run_until_closed
from agent_relay.config.constants import LOGGER_NAME, MESSAGE_TYPE_AUDIO, MESSAGE_TYPE_INIT
from agent_relay.handlers.session_handlers import handle_init
from agent_relay.handlers.stream_handlers import handle_audio
from agent_relay.models.conversation import ClientConnection

logger = logging.getLogger(LOGGER_NAME)

# Type hint for handler functions
HandlerFunc = Callable[
    [Dict[str, Any], ClientConnection, SessionRelayFactory],
    Awaitable[None],
]


class WebSocketManager:
    """Manages framed-protocol WebSocket connections and routes frames to handlers.

    Each frame is routed to a handler function based on its "type" field. One
    connection owns at most one session relay, created by the init frame.
    """

    def __init__(self, relay_factory: SessionRelayFactory):
        self.relay_factory = relay_factory

        self.handlers: Dict[str, HandlerFunc] = {
            MESSAGE_TYPE_INIT: handle_init,
            MESSAGE_TYPE_AUDIO: handle_audio,
        }

    async def handle_websocket(self, websocket: WebSocket):
        """Handle a WebSocket connection throughout its lifecycle.

        Args:
            websocket (WebSocket): The FastAPI WebSocket connection object

        This method:
        1. Accepts the WebSocket connection
        2. Processes incoming frames until the client leaves or the session closes
        3. Runs the session cleanup, or closes the socket if no session was created
        """
        await websocket.accept()
        logger.info("New client WebSocket connection received")
        connection = ClientConnection(websocket)

        try:
            await run_until_closed(self._receive_loop(connection), connection.wait_closed())
        finally:
            if connection.relay is not None:
                await close_session(connection.relay, "client connection ended")
            else:
                try:
                    await websocket.close()
                except Exception as e:
                    logger.debug(f"Error closing uninitialized WebSocket: {e}")
        logger.info(f"Client WebSocket connection closed (session: {connection.label})")

    async def _receive_loop(self, connection: ClientConnection) -> None:
        try:
            while True:
                message = await connection.websocket.receive()
                if message["type"] == "websocket.disconnect":
                    logger.info(f"Client disconnected (session: {connection.label})")
                    return
                data = message.get("text")
                if data is None:
                    logger.warning(f"Ignoring binary frame from client (session: {connection.label})")
                    continue
                await self.route_message(data, connection)
        except WebSocketDisconnect:
            logger.info(f"Client disconnected (session: {connection.label})")
        except RuntimeError as e:
            # Raised by Starlette when receiving on a socket that is no longer connected
            logger.info(f"Client WebSocket no longer readable (session: {connection.label}): {e}")
        except Exception as e:
            logger.error(f"Client WebSocket error (session: {connection.label}): {e}", exc_info=True)

    async def route_message(self, data: str, connection: ClientConnection) -> None:
        """Parse one text frame and dispatch it to its handler."""
        try:
            message = json.loads(data)
        except json.JSONDecodeError as e:
            logger.error(f"Error processing client message: {e}")
            return
        if not isinstance(message, dict):
            logger.warning(f"Ignoring non-object frame from client: {data[:100]}")
            return

        message_type = message.get("type")
        handler = self.handlers.get(message_type)
        if handler is None:
            logger.info(f"Unknown message type from client: {message_type}")
            return

        try:
            await handler(message, connection, self.relay_factory)
        except Exception as e:
            logger.error(f"Error handling {message_type} frame: {e}", exc_info=True)
