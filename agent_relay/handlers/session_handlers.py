"""
Handles session establishment on the framed WebSocket protocol.

The client's init frame carries its correlation id and is the signal to open the
upstream agent connection. Audio sent before init has no session to go to.
"""

import logging
from typing import Any, Dict

from pydantic import ValidationError

from agent_relay.bot.session_relay import SessionRelayFactory
from agent_relay.config.constants import LOGGER_NAME
from agent_relay.models.conversation import ClientConnection
from agent_relay.models.message_schemas import InitMessage
from agent_relay.transports.framed import FramedTransport

logger = logging.getLogger(LOGGER_NAME)


async def handle_init(
    message: Dict[str, Any],
    connection: ClientConnection,
    relay_factory: SessionRelayFactory,
) -> None:
    """
    Handle the init frame from the client.

    Creates the session relay for this connection and opens the agent connection
    in the background, so the receive loop keeps reading (and dropping audio)
    while the upstream handshake is in progress.
    A second init on the same connection is ignored: a connection owns exactly one
    upstream session.

    Args:
        message: The init frame, {"type": "init", "uuid": "..."}
        connection: State of the client connection the frame arrived on
        relay_factory: Factory building relays from the process settings
    """
    try:
        init_message = InitMessage(**message)
    except ValidationError as e:
        logger.error(f"Invalid init message: {e}")
        return None

    if connection.initialized:
        logger.warning(
            f"Ignoring duplicate init for session {connection.label} (uuid: {init_message.uuid})"
        )
        return None

    logger.info(f"Session UUID: {init_message.uuid}")
    transport = FramedTransport(connection.websocket, init_message.uuid)
    relay = relay_factory.create(transport, init_message.uuid)
    connection.attach_relay(relay, init_message.uuid)
    relay.start_in_background()
    return None
