"""
Handles caller audio on the framed WebSocket protocol.

Audio frames carry base64 PCM. They are decoded and handed to the session relay,
which forwards them upstream unchanged or drops them if the agent is not ready yet.
"""

import logging
from typing import Any, Dict

from pydantic import ValidationError

from agent_relay.bot.session_relay import SessionRelayFactory
from agent_relay.config.constants import LOGGER_NAME
from agent_relay.models.conversation import ClientConnection
from agent_relay.models.message_schemas import AudioMessage

logger = logging.getLogger(LOGGER_NAME)


async def handle_audio(
    message: Dict[str, Any],
    connection: ClientConnection,
    relay_factory: SessionRelayFactory,
) -> None:
    """
    Handle an audio frame from the client.

    Args:
        message: The audio frame, {"type": "audio", "audio": "<base64>"}
        connection: State of the client connection the frame arrived on
        relay_factory: Unused; part of the common handler signature

    Returns:
        None, as audio frames get no response
    """
    if not connection.initialized:
        logger.debug("Dropping audio frame received before init")
        return None

    if not message.get("audio"):
        logger.debug(f"Empty audio frame for session {connection.label}")
        return None

    try:
        audio_message = AudioMessage(**message)
    except ValidationError as e:
        logger.warning(f"Invalid audio frame for session {connection.label}: {e}")
        return None

    await connection.relay.forward_client_audio(audio_message.decode_audio())
    return None
