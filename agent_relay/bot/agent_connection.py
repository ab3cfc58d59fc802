"""
Interface for the upstream speech-agent connection.

The session relay only talks to the agent service through this narrow surface:
connect, configure, send, keep_alive, disconnect and per-event subscriptions. The
Deepgram client implements it over a real WebSocket; tests substitute an in-memory
fake.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List

from agent_relay.config.constants import LOGGER_NAME
from agent_relay.models.agent_schemas import AgentSettingsMessage

logger = logging.getLogger(LOGGER_NAME)

EventHandler = Callable[..., Awaitable[None]]


class AgentEvent(str, Enum):
    """Events emitted by an agent connection."""

    OPEN = "open"
    WELCOME = "welcome"
    SETTINGS_APPLIED = "settings_applied"
    CONVERSATION_TEXT = "conversation_text"
    AUDIO = "audio"
    AGENT_AUDIO_DONE = "agent_audio_done"
    USER_STARTED_SPEAKING = "user_started_speaking"
    ERROR = "error"
    CLOSE = "close"
    UNHANDLED = "unhandled"


class AgentConnection(ABC):
    """
    One bidirectional audio/event connection to the agent service.

    Handlers registered with on() are awaited one at a time, in the order the
    events arrive, so a session never sees two of its events concurrently.
    """

    def __init__(self):
        self._handlers: Dict[AgentEvent, List[EventHandler]] = {}

    def on(self, event: AgentEvent, handler: EventHandler) -> None:
        """Subscribe an async handler to an event."""
        self._handlers.setdefault(event, []).append(handler)

    async def emit(self, event: AgentEvent, *args: Any) -> None:
        """Dispatch an event to its handlers; a failing handler is logged and skipped."""
        for handler in list(self._handlers.get(event, ())):
            try:
                await handler(*args)
            except Exception as e:
                logger.error(f"Error in {event.value} handler: {e}", exc_info=True)

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether the connection can currently carry messages."""

    @abstractmethod
    async def connect(self) -> bool:
        """Open the connection. Returns False if it could not be established."""

    @abstractmethod
    async def configure(self, settings: AgentSettingsMessage) -> None:
        """Send the session configuration."""

    @abstractmethod
    async def send(self, audio: bytes) -> None:
        """Send raw caller audio, fire and forget."""

    @abstractmethod
    async def keep_alive(self) -> None:
        """Send a keep-alive signal."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the connection. Safe to call more than once."""
