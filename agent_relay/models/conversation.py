"""
Per-connection state for relay sessions.

This module provides the SessionState lifecycle enum used by the session relay and
the ClientConnection record the framed WebSocket adapter keeps for each connected
client. Nothing here is shared between connections; each record lives exactly as
long as its client connection.
"""

import asyncio
from enum import Enum
from typing import TYPE_CHECKING, Optional

from fastapi import WebSocket

if TYPE_CHECKING:
    from agent_relay.bot.session_relay import SessionRelay


class SessionState(str, Enum):
    """Lifecycle of one relay session."""

    CREATED = "created"
    UPSTREAM_CONNECTING = "upstream_connecting"
    UPSTREAM_READY = "upstream_ready"
    STREAMING = "streaming"
    CLOSING = "closing"
    CLOSED = "closed"

    @property
    def accepts_audio(self) -> bool:
        """Whether client audio may be forwarded upstream in this state."""
        return self in (SessionState.UPSTREAM_READY, SessionState.STREAMING)

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.CLOSING, SessionState.CLOSED)


class ClientConnection:
    """
    State of one framed-transport client connection.

    The relay is created when the client sends its init frame, so audio frames that
    arrive before that point have nowhere to go and are dropped.
    """

    def __init__(self, websocket: WebSocket):
        """Initialize a connection that has not been initialized by the client yet."""
        self.websocket = websocket
        self.session_uuid: Optional[str] = None
        self.relay: Optional["SessionRelay"] = None
        self._relay_attached = asyncio.Event()

    @property
    def initialized(self) -> bool:
        return self.relay is not None

    def attach_relay(self, relay: "SessionRelay", session_uuid: Optional[str]) -> None:
        """Bind the relay created for this connection's init frame."""
        self.relay = relay
        self.session_uuid = session_uuid
        self._relay_attached.set()

    async def wait_closed(self) -> None:
        """Wait until a relay has been attached and has closed."""
        await self._relay_attached.wait()
        await self.relay.wait_closed()

    @property
    def label(self) -> str:
        """Identifier used in log lines."""
        return self.session_uuid or "uninitialized"
