"""Base transport abstraction for client connections.

Defines the interface that both client-facing transports (the raw HTTP body stream
and the framed WebSocket protocol) implement, so the session relay can drive either
without knowing how bytes reach the caller.
"""

from abc import ABC, abstractmethod


class ClientTransport(ABC):
    """Client side of one relay session."""

    #: Whether upstream errors can be reported to the client as a structured frame
    supports_error_frames: bool = False

    @abstractmethod
    async def send_audio(self, audio: bytes) -> None:
        """Write agent audio to the client.

        Raises:
            Exception: If the client connection is closed or broken
        """

    @abstractmethod
    async def send_transcript(self, role: str, text: str, is_final: bool) -> None:
        """Surface a transcript event, if the transport exposes transcripts."""

    @abstractmethod
    async def send_interruption(self) -> None:
        """Signal that the user started speaking over the agent."""

    @abstractmethod
    async def send_error(self, message: str) -> None:
        """Report a session-fatal error to the client."""

    @abstractmethod
    async def close(self) -> None:
        """Close the client side. Must be safe to call more than once."""
