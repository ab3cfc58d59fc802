"""
Raw-stream (HTTP body) client transport.

Agent audio is written verbatim to a chunked HTTP response body. There is no
framing, so transcripts, interruptions and errors cannot reach the client; finalized
transcripts are logged and everything else is dropped.
"""

from typing import Optional

from starlette.types import Send

from agent_relay.config.logging_config import session_logger
from agent_relay.transports.base import ClientTransport


class RawStreamTransport(ClientTransport):
    supports_error_frames = False

    def __init__(self, send: Send, session_uuid: Optional[str] = None):
        """
        Args:
            send: ASGI send callable; the response start must already have been sent
            session_uuid: Correlation id for log lines
        """
        self._send = send
        self.session_uuid = session_uuid
        self._closed = False
        self.log = session_logger(session_uuid)

    async def send_audio(self, audio: bytes) -> None:
        if self._closed:
            raise RuntimeError("Response body already finished")
        await self._send({"type": "http.response.body", "body": audio, "more_body": True})

    async def send_transcript(self, role: str, text: str, is_final: bool) -> None:
        # Partial transcripts have no consumer on this transport
        if not is_final:
            return
        self.log.info(f"{role}: {text}")

    async def send_interruption(self) -> None:
        self.log.debug("User started speaking")

    async def send_error(self, message: str) -> None:
        self.log.debug(f"Error not representable on raw stream: {message}")

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._send({"type": "http.response.body", "body": b"", "more_body": False})
