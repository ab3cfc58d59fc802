"""
Framed (JSON over WebSocket) client transport.

Every event becomes one JSON text frame. Audio is base64 encoded, every transcript
is forwarded with its finality, and upstream errors are reported with an error frame
before the socket is closed.
"""

from typing import Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from agent_relay.config.logging_config import session_logger
from agent_relay.models.message_schemas import (
    AudioFrame,
    BaseFrame,
    ErrorFrame,
    InterruptionFrame,
    TranscriptFrame,
)
from agent_relay.transports.base import ClientTransport


class FramedTransport(ClientTransport):
    supports_error_frames = True

    def __init__(self, websocket: WebSocket, session_uuid: Optional[str] = None):
        self.websocket = websocket
        self.session_uuid = session_uuid
        self._closed = False
        self.log = session_logger(session_uuid)

    async def _send_frame(self, frame: BaseFrame) -> None:
        await self.websocket.send_text(frame.model_dump_json())

    async def send_audio(self, audio: bytes) -> None:
        await self._send_frame(AudioFrame.from_bytes(audio))

    async def send_transcript(self, role: str, text: str, is_final: bool) -> None:
        await self._send_frame(TranscriptFrame.from_event(role, text, is_final))

    async def send_interruption(self) -> None:
        await self._send_frame(InterruptionFrame())

    async def send_error(self, message: str) -> None:
        await self._send_frame(ErrorFrame(message=message))

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if getattr(self.websocket, "application_state", None) == WebSocketState.DISCONNECTED:
            self.log.debug("Client WebSocket already closed")
            return
        await self.websocket.close()
