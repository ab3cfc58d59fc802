"""
Pydantic models for the framed client protocol.

This module defines structured data models for all incoming and outgoing JSON frames
exchanged with clients over the /ws WebSocket endpoint, providing type validation
and documentation.

Client -> server:
    {"type": "init", "uuid": "<correlation id>"}
    {"type": "audio", "audio": "<base64 PCM>"}

Server -> client:
    {"type": "audio", "audio": "<base64 PCM>"}
    {"type": "transcript", "role": "user" | "agent", "text": "...", "final": true}
    {"type": "interruption"}
    {"type": "error", "message": "..."}
"""

import base64
import binascii
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


class BaseFrame(BaseModel):
    """Base model for all framed protocol messages."""

    type: str = Field(..., description="Frame type identifier")


# Incoming frames
class InitMessage(BaseFrame):
    """Model for the init frame that opens the upstream agent session."""

    type: Literal["init"]
    uuid: Optional[str] = Field(None, description="Client-supplied correlation id")


class AudioMessage(BaseFrame):
    """Model for an audio frame carrying caller PCM."""

    type: Literal["audio"]
    audio: str = Field(..., description="Base64 encoded PCM audio")

    @field_validator("audio")
    def validate_audio(cls, v):
        """Validate that audio is base64 encoded."""
        try:
            base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("Audio must be base64 encoded")
        return v

    def decode_audio(self) -> bytes:
        return base64.b64decode(self.audio)


IncomingFrame = Union[InitMessage, AudioMessage]


# Outgoing frames
class AudioFrame(BaseFrame):
    """Model for agent audio sent to the client."""

    type: Literal["audio"] = "audio"
    audio: str

    @classmethod
    def from_bytes(cls, audio: bytes) -> "AudioFrame":
        return cls(audio=base64.b64encode(audio).decode("utf-8"))


class TranscriptFrame(BaseFrame):
    """Model for a transcript of a user or agent turn."""

    type: Literal["transcript"] = "transcript"
    role: Literal["user", "agent"]
    text: str
    final: bool = True

    @classmethod
    def from_event(cls, role: str, text: str, is_final: bool = True) -> "TranscriptFrame":
        return cls(role="user" if role == "user" else "agent", text=text, final=is_final)


class InterruptionFrame(BaseFrame):
    """Model for the barge-in signal (the user started speaking)."""

    type: Literal["interruption"] = "interruption"


class ErrorFrame(BaseFrame):
    """Model for a session-fatal error surfaced to the client."""

    type: Literal["error"] = "error"
    message: str


OutgoingFrame = Union[AudioFrame, TranscriptFrame, InterruptionFrame, ErrorFrame]
