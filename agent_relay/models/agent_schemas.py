"""
Pydantic models for Deepgram Voice Agent message structures.

This module provides type-safe models for the messages exchanged with the Deepgram
agent API, covering the outgoing Settings/KeepAlive messages and the incoming
events the relay reacts to.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from agent_relay.config.constants import (
    AGENT_MESSAGE_KEEP_ALIVE,
    AGENT_MESSAGE_SETTINGS,
    AUDIO_CONTAINER_NONE,
    AUDIO_ENCODING_LINEAR16,
)


class AgentBaseMessage(BaseModel):
    """Base model for agent API messages."""

    model_config = ConfigDict(frozen=True)

    type: str


# Outgoing messages
class AudioInputFormat(BaseModel):
    """Format of the caller audio sent upstream."""

    model_config = ConfigDict(frozen=True)

    encoding: str = AUDIO_ENCODING_LINEAR16
    sample_rate: int


class AudioOutputFormat(AudioInputFormat):
    """Format of the agent audio sent back downstream."""

    container: str = AUDIO_CONTAINER_NONE


class AudioSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    input: AudioInputFormat
    output: AudioOutputFormat


class ProviderSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    model: str


class ListenSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: ProviderSettings


class ThinkSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: ProviderSettings
    prompt: str


class SpeakSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: ProviderSettings


class AgentSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    language: str
    listen: ListenSettings
    think: ThinkSettings
    speak: SpeakSettings
    greeting: str


class AgentSettingsMessage(AgentBaseMessage):
    """Settings message sent once, right after the agent's Welcome."""

    type: Literal["Settings"] = AGENT_MESSAGE_SETTINGS
    audio: AudioSettings
    agent: AgentSettings


class KeepAliveMessage(AgentBaseMessage):
    """Periodic keep-alive that stops the agent from idling out."""

    type: Literal["KeepAlive"] = AGENT_MESSAGE_KEEP_ALIVE


# Incoming events
class ConversationTextEvent(AgentBaseMessage):
    """Transcript of a user or agent turn."""

    type: Literal["ConversationText"] = "ConversationText"
    role: str
    content: str = ""
    is_final: bool = Field(default=True)

    @classmethod
    def from_payload(cls, payload: dict) -> "ConversationTextEvent":
        final = payload.get("is_final", payload.get("final", True))
        return cls(
            role=str(payload.get("role", "")),
            content=str(payload.get("content", "")),
            is_final=bool(final),
        )


class AgentErrorEvent(AgentBaseMessage):
    """Error reported by the agent service."""

    type: Literal["Error"] = "Error"
    description: Optional[str] = None
    message: Optional[str] = None
    code: Optional[str] = None

    @property
    def error_message(self) -> str:
        return self.description or self.message or "Deepgram agent error"
