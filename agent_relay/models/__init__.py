"""
Models module for data structures and state management in the agent relay.

This module provides structured data models and state management classes for the application,
defining the schemas and interfaces for both the framed client protocol and the Deepgram
Voice Agent API.

Key components:
- message_schemas: Pydantic models for validating and serializing frames of the
  JSON client protocol (init, audio, transcript, interruption, error).
- agent_schemas: Type-safe models for the agent API messages (Settings, KeepAlive,
  ConversationText, Error).
- conversation: The SessionState lifecycle enum and the per-connection record kept
  by the framed WebSocket adapter.

Usage examples:
```python
from agent_relay.models.message_schemas import AudioMessage, ErrorFrame

# Parse and validate a frame from the client
frame = AudioMessage(**{"type": "audio", "audio": "AAAA"})
pcm = frame.decode_audio()

# Create an outgoing frame
await websocket.send_text(ErrorFrame(message="rate limit").model_dump_json())
```
"""

from agent_relay.models.agent_schemas import (
    AgentErrorEvent,
    AgentSettingsMessage,
    ConversationTextEvent,
    KeepAliveMessage,
)
from agent_relay.models.conversation import ClientConnection, SessionState
from agent_relay.models.message_schemas import (
    AudioFrame,
    AudioMessage,
    BaseFrame,
    ErrorFrame,
    InitMessage,
    InterruptionFrame,
    TranscriptFrame,
)
