"""
Constants and configuration values used throughout the application.

This module defines constants that are used across different parts of the application,
providing a centralized location for protocol names and default values and making it
easier to maintain consistent naming throughout the codebase.
"""

# Logger name used throughout the application
LOGGER_NAME = "agent_relay"

# Deepgram Voice Agent endpoint
DEFAULT_AGENT_URL = "wss://agent.deepgram.com/v1/agent/converse"

# Session timing defaults
DEFAULT_KEEPALIVE_INTERVAL = 5.0  # seconds
DEFAULT_FLUSH_WINDOW_MS = 100

# Agent defaults
DEFAULT_SAMPLE_RATE = 8000
DEFAULT_LANGUAGE = "en"
DEFAULT_LISTEN_MODEL = "nova-3"
DEFAULT_THINK_PROVIDER = "open_ai"
DEFAULT_THINK_MODEL = "gpt-4o-mini"
DEFAULT_SPEAK_MODEL = "aura-2-thalia-en"
DEFAULT_GREETING = "Hi there, I'm your virtual assistant, how can I help today?"
DEFAULT_PROMPT = (
    "You are a helpful and friendly voice assistant. "
    "Keep your answers short and conversational."
)

# Audio encoding constants
AUDIO_ENCODING_LINEAR16 = "linear16"
AUDIO_CONTAINER_NONE = "none"
RAW_STREAM_CONTENT_TYPE = "application/octet-stream"
CORRELATION_HEADER = "x-uuid"

# Upstream (Deepgram agent) message types
AGENT_MESSAGE_WELCOME = "Welcome"
AGENT_MESSAGE_SETTINGS = "Settings"
AGENT_MESSAGE_SETTINGS_APPLIED = "SettingsApplied"
AGENT_MESSAGE_CONVERSATION_TEXT = "ConversationText"
AGENT_MESSAGE_AGENT_AUDIO_DONE = "AgentAudioDone"
AGENT_MESSAGE_USER_STARTED_SPEAKING = "UserStartedSpeaking"
AGENT_MESSAGE_ERROR = "Error"
AGENT_MESSAGE_KEEP_ALIVE = "KeepAlive"

# Framed client protocol message types
MESSAGE_TYPE_INIT = "init"
MESSAGE_TYPE_AUDIO = "audio"
