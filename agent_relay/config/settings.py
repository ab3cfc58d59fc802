"""
Process-wide settings for the relay.

Settings are read once from the environment (optionally populated from a .env
file) at startup and never change afterwards. Every session takes the same
immutable AgentConfig snapshot and sends it to the agent service when the
upstream handshake completes.
"""

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

import dotenv
from pydantic import BaseModel, ConfigDict

from agent_relay.config.constants import (
    DEFAULT_AGENT_URL,
    DEFAULT_FLUSH_WINDOW_MS,
    DEFAULT_GREETING,
    DEFAULT_KEEPALIVE_INTERVAL,
    DEFAULT_LANGUAGE,
    DEFAULT_LISTEN_MODEL,
    DEFAULT_PROMPT,
    DEFAULT_SAMPLE_RATE,
    DEFAULT_SPEAK_MODEL,
    DEFAULT_THINK_MODEL,
    DEFAULT_THINK_PROVIDER,
    LOGGER_NAME,
)
from agent_relay.models.agent_schemas import (
    AgentSettings,
    AgentSettingsMessage,
    AudioInputFormat,
    AudioOutputFormat,
    AudioSettings,
    ListenSettings,
    ProviderSettings,
    SpeakSettings,
    ThinkSettings,
)

logger = logging.getLogger(LOGGER_NAME)

DEFAULT_PORT = 6033
DEFAULT_HOST = "0.0.0.0"


class ConfigurationError(RuntimeError):
    """Raised when a required setting is missing or invalid."""


class AgentConfig(BaseModel):
    """Immutable agent parameters sent upstream once per session."""

    model_config = ConfigDict(frozen=True)

    sample_rate: int = DEFAULT_SAMPLE_RATE
    language: str = DEFAULT_LANGUAGE
    listen_model: str = DEFAULT_LISTEN_MODEL
    think_provider: str = DEFAULT_THINK_PROVIDER
    think_model: str = DEFAULT_THINK_MODEL
    prompt: str = DEFAULT_PROMPT
    speak_model: str = DEFAULT_SPEAK_MODEL
    greeting: str = DEFAULT_GREETING

    def to_settings_message(self) -> AgentSettingsMessage:
        """Build the Settings message for the Deepgram agent API."""
        return AgentSettingsMessage(
            audio=AudioSettings(
                input=AudioInputFormat(sample_rate=self.sample_rate),
                output=AudioOutputFormat(sample_rate=self.sample_rate),
            ),
            agent=AgentSettings(
                language=self.language,
                listen=ListenSettings(
                    provider=ProviderSettings(type="deepgram", model=self.listen_model)
                ),
                think=ThinkSettings(
                    provider=ProviderSettings(
                        type=self.think_provider, model=self.think_model
                    ),
                    prompt=self.prompt,
                ),
                speak=SpeakSettings(
                    provider=ProviderSettings(type="deepgram", model=self.speak_model)
                ),
                greeting=self.greeting,
            ),
        )


class Settings(BaseModel):
    """Everything the relay reads from the environment."""

    model_config = ConfigDict(frozen=True)

    api_key: str
    agent_url: str = DEFAULT_AGENT_URL
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    keepalive_interval: float = DEFAULT_KEEPALIVE_INTERVAL
    flush_window: float = DEFAULT_FLUSH_WINDOW_MS / 1000.0
    agent: AgentConfig = AgentConfig()


def load_dotenv_file(path: Path = Path(".") / ".env") -> None:
    """Load environment variables from a .env file if it exists."""
    if path.exists():
        dotenv.load_dotenv(path)


def _parse_number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


def _parse_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off")


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Resolve the process settings from the environment.

    Args:
        environ: Mapping to read from, defaults to os.environ

    Returns:
        Settings: The validated, immutable settings

    Raises:
        ConfigurationError: If DEEPGRAM_API_KEY is missing, if AGENT_PROMPT is
            missing while required, or if a numeric value is invalid
    """
    env = os.environ if environ is None else environ

    api_key = env.get("DEEPGRAM_API_KEY")
    if not api_key:
        raise ConfigurationError("DEEPGRAM_API_KEY is not set")

    prompt = env.get("AGENT_PROMPT")
    if not prompt:
        if _parse_bool(env, "AGENT_PROMPT_REQUIRED", True):
            raise ConfigurationError("AGENT_PROMPT environment variable is required")
        logger.warning("AGENT_PROMPT not set, using the built-in default prompt")
        prompt = DEFAULT_PROMPT

    agent = AgentConfig(
        sample_rate=_parse_number(env, "DEEPGRAM_SAMPLE_RATE", DEFAULT_SAMPLE_RATE, int),
        language=env.get("DEEPGRAM_LANGUAGE") or DEFAULT_LANGUAGE,
        listen_model=env.get("DEEPGRAM_ASR_MODEL") or DEFAULT_LISTEN_MODEL,
        think_provider=env.get("AGENT_THINK_PROVIDER") or DEFAULT_THINK_PROVIDER,
        think_model=env.get("OPENAI_MODEL") or DEFAULT_THINK_MODEL,
        prompt=prompt,
        speak_model=env.get("DEEPGRAM_TTS_MODEL") or DEFAULT_SPEAK_MODEL,
        greeting=env.get("DEEPGRAM_GREETING") or DEFAULT_GREETING,
    )

    flush_window_ms = _parse_number(
        env, "OUTPUT_FLUSH_WINDOW_MS", DEFAULT_FLUSH_WINDOW_MS, float
    )

    return Settings(
        api_key=api_key,
        agent_url=env.get("DEEPGRAM_AGENT_URL") or DEFAULT_AGENT_URL,
        host=env.get("HOST") or DEFAULT_HOST,
        port=_parse_number(env, "PORT", DEFAULT_PORT, int),
        keepalive_interval=_parse_number(
            env, "KEEPALIVE_INTERVAL_SECONDS", DEFAULT_KEEPALIVE_INTERVAL, float
        ),
        flush_window=flush_window_ms / 1000.0,
        agent=agent,
    )
