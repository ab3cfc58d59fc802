"""
Unit tests for environment-backed settings.
"""

import pytest

from agent_relay.config.settings import (
    AgentConfig,
    ConfigurationError,
    Settings,
    load_settings,
)

BASE_ENV = {"DEEPGRAM_API_KEY": "dg-key", "AGENT_PROMPT": "Be brief."}


def test_defaults():
    settings = load_settings(dict(BASE_ENV))

    assert settings.api_key == "dg-key"
    assert settings.agent_url == "wss://agent.deepgram.com/v1/agent/converse"
    assert settings.port == 6033
    assert settings.keepalive_interval == 5.0
    assert settings.flush_window == pytest.approx(0.1)
    assert settings.agent.sample_rate == 8000
    assert settings.agent.listen_model == "nova-3"
    assert settings.agent.think_model == "gpt-4o-mini"
    assert settings.agent.speak_model == "aura-2-thalia-en"
    assert settings.agent.prompt == "Be brief."


def test_overrides():
    env = dict(
        BASE_ENV,
        DEEPGRAM_SAMPLE_RATE="16000",
        DEEPGRAM_ASR_MODEL="nova-2",
        OPENAI_MODEL="gpt-4o",
        DEEPGRAM_TTS_MODEL="aura-asteria-en",
        DEEPGRAM_GREETING="Hello!",
        KEEPALIVE_INTERVAL_SECONDS="3",
        OUTPUT_FLUSH_WINDOW_MS="40",
        PORT="7000",
    )

    settings = load_settings(env)

    assert settings.agent.sample_rate == 16000
    assert settings.agent.listen_model == "nova-2"
    assert settings.agent.think_model == "gpt-4o"
    assert settings.agent.speak_model == "aura-asteria-en"
    assert settings.agent.greeting == "Hello!"
    assert settings.keepalive_interval == 3.0
    assert settings.flush_window == pytest.approx(0.04)
    assert settings.port == 7000


def test_missing_api_key_fails_fast():
    with pytest.raises(ConfigurationError, match="DEEPGRAM_API_KEY"):
        load_settings({"AGENT_PROMPT": "Be brief."})


def test_missing_prompt_fails_when_required():
    with pytest.raises(ConfigurationError, match="AGENT_PROMPT"):
        load_settings({"DEEPGRAM_API_KEY": "dg-key"})


def test_missing_prompt_uses_default_when_optional():
    settings = load_settings({"DEEPGRAM_API_KEY": "dg-key", "AGENT_PROMPT_REQUIRED": "false"})

    assert settings.agent.prompt == AgentConfig().prompt


@pytest.mark.parametrize("name,value", [("DEEPGRAM_SAMPLE_RATE", "abc"), ("OUTPUT_FLUSH_WINDOW_MS", "0")])
def test_invalid_numbers_are_rejected(name, value):
    with pytest.raises(ConfigurationError, match=name):
        load_settings(dict(BASE_ENV, **{name: value}))


def test_settings_are_immutable():
    settings = Settings(api_key="dg-key")

    with pytest.raises(Exception):
        settings.api_key = "other"
    with pytest.raises(Exception):
        settings.agent.prompt = "changed"


def test_settings_message_shape():
    config = AgentConfig(sample_rate=8000, prompt="Be brief.", greeting="Hi")

    payload = config.to_settings_message().model_dump()

    assert payload == {
        "type": "Settings",
        "audio": {
            "input": {"encoding": "linear16", "sample_rate": 8000},
            "output": {"encoding": "linear16", "sample_rate": 8000, "container": "none"},
        },
        "agent": {
            "language": "en",
            "listen": {"provider": {"type": "deepgram", "model": "nova-3"}},
            "think": {
                "provider": {"type": "open_ai", "model": "gpt-4o-mini"},
                "prompt": "Be brief.",
            },
            "speak": {"provider": {"type": "deepgram", "model": "aura-2-thalia-en"}},
            "greeting": "Hi",
        },
    }
