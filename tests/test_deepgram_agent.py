"""
Unit tests for the Deepgram agent client.

These tests verify the DeepgramAgentClient class, which connects to the Deepgram
Voice Agent API and turns its frames into relay events.
"""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import pytest

from agent_relay.bot.agent_connection import AgentEvent
from agent_relay.bot.deepgram_agent import DeepgramAgentClient
from agent_relay.config.settings import AgentConfig


class FakeAgentSocket:
    """Stands in for a websockets client connection."""

    def __init__(self, messages=()):
        self.messages = list(messages)
        self.sent = []
        self.close_calls = 0

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self.messages:
            raise StopAsyncIteration
        return self.messages.pop(0)

    async def send(self, message):
        self.sent.append(message)

    async def close(self):
        self.close_calls += 1


class IdleAgentSocket(FakeAgentSocket):
    """Socket that stays open without sending anything."""

    async def __anext__(self):
        await asyncio.Event().wait()


def record_events(client):
    received = []
    for event in AgentEvent:
        async def handler(*args, _event=event):
            received.append((_event, args))
        client.on(event, handler)
    return received


async def connect(client, socket):
    with patch(
        "agent_relay.bot.deepgram_agent.websockets.connect",
        new=AsyncMock(return_value=socket),
    ) as mock_connect:
        result = await client.connect()
    return result, mock_connect


@pytest.mark.asyncio
async def test_connect_sends_token_header():
    client = DeepgramAgentClient("test-api-key", "wss://agent.example/converse")
    socket = FakeAgentSocket()

    result, mock_connect = await connect(client, socket)
    await client._recv_task

    assert result is True
    args, kwargs = mock_connect.call_args
    assert args[0] == "wss://agent.example/converse"
    assert kwargs["additional_headers"] == {"Authorization": "Token test-api-key"}


@pytest.mark.asyncio
async def test_connect_failure_returns_false():
    client = DeepgramAgentClient("test-api-key")

    with patch(
        "agent_relay.bot.deepgram_agent.websockets.connect",
        new=AsyncMock(side_effect=OSError("connection refused")),
    ):
        result = await client.connect()

    assert result is False
    assert client.is_open is False


@pytest.mark.asyncio
async def test_frames_are_dispatched_as_events():
    client = DeepgramAgentClient("test-api-key")
    received = record_events(client)
    socket = FakeAgentSocket(
        [
            json.dumps({"type": "Welcome", "request_id": "abc"}),
            json.dumps({"type": "SettingsApplied"}),
            b"\x01\x02\x03\x04",
            json.dumps({"type": "ConversationText", "role": "user", "content": "hello"}),
            json.dumps({"type": "AgentAudioDone"}),
            json.dumps({"type": "UserStartedSpeaking"}),
            "not json",
            json.dumps({"type": "AgentThinking", "content": "..."}),
        ]
    )

    await connect(client, socket)
    await client._recv_task

    kinds = [event for event, _ in received]
    assert kinds == [
        AgentEvent.OPEN,
        AgentEvent.WELCOME,
        AgentEvent.SETTINGS_APPLIED,
        AgentEvent.AUDIO,
        AgentEvent.CONVERSATION_TEXT,
        AgentEvent.AGENT_AUDIO_DONE,
        AgentEvent.USER_STARTED_SPEAKING,
        AgentEvent.UNHANDLED,
        AgentEvent.CLOSE,
    ]
    assert received[3][1] == (b"\x01\x02\x03\x04",)
    transcript = received[4][1][0]
    assert (transcript.role, transcript.content, transcript.is_final) == ("user", "hello", True)
    assert received[7][1][0]["type"] == "AgentThinking"
    assert client.is_open is False


@pytest.mark.asyncio
async def test_error_event_carries_description():
    client = DeepgramAgentClient("test-api-key")
    received = record_events(client)
    socket = FakeAgentSocket([json.dumps({"type": "Error", "description": "rate limit", "code": 429})])

    await connect(client, socket)
    await client._recv_task

    errors = [args[0] for event, args in received if event is AgentEvent.ERROR]
    assert len(errors) == 1
    assert errors[0].error_message == "rate limit"
    assert errors[0].code == "429"


@pytest.mark.asyncio
async def test_configure_keep_alive_and_send():
    client = DeepgramAgentClient("test-api-key")
    socket = IdleAgentSocket()
    await connect(client, socket)

    await client.configure(AgentConfig(prompt="Be brief.").to_settings_message())
    await client.keep_alive()
    await client.send(b"\x00" * 320)

    settings = json.loads(socket.sent[0])
    assert settings["type"] == "Settings"
    assert settings["agent"]["think"]["prompt"] == "Be brief."
    assert json.loads(socket.sent[1]) == {"type": "KeepAlive"}
    assert socket.sent[2] == b"\x00" * 320

    await client.disconnect()


@pytest.mark.asyncio
async def test_send_before_connect_is_a_noop():
    client = DeepgramAgentClient("test-api-key")

    await client.send(b"\x00" * 320)
    await client.keep_alive()

    assert client.ws is None


@pytest.mark.asyncio
async def test_disconnect_is_idempotent():
    client = DeepgramAgentClient("test-api-key")
    socket = FakeAgentSocket()
    await connect(client, socket)

    await client.disconnect()
    await client.disconnect()

    assert socket.close_calls == 1
    assert client.is_open is False


@pytest.mark.asyncio
async def test_disconnect_from_handler_stops_loop_without_cancelling_it():
    client = DeepgramAgentClient("test-api-key")
    received = record_events(client)

    async def on_error(error):
        await client.disconnect()

    client.on(AgentEvent.ERROR, on_error)
    socket = FakeAgentSocket(
        [
            json.dumps({"type": "Error", "description": "bad settings"}),
            json.dumps({"type": "Welcome"}),
        ]
    )

    await connect(client, socket)
    await client._recv_task

    kinds = [event for event, _ in received]
    assert AgentEvent.WELCOME not in kinds
    assert kinds.count(AgentEvent.CLOSE) == 1
    assert socket.close_calls == 1
    assert not client._recv_task.cancelled()
