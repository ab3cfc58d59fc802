import logging
from typing import List, Tuple

import pytest

from agent_relay.bot.agent_connection import AgentConnection
from agent_relay.bot.session_relay import SessionRelayFactory
from agent_relay.config.settings import AgentConfig, Settings
from agent_relay.transports.base import ClientTransport


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test"""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    logging.basicConfig(level=logging.NOTSET)
    yield


class FakeAgentConnection(AgentConnection):
    """In-memory agent connection recording everything the relay sends."""

    def __init__(self, connect_result: bool = True):
        super().__init__()
        self.connect_result = connect_result
        self.connected = False
        self.sent: List[bytes] = []
        self.configured = []
        self.keepalives = 0
        self.disconnect_calls = 0

    @property
    def is_open(self) -> bool:
        return self.connected and self.disconnect_calls == 0

    async def connect(self) -> bool:
        self.connected = self.connect_result
        return self.connect_result

    async def configure(self, settings) -> None:
        self.configured.append(settings)

    async def send(self, audio: bytes) -> None:
        self.sent.append(audio)

    async def keep_alive(self) -> None:
        self.keepalives += 1

    async def disconnect(self) -> None:
        self.disconnect_calls += 1


class RecordingTransport(ClientTransport):
    """Client transport recording every write in order."""

    def __init__(self, supports_error_frames: bool = True, fail_sends: bool = False):
        self.supports_error_frames = supports_error_frames
        self.fail_sends = fail_sends
        self.events: List[Tuple] = []
        self.close_calls = 0

    def audio_writes(self) -> List[bytes]:
        return [event[1] for event in self.events if event[0] == "audio"]

    async def send_audio(self, audio: bytes) -> None:
        if self.fail_sends:
            raise ConnectionError("client went away")
        self.events.append(("audio", audio))

    async def send_transcript(self, role: str, text: str, is_final: bool) -> None:
        if self.fail_sends:
            raise ConnectionError("client went away")
        self.events.append(("transcript", role, text, is_final))

    async def send_interruption(self) -> None:
        if self.fail_sends:
            raise ConnectionError("client went away")
        self.events.append(("interruption",))

    async def send_error(self, message: str) -> None:
        if self.fail_sends:
            raise ConnectionError("client went away")
        self.events.append(("error", message))

    async def close(self) -> None:
        self.close_calls += 1
        self.events.append(("close",))


@pytest.fixture
def agent_connection():
    return FakeAgentConnection()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def agent_config():
    return AgentConfig(prompt="You are a test agent.")


@pytest.fixture
def settings(agent_config):
    return Settings(
        api_key="test-api-key",
        keepalive_interval=10.0,
        flush_window=10.0,
        agent=agent_config,
    )


@pytest.fixture
def relay_factory(settings, agent_connection):
    """Relay factory whose sessions all talk to the same fake agent connection."""
    return SessionRelayFactory(settings, connection_factory=lambda: agent_connection)


@pytest.fixture
def make_transport():
    return RecordingTransport


@pytest.fixture
def make_agent_connection():
    return FakeAgentConnection
