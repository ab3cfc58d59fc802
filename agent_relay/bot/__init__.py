"""
Bot module relaying client sessions to the Deepgram Voice Agent.

Key components:
- AgentConnection / AgentEvent: the narrow interface the relay uses to talk to the
  agent service, with one async handler subscription per event.
- DeepgramAgentClient: AgentConnection over the Deepgram agent WebSocket API.
- OutputBuffer: time-windowed accumulator pacing agent audio towards the client.
- SessionRelay: bridges one client transport to one agent connection and owns the
  session lifecycle and its idempotent cleanup.

Usage examples:
```python
from agent_relay.bot import SessionRelayFactory
from agent_relay.config.settings import load_settings

relay_factory = SessionRelayFactory(load_settings())

async def handle_client(transport):
    relay = relay_factory.create(transport, session_uuid="abc")
    await relay.start()
    await relay.forward_client_audio(pcm_bytes)
    await relay.cleanup("client left")
```
"""

from agent_relay.bot.agent_connection import AgentConnection, AgentEvent
from agent_relay.bot.deepgram_agent import DeepgramAgentClient
from agent_relay.bot.output_buffer import OutputBuffer
from agent_relay.bot.session_relay import SessionRelay, SessionRelayFactory, run_until_closed

__all__ = [
    "AgentConnection",
    "AgentEvent",
    "DeepgramAgentClient",
    "OutputBuffer",
    "SessionRelay",
    "SessionRelayFactory",
    "run_until_closed",
]
