"""
Client-facing transports for relay sessions.

- base: the ClientTransport interface the session relay writes to
- framed: JSON frames over a FastAPI WebSocket
- raw_stream: raw PCM over a chunked HTTP response body
"""

from agent_relay.transports.base import ClientTransport
from agent_relay.transports.framed import FramedTransport
from agent_relay.transports.raw_stream import RawStreamTransport

__all__ = ["ClientTransport", "FramedTransport", "RawStreamTransport"]
