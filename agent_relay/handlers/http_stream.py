"""
Raw-stream HTTP transport for relay sessions.

One POST request is one session: the request body is caller PCM, streamed in with
arbitrary chunk boundaries, and the response body is agent PCM, streamed out as the
relay flushes it. Both directions run at once on the same ASGI connection, which is
why the response owns the receive/send pair instead of using StreamingResponse.
"""

import logging
from typing import Optional

from fastapi import Request
from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from agent_relay.bot.session_relay import (
    SessionRelay,
    SessionRelayFactory,
    close_session,
    run_until_closed,
)
from agent_relay.config.constants import CORRELATION_HEADER, LOGGER_NAME, RAW_STREAM_CONTENT_TYPE
from agent_relay.transports.raw_stream import RawStreamTransport

logger = logging.getLogger(LOGGER_NAME)


class RelayStreamResponse(Response):
    """Response that relays the request body to the agent and streams the reply back."""

    media_type = RAW_STREAM_CONTENT_TYPE

    def __init__(self, relay_factory: SessionRelayFactory, session_uuid: Optional[str] = None):
        self.relay_factory = relay_factory
        self.session_uuid = session_uuid
        self.status_code = 200
        self.background = None
        self.relay: Optional[SessionRelay] = None
        self.init_headers()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await send(
            {
                "type": "http.response.start",
                "status": self.status_code,
                "headers": self.raw_headers,
            }
        )

        transport = RawStreamTransport(send, self.session_uuid)
        self.relay = self.relay_factory.create(transport, self.session_uuid)
        try:
            await self.relay.start()
            await run_until_closed(self._pump_request(receive), self.relay.wait_closed())
        finally:
            await close_session(self.relay, "client request ended")

    async def _pump_request(self, receive: Receive) -> None:
        """Forward request body chunks upstream until the body ends or the client leaves."""
        while True:
            message = await receive()
            if message["type"] == "http.request":
                body = message.get("body", b"")
                if body:
                    await self.relay.forward_client_audio(body)
                if not message.get("more_body", False):
                    logger.info(f"Request body ended for session: {self.session_uuid}")
                    return
            elif message["type"] == "http.disconnect":
                logger.info(f"Client disconnected for session: {self.session_uuid}")
                return


async def handle_audio_stream(request: Request, relay_factory: SessionRelayFactory) -> RelayStreamResponse:
    """
    Build the streaming response for one raw-stream session.

    The x-uuid header, if present, is only used to correlate log lines.
    """
    session_uuid = request.headers.get(CORRELATION_HEADER)
    logger.info(f"New raw audio stream (uuid: {session_uuid})")
    return RelayStreamResponse(relay_factory, session_uuid)
