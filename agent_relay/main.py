"""
FastAPI server relaying caller audio to the Deepgram Voice Agent.

This module initializes and configures the FastAPI application that clients connect
to. It exposes the two client transports, each backed by one session relay per
connection:

- POST /audio-stream: raw PCM in the request body, raw PCM back in the response body
- WS /ws: JSON frames (init, audio) in, JSON frames (audio, transcript,
  interruption, error) out

Settings are loaded once during startup; a missing DEEPGRAM_API_KEY (or a missing
AGENT_PROMPT while it is required) aborts startup before any client is served.
"""

from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Request, WebSocket

from agent_relay.bot.agent_connection import AgentConnection
from agent_relay.bot.session_relay import SessionRelayFactory
from agent_relay.config.logging_config import configure_logging
from agent_relay.config.settings import Settings, load_dotenv_file, load_settings
from agent_relay.handlers.http_stream import handle_audio_stream
from agent_relay.websocket_manager import WebSocketManager

APP_NAME = "Agent Voice Relay"
APP_DESCRIPTION = "Real-time audio relay between callers and the Deepgram Voice Agent"
APP_VERSION = "1.0.0"

# Load environment variables from .env file if it exists
load_dotenv_file()

# Configure logging
logger = configure_logging()


def create_app(
    settings: Optional[Settings] = None,
    connection_factory: Optional[Callable[[], AgentConnection]] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment at startup if omitted
        connection_factory: Builds the upstream agent connection for each session,
            defaults to a Deepgram agent client

    Returns:
        FastAPI: The configured application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        resolved = settings or load_settings()
        relay_factory = SessionRelayFactory(resolved, connection_factory)
        app.state.settings = resolved
        app.state.relay_factory = relay_factory
        app.state.websocket_manager = WebSocketManager(relay_factory)
        logger.info(
            f"Agent relay ready (sample rate: {resolved.agent.sample_rate} Hz, "
            f"agent: {resolved.agent_url})"
        )
        yield
        logger.info("Agent relay shutting down")

    app = FastAPI(
        title=APP_NAME,
        description=APP_DESCRIPTION,
        version=APP_VERSION,
        lifespan=lifespan,
    )

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """WebSocket endpoint for the framed client protocol.

        The client sends an init frame first, then base64 audio frames. Agent audio,
        transcripts, interruptions and errors are sent back as JSON frames.
        """
        await websocket.app.state.websocket_manager.handle_websocket(websocket)

    @app.post("/audio-stream")
    async def audio_stream(request: Request):
        """Raw-stream endpoint: PCM request body in, PCM response body out."""
        return await handle_audio_stream(request, request.app.state.relay_factory)

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint for monitoring system status.

        Returns:
            dict: Status information indicating the server is operational.
        """
        resolved = getattr(request.app.state, "settings", None)
        return {
            "status": "healthy",
            "deepgram_api_key_configured": bool(resolved and resolved.api_key),
        }

    @app.get("/")
    async def root():
        """Root endpoint to display basic information about the API."""
        return {
            "name": APP_NAME,
            "description": APP_DESCRIPTION,
            "version": APP_VERSION,
            "endpoints": {
                "/ws": "WebSocket endpoint for the framed JSON protocol",
                "/audio-stream": "HTTP endpoint streaming raw PCM in both directions",
                "/health": "Health check endpoint",
            },
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    startup_settings = load_settings()
    logger.info(f"Starting server on http://{startup_settings.host}:{startup_settings.port}")
    uvicorn.run(
        create_app(startup_settings),
        host=startup_settings.host,
        port=startup_settings.port,
        websocket_max_size=16777216,  # 16MB - large enough for audio chunks
        http="h11",
    )
