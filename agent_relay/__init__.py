"""
Agent Voice Relay - real-time audio relay to the Deepgram Voice Agent

This application relays live caller audio between an end client (phone gateway or
browser) and Deepgram's hosted voice agent, which handles speech recognition, the
language model turn and speech synthesis. The relay itself does no speech
processing; it moves audio and events between the two sides, paces the agent's
audio towards the client and tears both sides down together.

Architecture Overview:
- FastAPI server exposing two client transports
- One SessionRelay per client connection, owning exactly one agent connection
- Agent audio coalesced into one client write per flush window (100 ms default)
- Keep-alive towards the agent every 5 seconds for the life of the session

Key Components:
- bot: Agent connection interface, Deepgram client, output buffer, session relay
- config: Constants, logging setup and environment-backed settings
- handlers: Framed init/audio handlers and the raw HTTP stream transport
- models: Pydantic schemas for both protocols and per-connection state
- transports: Client transports the relay writes to
- websocket_manager: Receive loop and frame routing for the framed protocol

Getting Started:
1. Set up environment variables:
   - DEEPGRAM_API_KEY: Your Deepgram API key (required)
   - AGENT_PROMPT: System prompt for the agent (required unless AGENT_PROMPT_REQUIRED=false)
   - PORT: Port to run the server on (default 6033)
   - LOG_LEVEL: Logging level (default INFO)

2. Start the server:
   ```bash
   python run.py
   ```

3. Point clients at:
   - ws://your-server:6033/ws for the JSON frame protocol
   - http://your-server:6033/audio-stream for raw PCM over HTTP
"""
