"""
Handlers module for the client transports of the agent relay.

This module provides the handlers that turn client input into session relay calls,
for both the framed WebSocket protocol and the raw HTTP stream.

Key components:
- session_handlers: Handles the framed init frame, which creates the session relay
  and opens the Deepgram agent connection.
- stream_handlers: Decodes framed audio frames and forwards them to the relay.
- http_stream: The raw-stream transport, relaying a POST request body to the agent
  and streaming agent audio back in the response body.

Usage examples:
```python
from agent_relay.handlers.http_stream import handle_audio_stream

@app.post("/audio-stream")
async def audio_stream(request: Request):
    return await handle_audio_stream(request, relay_factory)
```
"""
