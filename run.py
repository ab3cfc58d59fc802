"""
Run script for starting the agent relay server.

This script validates the settings and starts the FastAPI server with WebSocket
settings suited to real-time audio streaming between callers and the Deepgram agent.

Usage:
    python run.py [--port PORT] [--host HOST] [--log-level LEVEL]
"""

import argparse
import os
import sys

import uvicorn

from agent_relay.config.logging_config import configure_logging
from agent_relay.config.settings import ConfigurationError, load_dotenv_file, load_settings

load_dotenv_file()
logger = configure_logging()


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Start the agent voice relay server"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to run the server on (default: PORT env var or 6033)",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Host to bind the server to (default: HOST env var or 0.0.0.0)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO or LOG_LEVEL env var)",
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point: fail fast on bad configuration, then serve."""
    args = parse_args(argv)
    configure_logging(args.log_level)

    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    host = args.host or settings.host
    port = args.port or settings.port
    logger.info(f"Starting server on http://{host}:{port}")
    logger.info(f"Log level: {args.log_level}")

    uvicorn.run(
        "agent_relay.main:app",
        host=host,
        port=port,
        log_level=args.log_level.lower(),
        # Use HTTP/1.1 for lower overhead than HTTP/2
        http="h11",
        # Disable access logs for lower overhead, we have our own logging
        access_log=False,
    )


if __name__ == "__main__":
    main()
