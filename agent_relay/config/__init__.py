"""
Configuration module for the agent relay.

This module provides centralized configuration management for the entire application,
including constants, logging setup, and environment-based settings.

Key components:
- constants: Defines application-wide constants used across modules, including
  upstream message names, client frame types, and agent defaults.
- logging_config: Provides a consistent logging infrastructure with support for
  console and file-based logging with rotation capabilities.
- settings: Loads the process settings once at startup and fails fast when a
  required value such as DEEPGRAM_API_KEY is missing.

Usage examples:
```python
from agent_relay.config.logging_config import configure_logging
from agent_relay.config.settings import load_settings

logger = configure_logging()
settings = load_settings()
logger.info(f"Relaying to {settings.agent_url}")

# The per-session snapshot sent to the agent service
settings_message = settings.agent.to_settings_message()
```
"""
