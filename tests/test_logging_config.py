import unittest
import logging
from agent_relay.config.logging_config import configure_logging, session_logger

class TestLoggingConfig(unittest.TestCase):
    def test_configure_logging(self):
        # Test that the function returns a logger
        logger = configure_logging("INFO")
        self.assertIsInstance(logger, logging.Logger)

        # Test that the logger has the correct name
        self.assertEqual(logger.name, "agent_relay")

        # Test that the logger has the correct level
        self.assertEqual(logger.level, logging.INFO)

        # Test that the logger has the correct handlers and format
        self.assertGreaterEqual(len(logger.handlers), 1)  # At least one handler (console)
        handler = logger.handlers[0]  # Check first handler (should be console handler)
        self.assertIsInstance(handler, logging.StreamHandler)
        formatter = handler.formatter
        self.assertEqual(formatter._fmt, "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        self.assertFalse(logger.propagate)

    def test_configure_logging_level_override(self):
        logger = configure_logging("debug")
        self.assertEqual(logger.level, logging.DEBUG)
        configure_logging("INFO")

    def test_reconfigure_replaces_handlers(self):
        first = len(configure_logging("INFO").handlers)
        second = len(configure_logging("INFO").handlers)
        self.assertEqual(first, second)

    def test_session_logger_prefixes_correlation_id(self):
        adapter = session_logger("call-42")
        self.assertEqual(adapter.logger.name, "agent_relay")
        msg, _ = adapter.process("hello", {})
        self.assertEqual(msg, "[call-42] hello")

        msg, _ = session_logger(None).process("hello", {})
        self.assertEqual(msg, "[-] hello")

if __name__ == "__main__":
    unittest.main()
