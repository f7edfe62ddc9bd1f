"""
Tests for environment-driven settings
"""
import os
import unittest
from unittest.mock import patch

from pydantic import ValidationError

from apple_mcp.config import Settings


class TestSettings(unittest.TestCase):
    """Tests for Settings.from_env"""

    @patch.dict(os.environ, {}, clear=True)
    @patch('apple_mcp.config.load_dotenv')
    def test_defaults(self, mock_load):
        settings = Settings.from_env()

        self.assertEqual(settings.server_name, "apple-mcp")
        self.assertEqual(settings.max_contacts, 1000)
        self.assertEqual(settings.load_timeout, 5.0)
        self.assertTrue(settings.messages_db_path.endswith("Library/Messages/chat.db"))
        mock_load.assert_called_once()

    @patch.dict(os.environ, {"APPLE_MCP_MAX_CONTACTS": "25", "APPLE_MCP_SCRIPT_TIMEOUT": "2.5"}, clear=True)
    @patch('apple_mcp.config.load_dotenv')
    def test_overrides(self, mock_load):
        settings = Settings.from_env()

        self.assertEqual(settings.max_contacts, 25)
        self.assertEqual(settings.script_timeout, 2.5)

    @patch.dict(os.environ, {"APPLE_MCP_MAX_CONTACTS": "0"}, clear=True)
    @patch('apple_mcp.config.load_dotenv')
    def test_invalid_value(self, mock_load):
        with self.assertRaises(ValidationError):
            Settings.from_env()


if __name__ == '__main__':
    unittest.main()
