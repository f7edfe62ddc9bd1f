"""
Tests for the MCP server wrapper
"""
import asyncio
import io
import json
import sys
import unittest
from unittest.mock import MagicMock, patch

import mcp.types as types

from apple_mcp.config import Settings
from apple_mcp.dispatcher import ToolResponse
from apple_mcp.loader import MODE_EAGER, InitResult, ModuleLoader
from apple_mcp.server import AppleMCPServer, StdoutFilter, ToolResponseError, install_stdout_filter, to_content


class FakeStdout(io.StringIO):
    def __init__(self):
        super().__init__()
        self.buffer = io.BytesIO()


class TestStdoutFilter(unittest.TestCase):
    """Tests for StdoutFilter"""

    def setUp(self):
        self.real = FakeStdout()
        self.filter = StdoutFilter(self.real)

    def test_drops_stray_text(self):
        print("debug output", file=self.filter)
        self.assertEqual(self.real.getvalue(), "")

    def test_passes_protocol_messages(self):
        message = json.dumps({"jsonrpc": "2.0", "id": 1, "result": {}})
        self.filter.write(message + "\n")
        self.assertEqual(self.real.getvalue(), message + "\n")

    def test_drops_non_protocol_json(self):
        self.filter.write('{"status": "ok"}')
        self.assertEqual(self.real.getvalue(), "")

    def test_buffer_is_the_real_buffer(self):
        self.assertIs(self.filter.buffer, self.real.buffer)

    def test_install_is_idempotent(self):
        with patch.object(sys, "stdout", self.real):
            first = install_stdout_filter()
            second = install_stdout_filter()
            self.assertIs(first, second)
            self.assertIsInstance(sys.stdout, StdoutFilter)


class TestAppleMCPServer(unittest.TestCase):
    """Tests for tool calls through the server wrapper"""

    def make_server(self, response):
        init = InitResult(mode=MODE_EAGER, loader=ModuleLoader({}))
        server = AppleMCPServer(Settings(), init=init)
        server.dispatcher = MagicMock()
        server.dispatcher.dispatch.return_value = response
        return server

    def test_success_returns_text(self):
        server = self.make_server(ToolResponse(text="Message sent to 555"))

        content = asyncio.run(server.call_tool("messages", {"operation": "send"}))

        self.assertEqual([c.text for c in content], ["Message sent to 555"])
        server.dispatcher.dispatch.assert_called_once_with("messages", {"operation": "send"})

    def test_data_is_appended_as_json(self):
        server = self.make_server(ToolResponse(text="Found 0 lists and 0 reminders.", data={"success": True}))

        content = asyncio.run(server.call_tool("reminders", {"operation": "list"}))

        self.assertEqual(len(content), 2)
        self.assertEqual(json.loads(content[1].text), {"success": True})

    def test_error_response_raises_with_verbatim_text(self):
        server = self.make_server(ToolResponse(text="Unknown tool: calendar", is_error=True))

        with self.assertRaises(ToolResponseError) as ctx:
            asyncio.run(server.call_tool("calendar", {}))

        self.assertEqual(str(ctx.exception), "Unknown tool: calendar")

    def test_to_content_without_data(self):
        self.assertEqual(len(to_content(ToolResponse(text="ok"))), 1)

    def test_list_tools_through_sdk_handler(self):
        server = self.make_server(ToolResponse(text="unused"))
        handler = server.server.request_handlers[types.ListToolsRequest]

        result = asyncio.run(handler(types.ListToolsRequest(method="tools/list")))

        self.assertEqual([tool.name for tool in result.root.tools], ["contacts", "messages", "reminders"])

    def test_close_stops_loaded_messages_backend(self):
        messages = MagicMock()
        loader = ModuleLoader({"messages": MagicMock(return_value=messages)})
        loader.install({"messages": messages})
        server = AppleMCPServer(Settings(), init=InitResult(mode=MODE_EAGER, loader=loader))

        server.close()

        messages.close.assert_called_once()

    def test_close_without_messages_loaded(self):
        factory = MagicMock()
        loader = ModuleLoader({"messages": factory})
        server = AppleMCPServer(Settings(), init=InitResult(mode=MODE_EAGER, loader=loader))

        server.close()

        factory.assert_not_called()


if __name__ == '__main__':
    unittest.main()
