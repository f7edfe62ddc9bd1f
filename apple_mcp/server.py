#!/usr/bin/env python3
"""Apple MCP Server

An MCP server exposing Apple Contacts, Messages and Reminders over stdio.
"""

import asyncio
import json
import logging
import sys
from typing import List, Optional

from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions
import mcp.server.stdio
import mcp.types as types

from apple_mcp import __version__
from apple_mcp.config import Settings
from apple_mcp.dispatcher import ToolDispatcher, ToolResponse
from apple_mcp.loader import InitResult, build_default_loader, initialize
from apple_mcp.tools import TOOLS

logger = logging.getLogger("apple_mcp.server")


class ToolResponseError(Exception):
    """Carries an error response out of the call_tool handler so it is flagged as an error."""

    def __init__(self, response: ToolResponse):
        self.response = response
        super().__init__(response.text)


class StdoutFilter:
    """
    Stand-in for ``sys.stdout`` while the stdio transport owns the real one.

    The transport writes to ``buffer`` directly. Text writes that are not
    JSON-RPC messages would corrupt the protocol stream, so they are dropped
    and logged to stderr instead.
    """

    def __init__(self, stream):
        self._stream = stream
        self.buffer = stream.buffer

    def write(self, text: str) -> int:
        stripped = text.strip()
        if not stripped:
            return len(text)
        if _is_protocol_message(stripped):
            return self._stream.write(text)
        logger.debug(f"Dropped non-protocol stdout write: {stripped[:200]}")
        return len(text)

    def flush(self) -> None:
        self._stream.flush()

    def __getattr__(self, name):
        return getattr(self._stream, name)


def _is_protocol_message(text: str) -> bool:
    try:
        payload = json.loads(text)
    except ValueError:
        return False
    return isinstance(payload, dict) and payload.get("jsonrpc") == "2.0"


def install_stdout_filter() -> StdoutFilter:
    if not isinstance(sys.stdout, StdoutFilter):
        sys.stdout = StdoutFilter(sys.stdout)
    return sys.stdout


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )


def to_content(response: ToolResponse) -> List[types.TextContent]:
    content = [types.TextContent(type="text", text=response.text)]
    if response.data is not None:
        content.append(types.TextContent(type="text", text=json.dumps(response.data, indent=2, default=str)))
    return content


class AppleMCPServer:
    def __init__(self, settings: Optional[Settings] = None, init: Optional[InitResult] = None):
        self.settings = settings or Settings()
        if init is None:
            init = initialize(build_default_loader(self.settings), timeout=self.settings.load_timeout)
        self.init = init
        self.dispatcher = ToolDispatcher(init)
        self.server = Server(self.settings.server_name)
        self._setup_handlers()

    def _setup_handlers(self):
        @self.server.list_tools()
        async def handle_list_tools() -> List[types.Tool]:
            return TOOLS

        @self.server.call_tool()
        async def handle_call_tool(
            name: str, arguments: Optional[dict] = None
        ) -> List[types.TextContent]:
            return await self.call_tool(name, arguments)

    async def call_tool(self, name: str, arguments: Optional[dict] = None) -> List[types.TextContent]:
        """
        Run one tool call off the event loop.

        Raises:
            ToolResponseError: the call failed; the server reports its text
                               with the protocol error flag set
        """
        response = await asyncio.to_thread(self.dispatcher.dispatch, name, arguments)
        if response.is_error:
            raise ToolResponseError(response)
        return to_content(response)

    async def run(self):
        """Run the MCP server."""
        logger.info(f"Apple MCP Server starting in {self.init.mode} mode...")
        try:
            async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    InitializationOptions(
                        server_name=self.settings.server_name,
                        server_version=__version__,
                        capabilities=self.server.get_capabilities(
                            notification_options=NotificationOptions(),
                            experimental_capabilities={},
                        ),
                    ),
                )
        finally:
            self.close()

    def close(self):
        """Stop background work owned by loaded backends."""
        if self.init.loader.is_loaded("messages"):
            self.init.loader.get("messages").close()


async def health_check(settings: Optional[Settings] = None) -> bool:
    """Build the server and its backends without serving."""
    try:
        server = AppleMCPServer(settings)
        logger.info(f"Apple MCP Server initialized successfully ({server.init.mode} mode)")
        return True
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return False


def run_server():
    """Run the MCP server with proper error handling"""
    settings = Settings.from_env()
    setup_logging(settings.log_level)

    # Check for health check argument
    if len(sys.argv) > 1 and sys.argv[1] == "--health":
        success = asyncio.run(health_check(settings))
        sys.exit(0 if success else 1)

    install_stdout_filter()
    try:
        server = AppleMCPServer(settings)
        asyncio.run(server.run())
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Failed to start server: {str(e)}")
        sys.exit(1)


if __name__ == "__main__":
    run_server()
