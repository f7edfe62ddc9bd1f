"""
Apple MCP - an MCP server for Apple Contacts, Messages and Reminders on macOS.
"""

__version__ = "0.1.0"

from apple_mcp.applescript import AppleScriptError, run_applescript
from apple_mcp.resolver import resolve_name, resolve_numbers

__all__ = [
    "AppleScriptError",
    "run_applescript",
    "resolve_name",
    "resolve_numbers",
]
