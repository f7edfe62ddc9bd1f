#!/usr/bin/env python3
"""
Entry point for running the Apple MCP server from a checkout.
"""
from apple_mcp.server import run_server


def main():
    """Entry point for the apple-mcp package"""
    run_server()


if __name__ == "__main__":
    main()
