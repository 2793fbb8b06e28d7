"""Logseq MCP server: entity resolution and link synchronization over the Logseq HTTP API."""

__version__ = "0.1.0"
