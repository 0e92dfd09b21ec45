"""
MCP Archy
=========

MCP server that turns text descriptions, GitHub repositories, source code and
git history into Mermaid diagrams.

Supports:
- Rule-based generation for 12 diagram types
- Optional LLM generation and repair (OpenRouter via LangChain)
- Syntax validation and repair with Mermaid's own parser
- Export to PNG/SVG/PDF

Transport modes:
- STDIO (default): For Claude Desktop and other MCP clients
- SSE: Server-Sent Events over HTTP
- HTTP: Streamable HTTP transport
"""

__version__ = "0.1.0"

from .server import create_server, mcp

__all__ = ["create_server", "mcp", "__version__"]
