#!/usr/bin/env python3
"""
MCP Archy - Entry Point

Supports multiple transport modes:
- stdio: Standard I/O (default, for Claude Desktop)
- sse: Server-Sent Events over HTTP
- http: Streamable HTTP transport
"""

import argparse
import logging
import sys

from .config import Settings


def main():
    parser = argparse.ArgumentParser(
        description="MCP server that generates Mermaid diagrams",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with STDIO transport (default, for Claude Desktop)
  mcp-archy

  # Run with SSE transport on port 8080
  mcp-archy --transport sse --port 8080

  # Run with HTTP transport on custom port and verbose logging
  mcp-archy --transport http --port 3000 --log-level DEBUG

Environment:
  OPENROUTER_API_KEY  enables the AI-powered tools
  GITHUB_TOKEN        authenticates GitHub API requests and clones
"""
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "http"],
        default="stdio",
        help="Transport mode (default: stdio)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8080,
        help="Port for SSE/HTTP transport (default: 8080)"
    )
    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Host to bind for SSE/HTTP transport (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=Settings.from_env().log_level,
        help="Logging level (default: $ARCHY_LOG_LEVEL or INFO)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__import__('mcp_archy').__version__}"
    )

    args = parser.parse_args()

    # stdout carries the stdio protocol, so logs go to stderr
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    from .server import mcp

    if args.transport == "stdio":
        mcp.run()

    elif args.transport == "sse":
        try:
            import uvicorn
        except ImportError as e:
            print(f"Error: SSE transport requires additional dependencies: {e}", file=sys.stderr)
            print("Install with: pip install 'mcp-archy[sse]'", file=sys.stderr)
            sys.exit(1)

        print(f"Starting SSE server on {args.host}:{args.port}", file=sys.stderr)
        print(f"SSE endpoint: http://{args.host}:{args.port}/sse", file=sys.stderr)
        uvicorn.run(mcp.sse_app(), host=args.host, port=args.port, log_level=args.log_level.lower())

    elif args.transport == "http":
        try:
            import uvicorn
        except ImportError as e:
            print(f"Error: HTTP transport requires additional dependencies: {e}", file=sys.stderr)
            print("Install with: pip install 'mcp-archy[http]'", file=sys.stderr)
            sys.exit(1)

        print(f"Starting HTTP server on {args.host}:{args.port}", file=sys.stderr)
        print(f"MCP endpoint: http://{args.host}:{args.port}/mcp", file=sys.stderr)
        uvicorn.run(mcp.streamable_http_app(), host=args.host, port=args.port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
