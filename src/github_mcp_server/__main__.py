#!/usr/bin/env python3
"""Command line entry for the GitHub tools server.

Serves the six GitHub tools over stdio using GITHUB_PERSONAL_ACCESS_TOKEN. A missing or
malformed configuration exits with status 1 before any request is read.

  github-mcp-server            # serve
  github-mcp-server --test     # check the tool listing against the operation table, then exit
"""

import argparse
import asyncio
import sys

from github_mcp_server.errors import ToolError
from github_mcp_server.server import run_server, test_server


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(prog="github_mcp_server", add_help=True)
    parser.add_argument(
        "--test",
        action="store_true",
        help="Run built-in server self tests (tool & resource listing) then exit.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """CLI dispatcher for the MCP server."""
    args = parse_args(sys.argv[1:] if argv is None else argv)
    try:
        if args.test:
            asyncio.run(test_server())
        else:
            asyncio.run(run_server())
    except KeyboardInterrupt:
        print("\nServer stopped by user", file=sys.stderr)
    except ToolError as exc:
        print(f"Fatal error: {exc.message}", file=sys.stderr)
        sys.exit(1)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        print(f"Server error: {exc}", file=sys.stderr)
        raise


if __name__ == "__main__":
    main()
