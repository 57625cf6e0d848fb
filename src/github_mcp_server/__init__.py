"""GitHub MCP Server.

Exposes repository, issue, file, pull request and fork operations on GitHub
to MCP clients.
"""

__version__ = "0.1.0"
