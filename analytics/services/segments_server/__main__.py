"""Entry point for running MCP server as a module.

This allows running the server with: python -m analytics.services.segments_server
"""

if __name__ == "__main__":
    from analytics.services.segments_server.main import mcp

    mcp.run()
