"""
Workout sync MCP server.

Keeps per-user sessions to Garmin Connect and Intervals.icu, converts
vendor-neutral structured workouts to each vendor's format, and pushes,
schedules, reschedules and deletes them on the vendor calendar.

Supports two transport modes:
- stdio: For single-user local usage (default)
- http: For multi-user HTTP server deployment
"""

import os

from fastmcp import FastMCP

from workout_sync import auth_tool
from workout_sync import activities
from workout_sync import workouts


def create_app() -> FastMCP:
    """Create and configure the MCP app with all tools registered."""
    app = FastMCP("Workout Sync v1.0")

    # Register connection tools (connect, disconnect, status)
    app = auth_tool.register_tools(app)

    # Register read tools (activities, calendar, daily stats)
    app = activities.register_tools(app)

    # Register workout tools (push, schedule, reschedule, delete)
    app = workouts.register_tools(app)

    return app


def main():
    """Initialize the MCP server and run with configured transport.

    Environment variables:
    - MCP_TRANSPORT: 'stdio' (default) or 'http'
    - MCP_HOST: Host to bind to (default: '0.0.0.0')
    - MCP_PORT: Port for HTTP transport (default: 8081)
    """
    app = create_app()

    transport = os.environ.get("MCP_TRANSPORT", "stdio")

    if transport == "http":
        host = os.environ.get("MCP_HOST", "0.0.0.0")
        port = int(os.environ.get("MCP_PORT", "8081"))
        app.run(transport="http", host=host, port=port)
    else:
        app.run()


if __name__ == "__main__":
    main()
