"""Startup script for the Breakdown Tracker API."""

import os

import uvicorn


def main() -> None:
    """Start the API server with graceful shutdown configuration."""
    host = os.getenv("BREAKDOWNTRACKER_HOST", "0.0.0.0")
    port = int(os.getenv("BREAKDOWNTRACKER_PORT", "8000"))
    reload = os.getenv("BREAKDOWNTRACKER_RELOAD", "false").lower() == "true"
    shutdown_timeout = int(os.getenv("SHUTDOWN_TIMEOUT_SECONDS", "30"))

    config = uvicorn.Config(
        "breakdowntracker_api.main:app",
        host=host,
        port=port,
        reload=reload,
        timeout_graceful_shutdown=shutdown_timeout,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )

    server = uvicorn.Server(config)
    server.run()


if __name__ == "__main__":
    main()
