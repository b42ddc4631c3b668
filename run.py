"""Entry point for the Service Desk API.

Launches the FastAPI application with Uvicorn.  It is intended to be
executed from the project root, for example in Docker, where you only
specify a single Python file to run.

Host and port are read from ``SERVICE_DESK_HOST`` and
``SERVICE_DESK_PORT`` (defaults ``0.0.0.0`` and ``8000``).  Everything
else is configured through the variables read by
``service_desk_api.app.core.config``.

Usage:
    python run.py
"""
import asyncio
import os

from uvicorn import Config, Server


async def main() -> None:
    """Serve the API until interrupted."""
    host = os.getenv("SERVICE_DESK_HOST", "0.0.0.0")
    port = int(os.getenv("SERVICE_DESK_PORT", "8000"))
    config = Config(app="service_desk_api.app.main:app", host=host, port=port, reload=False, log_level="info")
    server = Server(config)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
