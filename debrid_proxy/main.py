"""
Server entry point.

Dependencies: uvicorn, debrid_proxy.api
System role: Process launcher for the ASGI app
"""

import uvicorn

from debrid_proxy.api.main import create_app
from debrid_proxy.configs import get_settings

app = create_app()


def run() -> None:
    """Serve the app with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "debrid_proxy.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
