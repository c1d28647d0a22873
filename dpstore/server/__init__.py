"""
Entry point for the store server.
"""

import uvicorn

from dpstore.common.config import Config

from .core import OrderServer


def start_server(config: Config | None = None) -> None:
    """Start the store server."""
    server = OrderServer(config=config)
    uvicorn.run(server.app, host=server.server_host, port=server.server_port)
