"""
Server Entry Point

Runs the startup sequence in a fixed order: load settings, connect to
MongoDB, build the app (socket handler, middleware, routes), then bind
the port with uvicorn.
"""

import asyncio
import logging

import uvicorn

from app import create_app
from config import configure_logging, load_settings
from db import connect_db

logger = logging.getLogger(__name__)


class DeliveryServer(uvicorn.Server):
    """uvicorn server that reports readiness once the port is bound."""

    async def startup(self, sockets=None):
        await super().startup(sockets=sockets)
        if self.started:
            logger.info(f"Server is running on port {self.config.port}")
            logger.info("Socket.IO is ready for real-time delivery tracking")


async def main():
    settings = load_settings()
    configure_logging(settings.log_level)

    # Fatal on failure, no partial start
    db = await connect_db(settings)

    app = create_app(settings, db)

    config = uvicorn.Config(app, host="0.0.0.0", port=settings.port, log_config=None)
    try:
        await DeliveryServer(config).serve()
    finally:
        await db.client.close()
        logger.info("MongoDB connection closed")


if __name__ == "__main__":
    asyncio.run(main())
