"""
RerunTV Main Application

FastAPI application entry point for the virtual channel.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from reruntv import __version__
from reruntv.config import get_config, load_config

# Logger
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown tasks:
    - Scan the show library and build the channel
    - Start periodic persistence and rescans
    - Persist the final position on shutdown
    """
    from reruntv.playout.channel import Channel
    from reruntv.streaming.dispatcher import StreamDispatcher

    # Startup
    logger.info(f"Starting RerunTV v{__version__}")

    config = get_config()
    logger.info(f"Configuration loaded, shows directory: {config.channel.shows_dir}")

    app.state.dispatcher = StreamDispatcher(config.ffmpeg, config.streaming)

    channel = await Channel.create(config)
    await channel.start()
    app.state.channel = channel

    snapshot = channel.snapshot()
    if snapshot.item is not None:
        logger.info(
            f"On air: {snapshot.item.episode.filename} at {snapshot.position}s"
        )
    else:
        logger.warning("Catalog is empty, nothing on air")

    yield

    # Shutdown
    logger.info("Shutting down RerunTV...")
    app.state.channel = None
    try:
        await channel.stop()
        logger.info("Channel stopped")
    except Exception as e:
        logger.warning(f"Error stopping channel: {e}")

    logger.info("RerunTV shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="RerunTV",
        description="Virtual linear TV channel built from a folder of episodes",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )
    app.state.channel = None
    app.state.dispatcher = None

    # Register API routers
    from reruntv.api import api_router
    app.include_router(api_router)

    return app


app = create_app()


def main() -> None:
    """
    Main entry point for running the server.

    Called when running `python -m reruntv` or via the CLI.
    """
    import uvicorn
    from reruntv.utils.logging_setup import parse_size, setup_logging

    config = load_config()

    # Configure logging using setup_logging
    setup_logging(
        log_level=config.logging.level,
        log_file_name=config.logging.file,
        log_to_console=True,
        log_to_file=True,
        max_bytes=parse_size(config.logging.max_size),
        backup_count=config.logging.backup_count,
        log_format=config.logging.format,
    )

    logger.info(f"Starting RerunTV v{__version__}")

    uvicorn.run(
        "reruntv.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.debug,
        log_level=config.server.log_level.lower(),
    )


if __name__ == "__main__":
    main()
