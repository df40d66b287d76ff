"""Health check API endpoint for RerunTV"""

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Request

from reruntv import __version__

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check(request: Request) -> dict[str, Any]:
    """
    Basic health check endpoint.

    Returns:
        dict: Status, version, and whether the channel is up
    """
    channel = getattr(request.app.state, "channel", None)
    initialized = channel is not None
    return {
        "status": "healthy" if initialized else "starting",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "initialized": initialized,
    }


@router.get("/detailed")
async def detailed_health_check(request: Request) -> dict[str, Any]:
    """
    Health check with channel and task details.

    Returns:
        dict: Basic health plus catalog size, window size and periodic task state
    """
    result = await health_check(request)
    channel = getattr(request.app.state, "channel", None)
    if channel is not None:
        result["channel"] = {
            "shows": len(channel.engine.shows),
            "window_items": len(channel.engine.window),
            "epoch": channel.engine.epoch_ms,
            "tasks": channel.scheduler.get_tasks(),
        }
        if channel.monitor is not None:
            result["channel"]["last_rescan"] = (
                channel.monitor.last_rescan.isoformat() if channel.monitor.last_rescan else None
            )
            result["channel"]["last_rescan_error"] = channel.monitor.last_error
    return result
