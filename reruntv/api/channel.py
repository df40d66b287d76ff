"""Channel API endpoints: what is on air, what is next, and the stream itself."""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response

from reruntv.api.dependencies import get_channel, get_dispatcher
from reruntv.playout.channel import Channel
from reruntv.streaming.dispatcher import StreamDispatcher
from reruntv.streaming.errors import MediaFileError, RangeNotSatisfiable, StreamError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Channel"])


@router.get("/current")
async def current(channel: Channel = Depends(get_channel)) -> dict[str, Any]:
    """
    The on-air episode and the offset into it.

    Returns:
        dict: currentItem (null when the catalog is empty), position in
        seconds and the server timestamp in milliseconds.
    """
    return channel.snapshot().to_dict()


@router.get("/upcoming")
async def upcoming(
    count: int = Query(10, ge=1, le=100),
    channel: Channel = Depends(get_channel),
) -> dict[str, Any]:
    """Items scheduled to start from now on."""
    now = channel.engine.clock()
    items = channel.upcoming(count=count, now_ms=now)
    return {
        "items": [item.to_dict() for item in items],
        "timestamp": now,
    }


@router.get("/stream")
async def stream(
    request: Request,
    start: Optional[int] = Query(None, ge=0, description="Offset into the episode in seconds"),
    channel: Channel = Depends(get_channel),
    dispatcher: StreamDispatcher = Depends(get_dispatcher),
) -> Response:
    """
    Stream the on-air episode.

    Without an offset the file is served as-is and honors Range requests;
    with one FFmpeg seeks to it server-side.
    """
    snapshot = channel.snapshot()
    if snapshot.item is None:
        raise HTTPException(status_code=404, detail="Nothing is on air")

    episode = snapshot.item.episode
    try:
        return await dispatcher.dispatch(
            episode.path,
            offset_seconds=start or 0,
            range_header=request.headers.get("Range"),
        )
    except RangeNotSatisfiable as e:
        return Response(status_code=416, headers={"Content-Range": e.content_range})
    except MediaFileError as e:
        logger.error(f"Cannot stream {episode.filename}: {e}")
        raise HTTPException(status_code=500, detail="Media file unavailable")
    except StreamError as e:
        logger.error(f"Stream failed for {episode.filename}: {e}")
        raise HTTPException(status_code=e.status_code, detail=f"Stream failed: {e!s}")
