"""Shared FastAPI dependencies."""

from fastapi import HTTPException, Request

from reruntv.playout.channel import Channel
from reruntv.streaming.dispatcher import StreamDispatcher


def get_channel(request: Request) -> Channel:
    """The running channel, or 503 while it is still starting."""
    channel = getattr(request.app.state, "channel", None)
    if channel is None:
        raise HTTPException(status_code=503, detail="Channel not initialized")
    return channel


def get_dispatcher(request: Request) -> StreamDispatcher:
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        raise HTTPException(status_code=503, detail="Streaming not initialized")
    return dispatcher
