"""
RerunTV Streaming Module

Serves the on-air episode to clients.

Components:
- StreamDispatcher: Passthrough vs. seek-and-remux decision and response
- TranscodeSession: FFmpeg process piped to a client
- parse_range_header: HTTP byte-range handling for passthrough
"""

from reruntv.streaming.dispatcher import (
    AudioCodecProbe,
    DispatchMode,
    DispatchPlan,
    StreamDispatcher,
)
from reruntv.streaming.errors import (
    MediaFileError,
    RangeNotSatisfiable,
    StreamError,
    TranscoderError,
)
from reruntv.streaming.ranges import ByteRange, parse_range_header
from reruntv.streaming.transcoder import TranscodeSession, build_transcode_command

__all__ = [
    "AudioCodecProbe",
    "ByteRange",
    "DispatchMode",
    "DispatchPlan",
    "MediaFileError",
    "RangeNotSatisfiable",
    "StreamDispatcher",
    "StreamError",
    "TranscodeSession",
    "TranscoderError",
    "build_transcode_command",
    "parse_range_header",
]
