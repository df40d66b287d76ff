"""
Stream dispatcher.

Turns "play this file from this offset" into an HTTP response: either the
stored bytes with byte-range support, or an FFmpeg session that seeks
server-side and fixes up the audio for browsers.
"""

import logging
import mimetypes
import os
from collections.abc import AsyncIterator, Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from threading import Lock
from typing import BinaryIO, Dict, Optional, Tuple

from starlette.background import BackgroundTask
from starlette.responses import Response, StreamingResponse

from reruntv.config import FFmpegConfig, StreamingConfig
from reruntv.media.ffprobe import FFprobeAnalyzer, ProbeError
from reruntv.streaming.errors import MediaFileError, RangeNotSatisfiable
from reruntv.streaming.ranges import parse_range_header
from reruntv.streaming.transcoder import TranscodeSession, build_transcode_command

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "video/mp4"


class DispatchMode(str, Enum):
    """How a stream request is served."""

    PASSTHROUGH = "passthrough"
    TRANSCODE = "transcode"


@dataclass(frozen=True)
class DispatchPlan:
    """Decision for one request."""

    mode: DispatchMode
    path: str
    offset_seconds: int = 0
    audio_codec: Optional[str] = None
    reencode_audio: bool = False

    @property
    def supports_ranges(self) -> bool:
        return self.mode == DispatchMode.PASSTHROUGH


class AudioCodecProbe:
    """FFprobe audio codec lookup, memoized per (path, mtime)."""

    def __init__(self, analyzer: FFprobeAnalyzer):
        self.analyzer = analyzer
        self._cache: Dict[Tuple[str, float], Optional[str]] = {}
        self._lock = Lock()

    async def codec(self, path: str) -> Optional[str]:
        """
        Audio codec name of the file's first audio stream.

        Returns:
            Lowercase codec name, or None when unknown.
        """
        try:
            mtime = os.stat(path).st_mtime
        except OSError:
            return None

        key = (path, mtime)
        with self._lock:
            if key in self._cache:
                return self._cache[key]

        try:
            info = await self.analyzer.analyze(path)
            codec = info.audio_codec.lower() if info.audio_codec else None
        except ProbeError as e:
            logger.warning(f"Audio probe failed for {path}: {e}")
            codec = None

        with self._lock:
            self._cache[key] = codec
        return codec


class StreamDispatcher:
    """
    Chooses and issues the response for a resolved playback position.

    Rules:
    - A non-zero offset needs a server-side seek, so it is always transcoded
    - Audio codecs browsers cannot play are re-encoded to AAC
    - Everything else is served as-is with byte-range support
    """

    def __init__(
        self,
        ffmpeg: Optional[FFmpegConfig] = None,
        streaming: Optional[StreamingConfig] = None,
        analyzer: Optional[FFprobeAnalyzer] = None,
    ):
        self.ffmpeg = ffmpeg or FFmpegConfig()
        self.streaming = streaming or StreamingConfig()
        self.probe = AudioCodecProbe(
            analyzer
            or FFprobeAnalyzer(
                ffprobe_path=self.ffmpeg.ffprobe_path,
                timeout=self.ffmpeg.probe_timeout_seconds,
            )
        )
        self._browser_codecs = {codec.lower() for codec in self.ffmpeg.browser_audio_codecs}

    def is_browser_compatible(self, audio_codec: Optional[str]) -> bool:
        """Unknown codecs are assumed to play."""
        return audio_codec is None or audio_codec.lower() in self._browser_codecs

    async def plan(self, path: str, offset_seconds: int = 0) -> DispatchPlan:
        """Decide how to serve a file from an offset."""
        offset_seconds = max(0, int(offset_seconds))
        audio_codec = await self.probe.codec(path)
        compatible = self.is_browser_compatible(audio_codec)

        if offset_seconds > 0 or not compatible:
            return DispatchPlan(
                mode=DispatchMode.TRANSCODE,
                path=path,
                offset_seconds=offset_seconds,
                audio_codec=audio_codec,
                reencode_audio=not compatible,
            )
        return DispatchPlan(mode=DispatchMode.PASSTHROUGH, path=path, audio_codec=audio_codec)

    def build_command(self, plan: DispatchPlan) -> list[str]:
        return build_transcode_command(
            plan.path,
            offset_seconds=plan.offset_seconds,
            reencode_audio=plan.reencode_audio,
            ffmpeg_path=self.ffmpeg.path,
            audio_bitrate=self.ffmpeg.audio_bitrate,
            log_level=self.ffmpeg.log_level,
        )

    async def dispatch(
        self,
        path: str,
        offset_seconds: int = 0,
        range_header: Optional[str] = None,
    ) -> Response:
        """
        Serve a file from an offset.

        Raises:
            MediaFileError: The file is missing or unreadable.
            RangeNotSatisfiable: The Range header cannot be honored.
            TranscoderError: FFmpeg failed before sending any output.
        """
        if not os.path.isfile(path):
            raise MediaFileError(path, "not found")

        plan = await self.plan(path, offset_seconds)
        logger.info(
            f"Dispatching {Path(path).name} at {plan.offset_seconds}s as {plan.mode.value}"
            + (f" (audio {plan.audio_codec} -> aac)" if plan.reencode_audio else "")
        )

        if plan.mode == DispatchMode.TRANSCODE:
            return await self._transcode(plan)
        return self._passthrough(plan, range_header)

    def _passthrough(self, plan: DispatchPlan, range_header: Optional[str]) -> Response:
        try:
            file_size = os.path.getsize(plan.path)
            handle = open(plan.path, "rb")
        except OSError as e:
            raise MediaFileError(plan.path, str(e)) from e

        try:
            byte_range = parse_range_header(
                range_header, file_size, self.streaming.range_chunk_size
            )
        except RangeNotSatisfiable:
            handle.close()
            raise

        headers = {"Accept-Ranges": "bytes"}
        content_type = mimetypes.guess_type(plan.path)[0] or DEFAULT_CONTENT_TYPE

        if byte_range is None:
            start, length, status = 0, file_size, 200
        else:
            start, length, status = byte_range.start, byte_range.length, 206
            headers["Content-Range"] = byte_range.content_range
        headers["Content-Length"] = str(length)

        return StreamingResponse(
            self._read_file(handle, start, length),
            status_code=status,
            headers=headers,
            media_type=content_type,
            background=BackgroundTask(handle.close),
        )

    def _read_file(self, handle: BinaryIO, start: int, length: int) -> Iterator[bytes]:
        """Read length bytes from start; runs in the threadpool."""
        try:
            handle.seek(start)
            remaining = length
            while remaining > 0:
                chunk = handle.read(min(self.streaming.read_size, remaining))
                if not chunk:
                    break
                remaining -= len(chunk)
                yield chunk
        except OSError as e:
            logger.error(f"Error reading {handle.name}: {e}")
        finally:
            handle.close()

    async def _transcode(self, plan: DispatchPlan) -> Response:
        session = TranscodeSession(
            self.build_command(plan),
            read_size=self.streaming.read_size,
            start_timeout=self.ffmpeg.start_timeout_seconds,
        )
        await session.start()

        async def body() -> AsyncIterator[bytes]:
            try:
                async with session:
                    async for chunk in session.chunks():
                        yield chunk
            except Exception as e:
                logger.error(f"Transcode of {plan.path} failed after {session.bytes_sent} bytes: {e}")

        return StreamingResponse(
            body(),
            media_type=DEFAULT_CONTENT_TYPE,
            headers={"Cache-Control": "no-cache"},
            background=BackgroundTask(session.close),
        )
