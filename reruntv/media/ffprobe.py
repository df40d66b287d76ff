"""
FFprobe media analysis.

Extracts the duration and codec information the channel needs using FFprobe.
"""

import asyncio
import json
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class ProbeError(RuntimeError):
    """FFprobe could not analyze a file."""


@dataclass
class StreamInfo:
    """A single audio or video stream."""

    index: int
    codec_type: str
    codec_name: str
    language: Optional[str] = None


@dataclass
class MediaInfo:
    """Media file information."""

    path: Path
    format_name: str
    duration: float  # seconds
    video_streams: List[StreamInfo] = field(default_factory=list)
    audio_streams: List[StreamInfo] = field(default_factory=list)

    @property
    def primary_video(self) -> Optional[StreamInfo]:
        return self.video_streams[0] if self.video_streams else None

    @property
    def primary_audio(self) -> Optional[StreamInfo]:
        return self.audio_streams[0] if self.audio_streams else None

    @property
    def audio_codec(self) -> Optional[str]:
        audio = self.primary_audio
        return audio.codec_name if audio else None


class FFprobeAnalyzer:
    """Analyzes media files using FFprobe."""

    def __init__(self, ffprobe_path: Optional[str] = None, timeout: float = 30.0):
        self.ffprobe_path = ffprobe_path or shutil.which("ffprobe") or "ffprobe"
        self.timeout = timeout

    async def analyze(self, path: Path) -> MediaInfo:
        """
        Analyze a media file.

        Args:
            path: Path to media file.

        Returns:
            MediaInfo for the file.

        Raises:
            ProbeError: FFprobe is missing, failed, timed out or produced
                unreadable output.
        """
        cmd = [
            self.ffprobe_path,
            "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            str(path),
        ]

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ProbeError(f"Could not run ffprobe at {self.ffprobe_path}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise ProbeError(f"FFprobe timeout for {path}")

        if process.returncode != 0:
            error = stderr.decode("utf-8", errors="replace") if stderr else "Unknown error"
            raise ProbeError(f"FFprobe failed for {path}: {error.strip()}")

        try:
            data = json.loads(stdout.decode("utf-8", errors="replace"))
        except json.JSONDecodeError as e:
            raise ProbeError(f"FFprobe output parse error for {path}: {e}") from e

        return self._parse_result(path, data)

    async def duration(self, path: Path) -> int:
        """
        Whole-second duration of a media file.

        Raises:
            ProbeError: The file could not be probed or reports no duration.
        """
        info = await self.analyze(path)
        if info.duration <= 0:
            raise ProbeError(f"No duration found in metadata for {path}")
        return int(info.duration)

    def _parse_result(self, path: Path, data: Dict[str, Any]) -> MediaInfo:
        """Parse FFprobe JSON output."""
        fmt = data.get("format", {})

        try:
            duration = float(fmt.get("duration", 0) or 0)
        except (TypeError, ValueError):
            duration = 0.0

        media_info = MediaInfo(
            path=path,
            format_name=fmt.get("format_name", "unknown"),
            duration=duration,
        )

        for stream in data.get("streams", []):
            codec_type = stream.get("codec_type")
            if codec_type not in ("video", "audio"):
                continue

            info = StreamInfo(
                index=stream.get("index", 0),
                codec_type=codec_type,
                codec_name=stream.get("codec_name", "unknown"),
                language=stream.get("tags", {}).get("language"),
            )
            if codec_type == "video":
                media_info.video_streams.append(info)
            else:
                media_info.audio_streams.append(info)

            # Some containers only report duration on the stream
            if media_info.duration <= 0 and stream.get("duration"):
                try:
                    media_info.duration = float(stream["duration"])
                except (TypeError, ValueError):
                    pass

        return media_info
