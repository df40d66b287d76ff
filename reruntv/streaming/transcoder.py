"""
FFmpeg seek-and-remux sessions.

Seeks into an episode server-side, copies the video stream, and either
copies or re-encodes the audio to AAC. Output is fragmented MP4 on stdout
so it can be streamed to a browser as it is produced.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import List, Optional

from reruntv.streaming.errors import TranscoderError

logger = logging.getLogger(__name__)

FRAGMENTED_MP4_FLAGS = "frag_keyframe+empty_moov+default_base_moof"
TERMINATE_TIMEOUT = 5.0


def build_transcode_command(
    input_path: str,
    offset_seconds: int = 0,
    reencode_audio: bool = False,
    ffmpeg_path: str = "ffmpeg",
    audio_bitrate: str = "192k",
    log_level: str = "error",
) -> List[str]:
    """
    Build the FFmpeg command line for one session.

    The seek is placed before ``-i`` so FFmpeg seeks the input rather than
    decoding up to the offset.

    Args:
        input_path: Episode file.
        offset_seconds: Position to start from.
        reencode_audio: Re-encode audio to AAC instead of copying it.
        ffmpeg_path: FFmpeg binary.
        audio_bitrate: AAC bitrate when re-encoding.
        log_level: FFmpeg log level.

    Returns:
        FFmpeg command as list of arguments.
    """
    cmd = [ffmpeg_path, "-hide_banner", "-nostdin", "-loglevel", log_level]

    if offset_seconds > 0:
        cmd.extend(["-ss", str(offset_seconds)])

    cmd.extend(["-i", input_path, "-map", "0:v:0", "-map", "0:a:0?"])
    cmd.extend(["-c:v", "copy"])

    if reencode_audio:
        cmd.extend(["-c:a", "aac", "-b:a", audio_bitrate])
    else:
        cmd.extend(["-c:a", "copy"])

    cmd.extend(["-movflags", FRAGMENTED_MP4_FLAGS, "-f", "mp4", "pipe:1"])
    return cmd


class TranscodeSession:
    """
    One running FFmpeg process piped to a client.

    Entering the session starts FFmpeg and waits for its first chunk, unless
    start() already did so. Leaving it always terminates the process.

    Example:
        async with TranscodeSession(cmd) as session:
            async for chunk in session.chunks():
                ...
    """

    def __init__(self, command: List[str], read_size: int = 65536, start_timeout: float = 10.0):
        self.command = command
        self.read_size = read_size
        self.start_timeout = start_timeout
        self.process: Optional[asyncio.subprocess.Process] = None
        self.bytes_sent = 0
        self._first_chunk = b""

    async def __aenter__(self) -> "TranscodeSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> None:
        """
        Start FFmpeg and wait for its first output.

        Does nothing if the session is already running.

        Raises:
            TranscoderError: FFmpeg failed to start, exited without output,
                or stayed silent past the start timeout.
        """
        if self.process is not None:
            return

        logger.info(f"FFmpeg command: {' '.join(self.command)}")
        try:
            self.process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise TranscoderError(f"Failed to start FFmpeg: {e}") from e

        try:
            chunk = await asyncio.wait_for(
                self.process.stdout.read(self.read_size), timeout=self.start_timeout
            )
        except asyncio.TimeoutError:
            await self.close()
            raise TranscoderError(f"FFmpeg produced no output within {self.start_timeout}s")
        except BaseException:
            await self.close()
            raise

        if not chunk:
            stderr = await self._read_stderr()
            await self.close()
            raise TranscoderError(f"FFmpeg exited before producing output: {stderr}")

        self._first_chunk = chunk

    async def chunks(self) -> AsyncIterator[bytes]:
        """Yield output until FFmpeg finishes."""
        if self.process is None:
            raise TranscoderError("Transcode session was not started")

        if self._first_chunk:
            chunk, self._first_chunk = self._first_chunk, b""
            self.bytes_sent += len(chunk)
            yield chunk

        while True:
            chunk = await self.process.stdout.read(self.read_size)
            if not chunk:
                break
            self.bytes_sent += len(chunk)
            yield chunk

    async def close(self) -> None:
        """Terminate FFmpeg if it is still running."""
        process = self.process
        if process is None:
            return

        if process.returncode is None:
            try:
                process.terminate()
            except ProcessLookupError:
                pass
            try:
                await asyncio.wait_for(process.wait(), timeout=TERMINATE_TIMEOUT)
            except asyncio.TimeoutError:
                logger.warning("FFmpeg did not exit after terminate, killing it")
                process.kill()
                await process.wait()

        if process.returncode and process.returncode > 0:
            stderr = await self._read_stderr()
            if stderr:
                logger.warning(f"FFmpeg stderr: {stderr}")

    async def _read_stderr(self) -> str:
        if self.process is None or self.process.stderr is None:
            return ""
        try:
            data = await asyncio.wait_for(self.process.stderr.read(), timeout=1.0)
        except (asyncio.TimeoutError, OSError):
            return ""
        return data.decode("utf-8", errors="replace")[:500]
