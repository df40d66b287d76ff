"""
Unit tests for the stream dispatch decision.
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from reruntv.config import FFmpegConfig, StreamingConfig
from reruntv.media.ffprobe import FFprobeAnalyzer, MediaInfo, ProbeError, StreamInfo
from reruntv.streaming.dispatcher import DispatchMode, StreamDispatcher
from reruntv.streaming.errors import MediaFileError, RangeNotSatisfiable, TranscoderError


def _analyzer(audio_codec=None, error=None) -> MagicMock:
    analyzer = MagicMock(spec=FFprobeAnalyzer)
    if error is not None:
        analyzer.analyze = AsyncMock(side_effect=error)
    else:
        audio = [StreamInfo(index=1, codec_type="audio", codec_name=audio_codec)] if audio_codec else []
        analyzer.analyze = AsyncMock(
            return_value=MediaInfo(path=Path("x"), format_name="mp4", duration=60.0, audio_streams=audio)
        )
    return analyzer


def _dispatcher(analyzer, **streaming) -> StreamDispatcher:
    return StreamDispatcher(FFmpegConfig(), StreamingConfig(**streaming), analyzer=analyzer)


@pytest.mark.unit
class TestDispatchPlan:
    """Tests for StreamDispatcher.plan."""

    @pytest.mark.asyncio
    async def test_start_zero_compatible_is_passthrough(self, temp_media_file):
        plan = await _dispatcher(_analyzer("aac")).plan(str(temp_media_file), 0)

        assert plan.mode == DispatchMode.PASSTHROUGH
        assert plan.supports_ranges

    @pytest.mark.asyncio
    async def test_offset_is_transcode(self, temp_media_file):
        """Test a non-zero start seeks server-side and drops range support."""
        dispatcher = _dispatcher(_analyzer("aac"))

        plan = await dispatcher.plan(str(temp_media_file), 45)
        cmd = dispatcher.build_command(plan)

        assert plan.mode == DispatchMode.TRANSCODE
        assert not plan.supports_ranges
        assert plan.reencode_audio is False
        assert cmd[cmd.index("-ss") + 1] == "45"
        assert cmd[cmd.index("-c:a") + 1] == "copy"

    @pytest.mark.asyncio
    async def test_incompatible_audio_is_transcode(self, temp_media_file):
        dispatcher = _dispatcher(_analyzer("ac3"))

        plan = await dispatcher.plan(str(temp_media_file), 0)
        cmd = dispatcher.build_command(plan)

        assert plan.mode == DispatchMode.TRANSCODE
        assert plan.reencode_audio is True
        assert "-ss" not in cmd
        assert cmd[cmd.index("-c:a") + 1] == "aac"

    @pytest.mark.asyncio
    async def test_probe_failure_counts_as_compatible(self, temp_media_file):
        plan = await _dispatcher(_analyzer(error=ProbeError("bad"))).plan(str(temp_media_file))

        assert plan.mode == DispatchMode.PASSTHROUGH
        assert plan.audio_codec is None

    @pytest.mark.asyncio
    async def test_probe_is_memoized(self, temp_media_file):
        analyzer = _analyzer("AAC")
        dispatcher = _dispatcher(analyzer)

        await dispatcher.plan(str(temp_media_file))
        plan = await dispatcher.plan(str(temp_media_file), 30)

        assert analyzer.analyze.await_count == 1
        assert plan.audio_codec == "aac"


@pytest.mark.unit
class TestDispatch:
    """Tests for StreamDispatcher.dispatch responses."""

    @pytest.mark.asyncio
    async def test_missing_file(self, temp_dir):
        with pytest.raises(MediaFileError):
            await _dispatcher(_analyzer("aac")).dispatch(str(temp_dir / "gone.mp4"))

    @pytest.mark.asyncio
    async def test_full_file(self, temp_media_file):
        response = await _dispatcher(_analyzer("aac")).dispatch(str(temp_media_file))

        assert response.status_code == 200
        assert response.headers["accept-ranges"] == "bytes"
        assert response.headers["content-length"] == "4096"
        assert response.media_type == "video/mp4"

    @pytest.mark.asyncio
    async def test_partial_content(self, temp_media_file):
        response = await _dispatcher(_analyzer("aac")).dispatch(
            str(temp_media_file), range_header="bytes=100-199"
        )

        assert response.status_code == 206
        assert response.headers["content-range"] == "bytes 100-199/4096"
        assert response.headers["content-length"] == "100"

    @pytest.mark.asyncio
    async def test_open_ended_range_bounded(self, temp_media_file):
        response = await _dispatcher(_analyzer("aac"), range_chunk_size=1000).dispatch(
            str(temp_media_file), range_header="bytes=0-"
        )

        assert response.headers["content-range"] == "bytes 0-999/4096"

    @pytest.mark.asyncio
    async def test_unsatisfiable_range(self, temp_media_file):
        with pytest.raises(RangeNotSatisfiable) as exc_info:
            await _dispatcher(_analyzer("aac")).dispatch(
                str(temp_media_file), range_header="bytes=5000-"
            )

        assert exc_info.value.file_size == 4096

    @pytest.mark.asyncio
    async def test_transcode_response(self, temp_media_file):
        session = MagicMock()
        session.start = AsyncMock()
        session.close = AsyncMock()

        with patch("reruntv.streaming.dispatcher.TranscodeSession", return_value=session) as cls:
            response = await _dispatcher(_analyzer("aac")).dispatch(
                str(temp_media_file), offset_seconds=45, range_header="bytes=0-"
            )

        command = cls.call_args.args[0]
        assert command[command.index("-ss") + 1] == "45"
        session.start.assert_awaited_once()
        assert response.status_code == 200
        assert response.media_type == "video/mp4"
        assert "accept-ranges" not in response.headers
        assert "content-range" not in response.headers

    @pytest.mark.asyncio
    async def test_transcoder_start_failure_propagates(self, temp_media_file):
        session = MagicMock()
        session.start = AsyncMock(side_effect=TranscoderError("no output"))

        with patch("reruntv.streaming.dispatcher.TranscodeSession", return_value=session):
            with pytest.raises(TranscoderError):
                await _dispatcher(_analyzer("aac")).dispatch(str(temp_media_file), offset_seconds=5)
