"""
Unit tests for media scanner modules.
"""

import asyncio
import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from reruntv.media.ffprobe import FFprobeAnalyzer, ProbeError
from reruntv.media.metadata_cache import DurationCache
from reruntv.media.scanner import ScanError, ShowScanner


def _touch(path: Path, size: int = 16) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x00" * size)
    return path


@pytest.fixture
def shows_dir(temp_dir: Path) -> Path:
    """A small library: two shows, one empty folder, some noise."""
    root = temp_dir / "shows"
    _touch(root / "Alpha" / "Alpha - S01E02 - Second.mp4")
    _touch(root / "Alpha" / "Alpha - S01E01 - First.mp4")
    _touch(root / "Alpha" / "Season 2" / "Alpha - S02E01.mkv")
    _touch(root / "Alpha" / "notes.txt")
    _touch(root / "Alpha" / "behind the scenes.mp4")
    _touch(root / "Beta" / "Beta - S01E01a.mp4")
    _touch(root / "Beta" / "Beta - S01E01b.mp4")
    (root / "Empty").mkdir()
    _touch(root / ".hidden" / "Hidden - S01E01.mp4")
    return root


@pytest.fixture
def analyzer() -> MagicMock:
    analyzer = MagicMock(spec=FFprobeAnalyzer)
    analyzer.duration = AsyncMock(return_value=1200)
    return analyzer


@pytest.mark.unit
class TestShowScanner:
    """Tests for ShowScanner."""

    @pytest.mark.asyncio
    async def test_scan_groups_by_folder(self, shows_dir, analyzer):
        """Test each folder becomes one show with ordered episodes."""
        scanner = ShowScanner(str(shows_dir), analyzer=analyzer)

        shows = await scanner.scan()

        assert [show.name for show in shows] == ["Alpha", "Beta"]
        alpha = shows[0]
        assert [ep.code for ep in alpha.episodes] == ["S01E01", "S01E02", "S02E01"]
        assert all(ep.duration == 1200 for ep in alpha.episodes)
        assert [ep.part for ep in shows[1].episodes] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_scan_stats(self, shows_dir, analyzer):
        scanner = ShowScanner(str(shows_dir), analyzer=analyzer)

        await scanner.scan()

        stats = scanner.last_stats
        assert stats.shows == 2
        assert stats.episodes == 5
        assert stats.skipped_names == 1
        assert stats.finished_at is not None

    @pytest.mark.asyncio
    async def test_probe_failure_skips_episode(self, shows_dir, analyzer):
        """Test files FFprobe cannot read are left out."""

        async def duration(path):
            if "S01E02" in str(path):
                raise ProbeError("broken")
            return 600

        analyzer.duration = AsyncMock(side_effect=duration)
        scanner = ShowScanner(str(shows_dir), analyzer=analyzer)

        shows = await scanner.scan()

        assert [ep.code for ep in shows[0].episodes] == ["S01E01", "S02E01"]
        assert scanner.last_stats.probe_failures == 1

    @pytest.mark.asyncio
    async def test_show_with_no_usable_files_is_dropped(self, temp_dir, analyzer):
        _touch(temp_dir / "Gamma" / "random.mp4")

        shows = await ShowScanner(str(temp_dir), analyzer=analyzer).scan()

        assert shows == []

    @pytest.mark.asyncio
    async def test_missing_directory_raises(self, temp_dir, analyzer):
        scanner = ShowScanner(str(temp_dir / "nope"), analyzer=analyzer)

        with pytest.raises(ScanError):
            await scanner.scan()

    @pytest.mark.asyncio
    async def test_cache_avoids_reprobe(self, shows_dir, analyzer, temp_dir):
        """Test a second scan reuses cached durations."""
        cache = DurationCache(temp_dir / "cache" / "metadata.json")
        scanner = ShowScanner(str(shows_dir), analyzer=analyzer, cache=cache)

        await scanner.scan()
        assert analyzer.duration.await_count == 5
        assert (temp_dir / "cache" / "metadata.json").exists()

        await scanner.scan()
        assert analyzer.duration.await_count == 5
        assert scanner.last_stats.cache_hits == 5

    @pytest.mark.asyncio
    async def test_extension_filter(self, shows_dir, analyzer):
        scanner = ShowScanner(str(shows_dir), analyzer=analyzer, extensions=[".mkv"])

        shows = await scanner.scan()

        assert [(s.name, len(s.episodes)) for s in shows] == [("Alpha", 1)]


@pytest.mark.unit
class TestDurationCache:
    """Tests for DurationCache."""

    def test_hit_and_staleness(self, temp_dir):
        media = _touch(temp_dir / "a.mp4", size=10)
        cache = DurationCache(temp_dir / "metadata.json")

        cache.set(str(media), media.stat(), 42)
        assert cache.get(str(media), media.stat()) == 42

        _touch(media, size=20)
        assert cache.get(str(media), media.stat()) is None

    def test_persist_and_reload(self, temp_dir):
        media = _touch(temp_dir / "a.mp4")
        cache_file = temp_dir / "metadata.json"
        cache = DurationCache(cache_file)
        cache.set(str(media), media.stat(), 99)
        cache.save()

        reloaded = DurationCache(cache_file)

        assert reloaded.get(str(media), media.stat()) == 99
        assert len(reloaded) == 1

    def test_cleanup_evicts_missing(self, temp_dir):
        """Test entries for files no longer in the catalog are dropped."""
        keep = _touch(temp_dir / "keep.mp4")
        gone = _touch(temp_dir / "gone.mp4")
        cache_file = temp_dir / "metadata.json"
        cache = DurationCache(cache_file)
        cache.set(str(keep), keep.stat(), 1)
        cache.set(str(gone), gone.stat(), 2)

        removed = cache.cleanup({str(keep)})

        assert removed == 1
        assert len(cache) == 1
        assert list(json.loads(cache_file.read_text())) == [str(keep)]

    def test_corrupt_file_ignored(self, temp_dir):
        cache_file = temp_dir / "metadata.json"
        cache_file.write_text("{not json")

        cache = DurationCache(cache_file)

        assert len(cache) == 0


@pytest.mark.unit
class TestFFprobeAnalyzer:
    """Tests for FFprobeAnalyzer output handling."""

    def _process(self, stdout: bytes, returncode: int = 0, stderr: bytes = b"") -> MagicMock:
        process = MagicMock()
        process.communicate = AsyncMock(return_value=(stdout, stderr))
        process.returncode = returncode
        return process

    @pytest.mark.asyncio
    async def test_analyze_parses_streams(self):
        payload = {
            "format": {"format_name": "matroska,webm", "duration": "1320.5"},
            "streams": [
                {"index": 0, "codec_type": "video", "codec_name": "h264"},
                {"index": 1, "codec_type": "audio", "codec_name": "ac3", "tags": {"language": "eng"}},
                {"index": 2, "codec_type": "subtitle", "codec_name": "subrip"},
            ],
        }
        process = self._process(json.dumps(payload).encode())

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            info = await FFprobeAnalyzer("ffprobe").analyze(Path("/x.mkv"))

        assert info.duration == 1320.5
        assert info.primary_video.codec_name == "h264"
        assert info.audio_codec == "ac3"
        assert info.primary_audio.language == "eng"

    @pytest.mark.asyncio
    async def test_duration_falls_back_to_stream(self):
        payload = {
            "format": {"format_name": "avi"},
            "streams": [{"index": 0, "codec_type": "video", "codec_name": "mpeg4", "duration": "61.9"}],
        }
        process = self._process(json.dumps(payload).encode())

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            duration = await FFprobeAnalyzer("ffprobe").duration(Path("/x.avi"))

        assert duration == 61

    @pytest.mark.asyncio
    async def test_nonzero_exit_raises(self):
        process = self._process(b"", returncode=1, stderr=b"Invalid data")

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(ProbeError, match="Invalid data"):
                await FFprobeAnalyzer("ffprobe").analyze(Path("/x.mp4"))

    @pytest.mark.asyncio
    async def test_missing_binary_raises(self):
        with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError("ffprobe"))):
            with pytest.raises(ProbeError):
                await FFprobeAnalyzer("ffprobe").analyze(Path("/x.mp4"))

    @pytest.mark.asyncio
    async def test_zero_duration_raises(self):
        payload = {"format": {"format_name": "mp4", "duration": "0"}, "streams": []}
        process = self._process(json.dumps(payload).encode())

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(ProbeError):
                await FFprobeAnalyzer("ffprobe").duration(Path("/x.mp4"))
