"""
Unit tests for the channel lifecycle.
"""

import asyncio
import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from reruntv.config import RerunTVConfig
from reruntv.playout.channel import PERSIST_TASK, RESCAN_TASK, Channel
from reruntv.playout.persistence import StateStore
from reruntv.playout.state import SavedEpisode, SavedState
from tests.conftest import T0, FakeClock
from tests.fixtures import ShowFactory


@pytest.mark.unit
class TestChannel:
    """Tests for Channel."""

    def test_resumes_from_saved_state(self, temp_dir: Path, two_shows):
        """Test a restart picks up the saved episode at real elapsed time."""
        store = StateStore(temp_dir / "state.json")
        store.save(SavedState(SavedEpisode("B", 1, 1, "", T0)))
        clock = FakeClock(T0 + 42_000)

        channel = Channel(two_shows, store, clock=clock)
        snapshot = channel.snapshot()

        assert snapshot.item.episode.show_name == "B"
        assert snapshot.position == 42

    def test_non_finite_state_starts_fresh(self, temp_dir: Path, clock):
        """Test a state file with Infinity in it does not stop the channel."""
        path = temp_dir / "state.json"
        path.write_text(
            '{"currentEpisode": {"showName": "A", "season": 1, "episode": 1,'
            ' "part": "", "startTime": Infinity}}'
        )

        channel = Channel([ShowFactory.create("A", [30])], StateStore(path), clock=clock)

        assert channel.engine.epoch_ms == T0
        assert channel.current_item().episode.show_name == "A"

    def test_save_state_writes_current_item(self, temp_dir: Path, two_shows, clock):
        path = temp_dir / "state.json"
        channel = Channel(two_shows, StateStore(path), clock=clock)
        clock.advance(40)

        assert channel.save_state() is True

        data = json.loads(path.read_text())
        assert data["currentEpisode"]["showName"] == "B"
        assert data["currentEpisode"]["startTime"] == T0 + 30_000

    @pytest.mark.asyncio
    async def test_start_and_stop(self, temp_dir: Path, two_shows, clock):
        """Test start registers periodic tasks and stop writes final state."""
        path = temp_dir / "state.json"
        refresh = AsyncMock(return_value=two_shows)
        channel = Channel(
            two_shows,
            StateStore(path),
            refresh=refresh,
            persist_interval_seconds=0.01,
            rescan_interval_seconds=0.01,
            clock=clock,
        )

        await channel.start()
        assert channel.is_started
        assert {t["name"] for t in channel.scheduler.get_tasks()} == {PERSIST_TASK, RESCAN_TASK}
        assert path.exists()

        await asyncio.sleep(0.05)
        clock.advance(100)
        await channel.stop()

        assert not channel.is_started
        assert refresh.await_count >= 1
        saved = StateStore(path).load()
        assert saved.current_episode.show_name == "A"
        assert saved.current_episode.episode == 2

    @pytest.mark.asyncio
    async def test_no_rescan_task_without_refresh(self, temp_dir: Path, two_shows, clock):
        channel = Channel(two_shows, StateStore(temp_dir / "s.json"), clock=clock)

        await channel.start()
        names = {t["name"] for t in channel.scheduler.get_tasks()}
        await channel.stop()

        assert names == {PERSIST_TASK}
        assert await channel.rescan() is False

    def test_upcoming(self, temp_dir: Path, two_shows, clock):
        channel = Channel(two_shows, StateStore(temp_dir / "s.json"), clock=clock)

        items = channel.upcoming(count=2)

        assert [item.start_time for item in items] == [T0, T0 + 30_000]

    @pytest.mark.asyncio
    async def test_create_with_unreadable_library(self, temp_dir: Path):
        """Test a failed initial scan starts the channel with no catalog."""
        config = RerunTVConfig(
            channel={
                "shows_dir": str(temp_dir / "missing"),
                "state_file": str(temp_dir / "state.json"),
                "metadata_cache_file": str(temp_dir / "metadata.json"),
            }
        )

        channel = await Channel.create(config)

        assert channel.engine.shows == []
        assert channel.current_item() is None

    @pytest.mark.asyncio
    async def test_create_uses_scanned_catalog(self, temp_dir: Path):
        config = RerunTVConfig(
            channel={
                "shows_dir": str(temp_dir),
                "state_file": str(temp_dir / "state.json"),
                "metadata_cache_file": str(temp_dir / "metadata.json"),
                "lookahead_minutes": 60,
            }
        )
        catalog = [ShowFactory.create("A", [600])]

        with patch(
            "reruntv.playout.channel.ShowScanner.scan", AsyncMock(return_value=catalog)
        ):
            channel = await Channel.create(config)

        assert [show.name for show in channel.engine.shows] == ["A"]
        assert channel.engine.lookahead_ms == 60 * 60 * 1000
        assert channel.monitor is not None

