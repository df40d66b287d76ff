"""
The channel.

Wires the schedule engine, position resolver, state store and rescan monitor
together and runs the periodic persistence and rescan tasks.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from reruntv.config import RerunTVConfig
from reruntv.media.ffprobe import FFprobeAnalyzer
from reruntv.media.metadata_cache import DurationCache
from reruntv.media.models import Show
from reruntv.media.scanner import ScanError, ShowScanner
from reruntv.playout.clock import Clock, now_ms
from reruntv.playout.engine import ScheduleEngine
from reruntv.playout.persistence import StateStore
from reruntv.playout.rescan import CacheCleanup, CatalogRefresher, RescanMonitor
from reruntv.playout.resolver import PositionResolver, Snapshot
from reruntv.playout.state import PlaylistItem, SavedState
from reruntv.tasks.scheduler import TaskScheduler

logger = logging.getLogger(__name__)

PERSIST_TASK = "persist_state"
RESCAN_TASK = "rescan_catalog"


class Channel:
    """
    A single linear channel.

    Example:
        channel = await Channel.create(config)
        await channel.start()
        snapshot = channel.snapshot()
        await channel.stop()
    """

    def __init__(
        self,
        shows: List[Show],
        store: StateStore,
        refresh: Optional[CatalogRefresher] = None,
        cleanup: Optional[CacheCleanup] = None,
        persist_interval_seconds: float = 10,
        rescan_interval_seconds: float = 300,
        lookahead_ms: Optional[int] = None,
        extend_threshold_ms: Optional[int] = None,
        history_keep_ms: Optional[int] = None,
        clock: Clock = now_ms,
    ):
        self.store = store
        self.persist_interval_seconds = persist_interval_seconds
        self.rescan_interval_seconds = rescan_interval_seconds

        saved = store.load()
        engine_kwargs: Dict[str, Any] = {"clock": clock}
        if lookahead_ms is not None:
            engine_kwargs["lookahead_ms"] = lookahead_ms
        if extend_threshold_ms is not None:
            engine_kwargs["extend_threshold_ms"] = extend_threshold_ms
        if history_keep_ms is not None:
            engine_kwargs["history_keep_ms"] = history_keep_ms

        self.engine = ScheduleEngine(
            shows,
            saved=saved.current_episode if saved else None,
            **engine_kwargs,
        )
        self.resolver = PositionResolver(self.engine)
        self.monitor = RescanMonitor(self.engine, refresh, cleanup) if refresh else None
        self.scheduler = TaskScheduler()
        self._started = False

    @classmethod
    async def create(cls, config: RerunTVConfig) -> "Channel":
        """Build a channel from configuration, running the initial library scan."""
        channel_config = config.channel
        cache = DurationCache(Path(channel_config.metadata_cache_file))
        scanner = ShowScanner(
            channel_config.shows_dir,
            analyzer=FFprobeAnalyzer(
                ffprobe_path=config.ffmpeg.ffprobe_path,
                timeout=config.ffmpeg.probe_timeout_seconds,
            ),
            cache=cache,
            extensions=channel_config.video_extensions,
            max_concurrent=channel_config.scan_concurrency,
        )

        try:
            shows = await scanner.scan()
        except ScanError as e:
            logger.error(f"Initial scan failed, starting with an empty catalog: {e}")
            shows = []

        return cls(
            shows,
            StateStore(Path(channel_config.state_file)),
            refresh=scanner.scan,
            cleanup=cache.cleanup,
            persist_interval_seconds=channel_config.persist_interval_seconds,
            rescan_interval_seconds=channel_config.rescan_interval_seconds,
            lookahead_ms=channel_config.lookahead_ms,
            extend_threshold_ms=channel_config.extend_threshold_ms,
            history_keep_ms=channel_config.history_keep_ms,
        )

    @property
    def is_started(self) -> bool:
        return self._started

    async def start(self) -> None:
        """Persist the initial position and start the periodic tasks."""
        if self._started:
            return

        self.save_state()
        self.scheduler.add_task(PERSIST_TASK, self.save_state, self.persist_interval_seconds)
        if self.monitor is not None:
            self.scheduler.add_task(RESCAN_TASK, self.monitor.rescan, self.rescan_interval_seconds)
        await self.scheduler.start()
        self._started = True
        logger.info("Channel started")

    async def stop(self) -> None:
        """Stop the periodic tasks and write the final state."""
        if not self._started:
            return

        await self.scheduler.stop()
        self.scheduler.remove_task(PERSIST_TASK)
        self.scheduler.remove_task(RESCAN_TASK)
        self.save_state()
        self._started = False
        logger.info("Channel stopped")

    def save_state(self) -> bool:
        """Persist whatever is on air now."""
        return self.store.save(SavedState.from_item(self.resolver.current_item()))

    def snapshot(self, now_ms: Optional[int] = None) -> Snapshot:
        return self.resolver.snapshot(now_ms)

    def current_item(self, now_ms: Optional[int] = None) -> Optional[PlaylistItem]:
        return self.resolver.current_item(now_ms)

    def upcoming(self, count: int = 10, now_ms: Optional[int] = None) -> List[PlaylistItem]:
        now = self.engine.clock() if now_ms is None else now_ms
        return self.engine.upcoming(now, count)

    async def rescan(self) -> bool:
        """Refresh the catalog immediately."""
        if self.monitor is None:
            return False
        return await self.monitor.rescan()
