"""
Show library scanner.

Walks a shows directory where every top-level folder is one show, parses
episode file names, and probes durations (through the duration cache).
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Set

from reruntv.media.ffprobe import FFprobeAnalyzer, ProbeError
from reruntv.media.metadata_cache import DurationCache
from reruntv.media.models import Episode, Show
from reruntv.media.parser import EpisodeNameParser

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = {".mp4", ".mkv", ".avi", ".webm", ".mov"}


class ScanError(Exception):
    """The shows directory itself could not be scanned."""


@dataclass
class ScanStats:
    """Counters for a single scan."""

    shows: int = 0
    episodes: int = 0
    skipped_names: int = 0
    probe_failures: int = 0
    cache_hits: int = 0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


class ShowScanner:
    """
    Scans a shows directory into an ordered catalog.

    Features:
    - One show per top-level folder, episodes found recursively below it
    - Episode naming via EpisodeNameParser, non-matching files are skipped
    - FFprobe durations with bounded concurrency
    - Duration cache reuse for unchanged files
    """

    def __init__(
        self,
        shows_dir: str,
        analyzer: Optional[FFprobeAnalyzer] = None,
        cache: Optional[DurationCache] = None,
        extensions: Optional[Iterable[str]] = None,
        max_concurrent: int = 4,
    ):
        self.shows_dir = Path(shows_dir)
        self.analyzer = analyzer or FFprobeAnalyzer()
        self.cache = cache
        self.extensions: Set[str] = {e.lower() for e in (extensions or DEFAULT_EXTENSIONS)}
        self.max_concurrent = max(1, max_concurrent)
        self._parser = EpisodeNameParser()
        self.last_stats = ScanStats()

    async def scan(self) -> List[Show]:
        """
        Scan the shows directory.

        Returns:
            Shows with at least one episode, ordered by folder name.

        Raises:
            ScanError: The shows directory is missing or unreadable.
        """
        stats = ScanStats(started_at=datetime.now())
        self.last_stats = stats

        try:
            folders = sorted(
                (entry for entry in self.shows_dir.iterdir() if entry.is_dir()),
                key=lambda p: p.name,
            )
        except OSError as e:
            raise ScanError(f"Cannot read shows directory {self.shows_dir}: {e}") from e

        semaphore = asyncio.Semaphore(self.max_concurrent)
        shows: List[Show] = []

        for folder in folders:
            if folder.name.startswith("."):
                continue
            episodes = await self._scan_folder(folder, semaphore, stats)
            if episodes:
                # Show identity comes from the parsed file names, not the folder
                show = Show(name=episodes[0].show_name, episodes=episodes)
                shows.append(show)
                stats.shows += 1
                stats.episodes += len(show.episodes)

        if self.cache is not None:
            self.cache.save()

        stats.finished_at = datetime.now()
        logger.info(
            f"Scan complete: {stats.shows} shows, {stats.episodes} episodes "
            f"({stats.cache_hits} cached, {stats.probe_failures} probe failures, "
            f"{stats.skipped_names} unrecognized names)"
        )
        return shows

    def _discover_files(self, folder: Path) -> List[Path]:
        """Discover all video files below a show folder."""
        files = []
        try:
            for root, dirs, filenames in os.walk(folder):
                # Skip hidden directories
                dirs[:] = [d for d in dirs if not d.startswith(".")]
                for filename in filenames:
                    if filename.startswith("."):
                        continue
                    if Path(filename).suffix.lower() in self.extensions:
                        files.append(Path(root) / filename)
        except OSError as e:
            logger.warning(f"Error reading show folder {folder}: {e}")
        return sorted(files)

    async def _scan_folder(
        self,
        folder: Path,
        semaphore: asyncio.Semaphore,
        stats: ScanStats,
    ) -> List[Episode]:
        async def process(file_path: Path) -> Optional[Episode]:
            async with semaphore:
                return await self._scan_file(file_path, stats)

        results = await asyncio.gather(*(process(f) for f in self._discover_files(folder)))
        return [episode for episode in results if episode is not None]

    async def _scan_file(self, path: Path, stats: ScanStats) -> Optional[Episode]:
        """Build an Episode for one file, or None if it cannot be used."""
        parsed = self._parser.parse(path.name)
        if parsed is None:
            stats.skipped_names += 1
            logger.debug(f"Skipping file with unrecognized name: {path.name}")
            return None

        try:
            stat = path.stat()
        except OSError as e:
            logger.warning(f"Cannot stat {path}: {e}")
            return None

        duration = self.cache.get(str(path), stat) if self.cache is not None else None
        if duration is not None:
            stats.cache_hits += 1
        else:
            try:
                duration = await self.analyzer.duration(path)
            except ProbeError as e:
                stats.probe_failures += 1
                logger.warning(f"Skipping {path.name}: {e}")
                return None
            if self.cache is not None:
                self.cache.set(str(path), stat, duration)

        if duration <= 0:
            return None

        return Episode(
            path=str(path),
            filename=path.name,
            show_name=parsed.show_name,
            season=parsed.season,
            episode=parsed.episode,
            part=parsed.part,
            duration=duration,
        )
