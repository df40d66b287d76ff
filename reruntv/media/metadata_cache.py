"""
On-disk duration cache.

Probing every episode with FFprobe on each rescan is slow, so durations are
remembered per file and reused while the file's size and mtime are unchanged.
"""

import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from threading import Lock
from typing import Dict, Iterable, Optional

from reruntv.utils.json_file import read_json, write_json_atomic

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Cached metadata for one file."""

    duration: int
    size: int
    mtime: float

    def is_fresh(self, stat: os.stat_result) -> bool:
        """Check the entry still describes the file on disk."""
        return self.size == stat.st_size and self.mtime == stat.st_mtime


class DurationCache:
    """
    Thread-safe path -> duration cache persisted as a JSON file.

    Features:
    - Lazy load on first access
    - Staleness check against file size and mtime
    - Eviction of entries for files no longer in the library
    """

    def __init__(self, cache_file: Path):
        self.cache_file = Path(cache_file)
        self._entries: Dict[str, CacheEntry] = {}
        self._loaded = False
        self._dirty = False
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            self._ensure_loaded()
            return len(self._entries)

    def get(self, path: str, stat: os.stat_result) -> Optional[int]:
        """Cached duration for a file, or None when missing or stale."""
        with self._lock:
            self._ensure_loaded()
            entry = self._entries.get(path)
            if entry and entry.is_fresh(stat):
                return entry.duration
            return None

    def set(self, path: str, stat: os.stat_result, duration: int) -> None:
        """Remember a probed duration."""
        with self._lock:
            self._ensure_loaded()
            self._entries[path] = CacheEntry(
                duration=duration, size=stat.st_size, mtime=stat.st_mtime
            )
            self._dirty = True

    def cleanup(self, valid_paths: Iterable[str]) -> int:
        """
        Drop entries for files that are no longer part of the library.

        Returns:
            Number of entries removed.
        """
        keep = set(valid_paths)
        with self._lock:
            self._ensure_loaded()
            stale = [path for path in self._entries if path not in keep]
            for path in stale:
                del self._entries[path]
            if stale:
                self._dirty = True
                logger.info(f"Evicted {len(stale)} stale metadata cache entries")
        self.save()
        return len(stale)

    def save(self) -> None:
        """Write the cache to disk if it changed."""
        with self._lock:
            if not self._dirty:
                return
            data = {path: asdict(entry) for path, entry in self._entries.items()}
            try:
                write_json_atomic(self.cache_file, data)
                self._dirty = False
            except OSError as e:
                logger.error(f"Failed to save metadata cache {self.cache_file}: {e}")

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True

        if not self.cache_file.exists():
            return

        try:
            data = read_json(self.cache_file)
            for path, raw in data.items():
                self._entries[path] = CacheEntry(
                    duration=int(raw["duration"]),
                    size=int(raw["size"]),
                    mtime=float(raw["mtime"]),
                )
            logger.debug(f"Loaded {len(self._entries)} metadata cache entries")
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring unreadable metadata cache {self.cache_file}: {e}")
            self._entries.clear()
