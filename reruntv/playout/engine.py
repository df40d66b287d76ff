"""
Schedule engine.

Owns the show rotation and the lookahead window of playlist items. The
window is a contiguous run of items anchored to the channel epoch; it is
extended lazily as time moves forward and trimmed behind "now".
"""

import logging
import threading
from typing import List, Optional

from reruntv.media.models import Episode, Show
from reruntv.playout.clock import HOUR_MS, MINUTE_MS, Clock, now_ms
from reruntv.playout.rotation import ShowRotation
from reruntv.playout.state import PlaylistItem, SavedEpisode

logger = logging.getLogger(__name__)

DEFAULT_LOOKAHEAD_MS = 2 * HOUR_MS
DEFAULT_EXTEND_THRESHOLD_MS = 30 * MINUTE_MS
DEFAULT_HISTORY_KEEP_MS = 30 * MINUTE_MS


class ScheduleEngine:
    """
    Deterministic, time-anchored playlist generator.

    On construction the rotation is restored from the saved episode when it
    still exists in the catalog, and the first window is built from the
    saved start time. Otherwise the rotation starts fresh at the current
    time.

    All public methods take the same re-entrant lock, which callers can also
    hold across several calls through ``lock``.
    """

    def __init__(
        self,
        shows: List[Show],
        saved: Optional[SavedEpisode] = None,
        lookahead_ms: int = DEFAULT_LOOKAHEAD_MS,
        extend_threshold_ms: int = DEFAULT_EXTEND_THRESHOLD_MS,
        history_keep_ms: int = DEFAULT_HISTORY_KEEP_MS,
        clock: Clock = now_ms,
    ):
        self.lookahead_ms = lookahead_ms
        self.extend_threshold_ms = extend_threshold_ms
        self.history_keep_ms = history_keep_ms
        self._clock = clock
        self._lock = threading.RLock()
        self._rotation = ShowRotation(shows)
        self._window: List[PlaylistItem] = []

        now = self._clock()
        self._epoch_ms = now
        if saved is not None and self.restore_from_episode(saved):
            if saved.start_time > now:
                logger.warning(
                    f"Saved start time of {saved.label} is {saved.start_time - now}ms "
                    f"in the future, anchoring at now"
                )
            self._epoch_ms = min(saved.start_time, now)

        self.build_window(self._epoch_ms, self.lookahead_ms)
        self.extend_if_needed(now)
        logger.info(
            f"Schedule engine ready: {len(self._rotation.shows)} shows, "
            f"{len(self._window)} items in window"
        )

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def epoch_ms(self) -> int:
        """Timestamp the channel timeline is anchored to."""
        return self._epoch_ms

    @property
    def window(self) -> List[PlaylistItem]:
        with self._lock:
            return list(self._window)

    @property
    def shows(self) -> List[Show]:
        with self._lock:
            return self._rotation.shows

    @property
    def rotation(self) -> ShowRotation:
        return self._rotation

    def next_episode(self) -> Optional[Episode]:
        """Advance the rotation by one episode."""
        with self._lock:
            return self._rotation.next_episode()

    def build_window(self, anchor_ms: int, horizon_ms: int) -> int:
        """
        Append items back to back from anchor_ms.

        Stops once the next item would start after anchor_ms + horizon_ms.

        Returns:
            Number of items appended.
        """
        with self._lock:
            limit = anchor_ms + horizon_ms
            start = anchor_ms
            added = 0
            while start < limit:
                item = self._next_item(start)
                if item is None:
                    break
                self._window.append(item)
                start = item.end_time
                added += 1
            return added

    def extend_if_needed(self, now_ms: int) -> bool:
        """
        Keep the window ahead of now_ms and drop items long in the past.

        When the window ends within the extend threshold (or is empty) it is
        topped up to now_ms + lookahead, continuing from the last item's end.
        If the window fell behind now_ms entirely, the rotation is played
        forward through the gap so the timeline stays continuous.

        Returns:
            True if the window was extended.
        """
        with self._lock:
            last = self._window[-1] if self._window else None

            if last is not None and last.end_time - now_ms >= self.extend_threshold_ms:
                self._trim(now_ms)
                return False

            if last is None:
                if self._rotation.is_empty:
                    return False
                # Nothing scheduled yet (catalog was empty until now)
                anchor = now_ms
                self._epoch_ms = now_ms
            else:
                anchor = last.end_time

            if anchor < now_ms:
                anchor = self._fast_forward(anchor, now_ms)

            added = self.build_window(anchor, now_ms + self.lookahead_ms - anchor)
            logger.debug(f"Extended window by {added} items")
            self._trim(now_ms)
            return True

    def restore_from_episode(self, saved: SavedEpisode) -> bool:
        """
        Point the rotation at a saved episode.

        Returns:
            True on a match; on a miss the rotation is reset and False returned.
        """
        with self._lock:
            return self._rotation.restore(saved)

    def reload_catalog(self, shows: List[Show]) -> None:
        """
        Swap in a new catalog.

        Cursors of surviving shows are kept, new shows start at their first
        episode, and the already scheduled window is left as is.
        """
        with self._lock:
            added, removed = self._rotation.reload(shows)
        for name in sorted(added):
            logger.info(f"New show in rotation: {name}")
        for name in sorted(removed):
            logger.info(f"Show removed from rotation: {name}")

    def find_item(self, now_ms: int) -> Optional[PlaylistItem]:
        """Item on air at now_ms within the current window, without extending."""
        with self._lock:
            for item in self._window:
                if item.is_on_air(now_ms):
                    return item
            return None

    def upcoming(self, now_ms: int, count: int = 10) -> List[PlaylistItem]:
        """The next count items starting at or after now_ms."""
        with self._lock:
            self.extend_if_needed(now_ms)
            return [item for item in self._window if item.start_time >= now_ms][:count]

    def _next_item(self, start_ms: int) -> Optional[PlaylistItem]:
        """Next schedulable item from the rotation, skipping zero-length episodes."""
        for _ in range(sum(len(show.episodes) for show in self._rotation.shows)):
            episode = self._rotation.next_episode()
            if episode is None:
                return None
            if episode.duration > 0:
                return PlaylistItem.schedule(episode, start_ms)
            logger.warning(f"Skipping {episode.filename}: zero duration")
        return None

    def _fast_forward(self, anchor_ms: int, now_ms: int) -> int:
        """
        Play the rotation forward from anchor_ms until now_ms is covered.

        Items that ended before the history cutoff are not kept; since the
        whole gap lies behind them, neither is anything already in the window.

        Returns:
            End time of the last generated item.
        """
        cutoff = now_ms - self.history_keep_ms
        start = anchor_ms
        skipped = 0
        while start <= now_ms:
            item = self._next_item(start)
            if item is None:
                break
            if item.end_time < cutoff:
                self._window.clear()
                skipped += 1
            else:
                self._window.append(item)
            start = item.end_time

        if skipped:
            logger.info(f"Caught up {skipped} items aired while the window was idle")
        return start

    def _trim(self, now_ms: int) -> None:
        cutoff = now_ms - self.history_keep_ms
        if self._window and self._window[0].end_time < cutoff:
            self._window = [item for item in self._window if item.end_time >= cutoff]
