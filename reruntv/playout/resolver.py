"""
Position resolver.

Answers "what is on air right now, and how far into it are we". Position is
always derived from absolute time, never from how long a client has been
watching.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from reruntv.playout.engine import ScheduleEngine
from reruntv.playout.state import PlaylistItem


@dataclass(frozen=True)
class Snapshot:
    """What was on air at one instant."""

    item: Optional[PlaylistItem]
    position: int
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentItem": self.item.to_dict() if self.item else None,
            "position": self.position,
            "timestamp": self.timestamp,
        }


class PositionResolver:
    """Maps a wall-clock instant onto the engine's window."""

    def __init__(self, engine: ScheduleEngine):
        self.engine = engine

    def _now(self, now_ms: Optional[int]) -> int:
        return self.engine.clock() if now_ms is None else now_ms

    def current_item(self, now_ms: Optional[int] = None) -> Optional[PlaylistItem]:
        """
        Item on air at now_ms.

        A miss extends the window once and looks again; a hit near the end
        of the window extends it ahead of time.

        Returns:
            The on-air item, or None when the catalog is empty.
        """
        now = self._now(now_ms)
        with self.engine.lock:
            item = self.engine.find_item(now)
            if item is None:
                self.engine.extend_if_needed(now)
                return self.engine.find_item(now)

            self.engine.extend_if_needed(now)
            return item

    def position(self, now_ms: Optional[int] = None) -> int:
        """Whole seconds into the on-air item, 0 when nothing is on air."""
        now = self._now(now_ms)
        item = self.current_item(now)
        return item.elapsed_seconds(now) if item else 0

    def snapshot(self, now_ms: Optional[int] = None) -> Snapshot:
        now = self._now(now_ms)
        with self.engine.lock:
            item = self.current_item(now)
            position = item.elapsed_seconds(now) if item else 0
        return Snapshot(item=item, position=position, timestamp=now)
