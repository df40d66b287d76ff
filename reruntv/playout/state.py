"""
Playout state.

Playlist items on the channel timeline, and the small saved fact that lets
the timeline be rebuilt after a restart.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from reruntv.media.models import Episode


@dataclass(frozen=True)
class PlaylistItem:
    """
    One episode placed on the channel timeline.

    Times are absolute Unix epoch milliseconds; an item is on air for
    start_time <= now < end_time.
    """

    episode: Episode
    start_time: int
    end_time: int

    @classmethod
    def schedule(cls, episode: Episode, start_time: int) -> "PlaylistItem":
        """Place an episode at start_time, ending after its full duration."""
        return cls(
            episode=episode,
            start_time=start_time,
            end_time=start_time + episode.duration * 1000,
        )

    def is_on_air(self, now_ms: int) -> bool:
        return self.start_time <= now_ms < self.end_time

    def elapsed_seconds(self, now_ms: int) -> int:
        """Whole seconds since this item started."""
        return max(0, (now_ms - self.start_time) // 1000)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "episode": self.episode.to_dict(),
            "startTime": self.start_time,
            "endTime": self.end_time,
        }


@dataclass(frozen=True)
class SavedEpisode:
    """Identity and start time of the episode that was on air."""

    show_name: str
    season: int
    episode: int
    part: str
    start_time: int

    @property
    def label(self) -> str:
        return f"{self.show_name} S{self.season}E{self.episode}{self.part}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "showName": self.show_name,
            "season": self.season,
            "episode": self.episode,
            "part": self.part,
            "startTime": self.start_time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SavedEpisode":
        """
        Build from the persisted JSON form.

        Raises:
            ValueError: A field is missing or has the wrong type.
        """
        if not isinstance(data, dict):
            raise ValueError("currentEpisode must be an object")

        show_name = data.get("showName")
        part = data.get("part", "")
        if not isinstance(show_name, str) or not isinstance(part, str):
            raise ValueError("showName and part must be strings")

        numbers = {}
        for key in ("season", "episode", "startTime"):
            value = data.get(key)
            # bool is an int subclass; reject it explicitly
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise ValueError(f"{key} must be a number")
            if isinstance(value, float) and not math.isfinite(value):
                raise ValueError(f"{key} must be finite")
            numbers[key] = int(value)

        return cls(
            show_name=show_name,
            season=numbers["season"],
            episode=numbers["episode"],
            part=part,
            start_time=numbers["startTime"],
        )


@dataclass(frozen=True)
class SavedState:
    """Everything persisted between runs: the episode that was on air, if any."""

    current_episode: Optional[SavedEpisode] = None

    @classmethod
    def from_item(cls, item: Optional[PlaylistItem]) -> "SavedState":
        if item is None:
            return cls()
        ep = item.episode
        return cls(
            current_episode=SavedEpisode(
                show_name=ep.show_name,
                season=ep.season,
                episode=ep.episode,
                part=ep.part,
                start_time=item.start_time,
            )
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentEpisode": self.current_episode.to_dict() if self.current_episode else None,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SavedState":
        """
        Build from the persisted JSON form.

        Raises:
            ValueError: The document does not have the expected shape.
        """
        if not isinstance(data, dict):
            raise ValueError("saved state must be a JSON object")
        current = data.get("currentEpisode")
        if current is None:
            return cls()
        return cls(current_episode=SavedEpisode.from_dict(current))
