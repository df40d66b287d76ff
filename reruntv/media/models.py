"""
Catalog models.

Episodes and shows as produced by a library scan. Both are treated as
immutable once built; a rescan produces a fresh catalog rather than
mutating the old one.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True)
class Episode:
    """A single playable episode file."""

    path: str
    filename: str
    show_name: str
    season: int
    episode: int
    part: str = ""  # 'a', 'b', ... for split episodes, empty when not split
    duration: int = 0  # seconds

    @property
    def sort_key(self) -> Tuple[int, int, str]:
        """Broadcast order within a show: season, episode, then part."""
        return (self.season, self.episode, self.part)

    @property
    def code(self) -> str:
        """Short episode code like S01E02a."""
        return f"S{self.season:02d}E{self.episode:02d}{self.part}"

    def matches(self, show_name: str, season: int, episode: int, part: str) -> bool:
        """Check whether this episode has the given identity."""
        return (
            self.show_name == show_name
            and self.season == season
            and self.episode == episode
            and self.part == part
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "filename": self.filename,
            "showName": self.show_name,
            "season": self.season,
            "episode": self.episode,
            "part": self.part,
            "duration": self.duration,
        }


@dataclass
class Show:
    """A show and its episodes in broadcast order."""

    name: str
    episodes: List[Episode] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.episodes = sorted(self.episodes, key=lambda ep: ep.sort_key)

    @property
    def is_empty(self) -> bool:
        return len(self.episodes) == 0

    def index_of(self, show_name: str, season: int, episode: int, part: str) -> int:
        """Index of the matching episode, or -1."""
        for idx, ep in enumerate(self.episodes):
            if ep.matches(show_name, season, episode, part):
                return idx
        return -1


def playable_shows(shows: List[Show]) -> List[Show]:
    """Drop shows with no episodes; they never enter the rotation."""
    return [show for show in shows if not show.is_empty]


def catalog_paths(shows: List[Show]) -> set[str]:
    """All episode file paths in a catalog."""
    return {ep.path for show in shows for ep in show.episodes}
