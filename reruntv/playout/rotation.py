"""
Round-robin show rotation.

Every call hands out the next episode of the current show, then moves on to
the following show. Each show keeps its own cursor, so shows of very
different lengths still alternate strictly.
"""

import logging
from typing import Dict, List, Optional, Set, Tuple

from reruntv.media.models import Episode, Show, playable_shows
from reruntv.playout.state import SavedEpisode

logger = logging.getLogger(__name__)


class ShowRotation:
    """
    Strict round-robin over shows with per-show episode cursors.

    Cursors are keyed by show name and wrap modulo the show's episode count.
    """

    def __init__(self, shows: List[Show]):
        self._shows: List[Show] = playable_shows(shows)
        self._cursors: Dict[str, int] = {}
        self._current_show_index = 0
        self.reset()

    @property
    def shows(self) -> List[Show]:
        return list(self._shows)

    @property
    def show_names(self) -> List[str]:
        return [show.name for show in self._shows]

    @property
    def current_show_index(self) -> int:
        return self._current_show_index

    @property
    def cursors(self) -> Dict[str, int]:
        return dict(self._cursors)

    @property
    def is_empty(self) -> bool:
        return not self._shows

    def reset(self) -> None:
        """Start over at the first episode of the first show."""
        self._cursors = {show.name: 0 for show in self._shows}
        self._current_show_index = 0

    def next_episode(self) -> Optional[Episode]:
        """Next episode in the rotation, or None when there are no shows."""
        if not self._shows:
            return None

        show = self._shows[self._current_show_index]
        cursor = self._cursors.get(show.name, 0)
        if cursor >= len(show.episodes):
            cursor = 0

        episode = show.episodes[cursor]
        self._cursors[show.name] = cursor + 1
        self._current_show_index = (self._current_show_index + 1) % len(self._shows)
        return episode

    def restore(self, saved: SavedEpisode) -> bool:
        """
        Point the rotation at a saved episode so it is handed out next.

        Every other show restarts from its first episode. When the episode
        is no longer in the catalog the rotation is reset instead.

        Returns:
            True if the episode was found.
        """
        for show_idx, show in enumerate(self._shows):
            ep_idx = show.index_of(saved.show_name, saved.season, saved.episode, saved.part)
            if ep_idx < 0:
                continue

            self.reset()
            self._current_show_index = show_idx
            self._cursors[show.name] = ep_idx
            logger.info(f"Restored rotation at {saved.label}")
            return True

        logger.warning(f"Saved episode {saved.label} not found in catalog, starting fresh")
        self.reset()
        return False

    def reload(self, shows: List[Show]) -> Tuple[Set[str], Set[str]]:
        """
        Swap in a new catalog, keeping the position of shows that remain.

        Returns:
            (added show names, removed show names)
        """
        new_shows = playable_shows(shows)
        old_names = set(self._cursors)
        new_names = {show.name for show in new_shows}

        current_name = None
        if self._shows:
            current_name = self._shows[self._current_show_index].name

        self._cursors = {show.name: self._cursors.get(show.name, 0) for show in new_shows}
        self._shows = new_shows

        if not new_shows:
            self._current_show_index = 0
        elif current_name in new_names:
            self._current_show_index = next(
                idx for idx, show in enumerate(new_shows) if show.name == current_name
            )
        else:
            self._current_show_index %= len(new_shows)

        return new_names - old_names, old_names - new_names
