"""
Saved channel state on disk.

The only thing persisted is the episode that was on air and when it started;
the rest of the timeline is rebuilt from it.
"""

import logging
from pathlib import Path
from typing import Optional

from reruntv.playout.state import SavedState
from reruntv.utils.json_file import read_json, write_json_atomic

logger = logging.getLogger(__name__)


class StateStore:
    """JSON file holding a SavedState."""

    def __init__(self, state_file: Path):
        self.state_file = Path(state_file)

    def load(self) -> Optional[SavedState]:
        """
        Read the saved state.

        Returns:
            The saved state, or None when the file is absent or unusable.
        """
        if not self.state_file.exists():
            logger.info(f"No saved state at {self.state_file}, starting fresh")
            return None

        try:
            state = SavedState.from_dict(read_json(self.state_file))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable state file {self.state_file}: {e}")
            return None

        if state.current_episode:
            logger.info(f"Loaded saved state: {state.current_episode.label}")
        return state

    def save(self, state: SavedState) -> bool:
        """
        Write the state atomically.

        Returns:
            True on success. Failures are logged, never raised.
        """
        try:
            write_json_atomic(self.state_file, state.to_dict())
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save state to {self.state_file}: {e}")
            return False
