"""
Episode file name parsing.

Supports the "Show Name - S01E05[part][ - Episode Title].ext" convention:
- "Show Name - S01E01.mp4"
- "Show Name - S01E01a.mkv"  (first half of a split episode)
- "Show Name - S01E01 - Pilot.mp4"
"""

import re
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ParsedEpisodeName:
    """Parsed episode file name."""

    show_name: str
    season: int
    episode: int
    part: str = ""


class EpisodeNameParser:
    """Parses episode file names to extract show and episode numbering."""

    EPISODE_PATTERN = re.compile(r"^(.+)-\s*S(\d+)E(\d+)([a-z])?", re.IGNORECASE)
    EXTENSION_PATTERN = re.compile(r"\.[^.]+$")

    def parse(self, filename: str) -> Optional[ParsedEpisodeName]:
        """
        Parse an episode file name.

        Args:
            filename: File name (with or without extension).

        Returns:
            ParsedEpisodeName, or None when the name does not follow the
            episode convention.
        """
        name = self.EXTENSION_PATTERN.sub("", filename)

        match = self.EPISODE_PATTERN.match(name)
        if not match:
            return None

        show_name = match.group(1).strip()
        if not show_name:
            return None

        return ParsedEpisodeName(
            show_name=show_name,
            season=int(match.group(2)),
            episode=int(match.group(3)),
            part=match.group(4) or "",
        )


_parser = EpisodeNameParser()


def parse_episode_filename(filename: str) -> Optional[ParsedEpisodeName]:
    """Module-level convenience wrapper around EpisodeNameParser."""
    return _parser.parse(filename)
