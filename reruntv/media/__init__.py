"""
Media catalog: episode models, file name parsing, FFprobe analysis,
duration caching and show library scanning.
"""

from reruntv.media.ffprobe import FFprobeAnalyzer, MediaInfo, ProbeError, StreamInfo
from reruntv.media.metadata_cache import DurationCache
from reruntv.media.models import Episode, Show, catalog_paths, playable_shows
from reruntv.media.parser import EpisodeNameParser, ParsedEpisodeName, parse_episode_filename
from reruntv.media.scanner import ScanError, ScanStats, ShowScanner

__all__ = [
    "DurationCache",
    "Episode",
    "EpisodeNameParser",
    "FFprobeAnalyzer",
    "MediaInfo",
    "ParsedEpisodeName",
    "ProbeError",
    "ScanError",
    "ScanStats",
    "Show",
    "ShowScanner",
    "StreamInfo",
    "catalog_paths",
    "parse_episode_filename",
    "playable_shows",
]
