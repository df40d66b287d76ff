"""
RerunTV - Virtual Linear TV Channel

Turns a folder of TV episodes into a single always-on broadcast channel:
- Deterministic, wall-clock anchored round-robin schedule
- Schedule persistence and resume across restarts
- Periodic library rescans
- Direct byte-range playback or ffmpeg seek-and-copy streaming
"""

__version__ = "1.0.0"
__author__ = "RerunTV Contributors"
__license__ = "MIT"

from reruntv.config import get_config, load_config

__all__ = [
    "__version__",
    "get_config",
    "load_config",
]
