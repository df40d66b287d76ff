"""
Playout for RerunTV.

Round-robin rotation, the time-anchored schedule window, position
resolution, saved state and catalog rescans.
"""

from reruntv.playout.channel import Channel
from reruntv.playout.engine import ScheduleEngine
from reruntv.playout.persistence import StateStore
from reruntv.playout.rescan import RescanMonitor
from reruntv.playout.resolver import PositionResolver, Snapshot
from reruntv.playout.rotation import ShowRotation
from reruntv.playout.state import PlaylistItem, SavedEpisode, SavedState

__all__ = [
    "Channel",
    "PlaylistItem",
    "PositionResolver",
    "RescanMonitor",
    "SavedEpisode",
    "SavedState",
    "ScheduleEngine",
    "ShowRotation",
    "Snapshot",
    "StateStore",
]
