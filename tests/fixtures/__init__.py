"""
Test Fixtures

Shared catalog test data.
"""

from .factories import EpisodeFactory, ShowFactory

__all__ = [
    "EpisodeFactory",
    "ShowFactory",
]
