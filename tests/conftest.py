"""
RerunTV Test Configuration

Shared fixtures and configuration for all tests.
"""

import os
import tempfile
from pathlib import Path
from typing import Generator, List
from unittest.mock import patch

import pytest

# Add project root to path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from reruntv.media.models import Show
from tests.fixtures import ShowFactory

# 2024-01-01T00:00:00Z in epoch milliseconds
T0 = 1_704_067_200_000


class FakeClock:
    """Settable millisecond clock."""

    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


# ============ Clock Fixtures ============


@pytest.fixture
def clock() -> FakeClock:
    """A clock frozen at T0 that tests can move forward."""
    return FakeClock()


# ============ Catalog Fixtures ============


@pytest.fixture
def two_shows() -> List[Show]:
    """Show A with 30s and 45s episodes, show B with one 60s episode."""
    return [
        ShowFactory.create("A", [30, 45]),
        ShowFactory.create("B", [60]),
    ]


@pytest.fixture
def three_shows() -> List[Show]:
    """Three shows of half-hour episodes."""
    return ShowFactory.create_batch(3, episodes=4, duration=1800)


# ============ Temporary File Fixtures ============


@pytest.fixture(scope="function")
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(scope="function")
def temp_media_file(temp_dir: Path) -> Path:
    """Create a temporary media file for testing."""
    media_file = temp_dir / "Test Show - S01E01 - Pilot.mp4"
    # Not a real video, just predictable bytes
    media_file.write_bytes(bytes(range(256)) * 16)
    return media_file


@pytest.fixture(scope="function")
def temp_config_file(temp_dir: Path) -> Path:
    """Create a temporary config file."""
    config_file = temp_dir / "config.yaml"
    config_content = """
server:
  host: "127.0.0.1"
  port: 8411
  debug: true

channel:
  shows_dir: "/srv/shows"
  rescan_interval_seconds: 60

logging:
  level: "DEBUG"
  format: "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
"""
    config_file.write_text(config_content)
    return config_file


# ============ Environment Fixtures ============


@pytest.fixture(autouse=True)
def clean_environment():
    """Clean environment variables for each test."""
    # Save current environment
    original_env = os.environ.copy()

    # Remove RerunTV-specific vars
    for key in list(os.environ.keys()):
        if key.startswith("RERUNTV_"):
            del os.environ[key]

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def mock_env_vars():
    """Set up mock environment variables."""
    env_vars = {
        "RERUNTV_PORT": "8411",
        "RERUNTV_DEBUG": "true",
        "RERUNTV_SHOWS_DIR": "/media/tv",
    }
    with patch.dict(os.environ, env_vars):
        yield env_vars


# ============ Markers ============


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")
    config.addinivalue_line("markers", "ffmpeg: FFmpeg required")
