"""
Configuration management for RerunTV.

Handles loading, validation, and access to application configuration.
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field

# Global configuration instance
_config: Optional["RerunTVConfig"] = None


class ServerConfig(BaseModel):
    """Server configuration."""
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False
    log_level: str = "INFO"


class ChannelConfig(BaseModel):
    """Virtual channel and schedule configuration."""
    shows_dir: str = "shows"
    state_file: str = "cache/playlist-state.json"
    metadata_cache_file: str = "cache/metadata.json"
    rescan_interval_seconds: int = 300
    persist_interval_seconds: int = 10
    lookahead_minutes: int = 120  # Window horizon for initial build and each extension
    extend_threshold_minutes: int = 30
    history_keep_minutes: int = 30
    scan_concurrency: int = 4
    video_extensions: list[str] = Field(
        default_factory=lambda: [".mp4", ".mkv", ".avi", ".webm", ".mov"]
    )

    @property
    def lookahead_ms(self) -> int:
        return self.lookahead_minutes * 60 * 1000

    @property
    def extend_threshold_ms(self) -> int:
        return self.extend_threshold_minutes * 60 * 1000

    @property
    def history_keep_ms(self) -> int:
        return self.history_keep_minutes * 60 * 1000


class FFmpegConfig(BaseModel):
    """FFmpeg configuration."""
    path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    log_level: str = "error"  # FFmpeg log level: quiet, panic, fatal, error, warning, info
    probe_timeout_seconds: float = 30.0
    start_timeout_seconds: float = 10.0  # Patience for the first transcoded chunk
    audio_bitrate: str = "192k"
    # Audio codecs browsers decode natively; anything else is re-encoded to AAC
    browser_audio_codecs: list[str] = Field(
        default_factory=lambda: ["aac", "mp3", "opus", "vorbis", "flac"]
    )


class StreamingConfig(BaseModel):
    """Streaming configuration."""
    range_chunk_size: int = 1024 * 1024  # 1MB cap for open-ended byte ranges
    read_size: int = 65536  # 64KB


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    file: str = "logs/reruntv.log"
    max_size: str = "10MB"
    backup_count: int = 5
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class RerunTVConfig(BaseModel):
    """Main RerunTV configuration."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    channel: ChannelConfig = Field(default_factory=ChannelConfig)
    ffmpeg: FFmpegConfig = Field(default_factory=FFmpegConfig)
    streaming: StreamingConfig = Field(default_factory=StreamingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: Optional[str] = None) -> RerunTVConfig:
    """
    Load configuration from file.

    Args:
        config_path: Path to config file. Defaults to config.yaml in project root.

    Returns:
        Loaded and validated configuration.
    """
    global _config

    if config_path is None:
        # Look for config.yaml in current directory or project root
        possible_paths = [
            Path("config.yaml"),
            Path(__file__).parent.parent / "config.yaml",
        ]
        for path in possible_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data: dict[str, Any] = {}

    if config_path and Path(config_path).exists():
        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}

    # Apply environment variable overrides
    env_overrides = _get_env_overrides()
    _deep_merge(config_data, env_overrides)

    _config = RerunTVConfig(**config_data)
    return _config


def get_config() -> RerunTVConfig:
    """
    Get the current configuration.

    Returns:
        Current configuration (loads default if not yet loaded).
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> RerunTVConfig:
    """Reload configuration from disk."""
    global _config
    _config = None
    return load_config()


def _get_env_overrides() -> dict[str, Any]:
    """Get configuration overrides from environment variables."""
    overrides: dict[str, Any] = {}

    # Map of environment variables to config paths
    env_map = {
        "RERUNTV_HOST": ("server", "host"),
        "RERUNTV_PORT": ("server", "port"),
        "RERUNTV_DEBUG": ("server", "debug"),
        "RERUNTV_SHOWS_DIR": ("channel", "shows_dir"),
        "RERUNTV_STATE_FILE": ("channel", "state_file"),
        "RERUNTV_FFMPEG_PATH": ("ffmpeg", "path"),
        "RERUNTV_FFPROBE_PATH": ("ffmpeg", "ffprobe_path"),
        "RERUNTV_LOG_LEVEL": ("logging", "level"),
    }

    for env_var, path in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            _set_nested(overrides, path, _parse_env_value(value))

    return overrides


def _parse_env_value(value: str) -> Any:
    """Parse environment variable value to appropriate type."""
    # Boolean
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False

    # Integer
    try:
        return int(value)
    except ValueError:
        pass

    # Float
    try:
        return float(value)
    except ValueError:
        pass

    return value


def _set_nested(d: dict[str, Any], path: tuple[str, ...], value: Any) -> None:
    """Set a nested dictionary value from a path tuple."""
    for key in path[:-1]:
        d = d.setdefault(key, {})
    d[path[-1]] = value


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> None:
    """Deep merge override into base dictionary."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
