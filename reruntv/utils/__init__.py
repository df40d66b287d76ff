"""Utility modules for RerunTV"""

from .logging_setup import parse_size, setup_logging

__all__ = [
    "parse_size",
    "setup_logging",
]
