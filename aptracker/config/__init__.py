"""
Configuration for aptracker
"""

from .settings import DEFAULT_DATABASE_URL, Settings, get_settings, setup_logging

__all__ = [
    "DEFAULT_DATABASE_URL",
    "Settings",
    "get_settings",
    "setup_logging",
]
