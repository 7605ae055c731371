"""Configuration package for the interview command center."""
from .settings import Settings, settings

__all__ = [
    "Settings",
    "settings",
]
