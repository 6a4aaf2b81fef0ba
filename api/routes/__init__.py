"""API Routes"""

from . import analysis, players

__all__ = ["analysis", "players"]
