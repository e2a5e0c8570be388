"""
Utilities Package

Contains utility functions and helper modules.
"""

from .helpers import get_player_id, spawn_background
from .game_logger import game_logger

__all__ = ['get_player_id', 'spawn_background', 'game_logger']
