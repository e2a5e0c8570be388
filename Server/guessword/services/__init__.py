"""
Services Package

Contains all business logic and service classes.
"""

from .evaluator import evaluate_guess, merge_letter_states
from .scoring_service import ScoringSystem
from .game_service import GameService, GameSession
from .stats_service import StatsService
from .word_service import WordService

__all__ = [
    'evaluate_guess', 'merge_letter_states',
    'ScoringSystem',
    'GameService', 'GameSession',
    'StatsService',
    'WordService'
]
