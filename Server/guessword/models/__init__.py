"""
Data Models Package

Contains all data models and schemas used throughout the application.
"""

from .game import (
    EndReason, GuessRecord, LetterStatus, RoundPhase, RoundResult, RoundState, WordScore
)

__all__ = [
    'EndReason', 'GuessRecord', 'LetterStatus', 'RoundPhase',
    'RoundResult', 'RoundState', 'WordScore'
]
