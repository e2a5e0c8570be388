"""
Exceptions

Error types raised by the game services.
"""


class GuessWordError(Exception):
    """Base class for all game server errors."""


class InvalidDifficultyError(GuessWordError):
    """Raised when a round is requested with an unsupported difficulty."""

    def __init__(self, difficulty):
        self.difficulty = difficulty
        super().__init__(f"Invalid difficulty: {difficulty}")


class WordSourceError(GuessWordError):
    """Raised when the remote word generator cannot provide a usable word."""


class WordUnavailableError(GuessWordError):
    """Raised when no target word could be produced, remote or local."""
