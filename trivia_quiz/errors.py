class QuizError(Exception):
    """Base exception for all quiz errors."""


class EmptyPoolError(QuizError):
    """Raised when the question source failed or returned no questions."""


class InvalidStateError(QuizError):
    """Raised when an operation is called in a state that does not allow it."""

    def __init__(self, message: str, state: str | None = None):
        self.state = state
        super().__init__(message)


class ConfigurationError(QuizError):
    """Raised when the question pool cannot support a session."""
