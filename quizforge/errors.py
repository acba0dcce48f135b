"""
Error taxonomy for the quiz engine and its collaborators.
Every error carries a human-readable message; the kind is the class.
"""


class QuizError(Exception):
    """Base class for all quiz errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(QuizError):
    """Empty question set, malformed question or bad request parameters."""


class AnswerOutOfOrder(InvalidInput):
    """Answer submitted for a question that is not the one currently displayed."""


class InvalidResponse(QuizError):
    """Response does not fit the question (out-of-range option, wrong kind)."""


class Unanswered(QuizError):
    """Tried to move past a question that has no recorded answer."""


class AtStart(QuizError):
    """Tried to move back from the first question."""


class SessionCompleted(QuizError):
    """Tried to change a session that has already completed."""


class InvalidGeneration(QuizError):
    """Generated question JSON is malformed."""


class InvalidImport(QuizError):
    """Imported question JSON is malformed."""


class PersistenceFailure(QuizError):
    """Storage call failed. Non-fatal for viewing results."""


class QuotaExceeded(QuizError):
    """Monthly prompt limit reached; blocks generation only."""
