"""Exception types raised by quizdeck."""


class QuizdeckError(Exception):
    """Base class for quizdeck errors."""
    pass


class MalformedStateError(QuizdeckError):
    """Raised when persisted state is missing fields or holds out-of-range values."""

    def __init__(self, message: str, question_id: str | None = None):
        super().__init__(message)
        self.question_id = question_id


class QuestionBankError(QuizdeckError):
    """Raised when the question bank file cannot be read or parsed."""
    pass
