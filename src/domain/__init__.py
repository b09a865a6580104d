"""Domain layer: errors, schemas, constants."""

from .errors import ErrorCodes, PlanValidationError
from .schemas import (
    QUESTION_CATALOG,
    AIAnswer,
    Answer,
    FinalAnswerSet,
    Question,
    QuestionState,
    QuestionStatus,
    ResolutionAction,
    SubmissionLog,
    ValidationResult,
)

__all__ = [
    "ErrorCodes",
    "PlanValidationError",
    "QUESTION_CATALOG",
    "AIAnswer",
    "Answer",
    "FinalAnswerSet",
    "Question",
    "QuestionState",
    "QuestionStatus",
    "ResolutionAction",
    "SubmissionLog",
    "ValidationResult",
]
