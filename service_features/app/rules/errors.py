"""
Evaluation errors for the Feature Toggle service.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from shared.errors import FeatureToggleException


class EvaluationFailureReason(str, Enum):
    """Why a feature evaluation failed."""
    NOT_FOUND = "not_found"
    DEPENDENCIES_UNSATISFIED = "dependencies_unsatisfied"
    DISABLED = "disabled"
    EVALUATION_FAILED = "evaluation_failed"


_REASON_STATUS = {
    EvaluationFailureReason.NOT_FOUND: 404,
}


class FeatureEvaluationError(FeatureToggleException):
    """A feature could not be evaluated.

    ``cause`` is attached as ``__cause__`` so the full chain survives
    re-raising.
    """

    def __init__(
        self,
        feature_name: str,
        message: str,
        reason: EvaluationFailureReason = EvaluationFailureReason.EVALUATION_FAILED,
        cause: Optional[BaseException] = None,
        missing_dependencies: Sequence[str] = ()
    ):
        self.feature_name = feature_name
        self.reason = reason
        self.missing_dependencies: List[str] = list(missing_dependencies)
        details: Dict[str, Any] = {"feature": feature_name, "reason": reason.value}
        if self.missing_dependencies:
            details["missing_dependencies"] = self.missing_dependencies
        super().__init__(
            f"FEATURE_{reason.name}",
            message,
            details,
            status_code=_REASON_STATUS.get(reason, 422)
        )
        if cause is not None:
            self.__cause__ = cause
            self.details["causes"] = self.cause_chain()[1:]


class ConditionEvaluationError(FeatureToggleException):
    """A rule condition failed to parse, evaluate, or match."""

    def __init__(
        self,
        condition: str,
        context_snapshot: str,
        message: str,
        cause: Optional[BaseException] = None
    ):
        self.condition = condition
        self.context_snapshot = context_snapshot
        super().__init__(
            "CONDITION_EVALUATION_ERROR",
            message,
            {"condition": condition, "context": context_snapshot},
            status_code=422
        )
        if cause is not None:
            self.__cause__ = cause


class ExpressionError(Exception):
    """Base class for condition expression failures."""

    def __init__(self, message: str, position: Optional[int] = None):
        self.position = position
        super().__init__(message)


class ExpressionSyntaxError(ExpressionError):
    """The expression text is not a valid boolean expression."""


class ExpressionEvaluationError(ExpressionError):
    """The expression parsed but could not be evaluated against the context."""
