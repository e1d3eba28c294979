"""
Rule condition evaluation for the Feature Toggle service.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from shared.logging import get_logger
from .errors import ConditionEvaluationError, ExpressionError
from .expression import evaluate_expression, parse_expression
from .models import AttributeProvider, EvaluationContext, FeatureRule

NO_CONTEXT_DETAILS = "No context details available (context is None)"


class ConditionStatus(str, Enum):
    """Outcome of testing one condition."""
    MATCHED = "matched"
    NOT_MATCHED = "not_matched"
    FAILED = "failed"


@dataclass(frozen=True)
class ConditionResult:
    """Tagged result of a condition match.

    ``error`` is set only when ``status`` is FAILED.
    """
    status: ConditionStatus
    condition: str
    error: Optional[ConditionEvaluationError] = None

    @property
    def is_match(self) -> bool:
        return self.status is ConditionStatus.MATCHED

    @classmethod
    def matched(cls, condition: str) -> "ConditionResult":
        return cls(ConditionStatus.MATCHED, condition)

    @classmethod
    def not_matched(cls, condition: str) -> "ConditionResult":
        return cls(ConditionStatus.NOT_MATCHED, condition)

    @classmethod
    def failed(cls, condition: str, error: ConditionEvaluationError) -> "ConditionResult":
        return cls(ConditionStatus.FAILED, condition, error)


def _render_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    return str(value)


def context_attributes(context: Optional[AttributeProvider]) -> List[Tuple[str, Any]]:
    """List a context's attributes in declaration order."""
    if context is None:
        return []
    return [(str(name), value) for name, value in context.attributes()]


def render_context_snapshot(context: Optional[AttributeProvider]) -> str:
    """Render ``name: value`` pairs for diagnostics. Never raises."""
    if context is None:
        return NO_CONTEXT_DETAILS

    try:
        attributes = context_attributes(context)
    except Exception as e:
        return f"<context attributes unavailable: {type(e).__name__}: {e}>"

    rendered = []
    for name, value in attributes:
        try:
            text = _render_value(value)
        except Exception:
            text = f"<unrenderable {type(value).__name__}>"
        rendered.append(f"{name}: {text}")
    return ", ".join(rendered)


def normalize_condition(condition: str) -> str:
    """Admit single-quoted string literals by turning them into double quotes."""
    return condition.replace("'", '"')


class ConditionEvaluator:
    """Evaluates rule conditions against an evaluation context.

    ``match``/``match_rule`` return a ConditionResult and never raise;
    ``evaluate``/``evaluate_rule`` raise ConditionEvaluationError for
    anything but a match, including a condition that is simply false.
    """

    def __init__(self):
        self.logger = get_logger("features.conditions")

    def match(self, condition: str, context: Any) -> ConditionResult:
        """Test ``condition`` against ``context``."""
        normalized = normalize_condition(condition)
        try:
            provider = EvaluationContext.coerce(context)
        except TypeError as e:
            return self._failure(normalized, None, str(e), e)

        try:
            node = parse_expression(normalized)
            variables: Dict[str, Any] = dict(context_attributes(provider))
            result = evaluate_expression(node, variables)
        except ExpressionError as e:
            return self._failure(normalized, provider, str(e), e)
        except Exception as e:
            return self._failure(normalized, provider, f"{type(e).__name__}: {e}", e)

        if result:
            return ConditionResult.matched(normalized)
        return ConditionResult.not_matched(normalized)

    def match_rule(self, rule: FeatureRule, context: Any) -> ConditionResult:
        """Test a rule's condition; a disabled rule always fails."""
        if rule.disabled:
            normalized = normalize_condition(rule.condition)
            return self._failure(
                normalized,
                self._snapshot_source(context),
                f"Rule with condition '{normalized}' is disabled and cannot match"
            )
        return self.match(rule.condition, context)

    def evaluate(self, condition: str, context: Any) -> bool:
        """Return True when ``condition`` holds; raise otherwise."""
        return self._unwrap(self.match(condition, context), context)

    def evaluate_rule(self, rule: FeatureRule, context: Any) -> bool:
        return self._unwrap(self.match_rule(rule, context), context)

    def _unwrap(self, result: ConditionResult, context: Any) -> bool:
        if result.status is ConditionStatus.MATCHED:
            return True
        if result.status is ConditionStatus.FAILED:
            raise result.error
        snapshot = render_context_snapshot(self._snapshot_source(context))
        raise ConditionEvaluationError(
            result.condition,
            snapshot,
            f"Condition failed: {result.condition}, Context Details: {snapshot}"
        )

    def _failure(
        self,
        condition: str,
        context: Optional[AttributeProvider],
        message: str,
        cause: Optional[BaseException] = None
    ) -> ConditionResult:
        snapshot = render_context_snapshot(context)
        self.logger.debug("Condition evaluation failed", condition=condition, error=message, context=snapshot)
        return ConditionResult.failed(condition, ConditionEvaluationError(condition, snapshot, message, cause))

    @staticmethod
    def _snapshot_source(context: Any) -> Optional[AttributeProvider]:
        try:
            return EvaluationContext.coerce(context)
        except TypeError:
            return None
