"""
Feature rules package.

Defines the feature model and the evaluation machinery used by the
Feature Toggle service. A feature is active when it exists, its
prerequisites are enabled, it is enabled itself, and (when a context is
given) the first rule whose condition matches says so.

Modules of interest:
- models: FeatureDefinition, FeatureRule and evaluation contexts.
- expression: Tokenizer, parser and evaluator for rule conditions.
- conditions: Condition evaluation against a context, with diagnostics.
- dependencies: Prerequisite resolution against the catalog.
- engine: The evaluation algorithm.
"""

from .models import FeatureDefinition, FeatureRule, EvaluationContext, AttributeProvider
from .errors import (
    FeatureEvaluationError, ConditionEvaluationError, EvaluationFailureReason,
    ExpressionError, ExpressionSyntaxError, ExpressionEvaluationError
)
from .conditions import ConditionEvaluator, ConditionResult, ConditionStatus, render_context_snapshot
from .dependencies import DependencyResolver
from .engine import FeatureEngine

__all__ = [
    "FeatureDefinition",
    "FeatureRule",
    "EvaluationContext",
    "AttributeProvider",
    "FeatureEvaluationError",
    "ConditionEvaluationError",
    "EvaluationFailureReason",
    "ExpressionError",
    "ExpressionSyntaxError",
    "ExpressionEvaluationError",
    "ConditionEvaluator",
    "ConditionResult",
    "ConditionStatus",
    "render_context_snapshot",
    "DependencyResolver",
    "FeatureEngine",
]
