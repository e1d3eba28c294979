"""
Feature evaluation engine for the Feature Toggle service.
"""

from typing import Any, Optional, Sequence

from shared.logging import get_logger
from shared.tracing import trace_operation
from .conditions import ConditionEvaluator, ConditionStatus
from .dependencies import DependencyResolver, find_feature
from .errors import EvaluationFailureReason, FeatureEvaluationError
from .models import EvaluationContext, FeatureDefinition


class FeatureEngine:
    """Decides whether a feature is active for a context.

    Evaluation is a single pass over a fresh catalog snapshot:

        found -> prerequisites enabled -> feature enabled
              -> first matching rule (when rules and a context exist)
              -> outcome

    Any failure raises FeatureEvaluationError. A rule whose condition is
    false is skipped; a rule that cannot be evaluated (syntax error,
    unknown attribute, type mismatch, disabled rule) aborts evaluation.
    """

    def __init__(
        self,
        provider,
        condition_evaluator: Optional[ConditionEvaluator] = None,
        dependency_resolver: Optional[DependencyResolver] = None
    ):
        self.provider = provider
        self.conditions = condition_evaluator or ConditionEvaluator()
        self.dependencies = dependency_resolver or DependencyResolver(provider)
        self.logger = get_logger("features.engine")

    def evaluate(self, feature_name: str, context: Any = None) -> bool:
        """Evaluate ``feature_name`` for ``context``.

        ``context`` may be None, a mapping, or any object implementing
        ``attributes()``.
        """
        log = self.logger.bind(feature=feature_name)
        with trace_operation("feature.evaluate", feature=feature_name):
            try:
                outcome = self._evaluate(feature_name, context, log)
            except FeatureEvaluationError as e:
                log.info("Feature evaluation failed", reason=e.reason.value, error=e.message)
                raise
            except Exception as e:
                log.error("Unexpected feature evaluation error", error=str(e), exc_info=True)
                raise FeatureEvaluationError(
                    feature_name,
                    f"Error during feature evaluation for '{feature_name}': {e}",
                    cause=e
                ) from e

        log.debug("Feature evaluated", enabled=outcome)
        return outcome

    def is_enabled(self, feature_name: str, context: Any = None) -> bool:
        """Like evaluate, but any evaluation failure reads as False."""
        try:
            return self.evaluate(feature_name, context)
        except FeatureEvaluationError as e:
            self.logger.warning(
                "Feature treated as inactive",
                feature=feature_name,
                reason=e.reason.value,
                error=e.message
            )
            return False

    def _evaluate(self, feature_name: str, context: Any, log) -> bool:
        catalog = self._fetch_catalog(feature_name)

        feature = find_feature(catalog, feature_name)
        if feature is None:
            raise FeatureEvaluationError(
                feature_name,
                f"Feature '{feature_name}' not found",
                EvaluationFailureReason.NOT_FOUND
            )

        missing = self.dependencies.missing_dependencies(feature.depends_on, catalog)
        if missing:
            raise FeatureEvaluationError(
                feature_name,
                f"Dependencies for feature '{feature_name}' are not satisfied. "
                f"Missing dependencies: {', '.join(missing)}",
                EvaluationFailureReason.DEPENDENCIES_UNSATISFIED,
                missing_dependencies=missing
            )

        if not feature.enabled:
            raise FeatureEvaluationError(
                feature_name,
                f"Feature '{feature_name}' is disabled",
                EvaluationFailureReason.DISABLED
            )

        if feature.rules and context is not None:
            matched = self._first_matching_rule(feature, EvaluationContext.coerce(context), log)
            if matched is not None:
                return matched

        return feature.enabled

    def _first_matching_rule(self, feature: FeatureDefinition, context, log) -> Optional[bool]:
        for index, rule in enumerate(feature.rules):
            result = self.conditions.match_rule(rule, context)

            if result.status is ConditionStatus.MATCHED:
                log.debug("Rule matched", rule_index=index, condition=result.condition, enabled=rule.enabled)
                return rule.enabled

            if result.status is ConditionStatus.FAILED:
                raise FeatureEvaluationError(
                    feature.name,
                    f"Error during feature evaluation for '{feature.name}': "
                    f"rule {index} ({result.condition}): {result.error.message}",
                    cause=result.error
                )

        return None

    def _fetch_catalog(self, feature_name: str) -> Sequence[FeatureDefinition]:
        try:
            return self.provider.fetch_all()
        except Exception as e:
            raise FeatureEvaluationError(
                feature_name,
                f"Error during feature evaluation for '{feature_name}': cannot fetch feature catalog: {e}",
                cause=e
            ) from e
