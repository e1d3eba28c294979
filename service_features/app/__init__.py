"""
Feature Toggle service package.

This package decides whether a named feature is active for a caller
supplied evaluation context. It provides:

- app.main: API surface for feature evaluation and health.
- app.rules: Feature model, dependency resolution, the condition
  expression language and the evaluation engine.
- app.catalog: Providers that fetch the feature catalog.

Guidelines:
- The engine is stateless; the catalog is re-fetched on every evaluation.
- Evaluation never mutates the catalog or the context.
- FeatureEngine.evaluate raises a descriptive error for every failure;
  only is_enabled reports failures as False.
"""
