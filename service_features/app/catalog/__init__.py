"""
Feature catalog providers.

The evaluation engine only needs ``fetch_all()``; providers decide where
definitions come from. No provider caches: every call is a fresh snapshot.
"""

from .provider import FeatureProvider, InMemoryFeatureProvider, JsonFileFeatureProvider

__all__ = ["FeatureProvider", "InMemoryFeatureProvider", "JsonFileFeatureProvider"]
