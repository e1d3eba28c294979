"""
Unit tests for prerequisite resolution.
"""

import pytest
from unittest.mock import MagicMock

from service_features.app.catalog import InMemoryFeatureProvider
from service_features.app.rules.dependencies import DependencyResolver, find_feature
from service_features.app.rules.models import FeatureDefinition, FeatureRule


class TestDependencyResolver:
    """Test cases for DependencyResolver."""

    @pytest.fixture
    def catalog(self):
        """Create a catalog with enabled and disabled features."""
        return [
            FeatureDefinition(name="payments", enabled=True),
            FeatureDefinition(name="ledger", enabled=False),
            FeatureDefinition(
                name="reports",
                enabled=True,
                rules=[FeatureRule(condition="false", enabled=False)]
            ),
        ]

    @pytest.fixture
    def resolver(self, catalog):
        """Create DependencyResolver instance."""
        return DependencyResolver(InMemoryFeatureProvider(catalog))

    def test_no_dependencies(self, resolver):
        """Test empty input yields an empty result."""
        assert resolver.missing_dependencies([]) == []

    def test_all_satisfied(self, resolver):
        """Test enabled prerequisites are not reported."""
        assert resolver.missing_dependencies(["payments", "reports"]) == []

    def test_missing_and_disabled_in_input_order(self, resolver):
        """Test absent and disabled prerequisites are listed in input order."""
        missing = resolver.missing_dependencies(["search", "payments", "ledger", "audit"])

        assert missing == ["search", "ledger", "audit"]

    def test_prerequisite_rules_are_not_evaluated(self, resolver):
        """Test only the base enabled flag of a prerequisite counts."""
        assert resolver.missing_dependencies(["reports"]) == []

    def test_first_definition_wins(self):
        """Test duplicate names resolve to the first definition."""
        resolver = DependencyResolver(InMemoryFeatureProvider([
            FeatureDefinition(name="dup", enabled=False),
            FeatureDefinition(name="dup", enabled=True),
        ]))

        assert resolver.missing_dependencies(["dup"]) == ["dup"]

    def test_uses_supplied_snapshot(self, catalog):
        """Test a supplied catalog snapshot avoids another fetch."""
        provider = MagicMock()
        resolver = DependencyResolver(provider)

        assert resolver.missing_dependencies(["ledger"], catalog) == ["ledger"]
        provider.fetch_all.assert_not_called()

    def test_fetches_when_no_snapshot(self, catalog):
        """Test the provider is consulted when no snapshot is given."""
        provider = MagicMock()
        provider.fetch_all.return_value = catalog
        resolver = DependencyResolver(provider)

        assert resolver.missing_dependencies(["payments"]) == []
        provider.fetch_all.assert_called_once_with()


class TestFindFeature:
    """Test cases for find_feature."""

    def test_exact_match_only(self):
        """Test lookup is exact and case-sensitive."""
        catalog = [FeatureDefinition(name="Search", enabled=True)]

        assert find_feature(catalog, "Search") is catalog[0]
        assert find_feature(catalog, "search") is None
