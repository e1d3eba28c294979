"""
Unit tests for feature catalog providers.
"""

import json
import pytest

from shared.errors import CatalogError
from service_features.app.catalog import InMemoryFeatureProvider, JsonFileFeatureProvider
from service_features.app.catalog.provider import parse_catalog
from service_features.app.rules.models import FeatureDefinition, FeatureRule


class TestParseCatalog:
    """Test cases for parse_catalog."""

    def test_camel_case_records(self):
        """Test the documented record shape."""
        payload = json.dumps([{
            "name": "checkout",
            "isEnabled": True,
            "defaultEnabled": False,
            "dependsOn": ["payments"],
            "rules": [
                {"condition": "Age >= 18", "enabled": True},
                {"condition": "true", "isEnabled": False, "disabled": True}
            ]
        }])

        assert parse_catalog(payload) == [FeatureDefinition(
            name="checkout",
            enabled=True,
            default_enabled=False,
            depends_on=("payments",),
            rules=(
                FeatureRule(condition="Age >= 18", enabled=True),
                FeatureRule(condition="true", enabled=False, disabled=True),
            )
        )]

    def test_pascal_and_snake_case_records(self):
        """Test alternative key spellings."""
        payload = json.dumps([
            {"Name": "a", "IsEnabled": True, "DefaultEnabled": True, "DependsOn": ["b"], "Rules": []},
            {"name": "b", "enabled": True, "default_enabled": False, "depends_on": []},
        ])

        first, second = parse_catalog(payload)

        assert first.name == "a" and first.enabled and first.default_enabled
        assert first.depends_on == ("b",)
        assert second.name == "b" and second.enabled and not second.default_enabled

    def test_null_lists_are_empty(self):
        """Test null dependsOn and rules."""
        definition, = parse_catalog('[{"name": "x", "enabled": true, "dependsOn": null, "rules": null}]')

        assert definition.depends_on == ()
        assert definition.rules == ()

    def test_missing_flags_default_to_false(self):
        """Test absent booleans read as False."""
        definition, = parse_catalog('[{"name": "x"}]')

        assert definition.enabled is False
        assert definition.default_enabled is False

    def test_invalid_json(self):
        """Test malformed JSON is rejected."""
        with pytest.raises(CatalogError, match="not valid JSON"):
            parse_catalog("[{", source="broken.json")

    def test_root_must_be_array(self):
        """Test a non-array document is rejected."""
        with pytest.raises(CatalogError, match="must be a JSON array"):
            parse_catalog('{"name": "x"}')

    def test_invalid_record(self):
        """Test records failing validation are rejected with details."""
        with pytest.raises(CatalogError) as exc_info:
            parse_catalog('[{"name": "x", "rules": [{"enabled": true}]}]', source="catalog.json")

        error = exc_info.value
        assert error.code == "CATALOG_ERROR"
        assert error.details["source"] == "catalog.json"
        assert error.details["errors"]


class TestInMemoryFeatureProvider:
    """Test cases for InMemoryFeatureProvider."""

    def test_fetch_all_returns_definitions_in_order(self):
        """Test catalog order is kept."""
        definitions = [FeatureDefinition(name="a"), FeatureDefinition(name="b")]
        provider = InMemoryFeatureProvider(definitions)

        assert [d.name for d in provider.fetch_all()] == ["a", "b"]

    def test_fetch_all_is_not_affected_by_caller_list(self):
        """Test the provider keeps its own snapshot."""
        definitions = [FeatureDefinition(name="a")]
        provider = InMemoryFeatureProvider(definitions)

        definitions.append(FeatureDefinition(name="b"))

        assert len(provider.fetch_all()) == 1


class TestJsonFileFeatureProvider:
    """Test cases for JsonFileFeatureProvider."""

    def test_reads_file(self, tmp_path):
        """Test definitions are loaded from disk."""
        path = tmp_path / "features.json"
        path.write_text(json.dumps([{"name": "a", "enabled": True}]))

        provider = JsonFileFeatureProvider(path)

        assert provider.fetch_all() == [FeatureDefinition(name="a", enabled=True)]
        assert str(path) in provider.describe()

    def test_rereads_file_on_every_fetch(self, tmp_path):
        """Test no caching between fetches."""
        path = tmp_path / "features.json"
        path.write_text(json.dumps([{"name": "a", "enabled": True}]))
        provider = JsonFileFeatureProvider(path)

        provider.fetch_all()
        path.write_text(json.dumps([{"name": "a", "enabled": False}]))

        assert provider.fetch_all()[0].enabled is False

    def test_missing_file(self, tmp_path):
        """Test a missing file raises CatalogError."""
        provider = JsonFileFeatureProvider(tmp_path / "absent.json")

        with pytest.raises(CatalogError) as exc_info:
            provider.fetch_all()

        assert exc_info.value.source == str(tmp_path / "absent.json")
        assert isinstance(exc_info.value.__cause__, OSError)
