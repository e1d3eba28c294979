"""
Feature catalog providers for the Feature Toggle service.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple, Union

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from shared.errors import CatalogError
from shared.logging import get_logger
from ..rules.models import FeatureDefinition, FeatureRecord

_CATALOG_ADAPTER = TypeAdapter(List[FeatureRecord])


class FeatureProvider(ABC):
    """Source of feature definitions.

    Implementations must be safe to call concurrently and may be called
    several times during a single evaluation.
    """

    @abstractmethod
    def fetch_all(self) -> Sequence[FeatureDefinition]:
        """Return every feature definition in catalog order."""

    def describe(self) -> str:
        return type(self).__name__


class InMemoryFeatureProvider(FeatureProvider):
    """Provider over a fixed, immutable set of definitions."""

    def __init__(self, definitions: Iterable[FeatureDefinition] = ()):
        self._definitions: Tuple[FeatureDefinition, ...] = tuple(definitions)

    def fetch_all(self) -> Sequence[FeatureDefinition]:
        return self._definitions


def parse_catalog(payload: Union[str, bytes], source: str = "<memory>") -> List[FeatureDefinition]:
    """Decode a JSON catalog document into feature definitions."""
    try:
        data = json.loads(payload)
    except ValueError as e:
        raise CatalogError(f"Feature catalog is not valid JSON: {e}", source=source) from e

    if not isinstance(data, list):
        raise CatalogError(
            f"Feature catalog must be a JSON array, got {type(data).__name__}", source=source
        )

    try:
        records = _CATALOG_ADAPTER.validate_python(data)
    except PydanticValidationError as e:
        raise CatalogError(
            f"Feature catalog has invalid records: {e.error_count()} error(s)",
            source=source,
            details={"errors": e.errors(include_url=False, include_context=False, include_input=False)}
        ) from e

    return [record.to_definition() for record in records]


class JsonFileFeatureProvider(FeatureProvider):
    """Provider that re-reads a JSON file on every fetch."""

    def __init__(self, path: Union[str, Path], encoding: str = "utf-8"):
        self.path = Path(path)
        self.encoding = encoding
        self.logger = get_logger("features.catalog.json")

    def fetch_all(self) -> Sequence[FeatureDefinition]:
        try:
            payload = self.path.read_text(encoding=self.encoding)
        except OSError as e:
            self.logger.error("Failed to read feature catalog", path=str(self.path), error=str(e))
            raise CatalogError(f"Cannot read feature catalog: {e}", source=str(self.path)) from e

        definitions = parse_catalog(payload, source=str(self.path))
        self.logger.debug("Feature catalog loaded", path=str(self.path), features=len(definitions))
        return definitions

    def describe(self) -> str:
        return f"{type(self).__name__}({self.path})"
