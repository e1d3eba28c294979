"""
Prerequisite resolution for the Feature Toggle service.
"""

from typing import List, Optional, Sequence

from .models import FeatureDefinition


def find_feature(catalog: Sequence[FeatureDefinition], name: str) -> Optional[FeatureDefinition]:
    """First definition named exactly ``name``; duplicates are not validated."""
    for definition in catalog:
        if definition.name == name:
            return definition
    return None


class DependencyResolver:
    """Finds prerequisites that are absent from the catalog or disabled.

    Only a prerequisite's base ``enabled`` flag is consulted; its rules and
    its own prerequisites are not evaluated.
    """

    def __init__(self, provider):
        self.provider = provider

    def missing_dependencies(
        self,
        names: Sequence[str],
        catalog: Optional[Sequence[FeatureDefinition]] = None
    ) -> List[str]:
        """Missing or disabled prerequisites, in the order of ``names``."""
        if not names:
            return []

        if catalog is None:
            catalog = self.provider.fetch_all()

        missing = []
        for name in names:
            dependency = find_feature(catalog, name)
            if dependency is None or not dependency.enabled:
                missing.append(name)
        return missing
