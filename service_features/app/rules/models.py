"""
Feature data models for the Feature Toggle service.
"""

from typing import Dict, Any, Optional, List, Tuple, Iterator, Mapping, Protocol, runtime_checkable
from types import MappingProxyType
from dataclasses import dataclass, field

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class FeatureRule:
    """Conditional rule attached to a feature.

    ``enabled`` is the outcome returned when ``condition`` matches.
    ``disabled`` marks a rule that may never select its outcome; evaluating
    it always fails.
    """
    condition: str
    enabled: bool = True
    disabled: bool = False


@dataclass(frozen=True)
class FeatureDefinition:
    """Feature as fetched from the catalog."""
    name: str
    enabled: bool = False
    default_enabled: bool = False
    depends_on: Tuple[str, ...] = field(default_factory=tuple)
    rules: Tuple[FeatureRule, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Lists from callers are frozen so a definition cannot change mid-evaluation
        object.__setattr__(self, "depends_on", tuple(self.depends_on or ()))
        object.__setattr__(self, "rules", tuple(self.rules or ()))


@runtime_checkable
class AttributeProvider(Protocol):
    """Anything that can list its attributes as ``(name, value)`` pairs."""

    def attributes(self) -> Iterator[Tuple[str, Any]]:
        ...


class EvaluationContext:
    """Mapping-backed evaluation context.

    Attribute order is preserved; it is the order used in diagnostics.
    """

    def __init__(self, attributes: Optional[Mapping[str, Any]] = None, **kwargs: Any):
        values: Dict[str, Any] = dict(attributes or {})
        values.update(kwargs)
        self._values = MappingProxyType(values)

    @classmethod
    def coerce(cls, context: Any) -> Optional[AttributeProvider]:
        """Adapt a caller-supplied context to an attribute provider."""
        if context is None or isinstance(context, AttributeProvider):
            return context
        if isinstance(context, Mapping):
            return cls(context)
        raise TypeError(
            f"Context of type {type(context).__name__} must be a mapping "
            "or implement attributes()"
        )

    def attributes(self) -> Iterator[Tuple[str, Any]]:
        return iter(self._values.items())

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(name, default)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EvaluationContext):
            return NotImplemented
        return dict(self._values) == dict(other._values)

    def __repr__(self) -> str:
        return f"EvaluationContext({dict(self._values)!r})"


class RuleRecord(BaseModel):
    """Rule as stored in a persisted catalog."""
    model_config = ConfigDict(extra="ignore")

    condition: str = Field(validation_alias=AliasChoices("condition", "Condition"))
    enabled: bool = Field(
        default=False,
        validation_alias=AliasChoices("enabled", "isEnabled", "is_enabled", "IsEnabled")
    )
    disabled: bool = Field(default=False, validation_alias=AliasChoices("disabled", "Disabled"))

    def to_rule(self) -> FeatureRule:
        return FeatureRule(condition=self.condition, enabled=self.enabled, disabled=self.disabled)


class FeatureRecord(BaseModel):
    """Feature as stored in a persisted catalog.

    Accepts camelCase, snake_case and PascalCase keys; ``null`` lists are
    read as empty.
    """
    model_config = ConfigDict(extra="ignore")

    name: str = Field(validation_alias=AliasChoices("name", "Name"))
    enabled: bool = Field(
        default=False,
        validation_alias=AliasChoices("enabled", "isEnabled", "is_enabled", "IsEnabled")
    )
    default_enabled: bool = Field(
        default=False,
        validation_alias=AliasChoices("defaultEnabled", "default_enabled", "DefaultEnabled")
    )
    depends_on: Optional[List[str]] = Field(
        default=None,
        validation_alias=AliasChoices("dependsOn", "depends_on", "DependsOn")
    )
    rules: Optional[List[RuleRecord]] = Field(default=None, validation_alias=AliasChoices("rules", "Rules"))

    def to_definition(self) -> FeatureDefinition:
        return FeatureDefinition(
            name=self.name,
            enabled=self.enabled,
            default_enabled=self.default_enabled,
            depends_on=tuple(self.depends_on or ()),
            rules=tuple(rule.to_rule() for rule in self.rules or ())
        )


class FeatureEvaluationRequest(BaseModel):
    """Request model for feature evaluation."""
    context: Optional[Dict[str, Any]] = Field(None, description="Attributes exposed to rule conditions")


class FeatureEvaluationResponse(BaseModel):
    """Response model for feature evaluation."""
    feature: str = Field(..., description="Evaluated feature name")
    enabled: bool = Field(..., description="Whether the feature is active for the context")


class RuleResponse(BaseModel):
    """Response model for a feature rule."""
    condition: str
    enabled: bool
    disabled: bool = False


class FeatureResponse(BaseModel):
    """Response model for a feature definition."""
    name: str
    enabled: bool
    default_enabled: bool
    depends_on: List[str]
    rules: List[RuleResponse]

    @classmethod
    def from_definition(cls, definition: FeatureDefinition) -> "FeatureResponse":
        return cls(
            name=definition.name,
            enabled=definition.enabled,
            default_enabled=definition.default_enabled,
            depends_on=list(definition.depends_on),
            rules=[
                RuleResponse(condition=rule.condition, enabled=rule.enabled, disabled=rule.disabled)
                for rule in definition.rules
            ]
        )


class FeatureListResponse(BaseModel):
    """Response model for the feature list."""
    features: List[FeatureResponse]
    total: int
