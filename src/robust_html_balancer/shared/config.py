"""Configuration classes for tag balancing.

This module provides the configuration objects consumed by the balancer and
the pruning pass. Component configurations validate themselves on creation;
``BalancerConfig`` bundles them into one immutable object that can be shared
between threads.
"""

import json
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

# Tags whose emptiness is meaningful and which the empty-node pruning keeps.
DEFAULT_EMPTY_PRUNE_EXEMPT_TAGS = frozenset({
    "td", "th", "textarea", "script", "style", "iframe", "canvas",
    "object", "video", "audio", "option", "title", "a",
})

_NOT_SERIALIZED = {"serialize": False}


def _normalize_tag_set(tags: Any) -> FrozenSet[str]:
    return frozenset(str(tag).strip().lower() for tag in tags if str(tag).strip())


@dataclass
class PruningConfig:
    """Configuration for the post-construction pruning pass."""

    prune_tags: FrozenSet[str] = frozenset()
    # Runtime TagNodeCondition objects; not part of the serialized form.
    prune_conditions: Tuple[Any, ...] = field(default=(), metadata=_NOT_SERIALIZED)
    prune_empty_nodes: bool = False
    remove_unused_auto_generated: bool = True
    move_pruned_children_up: bool = False
    carry_namespace_declarations: bool = False
    empty_prune_exempt_tags: FrozenSet[str] = DEFAULT_EMPTY_PRUNE_EXEMPT_TAGS

    def __post_init__(self) -> None:
        """Validate pruning configuration."""
        if isinstance(self.prune_tags, str):
            raise ValueError("prune_tags must be a collection of tag names")
        if isinstance(self.empty_prune_exempt_tags, str):
            raise ValueError("empty_prune_exempt_tags must be a collection of tag names")
        self.prune_tags = _normalize_tag_set(self.prune_tags)
        self.empty_prune_exempt_tags = _normalize_tag_set(self.empty_prune_exempt_tags)
        self.prune_conditions = tuple(self.prune_conditions)
        for condition in self.prune_conditions:
            if not callable(getattr(condition, "satisfy", None)):
                raise ValueError("prune_conditions entries must provide satisfy(node)")

    @property
    def is_active(self) -> bool:
        """Whether the pruning pass has anything to do."""
        return bool(
            self.prune_tags
            or self.prune_conditions
            or self.prune_empty_nodes
            or self.remove_unused_auto_generated
        )


@dataclass
class NamespaceConfig:
    """Configuration for namespace scoping and foreign markup."""

    namespaces_aware: bool = True
    foreign_markup: bool = True


@dataclass
class TreeConfig:
    """Configuration for tree construction."""

    root_name: str = "html"
    use_cdata_for_script_and_style: bool = True
    honor_self_closing_foreign: bool = True

    def __post_init__(self) -> None:
        """Validate tree configuration."""
        if not self.root_name or not self.root_name.strip():
            raise ValueError("root_name cannot be empty")
        self.root_name = self.root_name.strip()


@dataclass
class GlobalConfig:
    """Settings that apply across all components."""

    enable_diagnostics: bool = True
    diagnostic_detail_level: str = "standard"  # minimal, standard, detailed

    def __post_init__(self) -> None:
        """Validate global configuration."""
        valid_detail_levels = ["minimal", "standard", "detailed"]
        if self.diagnostic_detail_level not in valid_detail_levels:
            raise ValueError(
                f"diagnostic_detail_level must be one of {valid_detail_levels}"
            )


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


_COMPONENTS = ("pruning", "namespaces", "tree", "global_")


@dataclass(frozen=True)
class BalancerConfig:
    """Complete configuration for one balancer instance.

    Immutable, so a single instance may be shared by balancers running on
    different threads.
    """

    pruning: PruningConfig = field(default_factory=PruningConfig)
    namespaces: NamespaceConfig = field(default_factory=NamespaceConfig)
    tree: TreeConfig = field(default_factory=TreeConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete configuration."""
        try:
            self.pruning.__post_init__()
            self.tree.__post_init__()
            self.global_.__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

        if (
            self.pruning.carry_namespace_declarations
            and not self.pruning.move_pruned_children_up
        ):
            raise ConfigValidationError(
                "carry_namespace_declarations requires move_pruned_children_up",
                field_name="pruning.carry_namespace_declarations",
                suggestions=["Enable pruning.move_pruned_children_up"],
            )

    def override(self, **kwargs: Any) -> "BalancerConfig":
        """Create a new configuration with specific overrides.

        Example:
            >>> config = BalancerConfig().override(
            ...     pruning__prune_empty_nodes=True,
            ...     tree__root_name="body",
            ... )
        """
        nested_overrides: Dict[str, Dict[str, Any]] = {}
        top_level: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.rsplit("__", 1)
                if component not in _COMPONENTS:
                    raise ConfigValidationError(
                        f"Unknown configuration component: {component}",
                        field_name=key,
                    )
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                top_level[key] = value

        new_fields: Dict[str, Any] = dict(top_level)
        for component, overrides in nested_overrides.items():
            try:
                new_fields[component] = replace(getattr(self, component), **overrides)
            except (TypeError, ValueError) as e:
                raise ConfigValidationError(str(e), field_name=component) from e

        return replace(self, **new_fields)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        def _dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                result: Dict[str, Any] = {}
                for dc_field in fields(obj):
                    if dc_field.metadata.get("serialize", True):
                        result[dc_field.name] = _dataclass_to_dict(
                            getattr(obj, dc_field.name)
                        )
                return result
            if isinstance(obj, (set, frozenset)):
                return sorted(_dataclass_to_dict(item) for item in obj)
            if isinstance(obj, (list, tuple)):
                return [_dataclass_to_dict(item) for item in obj]
            if isinstance(obj, dict):
                return {key: _dataclass_to_dict(value) for key, value in obj.items()}
            return obj

        return _dataclass_to_dict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BalancerConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected so that typos in configuration files do not
        silently fall back to defaults.
        """
        def _dict_to_dataclass(data_dict: Dict[str, Any], target_class: type) -> Any:
            if not isinstance(data_dict, dict):
                raise ConfigValidationError(
                    f"Expected mapping for {target_class.__name__}"
                )
            known = {f.name: f for f in fields(target_class)}
            unknown = set(data_dict) - set(known)
            if unknown:
                raise ConfigValidationError(
                    f"Unknown fields for {target_class.__name__}: {sorted(unknown)}",
                    field_name=sorted(unknown)[0],
                )

            field_values: Dict[str, Any] = {}
            for field_name, value in data_dict.items():
                field_type = known[field_name].type
                if hasattr(field_type, "__dataclass_fields__"):
                    field_values[field_name] = _dict_to_dataclass(value, field_type)
                elif getattr(field_type, "__origin__", None) in (frozenset, set):
                    field_values[field_name] = frozenset(value)
                else:
                    field_values[field_name] = value
            try:
                return target_class(**field_values)
            except ValueError as e:
                raise ConfigValidationError(str(e)) from e

        return _dict_to_dataclass(data, cls)

    @classmethod
    def from_json(cls, json_str: str) -> "BalancerConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def browser_like(cls) -> "BalancerConfig":
        """Repair only; keep every node the input produced."""
        return cls(
            pruning=PruningConfig(remove_unused_auto_generated=True),
            name="browser_like",
            description="Structural repair without content pruning",
        )

    @classmethod
    def clean_output(cls) -> "BalancerConfig":
        """Repair and drop empty or script-like nodes."""
        return cls(
            pruning=PruningConfig(
                prune_tags=frozenset({"script", "style"}),
                prune_empty_nodes=True,
                remove_unused_auto_generated=True,
            ),
            global_=GlobalConfig(diagnostic_detail_level="detailed"),
            name="clean_output",
            description="Structural repair with empty-node and script pruning",
        )

    @classmethod
    def preserve_everything(cls) -> "BalancerConfig":
        """Keep even unused auto-generated copies; no foreign markup handling."""
        return cls(
            pruning=PruningConfig(remove_unused_auto_generated=False),
            namespaces=NamespaceConfig(namespaces_aware=False, foreign_markup=False),
            name="preserve_everything",
            description="Structural repair only, every synthesized node kept",
        )
