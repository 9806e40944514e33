"""Configuration classes for schema inference and code generation.

This module provides immutable configuration objects for every stage of a run:
scanning sources into the schema tree, inferring value types, naming emitted
types, and rendering one of the output dialects. A single CompilerConfig is
built before scanning starts and passed explicitly to every component.
"""

import json
import re
from dataclasses import dataclass, field, fields, replace
from enum import Enum, auto
from typing import Any, Dict, FrozenSet, List, Optional

from xml_struct_inferrer.shared.errors import XMLStructError

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_IDENTIFIER_TAIL_RE = re.compile(r"^[A-Za-z0-9_]*$")
_JAVA_SEGMENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

COMPONENT_FIELDS = ("naming", "inference", "extraction", "emission", "java")


class OutputDialect(Enum):
    """Output dialects that can be generated from one schema tree."""

    GO_STRUCTS = auto()   # Go struct declarations only
    GO_PROGRAM = auto()   # Complete Go program converting XML to JSON
    JAVA_JAXB = auto()    # Java JAXB classes in a Maven project layout


class SortOrder(Enum):
    """Order in which declarations are emitted."""

    ALPHABETICAL = auto()  # By path-qualified key
    DISCOVERY = auto()     # By the order elements were first seen


@dataclass(frozen=True)
class NamingConfig:
    """Configuration for naming emitted types and fields."""

    name_prefix: str = "C"
    name_suffix: str = ""
    attribute_prefix: str = "Attr"
    keep_first_letter_case: bool = True
    namespace_in_field_name: bool = False

    def __post_init__(self) -> None:
        """Validate naming configuration."""
        if self.name_prefix:
            if not _IDENTIFIER_RE.match(self.name_prefix):
                raise ValueError("name_prefix must be a valid identifier")
            if not self.name_prefix[0].isupper():
                raise ValueError("name_prefix must start with a capital letter")
        if not _IDENTIFIER_TAIL_RE.match(self.name_suffix):
            raise ValueError("name_suffix may only contain letters, digits and '_'")
        if self.attribute_prefix and not _IDENTIFIER_RE.match(self.attribute_prefix):
            raise ValueError("attribute_prefix must be a valid identifier")


@dataclass(frozen=True)
class InferenceConfig:
    """Configuration for value type inference."""

    use_type: bool = False


@dataclass(frozen=True)
class ExtractionConfig:
    """Configuration for scanning sources into the schema tree."""

    ignored_tags: FrozenSet[str] = field(default_factory=frozenset)
    ignore_lowercase_tags: bool = False
    continue_on_error: bool = False
    progress_interval: int = 0
    chunk_size: int = 65536
    queue_size: int = 1

    def __post_init__(self) -> None:
        """Validate extraction configuration."""
        if not isinstance(self.ignored_tags, frozenset):
            object.__setattr__(self, "ignored_tags", frozenset(self.ignored_tags))
        if any(not tag for tag in self.ignored_tags):
            raise ValueError("ignored_tags cannot contain empty tag names")
        if self.progress_interval < 0:
            raise ValueError("progress_interval must be >= 0")
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        if self.queue_size <= 0:
            raise ValueError("queue_size must be > 0")


@dataclass(frozen=True)
class EmissionConfig:
    """Configuration for walking the schema tree and rendering declarations."""

    dialect: OutputDialect = OutputDialect.GO_STRUCTS
    sort_order: SortOrder = SortOrder.ALPHABETICAL
    flatten_strings: bool = False
    field_template: Optional[str] = None
    # Go struct tag carrying the longest observed value, e.g. ``db:"size=12"``
    length_tag_name: str = ""
    length_tag_attribute: str = ""

    def __post_init__(self) -> None:
        """Validate emission configuration."""
        if not isinstance(self.dialect, OutputDialect):
            raise ValueError(f"dialect must be one of {[d.name for d in OutputDialect]}")
        if not isinstance(self.sort_order, SortOrder):
            raise ValueError(f"sort_order must be one of {[s.name for s in SortOrder]}")
        if self.field_template is not None and not self.field_template.strip():
            raise ValueError("field_template cannot be blank")
        if bool(self.length_tag_name) != bool(self.length_tag_attribute):
            raise ValueError("length_tag_name and length_tag_attribute must be set together")
        for value in (self.length_tag_name, self.length_tag_attribute):
            if value and not _IDENTIFIER_RE.match(value):
                raise ValueError(f"Invalid length tag part: {value!r}")


@dataclass(frozen=True)
class JavaConfig:
    """Configuration for the Java JAXB project layout."""

    base_dir: str = "java"
    app_name: str = "jaxb"
    package_name: str = ""
    base_package: str = "org.xmlstruct"

    def __post_init__(self) -> None:
        """Validate Java configuration."""
        if not self.base_dir:
            raise ValueError("base_dir cannot be empty")
        for segment in self.java_package.split("."):
            if not _JAVA_SEGMENT_RE.match(segment):
                raise ValueError(f"Invalid Java package segment: {segment!r}")

    @property
    def java_package(self) -> str:
        """Full Java package of the generated Main class."""
        return f"{self.base_package}.{self.package_name or self.app_name}"

    @property
    def artifact_id(self) -> str:
        """Maven artifact id of the generated project."""
        return self.package_name or self.app_name


class ConfigError(XMLStructError):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class CompilerConfig:
    """Complete configuration for one schema inference run.

    Built once before any source is scanned and handed to the extractor,
    the schema tree and the emission walker. Thread-safe because every
    component is a frozen dataclass.
    """

    naming: NamingConfig = field(default_factory=NamingConfig)
    inference: InferenceConfig = field(default_factory=InferenceConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    emission: EmissionConfig = field(default_factory=EmissionConfig)
    java: JavaConfig = field(default_factory=JavaConfig)

    correlation_id: Optional[str] = None
    version: str = "1.0.0"

    def __post_init__(self) -> None:
        """Validate the complete configuration."""
        for component in COMPONENT_FIELDS:
            value = getattr(self, component)
            expected = self.__dataclass_fields__[component].type
            if not isinstance(value, expected):
                raise ConfigValidationError(
                    f"{component} must be a {expected.__name__}",
                    field_name=component,
                )

    @classmethod
    def from_flags(
        cls,
        go_structs: bool = False,
        go_program: bool = False,
        java: bool = False,
        **overrides: Any,
    ) -> "CompilerConfig":
        """Create a configuration from mutually exclusive dialect switches.

        Args:
            go_structs: Emit Go struct declarations only
            go_program: Emit a complete Go conversion program
            java: Emit a Java JAXB project
            **overrides: Extra settings in ``component__field`` notation

        Returns:
            CompilerConfig with the selected dialect

        Raises:
            ConfigValidationError: If zero or several dialects are selected,
                or an override is invalid
        """
        selected = [
            dialect
            for flag, dialect in (
                (go_structs, OutputDialect.GO_STRUCTS),
                (go_program, OutputDialect.GO_PROGRAM),
                (java, OutputDialect.JAVA_JAXB),
            )
            if flag
        ]
        if len(selected) > 1:
            raise ConfigValidationError(
                "Only one output dialect can be selected",
                field_name="emission.dialect",
                suggestions=[d.name for d in selected],
            )
        if not selected:
            raise ConfigValidationError(
                "An output dialect must be selected",
                field_name="emission.dialect",
                suggestions=[d.name for d in OutputDialect],
            )
        return cls().override(emission__dialect=selected[0], **overrides)

    def override(self, **kwargs: Any) -> "CompilerConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Configuration fields to override; nested fields use
                ``component__field`` notation

        Returns:
            New CompilerConfig instance with overrides applied

        Example:
            >>> config = CompilerConfig()
            >>> new_config = config.override(
            ...     naming__name_prefix="X",
            ...     inference__use_type=True
            ... )
        """
        nested_overrides: Dict[str, Dict[str, Any]] = {}
        top_level: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component not in COMPONENT_FIELDS:
                    raise ConfigValidationError(
                        f"Unknown configuration component: {component}",
                        field_name=key,
                    )
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                top_level[key] = value

        new_fields: Dict[str, Any] = dict(top_level)
        try:
            for component, values in nested_overrides.items():
                new_fields[component] = replace(getattr(self, component), **values)
            return replace(self, **new_fields)
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format.

        Returns:
            Dictionary representation of the configuration
        """
        def _to_plain(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {f.name: _to_plain(getattr(obj, f.name)) for f in fields(obj)}
            if isinstance(obj, Enum):
                return obj.name
            if isinstance(obj, (set, frozenset)):
                return sorted(_to_plain(item) for item in obj)
            if isinstance(obj, (list, tuple)):
                return [_to_plain(item) for item in obj]
            return obj

        return _to_plain(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompilerConfig":
        """Create configuration from dictionary.

        Args:
            data: Dictionary as produced by ``to_dict``

        Returns:
            CompilerConfig instance created from dictionary
        """
        def _from_plain(values: Dict[str, Any], target_class: type) -> Any:
            kwargs: Dict[str, Any] = {}
            for f in fields(target_class):
                if f.name not in values:
                    continue
                value = values[f.name]
                if hasattr(f.type, "__dataclass_fields__"):
                    value = _from_plain(value, f.type)
                elif hasattr(f.type, "__members__") and isinstance(value, str):
                    value = f.type[value]
                elif isinstance(value, list):
                    value = frozenset(value)
                kwargs[f.name] = value
            return target_class(**kwargs)

        try:
            return _from_plain(data, cls)
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigValidationError(f"Invalid configuration data: {e}") from e

    @classmethod
    def from_json(cls, json_str: str) -> "CompilerConfig":
        """Create configuration from JSON string."""
        return cls.from_dict(json.loads(json_str))
