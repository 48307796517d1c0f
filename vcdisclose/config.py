"""
Configuration

Runtime settings for the proving pipeline: which sponge parameters and
disclosure schema to build circuits with, how strictly the prover checks
its inputs, and how logging is emitted.

Configuration sources (in order of precedence):
    1. Environment variables (VCDISCLOSE_*)
    2. Runtime overrides (ConfigManager.set)
    3. YAML file (ConfigManager.load_from_file, validated against DOCUMENT_SCHEMA)
    4. Default values

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar, Union

import yaml
from jsonschema import Draft202012Validator

from vcdisclose.circuit import CircuitConfigurationError, DisclosureSchema
from vcdisclose.sponge import (
    PoseidonConfig,
    SpongeParameterError,
    SpongeProfile,
    derive_config,
    reference_config,
)

T = TypeVar("T")


class ConfigError(Exception):
    """Configuration error."""
    pass


class ValidationError(ConfigError):
    """Configuration validation error."""
    pass


@dataclass
class ConfigValue(Generic[T]):
    """
    A single configuration value with metadata.

    Supports default values, environment variable binding and validation.
    """
    default: T
    env_var: Optional[str] = None
    description: str = ""
    validator: Optional[Callable[[T], bool]] = None
    _value: Optional[T] = field(default=None, repr=False)

    def get(self) -> T:
        """Get the current value."""
        if self.env_var and self.env_var in os.environ:
            raw = os.environ[self.env_var]
            try:
                return self._coerce(raw)
            except ValueError as e:
                raise ConfigError(f"Invalid value for {self.env_var}: {raw!r}") from e
        return self._value if self._value is not None else self.default

    def set(self, value: T) -> None:
        """Set the value with validation."""
        if self.validator and not self.validator(value):
            raise ValidationError(f"Invalid value for config: {value!r}")
        self._value = value

    def _coerce(self, value: str) -> T:
        """Coerce an environment string to the default's type."""
        target_type = type(self.default)

        if target_type == bool:
            return value.lower() in ("true", "1", "yes", "on")  # type: ignore
        elif target_type == int:
            return int(value)  # type: ignore
        elif target_type == list:
            return [int(v) for v in value.split(",") if v.strip()]  # type: ignore
        else:
            return value  # type: ignore


def _is_int(x: Any) -> bool:
    return isinstance(x, int) and not isinstance(x, bool)


def _extract_values(obj: Any) -> Any:
    if isinstance(obj, ConfigValue):
        return obj.get()
    elif hasattr(obj, "__dataclass_fields__"):
        return {k: _extract_values(getattr(obj, k)) for k in obj.__dataclass_fields__}
    return obj


@dataclass
class SpongeSettings:
    """Sponge parameter selection."""
    profile: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default=SpongeProfile.REFERENCE.value,
        env_var="VCDISCLOSE_SPONGE_PROFILE",
        description="Parameter profile (reference, derived)",
        validator=lambda x: x in [p.value for p in SpongeProfile],
    ))
    full_rounds: ConfigValue[int] = field(default_factory=lambda: ConfigValue(
        default=8,
        env_var="VCDISCLOSE_SPONGE_FULL_ROUNDS",
        description="Full rounds for the derived profile (even)",
        validator=lambda x: _is_int(x) and x >= 0 and x % 2 == 0,
    ))
    partial_rounds: ConfigValue[int] = field(default_factory=lambda: ConfigValue(
        default=57,
        env_var="VCDISCLOSE_SPONGE_PARTIAL_ROUNDS",
        description="Partial rounds for the derived profile",
        validator=lambda x: _is_int(x) and x >= 0,
    ))
    alpha: ConfigValue[int] = field(default_factory=lambda: ConfigValue(
        default=5,
        env_var="VCDISCLOSE_SPONGE_ALPHA",
        description="S-box exponent for the derived profile",
        validator=lambda x: _is_int(x) and x >= 3,
    ))
    rate: ConfigValue[int] = field(default_factory=lambda: ConfigValue(
        default=2,
        env_var="VCDISCLOSE_SPONGE_RATE",
        description="Sponge rate for the derived profile",
        validator=lambda x: _is_int(x) and x >= 1,
    ))
    capacity: ConfigValue[int] = field(default_factory=lambda: ConfigValue(
        default=1,
        env_var="VCDISCLOSE_SPONGE_CAPACITY",
        description="Sponge capacity for the derived profile",
        validator=lambda x: _is_int(x) and x >= 1,
    ))
    seed: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="vcdisclose-poseidon-v1",
        env_var="VCDISCLOSE_SPONGE_SEED",
        description="Seed for derived round constants",
        validator=lambda x: isinstance(x, str) and len(x) > 0,
    ))


@dataclass
class SchemaSettings:
    """Credential layout."""
    witness_count: ConfigValue[int] = field(default_factory=lambda: ConfigValue(
        default=4,
        env_var="VCDISCLOSE_SCHEMA_WITNESS_COUNT",
        description="Number of private attributes",
        validator=lambda x: _is_int(x) and x >= 1,
    ))
    disclosed_positions: ConfigValue[list] = field(default_factory=lambda: ConfigValue(
        default=[1],
        env_var="VCDISCLOSE_SCHEMA_DISCLOSED",
        description="Attribute positions disclosed as public inputs (comma separated)",
        validator=lambda x: isinstance(x, (list, tuple)) and all(_is_int(p) and p >= 0 for p in x),
    ))


@dataclass
class ProverSettings:
    """Prover behaviour."""
    strict: ConfigValue[bool] = field(default_factory=lambda: ConfigValue(
        default=False,
        env_var="VCDISCLOSE_PROVER_STRICT",
        description="Refuse to prove an unsatisfied assignment",
        validator=lambda x: isinstance(x, bool),
    ))
    check_shape: ConfigValue[bool] = field(default_factory=lambda: ConfigValue(
        default=True,
        env_var="VCDISCLOSE_PROVER_CHECK_SHAPE",
        description="Compare the synthesized topology with the proving key",
        validator=lambda x: isinstance(x, bool),
    ))


@dataclass
class ObservabilitySettings:
    """Logging output."""
    log_level: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="warning",
        env_var="VCDISCLOSE_LOG_LEVEL",
        description="Log level (debug, info, warning, error)",
        validator=lambda x: x in ("debug", "info", "warning", "error", "critical"),
    ))
    log_format: ConfigValue[str] = field(default_factory=lambda: ConfigValue(
        default="json",
        env_var="VCDISCLOSE_LOG_FORMAT",
        description="Log format (json, text)",
        validator=lambda x: x in ("json", "text"),
    ))


@dataclass
class VcDiscloseConfig:
    """Root configuration."""
    sponge: SpongeSettings = field(default_factory=SpongeSettings)
    schema: SchemaSettings = field(default_factory=SchemaSettings)
    prover: ProverSettings = field(default_factory=ProverSettings)
    observability: ObservabilitySettings = field(default_factory=ObservabilitySettings)

    def to_dict(self) -> Dict[str, Any]:
        return _extract_values(self)

    def to_yaml(self) -> str:
        return yaml.dump(self.to_dict(), default_flow_style=False)


# JSON Schema for configuration files. Every key is optional.
DOCUMENT_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "sponge": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "profile": {"enum": [p.value for p in SpongeProfile]},
                "full_rounds": {"type": "integer", "minimum": 0, "multipleOf": 2},
                "partial_rounds": {"type": "integer", "minimum": 0},
                "alpha": {"type": "integer", "minimum": 3},
                "rate": {"type": "integer", "minimum": 1},
                "capacity": {"type": "integer", "minimum": 1},
                "seed": {"type": "string", "minLength": 1},
            },
        },
        "schema": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "witness_count": {"type": "integer", "minimum": 1},
                "disclosed_positions": {
                    "type": "array",
                    "items": {"type": "integer", "minimum": 0},
                    "uniqueItems": True,
                },
            },
        },
        "prover": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "strict": {"type": "boolean"},
                "check_shape": {"type": "boolean"},
            },
        },
        "observability": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "log_level": {"enum": ["debug", "info", "warning", "error", "critical"]},
                "log_format": {"enum": ["json", "text"]},
            },
        },
    },
}


def validate_document(data: Any) -> List[str]:
    """Validate a parsed configuration document; returns error messages."""
    validator = Draft202012Validator(DOCUMENT_SCHEMA)
    return [
        f"{error.json_path}: {error.message}"
        for error in validator.iter_errors(data)
    ]


class ConfigManager:
    """
    Configuration manager with file loading and environment binding.

    Thread-safe singleton.
    """

    _instance: Optional["ConfigManager"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "ConfigManager":
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._initialized = False
            return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._config = VcDiscloseConfig()
        self._config_paths: List[Path] = []
        self._initialized = True

    @property
    def config(self) -> VcDiscloseConfig:
        return self._config

    def reset(self) -> None:
        """Drop overrides and loaded files, returning to defaults."""
        self._config = VcDiscloseConfig()
        self._config_paths = []

    def load_from_file(self, path: Union[str, Path]) -> None:
        """Load configuration from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if not data:
            return

        errors = validate_document(data)
        if errors:
            raise ValidationError(f"{path}: " + "; ".join(errors))

        self._apply_dict(data)
        self._config_paths.append(path)

    def _apply_dict(self, data: Dict[str, Any]) -> None:
        def apply_to_config(config_obj: Any, values: Dict[str, Any]) -> None:
            for key, value in values.items():
                if hasattr(config_obj, key):
                    attr = getattr(config_obj, key)
                    if isinstance(attr, ConfigValue):
                        attr.set(value)
                    elif hasattr(attr, "__dataclass_fields__") and isinstance(value, dict):
                        apply_to_config(attr, value)

        apply_to_config(self._config, data)

    def _resolve(self, path: str) -> Any:
        obj: Any = self._config
        for part in path.split("."):
            if not hasattr(obj, "__dataclass_fields__") or part not in obj.__dataclass_fields__:
                raise ConfigError(f"Invalid config path: {path}")
            obj = getattr(obj, part)
        return obj

    def set(self, path: str, value: Any) -> None:
        """
        Set a configuration value by path.

        Example: config.set("prover.strict", True)
        """
        attr = self._resolve(path)
        if isinstance(attr, ConfigValue):
            attr.set(value)
        else:
            raise ConfigError(f"Invalid config path: {path}")

    def get(self, path: str) -> Any:
        """
        Get a configuration value by path.

        Example: config.get("schema.disclosed_positions")
        """
        obj = self._resolve(path)
        if isinstance(obj, ConfigValue):
            return obj.get()
        return _extract_values(obj)

    def validate(self) -> List[str]:
        """
        Validate all configuration values, then check that they combine into
        a usable sponge and schema.

        Returns list of validation errors.
        """
        errors: List[str] = []

        def validate_config(obj: Any, path: str = "") -> None:
            if isinstance(obj, ConfigValue):
                try:
                    value = obj.get()
                    if obj.validator and not obj.validator(value):
                        errors.append(f"{path}: validation failed for value {value!r}")
                except ConfigError as e:
                    errors.append(f"{path}: {e}")
            elif hasattr(obj, "__dataclass_fields__"):
                for field_name in obj.__dataclass_fields__:
                    field_path = f"{path}.{field_name}" if path else field_name
                    validate_config(getattr(obj, field_name), field_path)

        validate_config(self._config)
        if errors:
            return errors

        try:
            sponge_config_from(self._config).validate()
        except SpongeParameterError as e:
            errors.append(f"sponge: {e}")
        try:
            schema_from(self._config).validate()
        except CircuitConfigurationError as e:
            errors.append(f"schema: {e}")
        return errors

    def export_schema(self) -> Dict[str, Any]:
        """Export configuration schema for documentation."""
        schema: Dict[str, Any] = {"properties": {}}

        def extract_schema(obj: Any, properties: Dict[str, Any]) -> None:
            if isinstance(obj, ConfigValue):
                properties["type"] = type(obj.default).__name__
                properties["default"] = str(obj.default)
                properties["description"] = obj.description
                if obj.env_var:
                    properties["env_var"] = obj.env_var
            elif hasattr(obj, "__dataclass_fields__"):
                for field_name in obj.__dataclass_fields__:
                    properties[field_name] = {}
                    extract_schema(getattr(obj, field_name), properties[field_name])

        extract_schema(self._config, schema["properties"])
        return schema


# =============================================================================
# BUILDERS
# =============================================================================

def sponge_config_from(config: VcDiscloseConfig) -> PoseidonConfig:
    """Sponge parameters selected by the configuration."""
    s = config.sponge
    if s.profile.get() == SpongeProfile.REFERENCE.value:
        return reference_config()
    return derive_config(
        rate=s.rate.get(),
        capacity=s.capacity.get(),
        full_rounds=s.full_rounds.get(),
        partial_rounds=s.partial_rounds.get(),
        alpha=s.alpha.get(),
        seed=s.seed.get().encode(),
    )


def schema_from(config: VcDiscloseConfig) -> DisclosureSchema:
    """Disclosure schema selected by the configuration."""
    return DisclosureSchema(
        witness_count=config.schema.witness_count.get(),
        disclosed_positions=tuple(config.schema.disclosed_positions.get()),
    )


def get_config() -> VcDiscloseConfig:
    return ConfigManager().config


def get_config_manager() -> ConfigManager:
    return ConfigManager()
