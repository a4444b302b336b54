"""
Configuration loader for implmerge.

Handles loading configuration from YAML files and command-line arguments.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import (
    ImplMergeConfig,
    MergeConfig,
    NullAnchorPolicy,
    OutputConfig,
    OutputLocation,
    SourceConfig,
)


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""

    pass


def load_config_from_yaml(config_path: Path) -> ImplMergeConfig:
    """Load configuration from a YAML file."""
    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")

    if raw_config is None:
        raise ConfigurationError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ConfigurationError("Configuration file must contain a mapping at the top level")

    try:
        config = ImplMergeConfig(**raw_config)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed:\n{e}")

    if not config.source.impl_suffix:
        raise ConfigurationError("'source.impl_suffix' must not be empty")

    return config


def create_config_from_args(
    source_root: Path | None = None,
    impl_suffix: str | None = None,
    null_anchor: str | None = None,
    location: str | None = None,
    dry_run: bool = False,
    base: ImplMergeConfig | None = None,
    **kwargs: Any,
) -> ImplMergeConfig:
    """Create configuration from CLI arguments, layered over an optional base config."""
    config = base.model_copy(deep=True) if base else ImplMergeConfig()

    try:
        if source_root is not None:
            config.source.root = source_root
        if impl_suffix:
            config.source.impl_suffix = impl_suffix
        if null_anchor:
            config.merge.null_anchor = NullAnchorPolicy(null_anchor.lower())
        if location:
            config.output.location = OutputLocation(location.lower())
    except ValueError as e:
        raise ConfigurationError(str(e))

    if dry_run:
        config.output.dry_run = True
    if "settle_delay" in kwargs:
        config.output.settle_delay = float(kwargs["settle_delay"])

    return config


def generate_default_config(output_path: Path) -> None:
    """Generate a default configuration file."""
    defaults = ImplMergeConfig(
        source=SourceConfig(),
        merge=MergeConfig(),
        output=OutputConfig(),
    )
    default_config = {
        "source": {
            "root": None,
            "impl_suffix": defaults.source.impl_suffix,
            "exclude_patterns": defaults.source.exclude_patterns,
            "encoding": defaults.source.encoding,
        },
        "merge": {
            "null_anchor": defaults.merge.null_anchor.value,
            "propagate_class_doc": defaults.merge.propagate_class_doc,
            "strip_inherit_doc": defaults.merge.strip_inherit_doc,
            "include_superclass_methods": defaults.merge.include_superclass_methods,
        },
        "output": {
            "location": defaults.output.location.value,
            "dry_run": defaults.output.dry_run,
            "settle_delay": defaults.output.settle_delay,
        },
    }

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        yaml.dump(default_config, f, default_flow_style=False, sort_keys=False)
