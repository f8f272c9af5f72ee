"""
Configuration management for the cube sketch grader.

Loads YAML configuration with defaults for every setting. The corner
matching threshold is a fixed constant in cubegrade.corners.matching.
"""

import os
from dataclasses import dataclass, field

import yaml

from cubegrade.scoring.closeness import AVERAGE_RANGE_FORMULAS


@dataclass
class ScoringConfig:
    """Configuration for perspective scoring."""
    average_range_formula: str = "legacy"  # "legacy" or "corrected"


@dataclass
class TracingConfig:
    """Configuration for runtime tracing."""
    enabled: bool = False
    level: str = "INFO"
    file_path: str = None
    json_output: bool = False


@dataclass
class OutputConfig:
    """Configuration for result files."""
    indent: int = 2
    include_diagnostics: bool = False


@dataclass
class GraderConfig:
    """Complete grader configuration."""
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


_SECTIONS = ("scoring", "tracing", "output")


def load_config(config_path=None):
    """
    Load configuration from YAML file.

    Falls back to defaults for any missing values.
    """
    config = GraderConfig()

    if config_path and os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

        config = _merge_config(config, yaml_data)

    validate_config(config)
    return config


def _merge_config(config, yaml_data):
    """Merge YAML data into config dataclass."""
    for section in _SECTIONS:
        if section not in yaml_data:
            continue
        target = getattr(config, section)
        for key, value in (yaml_data[section] or {}).items():
            if hasattr(target, key):
                setattr(target, key, value)

    return config


def validate_config(config):
    """Reject settings the grader cannot honour."""
    formula = config.scoring.average_range_formula
    if formula not in AVERAGE_RANGE_FORMULAS:
        raise ValueError(
            f"scoring.average_range_formula must be one of {AVERAGE_RANGE_FORMULAS}, got {formula!r}"
        )


def save_default_config(path):
    """Save default configuration to YAML file for reference."""
    config = GraderConfig()

    yaml_data = {
        "scoring": {
            "average_range_formula": config.scoring.average_range_formula,
        },
        "tracing": {
            "enabled": config.tracing.enabled,
            "level": config.tracing.level,
        },
        "output": {
            "indent": config.output.indent,
            "include_diagnostics": config.output.include_diagnostics,
        },
    }

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(yaml_data, f, default_flow_style=False, sort_keys=False)
