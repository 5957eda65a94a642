"""
Configuration models for the quality gate engine.

This module defines the Pydantic model selecting which gates run against a
module, along with YAML persistence helpers. Coverage thresholds are a fixed
table and are intentionally not part of the configuration.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from quality_gate.core.exceptions import ConfigurationError
from quality_gate.models import GateName
from quality_gate.utils.logging import setup_logging


logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class GateConfig(BaseModel):
    """Which gates run against a module and how fixes are handled."""
    model_config = ConfigDict(use_enum_values=False, extra="forbid")

    module_path: str = Field(..., description="Root path of the module under validation")
    enabled_gates: List[GateName] = Field(
        default_factory=lambda: list(GateName),
        description="Gates that must pass for the module to pass"
    )
    coverage_file: Optional[str] = Field(
        None, description="coverage-summary.json or lcov.info produced by the test runner"
    )
    auto_fix: bool = False
    dry_run: bool = False
    log_level: str = "INFO"
    log_file: Optional[str] = None
    structured_logging: bool = False

    @field_validator('module_path')
    @classmethod
    def module_path_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError('module_path must not be empty')
        return v

    @field_validator('enabled_gates')
    @classmethod
    def gates_unique(cls, v):
        deduplicated: List[GateName] = []
        for gate in v:
            if gate not in deduplicated:
                deduplicated.append(gate)
        return deduplicated

    @field_validator('log_level')
    @classmethod
    def log_level_known(cls, v):
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level

    def is_enabled(self, gate: GateName) -> bool:
        return gate in self.enabled_gates


def load_config(path: Union[str, Path]) -> GateConfig:
    """
    Load a gate configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file

    Returns:
        Validated GateConfig

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigurationError(
            f"Configuration file not found: {config_path}",
            details={"path": str(config_path)}
        )

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to read configuration {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration {config_path} must be a mapping")

    config = config_from_dict(data)
    logger.debug(f"Loaded gate configuration from {config_path}")
    return config


def config_from_dict(data: Dict[str, Any]) -> GateConfig:
    """Validate a raw mapping into a GateConfig."""
    try:
        return GateConfig.model_validate(data)
    except PydanticValidationError as e:
        messages = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        raise ConfigurationError(
            f"Invalid gate configuration: {'; '.join(messages)}",
            details={"errors": messages}
        ) from e


def save_config(config: GateConfig, path: Union[str, Path]) -> Path:
    """Write a gate configuration as YAML and return the written path."""
    config_path = Path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(mode="json")
    try:
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    except OSError as e:
        raise ConfigurationError(f"Failed to write configuration {config_path}: {e}") from e

    logger.debug(f"Saved gate configuration to {config_path}")
    return config_path


def configure_logging(config: GateConfig, rich_console: bool = True) -> logging.Logger:
    """Set up package logging from the logging fields of a gate configuration."""
    return setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        rich_console=rich_console,
        structured_logging=config.structured_logging
    )
