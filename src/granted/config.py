"""Evaluator configuration loader with Pydantic v2 validation.

Loads and validates a ``granted.yaml`` file into a typed
:class:`GrantedConfig` object. Unknown keys are allowed so newer files
still load on older releases.

Example
-------
>>> loader = ConfigLoader()
>>> config = loader.load_string("evaluation: {strategy: sequential}")
>>> config.evaluation.strategy
'sequential'
"""
from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from granted.errors import RuleConfigError


class EvaluationConfig(BaseModel):
    """How rule checks are scheduled during ``can``."""

    model_config = {"extra": "allow"}

    strategy: Literal["concurrent", "sequential"] = Field(default="concurrent")
    check_timeout_seconds: float | None = Field(default=None, gt=0)


class GrantedConfig(BaseModel):
    """Top-level configuration schema.

    All sections are optional and fall back to defaults.
    """

    model_config = {"extra": "allow"}

    version: str = Field(default="1")
    evaluation: EvaluationConfig = Field(default_factory=EvaluationConfig)
    rule_files: list[Path] = Field(default_factory=list)


class ConfigLoader:
    """Loads and validates ``granted.yaml`` configuration."""

    def load(self, config_path: Path) -> GrantedConfig:
        """Load and validate a YAML configuration file.

        Raises
        ------
        FileNotFoundError:
            When the config file does not exist.
        RuleConfigError:
            When the YAML cannot be parsed or fails validation.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Granted config not found: {config_path}")

        with config_path.open("r", encoding="utf-8") as fh:
            return self._validate(fh.read(), str(config_path))

    def load_string(self, yaml_content: str) -> GrantedConfig:
        """Load and validate YAML text directly."""
        return self._validate(yaml_content, None)

    def defaults(self) -> GrantedConfig:
        """Return a configuration with every default applied."""
        return GrantedConfig()

    def _validate(self, yaml_content: str, config_path: str | None) -> GrantedConfig:
        try:
            raw: dict[str, object] = yaml.safe_load(yaml_content) or {}
        except yaml.YAMLError as exc:
            raise RuleConfigError(f"Failed to parse YAML: {exc}", config_path) from exc
        if not isinstance(raw, dict):
            raise RuleConfigError("Config must be a YAML mapping.", config_path)
        try:
            return GrantedConfig.model_validate(raw)
        except ValidationError as exc:
            raise RuleConfigError(str(exc), config_path) from exc
