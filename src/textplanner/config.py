"""Configuration management for textplanner."""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from textplanner.exceptions import ConfigError

CONFIG_FILE = "textplanner.json"


class ExpansionPolicy(str, Enum):
    """Which neighbours a growing subgraph may absorb."""

    ALL = "all"
    SAME_SOURCE = "same_source"
    NON_CORE_ONLY = "non_core_only"


class SortingStrategy(str, Enum):
    """How the surviving subgraphs are ordered into a plan."""

    DISCOURSE = "discourse"  # Greedy walk over value + pairwise similarity
    VALUE = "value"  # Plain descending value


class PlanningOptions(BaseModel):
    """Tunables for ranking, extraction, redundancy removal and sorting."""

    num_patterns: int = Field(default=25, ge=0)
    target_subgraph_count: int = Field(default=10, ge=0)
    damping_factor: float = Field(default=0.1, ge=0.0, le=1.0)
    stop_threshold: float = Field(default=0.01, gt=0.0)
    relevance_floor: float = 0.0
    similarity_floor: float = 0.0
    max_iterations: int = Field(default=10_000, ge=1)
    damping_variables: float = Field(default=0.2, ge=0.0, le=1.0)
    extraction_lambda: float = Field(default=1.0, ge=0.0)
    edge_cost: float | None = Field(default=None, ge=0.0)  # None = mean vertex weight
    expansion_policy: ExpansionPolicy = ExpansionPolicy.ALL
    redundancy_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    sorting_strategy: SortingStrategy = SortingStrategy.DISCOURSE
    workers: int = Field(default=1, ge=1)


class PlannerConfig(BaseModel):
    """Full planner configuration."""

    name: str = ""
    semantics: str = "generic"  # "generic" or "amr"
    options: PlanningOptions = Field(default_factory=PlanningOptions)


def find_config_file(start: Path | None = None) -> Path | None:
    """Walk up from `start` looking for a textplanner.json file."""
    current = (start or Path.cwd()).resolve()
    while current != current.parent:
        if (current / CONFIG_FILE).is_file():
            return current / CONFIG_FILE
        current = current.parent
    if (current / CONFIG_FILE).is_file():
        return current / CONFIG_FILE
    return None


def load_config(path: Path) -> PlannerConfig:
    """Load configuration from a JSON file, or a directory holding textplanner.json."""
    config_path = path / CONFIG_FILE if path.is_dir() else path
    if not config_path.exists():
        return PlannerConfig(name=path.name if path.is_dir() else path.stem)
    try:
        data = json.loads(config_path.read_text())
        return PlannerConfig(**data)
    except (json.JSONDecodeError, ValidationError, TypeError) as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e


def save_config(path: Path, config: PlannerConfig) -> Path:
    """Save configuration as JSON. Directories get a textplanner.json inside."""
    config_path = path / CONFIG_FILE if path.is_dir() else path
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(config.model_dump(mode="json"), indent=2))
    return config_path


def set_config_value(config: PlannerConfig, key: str, value: Any) -> PlannerConfig:
    """Set a nested config value using dot notation (e.g., 'options.damping_factor')."""
    parts = key.split(".")
    data = config.model_dump(mode="json")
    target = data
    for part in parts[:-1]:
        if part not in target or not isinstance(target[part], dict):
            raise KeyError(f"Invalid config key: {key}")
        target = target[part]
    if parts[-1] not in target:
        raise KeyError(f"Invalid config key: {key}")
    target[parts[-1]] = value
    try:
        return PlannerConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid value for {key}: {value!r}") from e
