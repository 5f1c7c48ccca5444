"""
Runtime settings loading utilities.

Supports environment variable interpolation and a ``base.yaml`` placed next
to the settings file for shared defaults.
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from featmodel.config.settings import (
    EngineConfig,
    LoggingConfig,
    PathsConfig,
    RuntimeSettings,
)


def _interpolate_env_vars(value: str) -> str:
    """
    Interpolate environment variables in string values.

    Supports ${VAR} and ${VAR:default} syntax.
    """
    pattern = r"\$\{([^}:]+)(?::([^}]*))?\}"

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default = match.group(2)
        return os.environ.get(var_name, default if default is not None else "")

    return re.sub(pattern, replacer, value)


def _process_config_values(obj: Any) -> Any:
    """Recursively process config values for env var interpolation."""
    if isinstance(obj, str):
        return _interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _process_config_values(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_process_config_values(item) for item in obj]
    return obj


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file and process environment variables."""
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return _process_config_values(data) if data else {}


def load_settings(
    config_path: Path,
    base_path: Path | None = None,
) -> RuntimeSettings:
    """
    Load runtime settings from YAML file(s).

    Every section is optional::

        paths:
          model_dir: ./model
          analysis_dir: ${ANALYSIS_DIR:./results}
        engine:
          classifier: random_forest
          cv_folds: 10
        logging:
          level: DEBUG

    Args:
        config_path: Path to the settings file.
        base_path: Optional path to base settings for inheritance.

    Returns:
        Validated RuntimeSettings instance.
    """
    if base_path is not None:
        base_data = load_yaml(base_path)
    else:
        potential_base = config_path.parent / "base.yaml"
        base_data = (
            load_yaml(potential_base)
            if potential_base.exists() and potential_base != config_path
            else {}
        )

    merged = _deep_merge(base_data, load_yaml(config_path))

    unknown = set(merged) - {"paths", "engine", "logging"}
    if unknown:
        msg = f"Unknown settings sections: {', '.join(sorted(unknown))}"
        raise ValueError(msg)

    paths_data = merged.get("paths", {})
    paths = PathsConfig(
        model_dir=Path(paths_data.get("model_dir", "./model")),
        analysis_dir=Path(paths_data.get("analysis_dir", "./results")),
    )

    engine_data = merged.get("engine", {})
    engine = EngineConfig(
        classifier=engine_data.get("classifier", "logistic"),
        cv_folds=engine_data.get("cv_folds", 10),
        random_state=engine_data.get("random_state", 1337),
    )

    logging_data = merged.get("logging", {})
    logging = LoggingConfig(
        level=logging_data.get("level", "INFO"),
        json_output=logging_data.get("json_output", False),
    )

    return RuntimeSettings(paths=paths, engine=engine, logging=logging)
