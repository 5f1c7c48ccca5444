"""
Model configuration and runtime settings.

ModelConfig describes a model through application callbacks; the scope
helpers make one configuration active for a block of code; runtime
settings are typed Pydantic models loaded from YAML.
"""

from featmodel.config.loader import load_settings
from featmodel.config.model import (
    DEFAULT_RETURN_KEYS,
    ModelConfig,
    ReturnKey,
    SetType,
)
from featmodel.config.scope import current_config, resolve_config, with_config
from featmodel.config.settings import (
    EngineConfig,
    LoggingConfig,
    PathsConfig,
    RuntimeSettings,
)

__all__ = [
    "DEFAULT_RETURN_KEYS",
    "EngineConfig",
    "LoggingConfig",
    "ModelConfig",
    "PathsConfig",
    "ReturnKey",
    "RuntimeSettings",
    "SetType",
    "current_config",
    "load_settings",
    "resolve_config",
    "with_config",
]
