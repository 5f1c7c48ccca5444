"""
Scoped binding of the active model configuration.

The binding is held in a context variable so each thread and asyncio task
sees its own active configuration; nothing is stored in a process-wide
global.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from featmodel.config.model import ModelConfig
from featmodel.errors import ConfigurationNotBoundError
from featmodel.utils.logging import log_context

_active_config: ContextVar[ModelConfig | None] = ContextVar(
    "featmodel_active_config", default=None
)


@contextmanager
def with_config(config: ModelConfig) -> Iterator[ModelConfig]:
    """
    Bind ``config`` as the active configuration for the ``with`` block.

    Nested blocks shadow outer ones and the previous binding is restored on
    exit, including when the block raises.

    Example:
        with with_config(sentiment_config):
            instances = cross_fold_instances()

    Args:
        config: Configuration to bind.

    Yields:
        The bound configuration.
    """
    token = _active_config.set(config)
    try:
        with log_context(model=config.name):
            yield config
    finally:
        _active_config.reset(token)


def current_config() -> ModelConfig:
    """
    Return the active configuration.

    Raises:
        ConfigurationNotBoundError: If called outside any ``with_config`` block.
    """
    config = _active_config.get()
    if config is None:
        msg = "Model configuration not bound"
        raise ConfigurationNotBoundError(msg)
    return config


def resolve_config(config: ModelConfig | None = None) -> ModelConfig:
    """Return ``config`` if given, otherwise the active configuration."""
    return config if config is not None else current_config()
