"""Basic package tests to verify installation."""


def test_package_imports() -> None:
    """Verify the main package can be imported."""
    import featmodel

    assert featmodel.__version__


def test_config_module_imports() -> None:
    """Verify config module structure is correct."""
    from featmodel.config import (
        DEFAULT_RETURN_KEYS,
        EngineConfig,
        LoggingConfig,
        ModelConfig,
        PathsConfig,
        ReturnKey,
        RuntimeSettings,
        SetType,
        current_config,
        load_settings,
        resolve_config,
        with_config,
    )

    assert ModelConfig is not None
    assert RuntimeSettings is not None
    assert PathsConfig is not None
    assert EngineConfig is not None
    assert LoggingConfig is not None
    assert SetType.TRAIN_TEST.value == "train-test"
    assert ReturnKey.LABEL in DEFAULT_RETURN_KEYS
    assert callable(with_config)
    assert callable(current_config)
    assert callable(resolve_config)
    assert callable(load_settings)


def test_cli_app_registers_commands() -> None:
    """Verify the command line app exposes its commands."""
    from featmodel.cli import app

    names = {
        command.name or command.callback.__name__
        for command in app.registered_commands
    }
    assert {"info", "dump", "predict", "version"} <= names
