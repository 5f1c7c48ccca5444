"""Tests for runtime settings, model configuration and scoping."""

import threading
from enum import Enum
from pathlib import Path

import pytest
from pydantic import ValidationError

from featmodel.config import (
    DEFAULT_RETURN_KEYS,
    EngineConfig,
    LoggingConfig,
    ReturnKey,
    RuntimeSettings,
    current_config,
    load_settings,
    resolve_config,
    with_config,
)
from featmodel.errors import ConfigurationNotBoundError


class Level(Enum):
    LOW = "low"
    HIGH = "high"


class TestRuntimeSettings:
    """Tests for the Pydantic settings models."""

    def test_defaults(self) -> None:
        """Test default paths and engine options."""
        settings = RuntimeSettings()
        assert settings.paths.model_dir == Path("./model")
        assert settings.paths.analysis_dir == Path("./results")
        assert settings.engine.classifier == "logistic"
        assert settings.engine.cv_folds == 10
        assert settings.logging.level == "INFO"

    def test_log_level_normalized(self) -> None:
        """Test log level is upper cased."""
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_invalid_log_level(self) -> None:
        """Test unknown log levels are rejected."""
        with pytest.raises(ValueError, match="Unknown log level"):
            LoggingConfig(level="chatty")

    def test_cv_folds_bounds(self) -> None:
        """Test cross validation needs at least two folds."""
        with pytest.raises(ValidationError):
            EngineConfig(cv_folds=1)

    def test_frozen(self) -> None:
        """Test settings are immutable."""
        settings = RuntimeSettings()
        with pytest.raises(ValidationError):
            settings.engine = EngineConfig()  # type: ignore[misc]


class TestLoadSettings:
    """Tests for loading settings from YAML."""

    def test_load_sections(self, tmp_path: Path) -> None:
        """Test loading all sections."""
        path = tmp_path / "settings.yaml"
        path.write_text(
            """
paths:
  model_dir: models
  analysis_dir: out
engine:
  classifier: random_forest
  cv_folds: 5
logging:
  level: debug
""",
            encoding="utf-8",
        )
        settings = load_settings(path)
        assert settings.paths.model_dir == Path("models")
        assert settings.paths.analysis_dir == Path("out")
        assert settings.engine.classifier == "random_forest"
        assert settings.engine.cv_folds == 5
        assert settings.logging.level == "DEBUG"

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        """Test an empty settings file yields the defaults."""
        path = tmp_path / "settings.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings(path) == RuntimeSettings()

    def test_env_interpolation(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test ${VAR} and ${VAR:default} interpolation."""
        monkeypatch.setenv("FEATMODEL_TEST_MODELS", "/srv/models")
        monkeypatch.delenv("FEATMODEL_TEST_MISSING", raising=False)
        path = tmp_path / "settings.yaml"
        path.write_text(
            """
paths:
  model_dir: ${FEATMODEL_TEST_MODELS}
  analysis_dir: ${FEATMODEL_TEST_MISSING:fallback}
""",
            encoding="utf-8",
        )
        settings = load_settings(path)
        assert settings.paths.model_dir == Path("/srv/models")
        assert settings.paths.analysis_dir == Path("fallback")

    def test_base_yaml_merged(self, tmp_path: Path) -> None:
        """Test a base.yaml next to the settings file provides defaults."""
        (tmp_path / "base.yaml").write_text(
            "engine:\n  classifier: naive_bayes\n  cv_folds: 4\n", encoding="utf-8"
        )
        path = tmp_path / "settings.yaml"
        path.write_text("engine:\n  cv_folds: 6\n", encoding="utf-8")
        settings = load_settings(path)
        assert settings.engine.classifier == "naive_bayes"
        assert settings.engine.cv_folds == 6

    def test_unknown_section(self, tmp_path: Path) -> None:
        """Test unknown top level sections are rejected."""
        path = tmp_path / "settings.yaml"
        path.write_text("engines:\n  classifier: svm\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Unknown settings sections: engines"):
            load_settings(path)


class TestModelConfig:
    """Tests for ModelConfig."""

    def test_defaults(self, model_config) -> None:
        """Test optional callbacks default to None."""
        assert model_config.context_fn is None
        assert model_config.set_context_fn is None
        assert model_config.classifications_map_fn is None
        assert model_config.model_return_keys == DEFAULT_RETURN_KEYS

    def test_empty_name_rejected(self, make_config) -> None:
        """Test the model name is required."""
        with pytest.raises(ValidationError):
            make_config(name="")

    def test_empty_return_keys_rejected(self, make_config) -> None:
        """Test at least one return key is required."""
        with pytest.raises(ValidationError, match="must not be empty"):
            make_config(model_return_keys=frozenset())

    def test_return_keys_from_strings(self, make_config) -> None:
        """Test return keys given as strings become ReturnKey members."""
        config = make_config(model_return_keys=frozenset({"label", "features"}))
        assert config.model_return_keys == {ReturnKey.LABEL, ReturnKey.FEATURES}

    def test_feature_sets(self, make_config) -> None:
        """Test named feature subset groups."""
        config = make_config(feature_sets_set={"small": [["count"], ["flag"]]})
        assert config.feature_sets("small") == [["count"], ["flag"]]
        with pytest.raises(KeyError, match="Unknown feature set 'large'"):
            config.feature_sets("large")

    def test_class_feature_meta(self, model_config) -> None:
        """Test class key and labels."""
        assert model_config.class_feature_meta() == ("label", ["yes", "no"])

    def test_class_feature_meta_rendered(self, make_config) -> None:
        """Test boolean and enum class labels are rendered as stored."""
        config = make_config(class_feature_meta_fn=lambda: ("label", [True, False]))
        assert config.class_feature_meta() == ("label", ["true", "false"])
        config = make_config(class_feature_meta_fn=lambda: ("label", list(Level)))
        assert config.class_feature_meta() == ("label", ["low", "high"])


class TestConfigScope:
    """Tests for binding the active configuration."""

    def test_unbound(self) -> None:
        """Test lookups outside a scope fail."""
        with pytest.raises(ConfigurationNotBoundError, match="not bound"):
            current_config()

    def test_bound_and_restored(self, model_config) -> None:
        """Test the binding ends with the block."""
        with with_config(model_config) as bound:
            assert bound is model_config
            assert current_config() is model_config
            assert resolve_config() is model_config
        with pytest.raises(ConfigurationNotBoundError):
            current_config()

    def test_nested_shadowing(self, make_config) -> None:
        """Test nested blocks shadow and restore the outer binding."""
        outer = make_config(name="outer")
        inner = make_config(name="inner")
        with with_config(outer):
            with with_config(inner):
                assert current_config().name == "inner"
            assert current_config().name == "outer"

    def test_restored_after_error(self, model_config) -> None:
        """Test the binding is restored when the block raises."""
        with pytest.raises(RuntimeError), with_config(model_config):
            raise RuntimeError("boom")
        with pytest.raises(ConfigurationNotBoundError):
            current_config()

    def test_explicit_config_wins(self, make_config) -> None:
        """Test resolve_config prefers an explicit configuration."""
        explicit = make_config(name="explicit")
        with with_config(make_config(name="scoped")):
            assert resolve_config(explicit) is explicit

    def test_threads_do_not_share_bindings(self, make_config) -> None:
        """Test a binding in one thread is invisible in another."""
        seen: dict[str, str | None] = {}
        ready = threading.Event()
        release = threading.Event()

        def bound_worker() -> None:
            with with_config(make_config(name="worker")):
                ready.set()
                release.wait(timeout=5)
                seen["worker"] = current_config().name

        def unbound_worker() -> None:
            ready.wait(timeout=5)
            try:
                seen["other"] = current_config().name
            except ConfigurationNotBoundError:
                seen["other"] = None
            release.set()

        threads = [
            threading.Thread(target=bound_worker),
            threading.Thread(target=unbound_worker),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert seen == {"worker": "worker", "other": None}
