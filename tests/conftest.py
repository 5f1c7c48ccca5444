"""Pytest configuration and shared fixtures."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from featmodel.config import (
    EngineConfig,
    ModelConfig,
    PathsConfig,
    RuntimeSettings,
    SetType,
)
from featmodel.utils.cells import InstanceCell

CLASS_KEY = "label"
CLASS_LABELS = ("yes", "no")


def count_flag_rows(counts: list[float]) -> list[dict[str, Any]]:
    """Feature maps labelled ``yes`` for large counts, ``no`` otherwise."""
    return [
        {
            "count": count,
            "flag": count >= 10,
            CLASS_KEY: "yes" if count >= 10 else "no",
        }
        for count in counts
    ]


TRAIN_COUNTS = [float(c) for c in range(20)]
TEST_COUNTS = [1.5, 4.5, 12.5, 17.5]


class FeatureSetSource:
    """Feature set generator that counts its calls."""

    def __init__(self) -> None:
        self.calls: list[SetType] = []

    def __call__(self, set_type: SetType) -> list[dict[str, Any]]:
        self.calls.append(set_type)
        if set_type == SetType.TRAIN:
            return count_flag_rows(TRAIN_COUNTS)
        if set_type == SetType.TEST:
            return count_flag_rows(TEST_COUNTS)
        return count_flag_rows(TRAIN_COUNTS + TEST_COUNTS)


def feature_metas(context: Any = None) -> dict[str, Any]:
    return {"count": "numeric", "flag": "boolean"}


def class_feature_meta() -> tuple[str, list[str]]:
    return CLASS_KEY, list(CLASS_LABELS)


def create_features(
    count: Any, flag: Any = None, context: Any = None
) -> dict[str, Any]:
    return {"count": count, "flag": flag}


@pytest.fixture
def settings(tmp_path: Path) -> RuntimeSettings:
    """Runtime settings writing into a temporary directory."""
    return RuntimeSettings(
        paths=PathsConfig(
            model_dir=tmp_path / "model",
            analysis_dir=tmp_path / "results",
        ),
        engine=EngineConfig(classifier="logistic", cv_folds=3, random_state=7),
    )


@pytest.fixture
def feature_source() -> FeatureSetSource:
    """Counting feature set generator."""
    return FeatureSetSource()


@pytest.fixture
def make_config(
    settings: RuntimeSettings, feature_source: FeatureSetSource
) -> Callable[..., ModelConfig]:
    """Factory for count/flag model configurations with fresh cache cells."""

    def factory(**overrides: Any) -> ModelConfig:
        fields: dict[str, Any] = {
            "name": "count-flag",
            "create_feature_sets_fn": feature_source,
            "create_features_fn": create_features,
            "feature_metas_fn": feature_metas,
            "class_feature_meta_fn": class_feature_meta,
            "cross_fold_instances_cache": InstanceCell(),
            "train_test_instances_cache": InstanceCell(),
            "settings": settings,
        }
        fields.update(overrides)
        return ModelConfig(**fields)

    return factory


@pytest.fixture
def model_config(make_config: Callable[..., ModelConfig]) -> ModelConfig:
    """Count/flag model configuration."""
    return make_config()
