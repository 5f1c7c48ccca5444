"""
Cached instance sets for training and evaluation.

Feature set generation is usually the expensive part of modeling, so the
instance sets built from it are kept in the InstanceCell objects referenced
by the model configuration. Each cell is filled at most once until its
owner resets it.
"""

from dataclasses import dataclass

from featmodel.config.model import ModelConfig, SetType
from featmodel.config.scope import resolve_config
from featmodel.errors import CacheNotConfiguredError
from featmodel.modeling.instances import (
    InstanceSet,
    append_instances,
    create_model_instances,
)
from featmodel.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class TrainTestInstances:
    """
    Held-out evaluation instances.

    Attributes:
        train: Training instances.
        test: Test instances.
        train_test: Training followed by test instances.
    """

    train: InstanceSet
    test: InstanceSet
    train_test: InstanceSet


def cross_fold_instances(config: ModelConfig | None = None) -> InstanceSet:
    """
    Return the instances used for cross validation.

    On first use the ``train-test`` feature sets are generated and turned
    into instances; later calls return the cached instance set.

    Raises:
        CacheNotConfiguredError: If the config has no cross fold cache cell.
    """
    config = resolve_config(config)
    cell = config.cross_fold_instances_cache
    if cell is None:
        raise CacheNotConfiguredError(config.name, "cross_fold_instances_cache")

    def build() -> InstanceSet:
        log.info("Generating cross fold feature sets from model config")
        feature_sets = config.create_feature_sets_fn(set_type=SetType.TRAIN_TEST)
        return create_model_instances(feature_sets, config=config)

    return cell.get_or_create(build)


def train_test_instances(config: ModelConfig | None = None) -> TrainTestInstances:
    """
    Return the train, test and combined instances.

    On first use the ``train`` and ``test`` feature sets are generated; all
    three instance sets are cached together.

    Raises:
        CacheNotConfiguredError: If the config has no train/test cache cell.
    """
    config = resolve_config(config)
    cell = config.train_test_instances_cache
    if cell is None:
        raise CacheNotConfiguredError(config.name, "train_test_instances_cache")

    def build() -> TrainTestInstances:
        log.info("Generating train/test feature sets from model config")
        train = create_model_instances(
            config.create_feature_sets_fn(set_type=SetType.TRAIN), config=config
        )
        log.debug("Train instances created", n_instances=len(train))
        test = create_model_instances(
            config.create_feature_sets_fn(set_type=SetType.TEST), config=config
        )
        log.debug("Test instances created", n_instances=len(test))
        return TrainTestInstances(
            train=train, test=test, train_test=append_instances(train, test)
        )

    return cell.get_or_create(build)
