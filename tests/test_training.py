"""Tests for the classifier engine and model training."""

import pytest

from featmodel.config import ReturnKey, SetType, with_config
from featmodel.modeling.cache import train_test_instances
from featmodel.modeling.classifiers import get_classifier, list_classifiers
from featmodel.modeling.engine import SklearnEngine
from featmodel.modeling.instances import create_instances
from featmodel.modeling.training import (
    create_context,
    cross_validate_model,
    train_model,
)


class TestClassifierRegistry:
    """Tests for the classifier registry."""

    def test_list(self) -> None:
        """Test the registered classifiers."""
        names = list_classifiers()
        assert "logistic" in names
        assert "random_forest" in names
        assert "naive_bayes" in names

    def test_unknown(self) -> None:
        """Test unknown names list the alternatives."""
        with pytest.raises(KeyError, match="Available: logistic"):
            get_classifier("perceptron")

    def test_random_state_applied(self) -> None:
        """Test the seed is passed to classifiers that take one."""
        assert get_classifier("decision_tree", random_state=3).random_state == 3
        assert "random_state" not in get_classifier("naive_bayes", 3).get_params()

    def test_overrides(self) -> None:
        """Test parameter overrides."""
        assert get_classifier("k_neighbors", n_neighbors=2).n_neighbors == 2


class TestSklearnEngine:
    """Tests for SklearnEngine."""

    def test_classify_distributions(self, model_config) -> None:
        """Test classification returns a label and a full distribution."""
        instances = train_test_instances(model_config)
        engine = SklearnEngine(random_state=1)
        classifier = engine.train(instances.train)
        results = engine.classify(
            classifier,
            instances.test,
            {ReturnKey.LABEL, ReturnKey.DISTRIBUTIONS, ReturnKey.FEATURES},
        )
        assert len(results) == 4
        for result in results:
            assert result["label"] in {"yes", "no"}
            assert set(result["distributions"]) == {"yes", "no"}
            assert sum(result["distributions"].values()) == pytest.approx(1.0)
            assert set(result["features"]) == {"count", "flag"}

    def test_classify_only_requested_keys(self, model_config) -> None:
        """Test only the requested keys are returned."""
        instances = train_test_instances(model_config)
        engine = SklearnEngine()
        classifier = engine.train(instances.train)
        results = engine.classify(classifier, instances.test, {ReturnKey.LABEL})
        assert all(set(result) == {"label"} for result in results)

    def test_evaluate(self, model_config) -> None:
        """Test evaluation on held-out instances."""
        instances = train_test_instances(model_config)
        engine = SklearnEngine()
        metrics = engine.evaluate(engine.train(instances.train), instances.test)
        assert metrics.instances_total == 4
        assert metrics.instances_correct + metrics.instances_incorrect == 4
        assert metrics.labels == ("yes", "no")

    def test_cross_validate_caps_folds(self, model_config) -> None:
        """Test folds are capped at the smallest class of a small set."""
        test = train_test_instances(model_config).test
        metrics = SklearnEngine(classifier="decision_tree").cross_validate(test, 10)
        assert metrics.instances_total == 4

    def test_cross_validate_needs_two_instances(self, model_config) -> None:
        """Test cross validation of a single instance fails."""
        train = train_test_instances(model_config).train
        single = train.select(["count", "flag"])
        single.data = single.data.iloc[:1]
        with pytest.raises(ValueError, match="at least 2 instances"):
            SklearnEngine().cross_validate(single, 5)

    def test_cross_validate_stratified(self) -> None:
        """Test every training fold of an imbalanced set holds both classes."""
        rows = [
            {"count": float(c), "flag": c >= 8, "label": "yes" if c >= 8 else "no"}
            for c in range(10)
        ]
        instances = create_instances(
            "imbalanced",
            rows,
            {"count": "numeric", "flag": "boolean"},
            ("label", ["yes", "no"]),
        )
        for seed in range(10):
            metrics = SklearnEngine(random_state=seed).cross_validate(instances, 5)
            assert metrics.instances_total == 10
            assert metrics.labels == ("yes", "no")


class TestTrainModel:
    """Tests for train_model and cross_validate_model."""

    def test_train(self, model_config) -> None:
        """Test training produces a complete artifact."""
        with with_config(model_config):
            artifact = train_model()
        assert artifact.name == "count-flag"
        assert artifact.classifier_name == "logistic"
        assert artifact.attributes == ["count", "flag"]
        assert artifact.classify_attrib == "label"
        assert artifact.feature_metadata.class_type == ("yes", "no")
        assert str(artifact.feature_metadata.feature_metas["flag"]) == "boolean"
        assert artifact.context is None
        assert artifact.evaluation is not None
        assert artifact.evaluation.instances_total == 4
        assert not artifact.is_placeholder

    def test_train_feature_subset(self, model_config) -> None:
        """Test training on a subset of the features."""
        artifact = train_model(model_config, features=["count"])
        assert artifact.attributes == ["count"]

    def test_train_classifier_override(self, model_config) -> None:
        """Test choosing another classifier."""
        artifact = train_model(model_config, classifier="decision_tree")
        assert artifact.classifier_name == "decision_tree"

    def test_train_on_train_test(self, model_config) -> None:
        """Test training on both sets evaluates with cross validation."""
        artifact = train_model(model_config, train_on=SetType.TRAIN_TEST)
        assert artifact.evaluation.instances_total == 24

    def test_train_on_test_rejected(self, model_config) -> None:
        """Test the test set can't be trained on."""
        with pytest.raises(ValueError, match="Can't train on the test set"):
            train_model(model_config, train_on=SetType.TEST)

    def test_context(self, make_config) -> None:
        """Test the context is computed and stored."""
        config = make_config(context_fn=lambda: {"threshold": 10})
        assert create_context(config) == {"threshold": 10}
        assert train_model(config).context == {"threshold": 10}

    def test_cross_validate_model(self, model_config) -> None:
        """Test k-fold evaluation on the cross fold instances."""
        metrics = cross_validate_model(model_config, folds=4)
        assert metrics.instances_total == 24
        assert 0.0 <= metrics.accuracy <= 1.0
        assert len(metrics.confusion_matrix) == 2
