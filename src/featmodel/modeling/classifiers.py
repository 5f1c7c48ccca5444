"""
Classifier registry and factory.

Provides the registry of supported scikit-learn classifiers with their
default configurations.
"""

from typing import Any

from sklearn.base import BaseEstimator
from sklearn.ensemble import GradientBoostingClassifier, RandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.naive_bayes import GaussianNB
from sklearn.neighbors import KNeighborsClassifier
from sklearn.neural_network import MLPClassifier
from sklearn.svm import SVC
from sklearn.tree import DecisionTreeClassifier

from featmodel.utils.logging import get_logger

log = get_logger(__name__)


# Classifier configurations: name -> (class, default_kwargs)
# Every classifier must support predict_proba
CLASSIFIER_REGISTRY: dict[str, tuple[type[BaseEstimator], dict[str, Any]]] = {
    "logistic": (LogisticRegression, {"max_iter": 1000}),
    "decision_tree": (DecisionTreeClassifier, {}),
    "random_forest": (RandomForestClassifier, {"n_estimators": 128, "n_jobs": -1}),
    "gradient_boosting": (GradientBoostingClassifier, {"n_estimators": 128}),
    "naive_bayes": (GaussianNB, {}),
    "k_neighbors": (KNeighborsClassifier, {"n_neighbors": 5}),
    "svm": (SVC, {"kernel": "rbf", "probability": True}),
    "mlp": (
        MLPClassifier,
        {"hidden_layer_sizes": (100,), "early_stopping": True, "max_iter": 1000},
    ),
}


def get_classifier(
    name: str,
    random_state: int | None = None,
    **kwargs: Any,
) -> BaseEstimator:
    """
    Get a classifier instance by name.

    Args:
        name: Classifier name from registry.
        random_state: Seed, passed to classifiers that take one.
        **kwargs: Override default parameters.

    Returns:
        Unfitted classifier.

    Raises:
        KeyError: If classifier not found.
    """
    if name not in CLASSIFIER_REGISTRY:
        available = ", ".join(CLASSIFIER_REGISTRY.keys())
        msg = f"Unknown classifier '{name}'. Available: {available}"
        raise KeyError(msg)

    classifier_class, default_kwargs = CLASSIFIER_REGISTRY[name]
    params = {**default_kwargs, **kwargs}
    if random_state is not None and "random_state" in classifier_class().get_params():
        params.setdefault("random_state", random_state)

    log.debug("Creating classifier", name=name, params=params)
    return classifier_class(**params)


def list_classifiers() -> list[str]:
    """List all available classifier names."""
    return list(CLASSIFIER_REGISTRY.keys())
