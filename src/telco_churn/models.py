from typing import Any, Callable, Dict

from lightgbm import LGBMClassifier
from sklearn.base import ClassifierMixin
from sklearn.ensemble import RandomForestClassifier
from sklearn.neighbors import KNeighborsClassifier


def _random_forest(params: Dict[str, Any], random_state: int) -> ClassifierMixin:
    params = dict(params)
    params.setdefault("random_state", random_state)
    params.setdefault("n_jobs", 1)
    return RandomForestClassifier(**params)


def _knn(params: Dict[str, Any], random_state: int) -> ClassifierMixin:
    # deterministic; random_state unused
    return KNeighborsClassifier(**params)


def _gradient_boosting(params: Dict[str, Any], random_state: int) -> ClassifierMixin:
    params = dict(params)
    params.setdefault("random_state", random_state)
    params.setdefault("n_jobs", 1)
    params.setdefault("verbosity", -1)
    return LGBMClassifier(**params)


MODEL_FAMILIES: Dict[str, Callable[[Dict[str, Any], int], ClassifierMixin]] = {
    "random_forest": _random_forest,
    "knn": _knn,
    "gradient_boosting": _gradient_boosting,
}


def make_estimator(family: str, params: Dict[str, Any], random_state: int = 42) -> ClassifierMixin:
    """Instantiate an unfitted estimator of the given family."""
    try:
        factory = MODEL_FAMILIES[family]
    except KeyError:
        raise ValueError(
            f"Unknown model family: {family} (expected one of {sorted(MODEL_FAMILIES)})"
        ) from None
    return factory(params, random_state)
