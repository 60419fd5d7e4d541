import os
import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

import joblib
import numpy as np
import pandas as pd
from lightgbm.basic import LightGBMError
from sklearn.exceptions import ConvergenceWarning
from sklearn.metrics import accuracy_score, roc_auc_score
from sklearn.pipeline import Pipeline

from .exceptions import DegenerateFoldError
from .models import make_estimator
from .preprocessor import FittedPreprocessor, Preprocessor
from .utils.logger import get_logger

LABELS: Tuple[str, str] = ("Current", "Left")
POSITIVE_LABEL = "Left"

# Errors an estimator may raise on a pathological fold/candidate combination.
FIT_ERRORS = (ValueError, ArithmeticError, LightGBMError, ConvergenceWarning)


def encode_labels(y, positive_label: str = POSITIVE_LABEL) -> np.ndarray:
    """Map outcome labels to 1 for the positive class and 0 otherwise."""
    return (np.asarray(y).astype(str) == positive_label).astype(int)


@dataclass
class FoldResult:
    """Outcome of one fold x candidate evaluation."""
    fold: int
    metrics: Dict[str, float] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ChurnModel:
    """Fitted preprocessing + estimator. Not mutated after fitting."""
    family: str
    params: Dict[str, Any]
    preprocessor: FittedPreprocessor
    estimator: Any
    labels: Tuple[str, str] = LABELS

    def transform(self, X_df: pd.DataFrame) -> pd.DataFrame:
        return self.preprocessor.transform(X_df)

    def predict_proba(self, X_df: pd.DataFrame) -> np.ndarray:
        """Probability of the positive class ("Left")."""
        return self.estimator.predict_proba(self.transform(X_df))[:, 1]

    def predict(self, X_df: pd.DataFrame) -> np.ndarray:
        y_int = np.asarray(self.estimator.predict(self.transform(X_df))).astype(int)
        return np.asarray(self.labels, dtype=object)[y_int]

    def as_pipeline(self) -> Pipeline:
        """Fitted preprocessing + estimator as a scikit-learn Pipeline (0/1 classes)."""
        return Pipeline(steps=[("preprocess", self.preprocessor), ("model", self.estimator)])


class ModelTrainer:
    """
    Fits one model family with one hyperparameter candidate using
    leakage-safe cross-validation: preprocessing is fit only on training
    folds, then applied to validation folds.

    Provides:
      - fit_fold: score a single (train_idx, val_idx) pair
      - cross_validate: score every fold sequentially
      - fit_final: fit preprocessing + model on the full training partition
    """

    def __init__(
        self,
        family: str,
        params: Dict[str, Any],
        preprocessing: Optional[Dict[str, Any]] = None,
        random_state: int = 42,
    ):
        self.family = family
        self.params = dict(params)
        self.preprocessing = dict(preprocessing or {})
        self.random_state = random_state
        self.logger = get_logger(self.__class__.__name__)

    def _make_preprocessor(self) -> Preprocessor:
        return Preprocessor(
            categorical_cols=self.preprocessing.get("categorical_cols"),
            numeric_cols=self.preprocessing.get("numeric_cols"),
            power_transform=self.preprocessing.get("power_transform", True),
        )

    def _fit_estimator(self, X: pd.DataFrame, y: np.ndarray):
        model = make_estimator(self.family, self.params, self.random_state)
        with warnings.catch_warnings():
            warnings.simplefilter("error", category=ConvergenceWarning)
            warnings.filterwarnings("ignore", category=UserWarning, module="lightgbm")
            model.fit(X, y)
        return model

    def fit_fold(
        self,
        X_df: pd.DataFrame,
        y: np.ndarray,
        train_idx: Sequence[int],
        val_idx: Sequence[int],
        fold: int = 1,
        n_folds: Optional[int] = None,
    ) -> FoldResult:
        y = np.asarray(y).astype(int)
        y_train, y_val = y[train_idx], y[val_idx]

        for subset, y_sub in (("training", y_train), ("validation", y_val)):
            classes = np.unique(y_sub)
            if len(classes) < 2:
                raise DegenerateFoldError(fold, subset, classes)

        X_train_df = X_df.iloc[train_idx]
        X_val_df = X_df.iloc[val_idx]

        # Fit preprocessing only on training fold (prevents leakage)
        prep = self._make_preprocessor().fit(X_train_df)
        X_train = prep.transform(X_train_df)
        X_val = prep.transform(X_val_df)

        try:
            model = self._fit_estimator(X_train, y_train)
            val_proba = model.predict_proba(X_val)[:, 1]
            val_pred = model.predict(X_val)
        except FIT_ERRORS as exc:
            self.logger.warning(
                f"Fold {fold}: {self.family} fit failed with {self.params}: {exc!r}"
            )
            return FoldResult(fold=fold, error=f"{type(exc).__name__}: {exc}")

        metrics = {
            "accuracy": float(accuracy_score(y_val, val_pred)),
            "roc_auc": float(roc_auc_score(y_val, val_proba)),
        }
        self.logger.info(
            f"Fold {fold}/{n_folds or '?'} ROC-AUC: {metrics['roc_auc']:.4f} "
            f"accuracy: {metrics['accuracy']:.4f}"
        )
        return FoldResult(fold=fold, metrics=metrics)

    def cross_validate(self, X_df: pd.DataFrame, y: np.ndarray, folds) -> list[FoldResult]:
        return [
            self.fit_fold(X_df, y, train_idx, val_idx, fold=i, n_folds=len(folds))
            for i, (train_idx, val_idx) in enumerate(folds, start=1)
        ]

    def fit_final(self, X_df: pd.DataFrame, y: np.ndarray) -> ChurnModel:
        """Fit preprocessing + final model on the full training partition."""
        y = np.asarray(y).astype(int)

        prep = self._make_preprocessor().fit(X_df)
        model = self._fit_estimator(prep.transform(X_df), y)

        self.logger.info(f"Fitted final {self.family} model on {len(y):,} rows")
        return ChurnModel(
            family=self.family,
            params=dict(self.params),
            preprocessor=prep,
            estimator=model,
        )

    def save(self, model: ChurnModel, model_path: str) -> None:
        os.makedirs(os.path.dirname(model_path) or ".", exist_ok=True)
        joblib.dump(model, model_path)
        self.logger.info(f"Saved model: {model_path}")
