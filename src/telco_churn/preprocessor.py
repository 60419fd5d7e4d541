from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.compose import ColumnTransformer
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder, PowerTransformer, StandardScaler

from .exceptions import UnseenCategoryError
from .utils.logger import get_logger


def to_categorical(df: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    """Return a copy of df with the given columns cast to the category dtype."""
    out = df.copy()
    for col in columns:
        out[col] = out[col].astype("category")
    return out


@dataclass(eq=False)
class FittedPreprocessor(TransformerMixin, BaseEstimator):
    """
    Fit-time state of the feature encoder. Applying it never refits.

    It is also an already-fitted scikit-learn transformer, so it can lead
    a `Pipeline` handed to `sklearn.inspection` helpers.
    """

    transformer: ColumnTransformer
    categorical_cols: List[str]
    numeric_cols: List[str]
    levels: Dict[str, List] = field(default_factory=dict)
    reference_levels: Dict[str, object] = field(default_factory=dict)
    indicator_columns: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def feature_names(self) -> List[str]:
        return [str(c) for c in self.transformer.get_feature_names_out()]

    def fit(self, X=None, y=None) -> "FittedPreprocessor":
        return self

    def __sklearn_is_fitted__(self) -> bool:
        return True

    def get_feature_names_out(self, input_features=None):
        return np.asarray(self.feature_names, dtype=object)

    def check_levels(self, X: pd.DataFrame) -> None:
        """Reject the batch if any categorical column holds an unseen level."""
        for col in self.categorical_cols:
            values = pd.Series(X[col]).astype(object)
            unseen = set(values[~values.isin(self.levels[col])].unique())
            if unseen:
                raise UnseenCategoryError(col, unseen)

    def transform(self, X: pd.DataFrame) -> pd.DataFrame:
        self.check_levels(X)
        Xt = self.transformer.transform(X)
        Xt = Xt.toarray() if hasattr(Xt, "toarray") else np.asarray(Xt)
        return pd.DataFrame(Xt, columns=self.feature_names, index=X.index)

    def decode(self, encoded: pd.DataFrame, column: str) -> pd.Series:
        """Recover category labels of `column` from its indicator columns."""
        indicators = self.indicator_columns[column]
        kept_levels = [lvl for lvl in self.levels[column] if lvl != self.reference_levels[column]]
        block = encoded[indicators].to_numpy()
        decoded = np.where(
            block.sum(axis=1) == 0,
            self.reference_levels[column],
            np.asarray(kept_levels, dtype=object)[block.argmax(axis=1)]
            if kept_levels else self.reference_levels[column],
        )
        return pd.Series(decoded, index=encoded.index, name=column)


class Preprocessor:
    """Builds the one-hot / normalize / power-transform feature encoder."""

    def __init__(
        self,
        categorical_cols: Optional[Sequence[str]] = None,
        numeric_cols: Optional[Sequence[str]] = None,
        power_transform: bool = True,
        verbose: bool = False,
    ):
        """
        Parameters
        ----------
        categorical_cols, numeric_cols:
            Predictor groups. Detected from dtypes when not given.
        power_transform:
            Whether to apply a Yeo-Johnson transform to numeric predictors
            after centering and scaling.
        verbose:
            If True, logs detected feature groups.
        """
        self.categorical_cols = list(categorical_cols) if categorical_cols is not None else None
        self.numeric_cols = list(numeric_cols) if numeric_cols is not None else None
        self.power_transform = power_transform
        self.verbose = verbose
        self.logger = get_logger(self.__class__.__name__)
        self.transformer: Optional[ColumnTransformer] = None

    @staticmethod
    def _make_onehot() -> OneHotEncoder:
        return OneHotEncoder(drop="first", handle_unknown="error", sparse_output=False)

    def _resolve_columns(self, X: pd.DataFrame) -> tuple[list[str], list[str]]:
        categorical_cols = self.categorical_cols
        if categorical_cols is None:
            categorical_cols = X.select_dtypes(include=["object", "string", "category", "bool"]).columns.tolist()
        numeric_cols = self.numeric_cols
        if numeric_cols is None:
            numeric_cols = [
                c for c in X.select_dtypes(include=["number"]).columns if c not in categorical_cols
            ]
        return list(categorical_cols), list(numeric_cols)

    def build(self, X: pd.DataFrame) -> ColumnTransformer:
        """Build (but do not fit) the preprocessing transformer."""
        categorical_cols, numeric_cols = self._resolve_columns(X)

        num_steps = [("scaler", StandardScaler())]
        if self.power_transform:
            num_steps.append(("power", PowerTransformer(method="yeo-johnson", standardize=False)))

        # indicator columns take their own branch so they are never scaled
        self.transformer = ColumnTransformer(
            transformers=[
                ("cat", self._make_onehot(), categorical_cols),
                ("num", Pipeline(steps=num_steps), numeric_cols),
            ],
            remainder="drop",
            verbose_feature_names_out=False,
        )

        if self.verbose:
            self.logger.info(
                f"Columns detected: categorical={len(categorical_cols)}, numeric={len(numeric_cols)}"
            )

        return self.transformer

    def fit(self, X: pd.DataFrame) -> FittedPreprocessor:
        """Fit the encoder on training rows only and return its frozen state."""
        transformer = self.build(X)
        transformer.fit(X)
        categorical_cols, numeric_cols = self._resolve_columns(X)

        fitted = FittedPreprocessor(
            transformer=transformer,
            categorical_cols=categorical_cols,
            numeric_cols=numeric_cols,
        )
        if categorical_cols:
            encoder = transformer.named_transformers_["cat"]
            drop_idx = encoder.drop_idx_
            for i, col in enumerate(categorical_cols):
                levels = list(encoder.categories_[i])
                ref_idx = 0 if drop_idx is None or drop_idx[i] is None else int(drop_idx[i])
                kept = [lvl for j, lvl in enumerate(levels) if j != ref_idx]
                fitted.levels[col] = levels
                fitted.reference_levels[col] = levels[ref_idx]
                fitted.indicator_columns[col] = [f"{col}_{lvl}" for lvl in kept]
        return fitted
