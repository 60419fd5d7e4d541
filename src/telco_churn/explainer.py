import os
from typing import Dict, List, Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from sklearn.inspection import partial_dependence as sklearn_partial_dependence
from sklearn.inspection import permutation_importance

from .utils.logger import get_logger


def feature_importance(model, X_df: pd.DataFrame, y=None, random_state: int = 42) -> pd.Series:
    """
    Importance of each encoded feature of a fitted ChurnModel.

    Tree estimators report their native importances. Estimators without
    them (k-nearest-neighbours) fall back to permutation importance on the
    encoded frame, which needs `y` as 0/1 labels.
    """
    X_enc = model.transform(X_df)
    estimator = model.estimator

    if hasattr(estimator, "feature_importances_"):
        values = np.asarray(estimator.feature_importances_, dtype=float)
    else:
        if y is None:
            raise ValueError("Permutation importance requires true labels")
        result = permutation_importance(
            estimator,
            X_enc,
            np.asarray(y).astype(int),
            scoring="roc_auc",
            n_repeats=5,
            random_state=random_state,
        )
        values = result.importances_mean

    return pd.Series(values, index=X_enc.columns, name="importance").sort_values(ascending=False)


def partial_dependence(
    model,
    X_df: pd.DataFrame,
    feature: str,
    grid_resolution: int = 20,
) -> pd.DataFrame:
    """
    Average predicted churn probability as `feature` is set to each grid
    value, every other column kept at its observed values.

    The grid spans the observed range of `feature` (its unique values when
    there are fewer than `grid_resolution`).
    """
    # float column so grid values can be written into integer features
    X_eval = X_df.astype({feature: float})
    result = sklearn_partial_dependence(
        model.as_pipeline(),
        X_eval,
        [feature],
        kind="average",
        method="brute",
        percentiles=(0.0, 1.0),
        grid_resolution=grid_resolution,
    )
    return pd.DataFrame({
        feature: np.asarray(result["grid_values"][0], dtype=float),
        "average_probability": np.asarray(result["average"][0], dtype=float),
    })


class ExplainerReporter:
    """Save feature-importance and partial-dependence figures for the final model."""

    def __init__(self, figures_dir: str = "artifacts", top_n: int = 15, verbose: bool = True):
        self.figures_dir = figures_dir
        self.top_n = top_n
        self.verbose = verbose
        self.logger = get_logger(self.__class__.__name__)

    def _save(self, name: str) -> str:
        os.makedirs(self.figures_dir, exist_ok=True)
        path = os.path.join(self.figures_dir, name)
        plt.tight_layout()
        plt.savefig(path, dpi=200)
        plt.close()
        if self.verbose:
            self.logger.info(f"Saved figure: {path}")
        return path

    def plot_importance(self, importance: pd.Series, family: str = "") -> str:
        top = importance.head(self.top_n)
        plt.figure(figsize=(8, 6))
        sns.barplot(x=top.values, y=top.index, color="steelblue")
        plt.xlabel("Importance")
        plt.ylabel("")
        plt.title(f"Feature importance {family}".strip())
        return self._save("feature_importance.png")

    def plot_partial_dependence(self, pdp: pd.DataFrame, feature: str) -> str:
        plt.figure(figsize=(7, 5))
        plt.plot(pdp[feature], pdp["average_probability"], marker="o")
        plt.xlabel(feature)
        plt.ylabel("Average P(Left)")
        plt.title(f"Partial dependence: {feature}")
        return self._save(f"pdp_{feature}.png")

    def run(
        self,
        model,
        X_df: pd.DataFrame,
        y=None,
        pdp_features: Sequence[str] = ("tenure", "MonthlyCharges"),
        grid_resolution: int = 20,
    ) -> Dict[str, object]:
        importance = feature_importance(model, X_df, y)
        paths: List[str] = [self.plot_importance(importance, getattr(model, "family", ""))]

        curves: Dict[str, pd.DataFrame] = {}
        for feature in pdp_features:
            curves[feature] = partial_dependence(model, X_df, feature, grid_resolution)
            paths.append(self.plot_partial_dependence(curves[feature], feature))

        top = ", ".join(f"{k}={v:.3f}" for k, v in importance.head(5).items())
        self.logger.info(f"Top features: {top}")
        return {"importance": importance, "partial_dependence": curves, "figures": paths}
