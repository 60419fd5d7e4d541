import json
import os
from typing import Any, Dict, Mapping, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from sklearn.metrics import accuracy_score, confusion_matrix, roc_auc_score

from .model_selector import METRICS, ScoreRecord
from .model_trainer import LABELS, POSITIVE_LABEL
from .utils.logger import get_logger


class Evaluator:
    """Evaluate the finalized model on the held-out test partition."""

    def __init__(
        self,
        metrics_path: Optional[str] = None,
        figures_dir: Optional[str] = "artifacts",
        labels: Sequence[str] = LABELS,
        verbose: bool = True,
    ):
        self.metrics_path = metrics_path
        self.figures_dir = figures_dir
        self.labels = list(labels)
        self.verbose = verbose
        self.logger = get_logger(self.__class__.__name__)

    def _plot_confusion_matrix(self, cm: np.ndarray) -> str:
        """Plot confusion matrix counts and save to figures_dir. Returns saved path."""
        plt.figure(figsize=(6, 5))
        sns.heatmap(
            cm,
            annot=True,
            fmt="d",
            cmap="Blues",
            xticklabels=self.labels,
            yticklabels=self.labels,
        )
        plt.xlabel("Predicted")
        plt.ylabel("Actual")
        plt.title("Confusion Matrix (test)")

        os.makedirs(self.figures_dir, exist_ok=True)
        path = os.path.join(self.figures_dir, "confusion_matrix.png")

        plt.tight_layout()
        plt.savefig(path, dpi=200)
        plt.close()

        if self.verbose:
            self.logger.info(f"Saved confusion matrix: {path}")

        return path

    def score(self, y_true, y_pred, y_proba=None) -> Dict[str, Any]:
        """Confusion matrix (rows actual, columns predicted) and accuracy."""
        y_true = np.asarray(y_true).astype(str)
        y_pred = np.asarray(y_pred).astype(str)

        cm = confusion_matrix(y_true, y_pred, labels=self.labels)
        metrics: Dict[str, Any] = {
            "accuracy": float(accuracy_score(y_true, y_pred)),
            "confusion_matrix": {
                "labels": self.labels,
                "counts": cm.astype(int).tolist(),
            },
            "n_test": int(len(y_true)),
        }
        if y_proba is not None and len(np.unique(y_true)) == 2:
            y_bin = (y_true == POSITIVE_LABEL).astype(int)
            metrics["roc_auc"] = float(roc_auc_score(y_bin, np.asarray(y_proba, dtype=float)))
        return metrics

    def evaluate(self, model, test_df: pd.DataFrame, label_col: str) -> Dict[str, Any]:
        """Predict the test partition with fit-time preprocessing and report metrics."""
        X_test = test_df.drop(columns=[label_col])
        y_true = test_df[label_col]

        y_pred = model.predict(X_test)
        y_proba = model.predict_proba(X_test) if hasattr(model, "predict_proba") else None

        metrics = self.score(y_true, y_pred, y_proba)
        metrics["model_family"] = getattr(model, "family", None)

        if self.metrics_path:
            os.makedirs(os.path.dirname(self.metrics_path) or ".", exist_ok=True)
            with open(self.metrics_path, "w") as f:
                json.dump(metrics, f, indent=4)
            if self.verbose:
                self.logger.info(f"Saved metrics: {self.metrics_path}")

        if self.figures_dir:
            self._plot_confusion_matrix(np.asarray(metrics["confusion_matrix"]["counts"]))

        self.logger.info(f"Test accuracy: {metrics['accuracy']:.4f}")
        return metrics


def write_cv_report(results: Mapping[str, ScoreRecord], path: str) -> pd.DataFrame:
    """Write one row per model family x metric with the cross-validated mean."""
    rows = []
    for family, record in results.items():
        for metric in METRICS:
            rows.append(
                {
                    "model_family": family,
                    "metric": metric,
                    "mean": record.mean(metric),
                    "std": record.std(metric),
                    "n_folds": record.n_folds,
                    "n_failed": len(record.failures),
                    "params": json.dumps(record.params, sort_keys=True, default=str),
                }
            )
    report = pd.DataFrame(rows)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    report.to_csv(path, index=False)
    get_logger("Evaluator").info(f"Saved CV report: {path}")
    return report
