import json

import numpy as np
import pandas as pd
import pytest

from telco_churn.evaluator import Evaluator, write_cv_report
from telco_churn.model_selector import ScoreRecord


class OracleModel:
    """Predicts the true label carried in the `oracle` column."""

    family = "oracle"

    def predict(self, X):
        return X["oracle"].to_numpy()

    def predict_proba(self, X):
        return (X["oracle"] == "Left").astype(float).to_numpy()


def _test_partition(n_current=30, n_left=12):
    labels = ["Current"] * n_current + ["Left"] * n_left
    return pd.DataFrame({"oracle": labels, "tenure": np.arange(len(labels)), "Churn": labels})


def test_perfect_classifier_scores_one_with_diagonal_confusion(tmp_path):
    test_df = _test_partition()
    metrics_path = tmp_path / "metrics" / "test.json"
    evaluator = Evaluator(str(metrics_path), str(tmp_path / "figs"))

    metrics = evaluator.evaluate(OracleModel(), test_df, "Churn")

    assert metrics["accuracy"] == 1.0
    assert metrics["roc_auc"] == 1.0
    assert metrics["confusion_matrix"]["labels"] == ["Current", "Left"]
    assert metrics["confusion_matrix"]["counts"] == [[30, 0], [0, 12]]
    assert metrics["model_family"] == "oracle"

    saved = json.loads(metrics_path.read_text())
    assert saved["confusion_matrix"]["counts"] == [[30, 0], [0, 12]]
    assert (tmp_path / "figs" / "confusion_matrix.png").exists()


def test_confusion_matrix_rows_are_actual_columns_predicted():
    y_true = ["Current", "Current", "Left", "Left", "Left"]
    y_pred = ["Current", "Left", "Left", "Current", "Left"]
    metrics = Evaluator(None, None).score(y_true, y_pred)
    assert metrics["confusion_matrix"]["counts"] == [[1, 1], [1, 2]]
    assert metrics["accuracy"] == 0.6
    assert "roc_auc" not in metrics


def test_evaluate_does_not_mutate_test_partition():
    test_df = _test_partition()
    before = test_df.copy(deep=True)
    Evaluator(None, None).evaluate(OracleModel(), test_df, "Churn")
    pd.testing.assert_frame_equal(test_df, before)


def test_cv_report_has_one_row_per_family_and_metric(tmp_path):
    results = {
        "knn": ScoreRecord("knn", {"n_neighbors": 5}, {"accuracy": [0.7, 0.8], "roc_auc": [0.8, 0.9]}),
        "random_forest": ScoreRecord("random_forest", {"max_features": 4}, {"accuracy": [0.75], "roc_auc": [0.85]}),
    }
    path = tmp_path / "cv_report.csv"
    report = write_cv_report(results, str(path))

    assert len(report) == 4
    assert set(report["metric"]) == {"accuracy", "roc_auc"}
    knn_auc = report[(report["model_family"] == "knn") & (report["metric"] == "roc_auc")]
    assert knn_auc["mean"].iloc[0] == pytest.approx(0.85)
    assert knn_auc["n_folds"].iloc[0] == 2
    assert pd.read_csv(path).shape == (4, report.shape[1])
