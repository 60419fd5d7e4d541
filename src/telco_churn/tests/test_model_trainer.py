import numpy as np
import pytest

from telco_churn.exceptions import DegenerateFoldError
from telco_churn.model_trainer import LABELS, ChurnModel, ModelTrainer, encode_labels
from telco_churn.models import MODEL_FAMILIES, make_estimator
from telco_churn.splitter import stratified_folds


def test_encode_labels_marks_left_as_positive():
    y = encode_labels(["Current", "Left", "Left", "Current"])
    assert y.tolist() == [0, 1, 1, 0]


@pytest.mark.parametrize("family", sorted(MODEL_FAMILIES))
def test_make_estimator_builds_every_family(family):
    estimator = make_estimator(family, {})
    assert hasattr(estimator, "predict_proba")


def test_make_estimator_rejects_unknown_family():
    with pytest.raises(ValueError, match="svm"):
        make_estimator("svm", {})


@pytest.mark.parametrize(
    "family,params",
    [
        ("random_forest", {"n_estimators": 20, "max_features": 3}),
        ("knn", {"n_neighbors": 7}),
        ("gradient_boosting", {"n_estimators": 30, "num_leaves": 7}),
    ],
)
def test_fit_fold_scores_accuracy_and_auc(X_y, clean_df, preprocessing, family, params):
    X, y = X_y
    train_idx, val_idx = stratified_folds(clean_df, "Churn", n_splits=5)[0]

    trainer = ModelTrainer(family, params, preprocessing=preprocessing)
    result = trainer.fit_fold(X, y, train_idx, val_idx, fold=1, n_folds=5)

    assert result.ok
    assert set(result.metrics) == {"accuracy", "roc_auc"}
    assert all(0.0 <= v <= 1.0 for v in result.metrics.values())


def test_fit_fold_raises_on_single_class_validation_subset(X_y, preprocessing):
    X, y = X_y
    current = np.where(y == 0)[0]
    val_idx = current[:10]
    train_idx = np.setdiff1d(np.arange(len(y)), val_idx)

    trainer = ModelTrainer("knn", {"n_neighbors": 5}, preprocessing=preprocessing)
    with pytest.raises(DegenerateFoldError) as excinfo:
        trainer.fit_fold(X, y, train_idx, val_idx, fold=3)
    assert excinfo.value.fold == 3
    assert excinfo.value.subset == "validation"


def test_fit_fold_records_failed_fit_instead_of_scoring_zero(X_y, clean_df, preprocessing):
    X, y = X_y
    train_idx, val_idx = stratified_folds(clean_df, "Churn", n_splits=5)[0]

    trainer = ModelTrainer("knn", {"n_neighbors": 0}, preprocessing=preprocessing)
    result = trainer.fit_fold(X, y, train_idx, val_idx, fold=2)

    assert not result.ok
    assert result.metrics == {}
    assert result.fold == 2


def test_cross_validate_returns_one_result_per_fold(X_y, clean_df, preprocessing):
    X, y = X_y
    folds = stratified_folds(clean_df, "Churn", n_splits=4)
    results = ModelTrainer("knn", {"n_neighbors": 9}, preprocessing=preprocessing).cross_validate(X, y, folds)
    assert [r.fold for r in results] == [1, 2, 3, 4]
    assert all(r.ok for r in results)


def test_fit_final_returns_churn_model_predicting_labels(X_y, preprocessing):
    X, y = X_y
    trainer = ModelTrainer("random_forest", {"n_estimators": 25}, preprocessing=preprocessing)
    model = trainer.fit_final(X, y)

    assert isinstance(model, ChurnModel)
    assert model.family == "random_forest"
    preds = model.predict(X.head(20))
    assert set(preds) <= set(LABELS)
    proba = model.predict_proba(X.head(20))
    assert proba.shape == (20,)
    assert ((proba >= 0) & (proba <= 1)).all()


def test_save_writes_loadable_model(tmp_path, X_y, preprocessing):
    import joblib

    X, y = X_y
    trainer = ModelTrainer("knn", {"n_neighbors": 5}, preprocessing=preprocessing)
    model = trainer.fit_final(X, y)
    path = tmp_path / "models" / "churn.joblib"
    trainer.save(model, str(path))

    loaded = joblib.load(path)
    np.testing.assert_allclose(loaded.predict_proba(X.head(10)), model.predict_proba(X.head(10)))


def test_as_pipeline_reproduces_churn_model_probabilities(X_y, preprocessing):
    X, y = X_y
    model = ModelTrainer("random_forest", {"n_estimators": 25}, preprocessing=preprocessing).fit_final(X, y)

    pipe = model.as_pipeline()

    assert list(pipe.named_steps) == ["preprocess", "model"]
    np.testing.assert_allclose(pipe.predict_proba(X.head(20))[:, 1], model.predict_proba(X.head(20)))
