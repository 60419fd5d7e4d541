import os
import warnings
from textwrap import indent
from typing import Any, Dict, Optional

from .cleaner import DataCleaner
from .config import Config
from .data_loader import DataLoader
from .eda_reporter import ExploratoryReporter
from .evaluator import Evaluator, write_cv_report
from .explainer import ExplainerReporter
from .model_selector import ModelSelector, ScoreRecord, SearchResult
from .model_trainer import ModelTrainer, encode_labels
from .search_space import make_candidates
from .splitter import stratified_folds, train_test_split_stratified
from .utils.logger import get_logger


class PipelineRunner:
    """End-to-end telco churn pipeline.

    Steps:
      1. Load and validate the customer CSV
      2. Clean: drop incomplete rows, recode labels and categories
      3. Optionally save exploratory figures
      4. Stratified 80/20 train/test split and 10-fold CV assignment
      5. Cross-validated hyperparameter search per model family
      6. Re-resample each family's best configuration for its reported score
      7. Fit the best family on the full training partition
      8. Evaluate on the test partition (confusion matrix, accuracy)
      9. Feature importance and partial dependence of the final model"""

    def __init__(self, config_path: str, data_path: Optional[str] = None):
        self.config = Config.from_yaml(config_path)
        if data_path:
            self.config.data["path"] = data_path
        self.logger = get_logger(self.__class__.__name__)
        warnings.filterwarnings(
            "ignore",
            message="X does not have valid feature names",
            category=UserWarning,
        )

    def run(self) -> Dict[str, Any]:
        cfg = self.config
        self.logger.info("Starting telco churn pipeline")

        label_col = cfg.data.get("label_col", "Churn")
        categorical_cols = cfg.data["categorical_cols"]
        numeric_cols = cfg.data["numeric_cols"]
        seed = cfg.validation.get("random_state", 42)
        make_figures = cfg.output.get("make_figures", True)
        figures_dir = cfg.output.get("figures_dir", "artifacts/figures")

        df = DataLoader(
            cfg.data["path"],
            sample_size=cfg.data.get("sample_size"),
            required_cols=[*categorical_cols, *numeric_cols, label_col],
            numeric_cols=numeric_cols,
        ).load()
        df = DataCleaner(
            label_col=label_col,
            id_col=cfg.data.get("id_col"),
            categorical_cols=categorical_cols,
        ).transform(df)
        df = df[[*categorical_cols, *numeric_cols, label_col]]
        churn_rate = (df[label_col] == "Left").mean()
        self.logger.info(f"Clean dataset: {len(df):,} rows, churn rate {churn_rate:.3f}")

        if make_figures:
            ExploratoryReporter(figures_dir).run(df, label_col, categorical_cols, numeric_cols)

        train_df, test_df = train_test_split_stratified(
            df, label_col, cfg.validation.get("train_fraction", 0.8), random_state=seed
        )
        folds = stratified_folds(
            train_df, label_col, cfg.validation.get("n_splits", 10), random_state=seed
        )
        self.logger.info(
            f"Split: train={len(train_df):,} test={len(test_df):,}, {len(folds)} CV folds"
        )

        X_train = train_df.drop(columns=[label_col])
        y_train = encode_labels(train_df[label_col])

        preprocessing = {
            "categorical_cols": categorical_cols,
            "numeric_cols": numeric_cols,
            "power_transform": cfg.preprocessing.get("power_transform", True),
        }
        metric = cfg.validation.get("metric", "roc_auc")

        searches: Dict[str, SearchResult] = {}
        cv_scores: Dict[str, ScoreRecord] = {}
        for family, model_cfg in cfg.models.items():
            selector = ModelSelector(
                family,
                folds,
                metric=metric,
                preprocessing=preprocessing,
                n_jobs=cfg.validation.get("n_jobs", 1),
                random_state=seed,
            )
            candidates = make_candidates(model_cfg or {}, random_state=seed)
            searches[family] = selector.search(X_train, y_train, candidates)
            if cfg.validation.get("resample_best", True):
                cv_scores[family] = selector.resample(X_train, y_train, searches[family].best_params)
            else:
                cv_scores[family] = searches[family].best

        best_family = max(cv_scores, key=lambda f: cv_scores[f].mean(metric))
        summary = indent(
            "\n".join(f"{f}: {r.mean(metric):.4f}" for f, r in cv_scores.items()), " " * 4
        )
        self.logger.info(f"CV {metric} by model family:\n{summary}")
        self.logger.info(f"Selected model family: {best_family}")

        if cfg.output.get("cv_report_path"):
            write_cv_report(cv_scores, cfg.output["cv_report_path"])

        trainer = ModelTrainer(
            best_family,
            searches[best_family].best_params,
            preprocessing=preprocessing,
            random_state=seed,
        )
        model = trainer.fit_final(X_train, y_train)
        if cfg.output.get("model_path"):
            trainer.save(model, cfg.output["model_path"])

        evaluator = Evaluator(
            cfg.output.get("metrics_path"),
            figures_dir if make_figures else None,
        )
        test_metrics = evaluator.evaluate(model, test_df, label_col)

        explanation = None
        if make_figures:
            explain_cfg = cfg.explain or {}
            explanation = ExplainerReporter(os.path.join(figures_dir, "explain")).run(
                model,
                X_train,
                y_train,
                pdp_features=explain_cfg.get("pdp_features", ["tenure", "MonthlyCharges"]),
                grid_resolution=explain_cfg.get("grid_resolution", 20),
            )

        self.logger.info("Pipeline finished")
        return {
            "searches": searches,
            "cv_scores": cv_scores,
            "best_family": best_family,
            "model": model,
            "test_metrics": test_metrics,
            "explanation": explanation,
        }
