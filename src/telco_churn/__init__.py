"""
Telco Customer Churn — Modular Modeling Pipeline

This package provides an end-to-end implementation of customer churn
modeling: cleaning, exploratory figures, leakage-safe cross-validated
hyperparameter search over random forest, k-nearest-neighbours and
LightGBM, held-out evaluation and model explanation.

Modules:
    config              — Load YAML configuration safely.
    exceptions          — Pipeline error types.
    data_loader         — Read and validate the customer CSV.
    cleaner             — Drop incomplete rows, recode labels and categories.
    eda_reporter        — Outcome-split distribution and correlation figures.
    preprocessor        — One-hot encode, normalize and power-transform features.
    splitter            — Stratified train/test split and k-fold assignment.
    search_space        — Grid and Latin hypercube hyperparameter candidates.
    models              — Model-family registry.
    model_trainer       — Fold-wise fitting and the final fitted model.
    model_selector      — Cross-validated hyperparameter selection.
    evaluator           — Test-set confusion matrix, accuracy and CV report.
    explainer           — Feature importance and partial dependence.
    pipeline            — Orchestrates all components.
    utils.logger        — Unified timestamped console logger.
"""

from .config import Config
from .data_loader import DataLoader
from .cleaner import DataCleaner
from .eda_reporter import ExploratoryReporter
from .preprocessor import FittedPreprocessor, Preprocessor
from .model_trainer import ChurnModel, ModelTrainer
from .model_selector import ModelSelector, ScoreRecord, SearchResult
from .evaluator import Evaluator
from .explainer import ExplainerReporter
from .pipeline import PipelineRunner

__all__ = [
    "Config",
    "DataLoader",
    "DataCleaner",
    "ExploratoryReporter",
    "Preprocessor",
    "FittedPreprocessor",
    "ModelTrainer",
    "ChurnModel",
    "ModelSelector",
    "ScoreRecord",
    "SearchResult",
    "Evaluator",
    "ExplainerReporter",
    "PipelineRunner",
]
