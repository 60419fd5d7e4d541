import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from .exceptions import ModelSelectionError
from .model_trainer import FoldResult, ModelTrainer
from .splitter import Fold
from .utils.logger import get_logger

METRICS = ("accuracy", "roc_auc")


@dataclass
class ScoreRecord:
    """Cross-validated scores of one hyperparameter candidate."""
    family: str
    params: Dict[str, Any]
    fold_metrics: Dict[str, List[float]] = field(default_factory=dict)
    failures: List[FoldResult] = field(default_factory=list)

    @property
    def n_folds(self) -> int:
        """Number of folds that produced a score."""
        return len(next(iter(self.fold_metrics.values()), []))

    def mean(self, metric: str) -> float:
        values = self.fold_metrics.get(metric, [])
        return float(np.mean(values)) if values else float("nan")

    def std(self, metric: str) -> float:
        values = self.fold_metrics.get(metric, [])
        return float(np.std(values, ddof=1)) if len(values) > 1 else float("nan")

    @property
    def metrics(self) -> Dict[str, float]:
        return {m: self.mean(m) for m in self.fold_metrics}

    @classmethod
    def from_folds(cls, family: str, params: Dict[str, Any], results: Sequence[FoldResult]) -> "ScoreRecord":
        record = cls(family=family, params=dict(params), fold_metrics={m: [] for m in METRICS})
        for res in sorted(results, key=lambda r: r.fold):
            if res.ok:
                for m in METRICS:
                    record.fold_metrics[m].append(res.metrics[m])
            else:
                record.failures.append(res)
        return record


@dataclass
class SearchResult:
    family: str
    metric: str
    records: List[ScoreRecord]
    best_index: int

    @property
    def best(self) -> ScoreRecord:
        return self.records[self.best_index]

    @property
    def best_params(self) -> Dict[str, Any]:
        return dict(self.best.params)

    @property
    def best_score(self) -> float:
        return self.best.mean(self.metric)

    def to_frame(self) -> pd.DataFrame:
        rows = []
        for i, rec in enumerate(self.records):
            row = {"candidate": i, **rec.params}
            for m in METRICS:
                row[f"mean_{m}"] = rec.mean(m)
            row["n_folds"] = rec.n_folds
            row["n_failed"] = len(rec.failures)
            rows.append(row)
        return pd.DataFrame(rows)


def _evaluate(trainer: ModelTrainer, X_df, y, train_idx, val_idx, fold, n_folds) -> FoldResult:
    return trainer.fit_fold(X_df, y, train_idx, val_idx, fold=fold, n_folds=n_folds)


class ModelSelector:
    """
    Cross-validated hyperparameter selection for one model family.

    Every candidate is evaluated on every fold; per-candidate scores are
    the mean over folds and the candidate with the highest mean `metric`
    wins (first one on ties). `resample` re-runs cross-validation for the
    chosen configuration to report its score independently of the search.
    """

    def __init__(
        self,
        family: str,
        folds: Sequence[Fold],
        metric: str = "roc_auc",
        preprocessing: Optional[Dict[str, Any]] = None,
        n_jobs: int = 1,
        random_state: int = 42,
    ):
        if metric not in METRICS:
            raise ValueError(f"Unknown metric: {metric} (expected one of {METRICS})")
        self.family = family
        self.folds = list(folds)
        self.metric = metric
        self.preprocessing = dict(preprocessing or {})
        self.n_jobs = n_jobs
        self.random_state = random_state
        self.logger = get_logger(self.__class__.__name__)

    def _trainer(self, params: Dict[str, Any]) -> ModelTrainer:
        return ModelTrainer(
            family=self.family,
            params=params,
            preprocessing=self.preprocessing,
            random_state=self.random_state,
        )

    def _score(self, X_df: pd.DataFrame, y: np.ndarray, candidates: Sequence[Dict[str, Any]]) -> List[ScoreRecord]:
        n_folds = len(self.folds)
        trainers = [self._trainer(params) for params in candidates]
        tasks = [
            (c, fold)
            for c in range(len(candidates))
            for fold in range(1, n_folds + 1)
        ]

        # reduce log noise: per-fold lines are only useful for single fits
        fold_logger = trainers[0].logger
        previous_level = fold_logger.level
        fold_logger.setLevel(logging.WARNING)
        try:
            results = Parallel(n_jobs=self.n_jobs)(
                delayed(_evaluate)(
                    trainers[c], X_df, y, *self.folds[fold - 1], fold, n_folds
                )
                for c, fold in tasks
            )
        finally:
            fold_logger.setLevel(previous_level)

        by_candidate: Dict[int, List[FoldResult]] = {c: [] for c in range(len(candidates))}
        for (c, _), res in zip(tasks, results):
            by_candidate[c].append(res)

        records = [
            ScoreRecord.from_folds(self.family, candidates[c], by_candidate[c])
            for c in range(len(candidates))
        ]
        for rec in records:
            if rec.failures:
                self.logger.warning(
                    f"{self.family} {rec.params}: {len(rec.failures)}/{n_folds} folds failed "
                    f"and are excluded from the mean"
                )
        return records

    def search(self, X_df: pd.DataFrame, y: np.ndarray, candidates: Sequence[Dict[str, Any]]) -> SearchResult:
        if not candidates:
            raise ValueError("No hyperparameter candidates given")
        if not self.folds:
            raise ValueError("No cross-validation folds given")

        self.logger.info(
            f"Searching {self.family}: {len(candidates)} candidates x {len(self.folds)} folds"
        )
        records = self._score(X_df, np.asarray(y).astype(int), candidates)

        scores = np.array([rec.mean(self.metric) for rec in records], dtype=float)
        if np.all(np.isnan(scores)):
            raise ModelSelectionError(f"Every {self.family} candidate failed on every fold")
        best_index = int(np.argmax(np.where(np.isnan(scores), -np.inf, scores)))

        result = SearchResult(family=self.family, metric=self.metric, records=records, best_index=best_index)
        self.logger.info(
            f"Best {self.family} CV {self.metric}: {result.best_score:.4f} with {result.best_params}"
        )
        return result

    def resample(self, X_df: pd.DataFrame, y: np.ndarray, params: Dict[str, Any]) -> ScoreRecord:
        """Second cross-validation pass for an already selected configuration."""
        record = self._score(X_df, np.asarray(y).astype(int), [params])[0]
        if record.n_folds == 0:
            raise ModelSelectionError(f"Selected {self.family} configuration failed on every fold")
        self.logger.info(
            f"Resampled {self.family} CV {self.metric}: {record.mean(self.metric):.4f} "
            f"(+/- {record.std(self.metric):.4f}, {record.n_folds} folds)"
        )
        return record
