"""Error types raised by the churn pipeline.

Errors carrying their own fields define __reduce__ so they survive the
round trip out of joblib worker processes.
"""

from typing import Iterable


class ChurnPipelineError(Exception):
    """Base class for all pipeline errors."""


class MissingFileError(ChurnPipelineError, FileNotFoundError):
    """Input data path does not resolve to a file."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Input file not found: {path}")

    def __reduce__(self):
        return (self.__class__, (self.path,))


class SchemaError(ChurnPipelineError, ValueError):
    """Input table does not have the expected columns, types or label values."""


class UnseenCategoryError(ChurnPipelineError, ValueError):
    """A categorical column holds levels that were not observed at fit time."""

    def __init__(self, column: str, levels: Iterable):
        self.column = column
        self.levels = sorted(str(v) for v in levels)
        super().__init__(
            f"Column '{column}' has levels unseen at fit time: {self.levels}"
        )

    def __reduce__(self):
        return (self.__class__, (self.column, self.levels))


class DegenerateFoldError(ChurnPipelineError):
    """A cross-validation fold is missing one of the outcome classes."""

    def __init__(self, fold: int, subset: str, classes: Iterable):
        self.fold = fold
        self.subset = subset
        self.classes = sorted(int(c) for c in classes)
        super().__init__(
            f"Fold {fold}: {subset} subset contains a single class {self.classes}"
        )

    def __reduce__(self):
        return (self.__class__, (self.fold, self.subset, self.classes))


class ModelSelectionError(ChurnPipelineError):
    """No hyperparameter candidate produced a usable cross-validated score."""
