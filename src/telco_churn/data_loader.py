import os
from typing import Optional, Sequence

import pandas as pd

from .exceptions import MissingFileError, SchemaError
from .utils.logger import get_logger


class DataLoader:
    """Loads the customer CSV, validates its schema and optionally samples rows."""

    # The raw export stores a blank string where TotalCharges is unknown.
    NA_VALUES = ["", " "]

    def __init__(
        self,
        path: str,
        sample_size: Optional[int] = None,
        required_cols: Sequence[str] = (),
        numeric_cols: Sequence[str] = (),
    ):
        self.path = path
        self.sample_size = sample_size
        self.required_cols = list(required_cols)
        self.numeric_cols = list(numeric_cols)
        self.logger = get_logger(self.__class__.__name__)

    def _validate(self, df: pd.DataFrame) -> None:
        missing = [c for c in self.required_cols if c not in df.columns]
        if missing:
            raise SchemaError(f"Missing required columns: {missing}")

        wrong_type = [
            c for c in self.numeric_cols
            if not pd.api.types.is_numeric_dtype(df[c])
        ]
        if wrong_type:
            raise SchemaError(f"Columns expected to be numeric: {wrong_type}")

    def load(self) -> pd.DataFrame:
        if not os.path.isfile(self.path):
            raise MissingFileError(self.path)

        df = pd.read_csv(self.path, na_values=self.NA_VALUES, encoding="utf-8")
        self._validate(df)

        if self.sample_size and self.sample_size < len(df):
            df = df.sample(self.sample_size, random_state=42)

        self.logger.info(f"Loaded {self.path}: {df.shape[0]:,} rows x {df.shape[1]} cols")
        return df
