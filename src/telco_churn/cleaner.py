from typing import Optional, Sequence

import pandas as pd

from .exceptions import SchemaError
from .preprocessor import to_categorical
from .utils.logger import get_logger


class DataCleaner:
    """Cleaning rules for the telco customer table."""

    SENIOR_MAP = {0: "No", 1: "Yes"}
    PAYMENT_MAP = {
        "Bank transfer (automatic)": "Bank transfer",
        "Credit card (automatic)": "Credit card",
    }
    LABEL_MAP = {"No": "Current", "Yes": "Left"}
    LABELS = ("Current", "Left")

    def __init__(
        self,
        label_col: str = "Churn",
        id_col: Optional[str] = "customerID",
        categorical_cols: Optional[Sequence[str]] = None,
    ):
        self.label_col = label_col
        self.id_col = id_col
        self.categorical_cols = list(categorical_cols) if categorical_cols else None
        self.logger = get_logger(self.__class__.__name__)

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        out = df.copy()

        if self.id_col and self.id_col in out.columns:
            out = out.drop(columns=[self.id_col])

        # No imputation: incomplete customers are removed.
        n_before = len(out)
        out = out.dropna().reset_index(drop=True)
        n_dropped = n_before - len(out)
        if n_dropped:
            self.logger.info(f"Dropped {n_dropped} rows with missing values")

        if "SeniorCitizen" in out.columns:
            senior = out["SeniorCitizen"].map(self.SENIOR_MAP)
            unknown = set(out.loc[senior.isna(), "SeniorCitizen"].unique())
            if unknown:
                raise SchemaError(f"Unexpected values in 'SeniorCitizen': {sorted(map(str, unknown))}")
            out["SeniorCitizen"] = senior

        if "PaymentMethod" in out.columns:
            out["PaymentMethod"] = out["PaymentMethod"].replace(self.PAYMENT_MAP)

        if self.label_col not in out.columns:
            raise SchemaError(f"Label column '{self.label_col}' not found")
        label = out[self.label_col].astype(str)
        unknown = set(label.unique()) - set(self.LABEL_MAP) - set(self.LABELS)
        if unknown:
            raise SchemaError(f"Unexpected values in '{self.label_col}': {sorted(unknown)}")
        out[self.label_col] = pd.Categorical(
            label.replace(self.LABEL_MAP), categories=list(self.LABELS)
        )

        categorical_cols = self.categorical_cols
        if categorical_cols is None:
            categorical_cols = [
                c for c in out.select_dtypes(include=["object", "string"]).columns
                if c != self.label_col
            ]
        return to_categorical(out, [c for c in categorical_cols if c in out.columns])
