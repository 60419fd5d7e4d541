import os
from typing import List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from .utils.logger import get_logger


class ExploratoryReporter:
    """Outcome-split distribution plots and a numeric correlation heatmap."""

    def __init__(self, figures_dir: str = "artifacts", verbose: bool = True):
        self.figures_dir = figures_dir
        self.verbose = verbose
        self.logger = get_logger(self.__class__.__name__)

    def _save(self, name: str) -> str:
        os.makedirs(self.figures_dir, exist_ok=True)
        path = os.path.join(self.figures_dir, name)
        plt.tight_layout()
        plt.savefig(path, dpi=120)
        plt.close()
        return path

    def plot_counts(self, df: pd.DataFrame, column: str, label_col: str) -> str:
        plt.figure(figsize=(7, 4))
        sns.countplot(data=df, x=column, hue=label_col)
        plt.xticks(rotation=30, ha="right")
        plt.title(f"{column} by {label_col}")
        return self._save(f"count_{column}.png")

    def plot_box(self, df: pd.DataFrame, column: str, label_col: str) -> str:
        plt.figure(figsize=(6, 4))
        sns.boxplot(data=df, x=label_col, y=column)
        plt.title(f"{column} by {label_col}")
        return self._save(f"box_{column}.png")

    def plot_correlation(self, corr: pd.DataFrame) -> str:
        plt.figure(figsize=(5, 4))
        sns.heatmap(corr, annot=True, fmt=".2f", cmap="coolwarm", vmin=-1, vmax=1)
        plt.title("Correlation (numeric features)")
        return self._save("correlation.png")

    def run(
        self,
        df: pd.DataFrame,
        label_col: str,
        categorical_cols: Optional[Sequence[str]] = None,
        numeric_cols: Optional[Sequence[str]] = None,
    ) -> Tuple[List[str], pd.DataFrame]:
        if categorical_cols is None:
            categorical_cols = [
                c for c in df.select_dtypes(include=["object", "string", "category"]).columns if c != label_col
            ]
        if numeric_cols is None:
            numeric_cols = df.select_dtypes(include=["number"]).columns.tolist()

        paths = [self.plot_counts(df, col, label_col) for col in categorical_cols]
        paths += [self.plot_box(df, col, label_col) for col in numeric_cols]

        corr = df[list(numeric_cols)].corr()
        paths.append(self.plot_correlation(corr))

        if self.verbose:
            self.logger.info(f"Saved {len(paths)} exploratory figures to {self.figures_dir}")
        return paths, corr
