"""
Stratified partitioning of the customer table.

Both the train/test split and the k-fold assignment delegate to scikit-learn's
stratified splitters, so class allocation follows their rule: each class gets
floor(n * share) rows and leftover slots go to the classes with the largest
fractional remainders. The train partition is allocated first and the test
partition is drawn from what remains. For 10 rows with 7 "Current" and
3 "Left", an 80/20 split places 6 Current and 2 Left rows in the train
partition.
"""

from typing import List, Tuple

import numpy as np
import pandas as pd
from sklearn.model_selection import StratifiedKFold, train_test_split

Fold = Tuple[np.ndarray, np.ndarray]


def train_test_split_stratified(
    df: pd.DataFrame,
    label_col: str,
    train_fraction: float = 0.8,
    random_state: int = 42,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Split df into train/test partitions preserving the label proportions."""
    if not 0.0 < train_fraction < 1.0:
        raise ValueError(f"train_fraction must be in (0, 1), got {train_fraction}")

    train_df, test_df = train_test_split(
        df,
        train_size=train_fraction,
        stratify=df[label_col],
        random_state=random_state,
        shuffle=True,
    )
    return train_df.reset_index(drop=True), test_df.reset_index(drop=True)


def stratified_folds(
    df: pd.DataFrame,
    label_col: str,
    n_splits: int = 10,
    random_state: int = 42,
) -> List[Fold]:
    """Return (train_idx, val_idx) position pairs for stratified k-fold CV."""
    y = np.asarray(df[label_col])
    _, counts = np.unique(y, return_counts=True)
    if counts.min() < n_splits:
        raise ValueError(
            f"Cannot build {n_splits} stratified folds: smallest class has {counts.min()} rows"
        )

    skf = StratifiedKFold(n_splits=n_splits, shuffle=True, random_state=random_state)
    return [(train_idx, val_idx) for train_idx, val_idx in skf.split(np.zeros(len(y)), y)]
