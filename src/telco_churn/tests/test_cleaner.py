import pandas as pd
import pytest

from telco_churn.cleaner import DataCleaner
from telco_churn.exceptions import SchemaError

from conftest import CATEGORICAL_COLS


def test_cleaner_drops_rows_with_missing_values(raw_df):
    out = DataCleaner().transform(raw_df)
    assert len(out) == len(raw_df) - 2
    assert not out.isna().any().any()


def test_cleaner_drops_identifier_column(raw_df):
    out = DataCleaner(id_col="customerID").transform(raw_df)
    assert "customerID" not in out.columns


def test_cleaner_recodes_senior_citizen(raw_df):
    out = DataCleaner().transform(raw_df)
    assert set(out["SeniorCitizen"].astype(str).unique()) <= {"No", "Yes"}

    kept = raw_df.dropna().reset_index(drop=True)
    expected = kept["SeniorCitizen"].map({0: "No", 1: "Yes"})
    assert (out["SeniorCitizen"].astype(str) == expected).all()


def test_cleaner_shortens_payment_methods(raw_df):
    out = DataCleaner().transform(raw_df)
    levels = set(out["PaymentMethod"].astype(str).unique())
    assert "Bank transfer (automatic)" not in levels
    assert "Credit card (automatic)" not in levels
    assert {"Bank transfer", "Credit card"} <= levels


def test_cleaner_recodes_outcome_to_current_left(raw_df):
    out = DataCleaner().transform(raw_df)
    assert isinstance(out["Churn"].dtype, pd.CategoricalDtype)
    assert list(out["Churn"].cat.categories) == ["Current", "Left"]

    kept = raw_df.dropna().reset_index(drop=True)
    assert (out["Churn"] == "Left").sum() == (kept["Churn"] == "Yes").sum()


def test_cleaner_casts_categorical_columns(raw_df):
    out = DataCleaner(categorical_cols=CATEGORICAL_COLS).transform(raw_df)
    for col in CATEGORICAL_COLS:
        assert isinstance(out[col].dtype, pd.CategoricalDtype), col


def test_cleaner_rejects_unknown_outcome_values(raw_df):
    df = raw_df.copy()
    df.loc[5, "Churn"] = "Maybe"
    with pytest.raises(SchemaError, match="Maybe"):
        DataCleaner().transform(df)


def test_cleaner_does_not_mutate_input_df(raw_df):
    df_before = raw_df.copy(deep=True)
    _ = DataCleaner().transform(raw_df)
    pd.testing.assert_frame_equal(raw_df, df_before)


def test_cleaner_rejects_unknown_senior_citizen_values(raw_df):
    df = raw_df.copy()
    df.loc[5, "SeniorCitizen"] = 2
    with pytest.raises(SchemaError, match="SeniorCitizen"):
        DataCleaner().transform(df)
