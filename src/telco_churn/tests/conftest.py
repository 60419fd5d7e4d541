import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from telco_churn.cleaner import DataCleaner

CATEGORICAL_COLS = [
    "gender", "SeniorCitizen", "Partner", "Dependents", "PhoneService",
    "MultipleLines", "InternetService", "OnlineSecurity", "OnlineBackup",
    "DeviceProtection", "TechSupport", "StreamingTV", "StreamingMovies",
    "Contract", "PaperlessBilling", "PaymentMethod",
]
NUMERIC_COLS = ["tenure", "MonthlyCharges", "TotalCharges"]
SERVICE_COLS = [
    "OnlineSecurity", "OnlineBackup", "DeviceProtection",
    "TechSupport", "StreamingTV", "StreamingMovies",
]


def make_raw_telco(n: int = 200, seed: int = 0, n_blank_total: int = 2) -> pd.DataFrame:
    """Synthetic table in the raw export format (Yes/No churn, 0/1 senior flag)."""
    rng = np.random.default_rng(seed)

    tenure = rng.integers(1, 72, n)
    monthly = rng.uniform(18.0, 118.0, n).round(2)
    contract = rng.choice(["Month-to-month", "One year", "Two year"], n, p=[0.5, 0.25, 0.25])
    internet = rng.choice(["DSL", "Fiber optic", "No"], n, p=[0.35, 0.45, 0.2])

    logit = -0.5 + 1.5 * (contract == "Month-to-month") - 0.04 * tenure + 0.8 * (internet == "Fiber optic")
    churn = np.where(rng.random(n) < 1.0 / (1.0 + np.exp(-logit)), "Yes", "No")

    df = pd.DataFrame(
        {
            "customerID": [f"{i:04d}-ABCDE" for i in range(n)],
            "gender": rng.choice(["Female", "Male"], n),
            "SeniorCitizen": rng.choice([0, 1], n, p=[0.8, 0.2]),
            "Partner": rng.choice(["Yes", "No"], n),
            "Dependents": rng.choice(["Yes", "No"], n),
            "tenure": tenure,
            "PhoneService": rng.choice(["Yes", "No"], n, p=[0.8, 0.2]),
            "MultipleLines": rng.choice(["Yes", "No", "No phone service"], n, p=[0.4, 0.4, 0.2]),
            "InternetService": internet,
            "Contract": contract,
            "PaperlessBilling": rng.choice(["Yes", "No"], n),
            "PaymentMethod": rng.choice(
                [
                    "Electronic check",
                    "Mailed check",
                    "Bank transfer (automatic)",
                    "Credit card (automatic)",
                ],
                n,
            ),
            "MonthlyCharges": monthly,
            "TotalCharges": (tenure * monthly).round(2),
            "Churn": churn,
        }
    )
    for col in SERVICE_COLS:
        df[col] = rng.choice(["Yes", "No", "No internet service"], n, p=[0.4, 0.4, 0.2])
    df["TotalCharges"] = df["TotalCharges"].astype(object)
    df.loc[: n_blank_total - 1, "TotalCharges"] = " "
    return df


def write_raw_csv(path, n: int = 200, seed: int = 0) -> str:
    make_raw_telco(n=n, seed=seed).to_csv(path, index=False)
    return str(path)


@pytest.fixture
def raw_df() -> pd.DataFrame:
    df = make_raw_telco()
    # TotalCharges as the loader would parse it
    df["TotalCharges"] = pd.to_numeric(df["TotalCharges"], errors="coerce")
    return df


@pytest.fixture
def clean_df(raw_df) -> pd.DataFrame:
    return DataCleaner(categorical_cols=CATEGORICAL_COLS).transform(raw_df)


@pytest.fixture
def X_y(clean_df):
    from telco_churn.model_trainer import encode_labels

    X = clean_df.drop(columns=["Churn"])
    y = encode_labels(clean_df["Churn"])
    return X, y


@pytest.fixture
def preprocessing():
    return {
        "categorical_cols": CATEGORICAL_COLS,
        "numeric_cols": NUMERIC_COLS,
        "power_transform": True,
    }
