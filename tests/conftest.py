import logging

import numpy as np
import pandas as pd
import pytest
from sklearn.datasets import make_classification

from clinical_report.data import DatasetLoader, Preprocessor
from clinical_report.models import ModelTrainer
from clinical_report.utils import set_log_level


def make_patient_frame(n: int = 120, seed: int = 0) -> pd.DataFrame:
    """Synthetic patient table with a categorical column, an ID and missing values."""
    X, y = make_classification(
        n_samples=n,
        n_features=5,
        n_informative=3,
        n_redundant=1,
        weights=[0.65],
        flip_y=0.0,
        random_state=seed,
    )
    df = pd.DataFrame(X, columns=["age", "bmi", "glucose", "pressure", "insulin"])
    rng = np.random.default_rng(seed)
    df["smoker"] = np.where(rng.random(n) < 0.2 + 0.5 * y, "yes", "no")
    df["patient_id"] = np.arange(1000, 1000 + n)
    df["outcome"] = np.where(y == 1, "disease", "healthy")
    df.loc[[3, 17, 42], "glucose"] = np.nan
    df.loc[[5, 60], "smoker"] = None
    return df


@pytest.fixture
def patient_csv(tmp_path):
    path = tmp_path / "patients.csv"
    make_patient_frame().to_csv(path, index=False)
    return path


@pytest.fixture
def patient_dataset(patient_csv):
    return DatasetLoader().load_csv(
        str(patient_csv), "outcome", drop_columns=["patient_id"],
    )


@pytest.fixture(scope="session")
def breast_cancer():
    return DatasetLoader().load("breast_cancer")


@pytest.fixture
def processed(patient_dataset):
    return Preprocessor(scaling="standard", test_size=0.25).run(patient_dataset)


@pytest.fixture
def training_results(processed):
    trainer = ModelTrainer(
        models=["logistic_regression", "naive_bayes", "random_forest"],
        cv_folds=3,
        search="none",
        n_jobs=1,
    )
    return trainer.run(processed)


@pytest.fixture
def restore_log_level():
    yield
    set_log_level(logging.INFO)
